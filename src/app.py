"""
Flask web application for the tournament live feed.
"""
import os
import logging
from flask import Flask, Response, jsonify, stream_with_context
from livefeed.store import StoreError, TournamentNotFound, YamlTournamentStore
from livefeed.snapshot import public_view, redact
from livefeed.stream import DEFAULT_TICK_SECONDS, Subscription, Ticker

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('LIVEFEED_DATA_DIR', os.path.join(BASE_DIR, 'data'))
TICK_SECONDS = float(os.environ.get('LIVEFEED_TICK_SECONDS', DEFAULT_TICK_SECONDS))
NEST_GROUP_MATCHES = os.environ.get('LIVEFEED_NEST_GROUP_MATCHES', '1').lower() not in ('0', 'false', 'no')

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type, Authorization',
}


def get_store() -> YamlTournamentStore:
    """Store for the configured data directory (resolved per request)."""
    return YamlTournamentStore(DATA_DIR)


@app.after_request
def add_cors_headers(response):
    """Let browser clients on any origin read the feed."""
    for header, value in CORS_HEADERS.items():
        response.headers[header] = value
    return response


@app.errorhandler(TournamentNotFound)
def handle_not_found(e):
    return jsonify({'error': 'Tournament not found'}), 404


@app.errorhandler(StoreError)
def handle_store_error(e):
    app.logger.error(f'Store error: {e}')
    return jsonify({'error': 'Error fetching data'}), 500


@app.route('/health')
def health():
    return jsonify({'status': 'ok'})


@app.route('/api/tournaments/<tournament_id>')
def api_tournament(tournament_id):
    """One-shot public snapshot of a tournament."""
    snapshot = get_store().fetch_tournament_snapshot(tournament_id)
    return jsonify(redact(public_view(snapshot).to_dict(nest_group_matches=NEST_GROUP_MATCHES)))


@app.route('/api/tournaments/code/<code>')
def api_tournament_by_code(code):
    """Resolve a join code to the tournament id to subscribe to."""
    return jsonify({'id': get_store().find_tournament_id(code)})


@app.route('/subscribe/<tournament_id>')
def subscribe(tournament_id):
    """Server-Sent Events stream pushing the tournament snapshot every tick."""
    store = get_store()
    subscription = Subscription(
        tournament_id,
        store.fetch_tournament_snapshot,
        ticker=Ticker(TICK_SECONDS),
        nest_group_matches=NEST_GROUP_MATCHES,
    )

    response = Response(
        stream_with_context(subscription.frames()),
        mimetype='text/event-stream',
        headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no',
        },
    )
    # Disconnect before the first frame never enters frames(), so close here too.
    response.call_on_close(subscription.close)
    return response


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    app.run(debug=True, port=int(os.environ.get('PORT', 5000)), threaded=True)
