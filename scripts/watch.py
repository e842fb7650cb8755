#!/usr/bin/env python3
"""
Tournament Live Feed Watcher

Connects to a live feed server, splits the Server-Sent Events stream into
snapshots and prints one summary line per event.

Usage:
    python scripts/watch.py <tournament-id>
    python scripts/watch.py <tournament-id> --url http://localhost:5000 --limit 5

Exit codes:
    0: Success (stream ended or --limit reached)
    1: Connection failed
"""
import argparse
import json
import logging
import sys

import requests

logger = logging.getLogger('watch')

DEFAULT_URL = 'http://localhost:5000'


def iter_events(lines):
    """
    Yield decoded JSON payloads from an iterable of SSE lines.

    Consecutive ``data:`` lines are joined with newlines until a blank line
    ends the event. Comments (lines starting with ':') and other fields are
    ignored. Events whose payload is not valid JSON are skipped with a warning.
    """
    buffer = []
    for raw in lines:
        line = raw.decode('utf-8') if isinstance(raw, bytes) else raw
        line = line.rstrip('\r\n')
        if not line:
            if buffer:
                payload = '\n'.join(buffer)
                buffer = []
                try:
                    yield json.loads(payload)
                except json.JSONDecodeError as e:
                    logger.warning(f'Skipping malformed event: {e}')
            continue
        if line.startswith(':'):
            continue
        field, _, value = line.partition(':')
        if field == 'data':
            buffer.append(value[1:] if value.startswith(' ') else value)


def summarize(event) -> str:
    """One-line description of a snapshot or error event."""
    if event is None:
        return 'empty event'
    if 'error' in event:
        return f"error: {event['error']}"
    matches = event.get('matches', [])
    decided = sum(1 for m in matches if m.get('winnerId') or m.get('looserId'))
    return (f"{event.get('name')} [{event.get('tournamentState')}] "
            f"teams={len(event.get('teams', []))} groups={len(event.get('groups', []))} "
            f"matches={decided}/{len(matches)} decided")


def watch(url: str, tournament_id: str, limit: int = None) -> int:
    """Stream events for a tournament, printing a summary of each."""
    endpoint = f"{url.rstrip('/')}/subscribe/{tournament_id}"
    logger.info(f'Connecting to {endpoint}')
    try:
        response = requests.get(endpoint, stream=True, headers={'Accept': 'text/event-stream'}, timeout=30)
        response.raise_for_status()
    except requests.RequestException as e:
        print(f"Error: Failed to connect to {endpoint}: {e}", file=sys.stderr)
        return 1

    count = 0
    try:
        for event in iter_events(response.iter_lines(decode_unicode=True)):
            print(summarize(event))
            count += 1
            if limit is not None and count >= limit:
                break
    except requests.RequestException as e:
        print(f"Error: Stream interrupted: {e}", file=sys.stderr)
        return 1
    finally:
        response.close()

    logger.info(f'Received {count} event(s)')
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description='Print live snapshots of a tournament from a live feed server'
    )
    parser.add_argument(
        'tournament_id',
        help='Id of the tournament to follow'
    )
    parser.add_argument(
        '--url',
        default=DEFAULT_URL,
        help=f'Base URL of the live feed server (default: {DEFAULT_URL})'
    )
    parser.add_argument(
        '--limit',
        type=int,
        help='Stop after this many events'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Log connection details'
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(message)s')
    return watch(args.url, args.tournament_id, args.limit)


if __name__ == '__main__':
    sys.exit(main())
