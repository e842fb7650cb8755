"""
Live snapshot distribution over Server-Sent Events.

One ``Subscription`` exists per connected viewer. It owns a ``Ticker`` and,
on every tick, fetches the tournament, projects it to its public view and
emits one SSE frame. The transport drains ``Subscription.frames()``; when the
viewer disconnects the transport closes that generator, which cancels the
ticker. Nothing else ends a subscription.
"""
import logging
import time
from typing import Callable, Iterator

from livefeed.snapshot import TournamentSnapshot, dumps, render_public_snapshot
from livefeed.store import TournamentNotFound

logger = logging.getLogger(__name__)

DEFAULT_TICK_SECONDS = 2.0

NOT_FOUND_ERROR = 'Tournament not found'
FETCH_ERROR = 'Error fetching data'

OPEN = 'open'
CLOSED = 'closed'


def format_event(payload: str) -> str:
    """Frame one serialized message as an SSE ``data`` event."""
    # SSE lines end at CR or LF only; U+2028 and friends stay inside the data.
    lines = payload.replace('\r\n', '\n').replace('\r', '\n').split('\n')
    return ''.join(f'data: {line}\n' for line in lines) + '\n'


def error_event(message: str) -> str:
    return format_event(dumps({'error': message}))


class Ticker:
    """Fixed-interval schedule owned by a single subscription.

    ``wait`` blocks until the next tick is due. A tick that is reached late
    (the previous fetch ran longer than the interval) fires immediately and
    the schedule restarts from that moment, so ticks never overlap.
    """

    def __init__(self, interval: float = DEFAULT_TICK_SECONDS,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if interval < 0:
            raise ValueError(f'Tick interval must be non-negative, got {interval}')
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._next_at = clock() + interval
        self.cancelled = False
        self.ticks = 0

    def wait(self) -> bool:
        """Block until the next tick. Returns False once cancelled."""
        if self.cancelled:
            return False
        delay = self._next_at - self._clock()
        if delay > 0:
            self._sleep(delay)
        if self.cancelled:
            return False
        fired_at = max(self._next_at, self._clock())
        self._next_at = fired_at + self.interval
        self.ticks += 1
        return True

    def cancel(self) -> bool:
        """Stop the schedule. Returns True only for the call that stopped it."""
        if self.cancelled:
            return False
        self.cancelled = True
        return True


class Subscription:
    """A viewer's live feed of one tournament."""

    def __init__(self, tournament_id, fetch: Callable[[str], TournamentSnapshot],
                 ticker: Ticker = None, nest_group_matches: bool = True):
        self.tournament_id = tournament_id
        self._fetch = fetch
        self.ticker = ticker if ticker is not None else Ticker()
        self.nest_group_matches = nest_group_matches
        self.state = OPEN
        self.pushes = 0
        logger.info(f'Subscription opened for tournament {tournament_id!r} '
                    f'(every {self.ticker.interval}s)')

    @property
    def is_open(self) -> bool:
        return self.state == OPEN

    def push(self) -> str:
        """Run one tick and return the frame to write.

        Failures become error frames; the subscription stays open and the
        next tick retries.
        """
        self.pushes += 1
        try:
            snapshot = self._fetch(self.tournament_id)
            payload = render_public_snapshot(snapshot, nest_group_matches=self.nest_group_matches)
        except TournamentNotFound:
            logger.debug(f'Tournament {self.tournament_id!r} not found on tick {self.pushes}')
            return error_event(NOT_FOUND_ERROR)
        except Exception:
            logger.exception(f'Error fetching data for tournament {self.tournament_id!r}')
            return error_event(FETCH_ERROR)
        return format_event(payload)

    def frames(self) -> Iterator[str]:
        """Yield one frame per tick until the subscription is closed."""
        try:
            while self.is_open and self.ticker.wait():
                yield self.push()
        finally:
            self.close()

    def close(self) -> bool:
        """Cancel the ticker and mark the subscription closed.

        Safe to call more than once; only the first call has an effect.
        """
        if self.state == CLOSED:
            return False
        self.state = CLOSED
        self.ticker.cancel()
        logger.info(f'Subscription closed for tournament {self.tournament_id!r} '
                    f'after {self.pushes} push(es)')
        return True

