import logging
import threading
from typing import Callable, Optional

from sword_shield.models import FINAL_STANDINGS, ROUND_INPUT, ROUND_RESOLUTION, GameSession
from .directory import PlayerDirectory

DISPLAY_PRECISION = 2


def build_snapshot(session: GameSession, directory: PlayerDirectory) -> dict:
    """Outward view of the game pushed to every observer."""
    leaderboard = [
        {**entry, 'cumulative_score': round(entry['cumulative_score'], DISPLAY_PRECISION)}
        for entry in directory.snapshot_leaderboard()
    ]
    submitted_count = 0
    if session.phase == ROUND_INPUT:
        submitted_count = sum(
            1 for p in directory.players() if p.online and p.pending_submission is not None
        )
    # Results stay out of the payload while submissions are streaming in
    round_results = []
    if session.phase in (ROUND_RESOLUTION, FINAL_STANDINGS):
        round_results = [r.to_dict(precision=DISPLAY_PRECISION) for r in session.last_results]
    return {
        'phase': session.phase,
        'current_round': session.current_round,
        'total_rounds': session.total_rounds,
        'leaderboard': leaderboard,
        'online_count': directory.online_count(),
        'submitted_count': submitted_count,
        'round_results': round_results,
    }


class UpdateBroadcaster:
    """Pushes snapshots either immediately or coalesced into one per window.

    ``schedule()`` starts a deferred emission only if none is pending;
    ``cancel()`` drops the pending one; ``broadcast_now()`` cancels and emits.
    A pending emission is identified by a token: when its task wakes up and
    the token has been replaced or cleared, it exits silently.
    """

    def __init__(
        self,
        snapshot: Callable[[], dict],
        emit: Callable[[dict], None],
        window_sec: float,
        start_task: Callable,
        sleep: Callable[[float], None],
        logger: Optional[logging.Logger] = None,
    ):
        self._snapshot = snapshot
        self._emit = emit
        self.window_sec = window_sec
        self._start_task = start_task
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)
        # Never taken while holding the game lock; snapshot() acquires that one inside
        self._lock = threading.RLock()
        self._pending: Optional[object] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self) -> bool:
        with self._lock:
            if self._pending is not None:
                return False
            token = object()
            self._pending = token
        self._start_task(self._fire_after_window, token)
        return True

    def cancel(self) -> None:
        with self._lock:
            self._pending = None

    def broadcast_now(self) -> dict:
        # cancel, snapshot and emit as one step so a waking coalesced task
        # cannot slip a second copy of the same state in between
        with self._lock:
            self._pending = None
            payload = self._snapshot()
            self._emit(payload)
        return payload

    def _fire_after_window(self, token) -> None:
        self._sleep(self.window_sec)
        with self._lock:
            if self._pending is not token:
                return
            self._pending = None
            payload = self._snapshot()
            self._logger.debug(f"[broadcast] coalesced update phase={payload['phase']} submitted={payload['submitted_count']}")
            self._emit(payload)
