import time
from typing import Callable, Optional


def reap_stale_players(game, now: Optional[float] = None) -> int:
    """Drop players offline longer than the grace window; broadcast if any went.

    A player offline for exactly the grace duration is kept.
    """
    now = time.time() if now is None else now
    with game.lock:
        purged = game.directory.purge_stale(now, game.grace_sec)
        remaining = len(game.directory)
    if purged:
        game.logger.info(f"[cleanup] Purged {purged} stale player(s). {remaining} remaining.")
        game.broadcaster.broadcast_now()
    return purged


def start_reaper(game, start_task: Callable, sleep: Callable[[float], None], interval_sec: float):
    """Run ``reap_stale_players`` every ``interval_sec`` in a background task."""

    def _worker():
        game.logger.info(f"[cleanup] reaper started interval={interval_sec}s grace={game.grace_sec}s")
        while True:
            sleep(interval_sec)
            try:
                reap_stale_players(game)
            except Exception:
                game.logger.exception('[cleanup] sweep failed')

    return start_task(_worker)
