import logging
import threading
import time
from typing import Callable, Optional

from sword_shield.models import GameSession
from sword_shield.services.games import phases
from sword_shield.services.games.broadcaster import UpdateBroadcaster, build_snapshot
from sword_shield.services.games.directory import PlayerDirectory
from sword_shield.services.games.errors import AuthorizationError, GameError


class GameContext:
    """Owns one game instance: directory, session, broadcaster and the lock.

    Every mutation runs under ``lock`` so joins, submissions, admin actions,
    disconnects and reaper sweeps never interleave. Broadcasting happens after
    the lock is released; snapshots re-acquire it to read a consistent state.
    """

    def __init__(
        self,
        admin_secret: str,
        emit: Callable[[dict], None],
        start_task: Callable,
        sleep: Callable[[float], None],
        total_rounds: int = 3,
        grace_sec: float = 600.0,
        window_sec: float = 0.5,
        logger: Optional[logging.Logger] = None,
    ):
        self.admin_secret = admin_secret
        self.grace_sec = grace_sec
        self.logger = logger or logging.getLogger(__name__)
        self.lock = threading.RLock()
        self.directory = PlayerDirectory()
        self.session = GameSession(total_rounds=total_rounds)
        self.broadcaster = UpdateBroadcaster(
            snapshot=self.snapshot,
            emit=emit,
            window_sec=window_sec,
            start_task=start_task,
            sleep=sleep,
            logger=self.logger,
        )

    @classmethod
    def from_config(cls, config, emit, start_task, sleep, logger=None):
        return cls(
            admin_secret=config['ADMIN_SECRET'],
            emit=emit,
            start_task=start_task,
            sleep=sleep,
            total_rounds=int(config.get('TOTAL_ROUNDS', 3)),
            grace_sec=float(config.get('RECONNECT_GRACE_SEC', 600)),
            window_sec=int(config.get('BROADCAST_WINDOW_MS', 500)) / 1000.0,
            logger=logger,
        )

    def snapshot(self) -> dict:
        with self.lock:
            return build_snapshot(self.session, self.directory)

    def join(self, identity, connection_ref: str):
        identity = phases.parse_identity(identity)
        with self.lock:
            existing = self.directory.get(identity)
            if existing is not None and existing.online and existing.connection_ref != connection_ref:
                self.logger.warning(f'[lobby] "{identity}" taken over by connection {connection_ref}')
            player = self.directory.join_or_reconnect(identity, connection_ref)
            total = len(self.directory)
        if existing is not None:
            self.logger.info(f'[lobby] "{identity}" reconnected (score: {player.cumulative_score:.1f}, {total} players)')
        else:
            self.logger.info(f'[lobby] "{identity}" joined ({total} players)')
        self.broadcaster.broadcast_now()
        return player

    def submit(self, connection_ref: str, choice, prediction) -> dict:
        with self.lock:
            player, submission = phases.submit_choice(
                self.session, self.directory, connection_ref, choice, prediction
            )
            current_round = self.session.current_round
        self.logger.debug(
            f"[round {current_round}] {player.identity} submitted choice={submission.choice} prediction={submission.prediction}"
        )
        self.broadcaster.schedule()
        return {
            'round': current_round,
            'choice': submission.choice,
            'prediction': submission.prediction,
            'message': f'Round {current_round} choice received.',
        }

    def admin(self, action, secret) -> str:
        try:
            phases.check_admin_secret(secret, self.admin_secret)
        except AuthorizationError:
            self.logger.warning(f'[admin] rejected action="{action}": bad secret')
            raise
        with self.lock:
            try:
                name = phases.apply_admin_action(self.session, self.directory, action)
            except GameError as exc:
                self.logger.info(f'[admin] action="{action}" rejected: {exc.message}')
                raise
            phase, current_round = self.session.phase, self.session.current_round
            scored = len(self.session.last_results)
        self.logger.info(f'[admin] action="{name}" -> phase={phase} round={current_round}')
        if name == phases.RESOLVE_ROUND:
            self.logger.info(f'[game] Round {current_round} resolved, {scored} submissions scored')
        self.broadcaster.broadcast_now()
        return name

    def disconnect(self, connection_ref: str):
        with self.lock:
            player = self.directory.mark_offline(connection_ref, time.time())
        if player is not None:
            self.logger.info(f'[-] {player.identity} disconnected (kept for {self.grace_sec / 60:g}m)')
        else:
            self.logger.debug(f'[-] connection {connection_ref} disconnected (was not in lobby)')
        self.broadcaster.broadcast_now()
        return player

    def status(self) -> dict:
        with self.lock:
            return {
                'game': 'Sword & Shield',
                'status': 'online',
                'phase': self.session.phase,
                'round': self.session.current_round,
                'players': self.directory.online_count(),
                'total_registered': len(self.directory),
            }

    def dump(self) -> dict:
        with self.lock:
            state = self.session.to_dict()
            state['players'] = [p.to_dict() for p in self.directory.players()]
            return state
