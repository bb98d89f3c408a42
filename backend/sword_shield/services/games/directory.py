import time
from typing import Dict, List, Optional

from sword_shield.models import Player


class PlayerDirectory:
    """Players keyed by identity, with a reverse index by connection.

    The identity map is the source of truth and keeps insertion order, which
    the leaderboard relies on for tie-breaking. ``_by_connection`` is updated
    alongside every mutation so per-event lookups stay O(1).
    """

    def __init__(self):
        self._players: Dict[str, Player] = {}
        self._by_connection: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, identity) -> bool:
        return identity in self._players

    def get(self, identity: str) -> Optional[Player]:
        return self._players.get(identity)

    def players(self) -> List[Player]:
        return list(self._players.values())

    def submitters(self) -> List[Player]:
        return [p for p in self._players.values() if p.pending_submission is not None]

    def online_count(self) -> int:
        return sum(1 for p in self._players.values() if p.online)

    def join_or_reconnect(self, identity: str, connection_ref: str, now: Optional[float] = None) -> Player:
        """Bind ``connection_ref`` to ``identity``, creating the player if needed.

        A returning identity keeps its score and pending submission. If the
        connection was bound to another player, that player goes offline; if
        the identity was live on another connection, that connection is
        unbound.
        """
        now = time.time() if now is None else now
        previous_identity = self._by_connection.get(connection_ref)
        if previous_identity is not None and previous_identity != identity:
            self._players[previous_identity].detach(now)
            del self._by_connection[connection_ref]

        player = self._players.get(identity)
        if player is None:
            player = Player(identity, connection_ref)
            self._players[identity] = player
        else:
            if player.connection_ref is not None and player.connection_ref != connection_ref:
                self._by_connection.pop(player.connection_ref, None)
            player.attach(connection_ref)
        self._by_connection[connection_ref] = identity
        return player

    def find_by_connection(self, connection_ref: str) -> Optional[Player]:
        identity = self._by_connection.get(connection_ref)
        if identity is None:
            return None
        return self._players.get(identity)

    def mark_offline(self, connection_ref: str, now: Optional[float] = None) -> Optional[Player]:
        identity = self._by_connection.pop(connection_ref, None)
        if identity is None:
            return None
        player = self._players[identity]
        player.detach(time.time() if now is None else now)
        return player

    def purge_stale(self, now: float, grace: float) -> int:
        stale = [
            identity for identity, p in self._players.items()
            if not p.online and p.disconnected_at is not None and now - p.disconnected_at > grace
        ]
        for identity in stale:
            del self._players[identity]
        return len(stale)

    def clear_submissions(self) -> None:
        for p in self._players.values():
            p.pending_submission = None

    def reset_scores(self) -> None:
        for p in self._players.values():
            p.cumulative_score = 0.0
            p.pending_submission = None

    def snapshot_leaderboard(self) -> List[dict]:
        # sorted() is stable, so equal scores keep join order
        ranked = sorted(self._players.values(), key=lambda p: p.cumulative_score, reverse=True)
        return [
            {'identity': p.identity, 'cumulative_score': p.cumulative_score, 'online': p.online}
            for p in ranked
        ]
