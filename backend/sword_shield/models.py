from typing import List, Optional

LOBBY = 'lobby'
ROUND_INPUT = 'round_input'
ROUND_RESOLUTION = 'round_resolution'
FINAL_STANDINGS = 'final_standings'
PHASES = (LOBBY, ROUND_INPUT, ROUND_RESOLUTION, FINAL_STANDINGS)

MAX_IDENTITY_LENGTH = 20
MIN_CHOICE, MAX_CHOICE = 1, 10
MIN_PREDICTION, MAX_PREDICTION = 0.0, 100.0


class Submission:
    __slots__ = ('choice', 'prediction')

    def __init__(self, choice: int, prediction: float):
        self.choice = choice
        self.prediction = prediction

    def to_dict(self):
        return {'choice': self.choice, 'prediction': self.prediction}


class Player:
    def __init__(self, identity: str, connection_ref: Optional[str] = None):
        self.identity = identity
        self.connection_ref = connection_ref
        self.online = connection_ref is not None
        self.disconnected_at: Optional[float] = None
        self.cumulative_score = 0.0
        self.pending_submission: Optional[Submission] = None

    def attach(self, connection_ref: str) -> None:
        self.connection_ref = connection_ref
        self.online = True
        self.disconnected_at = None

    def detach(self, now: float) -> None:
        self.connection_ref = None
        self.online = False
        self.disconnected_at = now

    def to_dict(self):
        return {
            'identity': self.identity,
            'connection_ref': self.connection_ref,
            'online': self.online,
            'disconnected_at': self.disconnected_at,
            'cumulative_score': self.cumulative_score,
            'pending_submission': self.pending_submission.to_dict() if self.pending_submission else None,
        }


class RoundResult:
    def __init__(self, identity, choice, prediction, count, popularity,
                 base_score, prediction_penalty, round_score):
        self.identity = identity
        self.choice = choice
        self.prediction = prediction
        self.count = count
        self.popularity = popularity
        self.base_score = base_score
        self.prediction_penalty = prediction_penalty
        self.round_score = round_score

    def to_dict(self, precision: Optional[int] = None):
        def _num(value):
            return round(value, precision) if precision is not None else value

        return {
            'identity': self.identity,
            'choice': self.choice,
            'prediction': _num(self.prediction),
            'count': self.count,
            'popularity': _num(self.popularity),
            'base_score': _num(self.base_score),
            'prediction_penalty': _num(self.prediction_penalty),
            'round_score': _num(self.round_score),
        }


class GameSession:
    """Phase, round counter and the latest round's results."""

    def __init__(self, total_rounds: int = 3):
        self.total_rounds = total_rounds
        self.phase = LOBBY
        self.current_round = 1
        self.last_results: List[RoundResult] = []

    def to_dict(self):
        return {
            'phase': self.phase,
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'last_results': [r.to_dict() for r in self.last_results],
        }
