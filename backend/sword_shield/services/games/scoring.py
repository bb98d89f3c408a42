from collections import Counter
from typing import Iterable, List

from sword_shield.models import Player, RoundResult


def score_round(players: Iterable[Player]) -> List[RoundResult]:
    """Score every player holding a pending submission and accumulate it.

    popularity Y = k(x) / N * 100, base = x * (1 - Y/100),
    penalty = |Y - z| / 10, round score = base - penalty.

    Adds each round score to the player's cumulative score, so this must run
    exactly once per round. Players without a submission get no entry.
    """
    submitters = [p for p in players if p.pending_submission is not None]
    n = len(submitters)
    if n == 0:
        return []

    counts = Counter(p.pending_submission.choice for p in submitters)

    results = []
    for p in submitters:
        x = p.pending_submission.choice
        z = p.pending_submission.prediction
        k = counts[x]
        popularity = (k / n) * 100
        base_score = x * (1 - popularity / 100)
        penalty = abs(popularity - z) / 10
        round_score = base_score - penalty
        p.cumulative_score += round_score
        results.append(RoundResult(
            identity=p.identity,
            choice=x,
            prediction=z,
            count=k,
            popularity=popularity,
            base_score=base_score,
            prediction_penalty=penalty,
            round_score=round_score,
        ))
    return results
