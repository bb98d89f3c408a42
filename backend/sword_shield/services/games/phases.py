"""Phase state machine for a game session.

lobby -> round_input -> round_resolution -> round_input ... -> final_standings,
with ``reset`` returning any phase to the lobby. Every function here either
applies its transition completely or raises a ``GameError`` and leaves the
session and directory untouched.
"""
import hmac
import math

from sword_shield.models import (
    FINAL_STANDINGS, LOBBY, MAX_CHOICE, MAX_IDENTITY_LENGTH, MAX_PREDICTION,
    MIN_CHOICE, MIN_PREDICTION, ROUND_INPUT, ROUND_RESOLUTION, GameSession,
    Submission,
)
from .directory import PlayerDirectory
from .errors import AuthorizationError, PhaseError, UnknownPlayerError, ValidationError
from .scoring import score_round

START_ROUND = 'start_round'
RESOLVE_ROUND = 'resolve_round'
NEXT_ROUND = 'next_round'
RESET = 'reset'
ADMIN_ACTION_ALIASES = {'reset_game': RESET}


def parse_identity(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('A valid identity is required.')
    return value.strip()[:MAX_IDENTITY_LENGTH].rstrip()


def parse_choice(value) -> int:
    if isinstance(value, bool):
        value = None
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            value = None
    if not isinstance(value, int) or not MIN_CHOICE <= value <= MAX_CHOICE:
        raise ValidationError(f'Choice must be an integer between {MIN_CHOICE} and {MAX_CHOICE}.')
    return value


def parse_prediction(value) -> float:
    parsed = None
    if not isinstance(value, bool) and isinstance(value, (int, float, str)):
        try:
            parsed = float(value)
        except ValueError:
            parsed = None
    if parsed is None or not math.isfinite(parsed) or not MIN_PREDICTION <= parsed <= MAX_PREDICTION:
        raise ValidationError(
            f'Prediction must be a number between {MIN_PREDICTION:g} and {MAX_PREDICTION:g}.'
        )
    return parsed


def check_admin_secret(supplied, expected: str) -> None:
    # surrogatepass: JSON can deliver lone surrogates such as "\ud800"
    if not isinstance(supplied, str) or not hmac.compare_digest(
        supplied.encode('utf-8', 'surrogatepass'), expected.encode('utf-8', 'surrogatepass')
    ):
        raise AuthorizationError('Invalid admin secret.')


def _require_phase(session: GameSession, verb: str, *allowed: str) -> None:
    if session.phase not in allowed:
        raise PhaseError(f'Cannot {verb} from phase "{session.phase}".', session.phase)


def start_round(session: GameSession, directory: PlayerDirectory) -> None:
    _require_phase(session, 'start round', LOBBY, ROUND_RESOLUTION)
    directory.clear_submissions()
    session.last_results = []
    session.phase = ROUND_INPUT


def resolve_round(session: GameSession, directory: PlayerDirectory) -> None:
    _require_phase(session, 'resolve', ROUND_INPUT)
    session.last_results = score_round(directory.players())
    directory.clear_submissions()
    session.phase = ROUND_RESOLUTION


def next_round(session: GameSession, directory: PlayerDirectory) -> None:
    _require_phase(session, 'advance', ROUND_RESOLUTION)
    if session.current_round >= session.total_rounds:
        session.phase = FINAL_STANDINGS
        return
    session.current_round += 1
    directory.clear_submissions()
    session.last_results = []
    session.phase = ROUND_INPUT


def reset_game(session: GameSession, directory: PlayerDirectory) -> None:
    session.phase = LOBBY
    session.current_round = 1
    session.last_results = []
    directory.reset_scores()


ADMIN_ACTIONS = {
    START_ROUND: start_round,
    RESOLVE_ROUND: resolve_round,
    NEXT_ROUND: next_round,
    RESET: reset_game,
}


def apply_admin_action(session: GameSession, directory: PlayerDirectory, action) -> str:
    """Run a named admin transition and return its canonical name."""
    name = ADMIN_ACTION_ALIASES.get(action, action)
    handler = ADMIN_ACTIONS.get(name) if isinstance(name, str) else None
    if handler is None:
        raise ValidationError(f'Unknown admin action: "{action}".')
    handler(session, directory)
    return name


def submit_choice(session: GameSession, directory: PlayerDirectory, connection_ref, choice, prediction):
    """Record (or replace) the caller's submission for the open round."""
    player = directory.find_by_connection(connection_ref)
    if player is None:
        raise UnknownPlayerError('You must join the lobby first.')
    if session.phase != ROUND_INPUT:
        raise PhaseError(f'Submissions are not open right now (phase "{session.phase}").', session.phase)
    submission = Submission(parse_choice(choice), parse_prediction(prediction))
    player.pending_submission = submission
    return player, submission
