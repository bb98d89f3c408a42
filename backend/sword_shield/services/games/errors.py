class GameError(Exception):
    """Base for every recoverable, caller-facing game failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GameError):
    pass


class AuthorizationError(GameError):
    pass


class PhaseError(GameError):
    def __init__(self, message: str, phase: str):
        super().__init__(message)
        self.phase = phase


class UnknownPlayerError(GameError):
    pass
