"""
Exception hierarchy for the Discord Trivia Bot.
"""


class TriviaError(Exception):
    """Base exception for trivia bot errors."""
    pass


class GenerationError(TriviaError):
    """Raised when the generation service cannot produce a usable response."""
    pass


class ParseError(TriviaError):
    """Raised when generated text is not valid JSON."""
    pass


class SchemaError(TriviaError):
    """Raised when generated JSON is missing or has malformed required fields."""
    pass


class DuplicateQuestion(TriviaError):
    """Raised when a question has already been asked in this process."""

    def __init__(self, fingerprint: str):
        super().__init__(f"Question already asked: {fingerprint}")
        self.fingerprint = fingerprint


class GenerationExhausted(TriviaError):
    """Raised when every generation attempt for a round produced nothing usable."""

    def __init__(self, attempts: int):
        super().__init__(f"No unique question after {attempts} attempts")
        self.attempts = attempts


class RoundConflictError(TriviaError):
    """Raised when a round is requested in a channel that already has one."""

    def __init__(self, channel_id: int):
        super().__init__(f"Channel {channel_id} already has a trivia round in progress")
        self.channel_id = channel_id
