"""
Core data models for the Discord Trivia Bot.
"""
import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple


ANSWER_LABELS = ("A", "B", "C", "D")


@dataclass(frozen=True)
class TopicSpec:
    """Theme, region and field a question should be about."""
    theme: str
    region: str
    field: str


@dataclass(frozen=True)
class TriviaQuestion:
    """A validated multiple-choice question."""
    text: str
    options: Tuple[str, ...]
    correct_answer: str

    @property
    def fingerprint(self) -> str:
        """Deduplication key built from the question text and its answer."""
        return f"{self.text}:{self.correct_answer}"


class RoundState(Enum):
    """Enumeration of possible trivia round states."""
    GENERATING = "generating"
    ACTIVE = "active"
    RESOLVED = "resolved"
    EXPIRED = "expired"


@dataclass
class Round:
    """Represents one question-and-answer cycle in a Discord channel."""
    question: TriviaQuestion
    channel_id: int
    state: RoundState = RoundState.ACTIVE
    started_at: datetime = field(default_factory=datetime.now)
    message: Optional[Any] = None
    winner_id: Optional[int] = None
    # (loop arrival time, message) pairs
    inbox: asyncio.Queue = field(default_factory=asyncio.Queue)

    @property
    def resolved(self) -> bool:
        return self.state is RoundState.RESOLVED

    @property
    def is_open(self) -> bool:
        return self.state is RoundState.ACTIVE


@dataclass
class TriviaSettings:
    """Configuration settings for trivia rounds."""
    timer_duration: float = 15
    max_attempts: int = 4
    history_limit: Optional[int] = 1000
    generation_timeout: float = 30
    model_name: str = "gemini-2.5-flash"
    default_region: str = "General"
