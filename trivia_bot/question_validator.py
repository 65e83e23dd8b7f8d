"""
Validation and deduplication of generated trivia questions.
"""
import json
import logging
from collections import deque
from typing import Deque, Optional, Set

from .errors import DuplicateQuestion, ParseError, SchemaError
from .models import ANSWER_LABELS, TriviaQuestion

logger = logging.getLogger(__name__)


def parse_and_validate(raw_text: str) -> TriviaQuestion:
    """
    Parse generated text into a TriviaQuestion.

    Expected structure:
    {
        "question": str,
        "options": [str, str, str, str],
        "correctAnswer": "A" | "B" | "C" | "D"
    }

    Args:
        raw_text: Fence-stripped text returned by the generator

    Returns:
        TriviaQuestion with the question and options preserved verbatim

    Raises:
        ParseError: If raw_text is not valid JSON
        SchemaError: If a required field is missing or malformed
    """
    try:
        data = json.loads(raw_text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ParseError(f"Invalid JSON from generator: {e}") from e

    if not isinstance(data, dict):
        raise SchemaError("Question data must be a JSON object")

    question = data.get("question")
    if not isinstance(question, str) or not question.strip():
        raise SchemaError("'question' must be a non-empty string")

    options = data.get("options")
    if not isinstance(options, list):
        raise SchemaError("'options' must be an array")
    if len(options) != len(ANSWER_LABELS):
        raise SchemaError(f"'options' must contain exactly {len(ANSWER_LABELS)} entries, got {len(options)}")
    if not all(isinstance(option, str) for option in options):
        raise SchemaError("Every option must be a string")

    correct_answer = data.get("correctAnswer")
    if not isinstance(correct_answer, str) or not correct_answer.strip():
        raise SchemaError("'correctAnswer' is required")

    label = correct_answer.strip().upper()
    if label not in ANSWER_LABELS:
        raise SchemaError(f"'correctAnswer' must be one of {', '.join(ANSWER_LABELS)}, got {correct_answer!r}")

    return TriviaQuestion(text=question, options=tuple(options), correct_answer=label)


class QuestionHistory:
    """
    Remembers fingerprints of questions already asked.

    With a limit, the oldest fingerprint is forgotten first once the
    history is full. A limit of None keeps every fingerprint for the
    lifetime of the process.
    """

    def __init__(self, limit: Optional[int] = 1000):
        if limit is not None and limit < 1:
            raise ValueError("History limit must be at least 1")
        self.limit = limit
        self._order: Deque[str] = deque()
        self._seen: Set[str] = set()

    def __contains__(self, question: TriviaQuestion) -> bool:
        return question.fingerprint in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def remember(self, question: TriviaQuestion) -> None:
        """
        Record a question as asked.

        Raises:
            DuplicateQuestion: If the question was already recorded
        """
        fingerprint = question.fingerprint
        if fingerprint in self._seen:
            raise DuplicateQuestion(fingerprint)

        self._seen.add(fingerprint)
        self._order.append(fingerprint)

        if self.limit is not None and len(self._order) > self.limit:
            evicted = self._order.popleft()
            self._seen.discard(evicted)
            logger.debug(f"Evicted oldest question from history: {evicted}")

    def deduplicate(self, question: TriviaQuestion) -> Optional[TriviaQuestion]:
        """
        Return the question if it is new, recording it; None if already asked.
        """
        try:
            self.remember(question)
        except DuplicateQuestion as e:
            logger.info(f"Skipping duplicate question: {e.fingerprint}")
            return None
        return question

    def forget(self, question: TriviaQuestion) -> None:
        """Drop a recorded question so it can be asked again."""
        if question not in self:
            return
        self._seen.discard(question.fingerprint)
        self._order.remove(question.fingerprint)
