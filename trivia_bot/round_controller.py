"""
Trivia round controller for the Discord Trivia Bot.
Generates questions, runs the answer-collection window and scores rounds
per Discord channel.
"""
import asyncio
import logging
import time
from datetime import datetime
from typing import Dict, Optional, Set

import discord

from .errors import (
    GenerationError,
    GenerationExhausted,
    ParseError,
    RoundConflictError,
    SchemaError,
)
from .models import ANSWER_LABELS, Round, RoundState, TopicSpec, TriviaQuestion, TriviaSettings
from .question_generator import QuestionGenerator, build_prompt
from .question_validator import QuestionHistory, parse_and_validate
from .scoreboard import Scoreboard

logger = logging.getLogger(__name__)


class RoundLifecycleLogger:
    """Structured logging for round lifecycle events."""

    @staticmethod
    def log_attempt_failed(channel_id: int, attempt: int, max_attempts: int) -> None:
        logger.warning(
            f"Round lifecycle: ATTEMPT_FAILED - Channel {channel_id}, attempt {attempt}/{max_attempts}",
            extra={
                'event_type': 'round_attempt_failed',
                'channel_id': channel_id,
                'attempt': attempt,
                'max_attempts': max_attempts,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_round_created(channel_id: int, question: TriviaQuestion, attempts: int) -> None:
        logger.info(
            f"Round lifecycle: CREATED - Channel {channel_id} after {attempts} attempt(s)",
            extra={
                'event_type': 'round_created',
                'channel_id': channel_id,
                'fingerprint': question.fingerprint,
                'attempts': attempts,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_round_resolved(channel_id: int, user_id: int, elapsed: float) -> None:
        logger.info(
            f"Round lifecycle: RESOLVED - Channel {channel_id} by user {user_id} in {elapsed:.2f}s",
            extra={
                'event_type': 'round_resolved',
                'channel_id': channel_id,
                'user_id': user_id,
                'elapsed': elapsed,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_round_expired(channel_id: int, duration: float) -> None:
        logger.info(
            f"Round lifecycle: EXPIRED - Channel {channel_id} after {duration}s",
            extra={
                'event_type': 'round_expired',
                'channel_id': channel_id,
                'duration': duration,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_round_released(channel_id: int, state: RoundState) -> None:
        logger.debug(
            f"Round lifecycle: RELEASED - Channel {channel_id} ({state.value})",
            extra={
                'event_type': 'round_released',
                'channel_id': channel_id,
                'state': state.value,
                'timestamp': time.time()
            }
        )


def normalize_answer(content: str) -> Optional[str]:
    """Return the answer label a message content stands for, or None."""
    answer = (content or "").strip().upper()
    return answer if answer in ANSWER_LABELS else None


class RoundController:
    """
    Orchestrates trivia rounds across Discord channels.

    Each channel can have at most one round generating or collecting
    answers at a time. Answers are evaluated one by one in the order
    Discord delivered them, so the first correct answer always wins.
    """

    def __init__(
        self,
        generator: QuestionGenerator,
        history: QuestionHistory,
        scoreboard: Scoreboard,
        settings: Optional[TriviaSettings] = None
    ):
        """
        Initialize the round controller.

        Args:
            generator: Source of raw question text
            history: Record of questions already asked
            scoreboard: Tally updated when a round is resolved
            settings: Round timing and retry settings
        """
        self.generator = generator
        self.history = history
        self.scoreboard = scoreboard
        self.settings = settings or TriviaSettings()

        self._active_rounds: Dict[int, Round] = {}
        self._generating: Set[int] = set()

        logger.info("RoundController initialized")

    def has_active_round(self, channel_id: int) -> bool:
        return channel_id in self._generating or channel_id in self._active_rounds

    def get_round(self, channel_id: int) -> Optional[Round]:
        return self._active_rounds.get(channel_id)

    @staticmethod
    def format_question_message(question: TriviaQuestion) -> str:
        lines = ["**Trivia Time!**", "", f"**{question.text}**"]
        lines.extend(question.options)
        lines.append("")
        lines.append(f"Reply with the letter of your answer ({', '.join(ANSWER_LABELS[:-1])}, or {ANSWER_LABELS[-1]})!")
        return "\n".join(lines)

    async def fetch_trivia(self, prompt: str) -> Optional[TriviaQuestion]:
        """
        Generate, validate and deduplicate one question.

        Returns:
            A new TriviaQuestion, or None when this attempt should be retried
        """
        try:
            raw_text = await self.generator.request_question(prompt)
            question = parse_and_validate(raw_text)
        except GenerationError as e:
            logger.error(f"Error fetching trivia: {e}")
            return None
        except ParseError as e:
            logger.error(f"Error parsing trivia JSON: {e}")
            return None
        except SchemaError as e:
            logger.error(f"Invalid trivia structure: {e}")
            return None

        return self.history.deduplicate(question)

    async def start_round(self, channel: discord.abc.Messageable, topic: TopicSpec) -> Round:
        """
        Generate a question and post it to the channel.

        Args:
            channel: Discord channel to run the round in
            topic: Topic the question should be about

        Returns:
            The active Round

        Raises:
            RoundConflictError: If the channel already has a round
            GenerationExhausted: If no unique question could be generated
            discord.HTTPException: If the question could not be posted
        """
        channel_id = channel.id
        if self.has_active_round(channel_id):
            logger.warning(f"Attempted to start round in channel {channel_id} but one is already running")
            raise RoundConflictError(channel_id)

        self._generating.add(channel_id)
        try:
            prompt = build_prompt(topic)
            max_attempts = self.settings.max_attempts
            question = None
            attempt = 0

            while question is None and attempt < max_attempts:
                attempt += 1
                question = await self.fetch_trivia(prompt)
                if question is None:
                    RoundLifecycleLogger.log_attempt_failed(channel_id, attempt, max_attempts)

            if question is None:
                raise GenerationExhausted(max_attempts)

            round_ = Round(question=question, channel_id=channel_id)
            # Registered before posting so answers sent right after the question are queued
            self._active_rounds[channel_id] = round_
            try:
                round_.message = await channel.send(self.format_question_message(question))
            except discord.HTTPException as e:
                logger.error(f"Failed to post question in channel {channel_id}: {e}")
                self._active_rounds.pop(channel_id, None)
                # Nobody saw it, so it may be asked again
                self.history.forget(question)
                raise

            RoundLifecycleLogger.log_round_created(channel_id, question, attempt)
            return round_
        finally:
            self._generating.discard(channel_id)

    def handle_message(self, message: discord.Message) -> bool:
        """
        Queue an incoming message, stamped with its arrival time, for the
        channel's open round.

        Returns:
            True if the message was queued for evaluation
        """
        channel = getattr(message, "channel", None)
        round_ = self._active_rounds.get(getattr(channel, "id", None))
        if round_ is None or not round_.is_open:
            return False

        round_.inbox.put_nowait((asyncio.get_running_loop().time(), message))
        return True

    async def collect_answers(self, round_: Round) -> RoundState:
        """
        Run the answer-collection window for an active round.

        Messages are evaluated in arrival order until one resolves the
        round or the timer runs out. Messages that arrived before the
        deadline are still evaluated when earlier replies were slow to
        send; messages that arrived after it are not.

        Returns:
            RoundState.RESOLVED or RoundState.EXPIRED
        """
        loop = asyncio.get_running_loop()
        duration = self.settings.timer_duration
        deadline = loop.time() + duration

        try:
            while round_.is_open:
                remaining = deadline - loop.time()
                try:
                    if remaining > 0:
                        arrived_at, message = await asyncio.wait_for(round_.inbox.get(), timeout=remaining)
                    else:
                        arrived_at, message = round_.inbox.get_nowait()
                except (asyncio.TimeoutError, asyncio.QueueEmpty):
                    break
                if arrived_at > deadline:
                    break
                await self._evaluate_answer(round_, message)

            if round_.is_open:
                await self._expire_round(round_)
        finally:
            self._release(round_)

        return round_.state

    async def run_round(self, channel: discord.abc.Messageable, topic: TopicSpec) -> Round:
        """Start a round and wait for it to be resolved or to expire."""
        round_ = await self.start_round(channel, topic)
        await self.collect_answers(round_)
        return round_

    async def _evaluate_answer(self, round_: Round, message: discord.Message) -> bool:
        """
        Evaluate one message against the round's answer.

        Returns:
            True if the message resolved the round
        """
        if message.author.bot:
            return False

        answer = normalize_answer(message.content)
        if answer is None or not round_.is_open:
            return False

        if answer != round_.question.correct_answer:
            await self._safe_reply(message, "❌ Wrong answer. Keep trying!")
            return False

        round_.state = RoundState.RESOLVED
        round_.winner_id = message.author.id
        username = message.author.name
        score = self.scoreboard.award(message.author.id, username)

        elapsed = (datetime.now() - round_.started_at).total_seconds()
        RoundLifecycleLogger.log_round_resolved(round_.channel_id, message.author.id, elapsed)

        await self._safe_reply(
            message,
            f"🎉 Correct, {username}! You earned 1 point. Your total score is now: {score}"
        )
        return True

    async def _expire_round(self, round_: Round) -> None:
        round_.state = RoundState.EXPIRED
        RoundLifecycleLogger.log_round_expired(round_.channel_id, self.settings.timer_duration)

        if round_.message is None:
            return

        content = (
            f"{self.format_question_message(round_.question)}\n\n"
            f"Time's up! The correct answer was **{round_.question.correct_answer}**."
        )
        try:
            await round_.message.edit(content=content)
        except discord.HTTPException as e:
            logger.error(f"Failed to reveal answer in channel {round_.channel_id}: {e}")

    async def _safe_reply(self, message: discord.Message, content: str) -> None:
        try:
            await message.reply(content)
        except discord.HTTPException as e:
            logger.error(f"Failed to reply in channel {message.channel.id}: {e}")

    def _release(self, round_: Round) -> None:
        if self._active_rounds.get(round_.channel_id) is round_:
            del self._active_rounds[round_.channel_id]
        RoundLifecycleLogger.log_round_released(round_.channel_id, round_.state)
