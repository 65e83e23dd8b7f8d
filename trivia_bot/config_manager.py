"""
Configuration manager for Discord Trivia Bot settings and parameters.
"""
import logging
from typing import Any, Dict, Optional

from .models import TriviaSettings


class ConfigManager:
    """Manages trivia round settings and Gemini parameters."""

    # Default configuration values
    DEFAULT_TIMER_DURATION = 15
    DEFAULT_MAX_ATTEMPTS = 4
    DEFAULT_HISTORY_LIMIT = 1000
    DEFAULT_GENERATION_TIMEOUT = 30
    DEFAULT_MODEL_NAME = "gemini-2.5-flash"
    DEFAULT_REGION = "General"

    # Validation limits
    MIN_TIMER_DURATION = 5
    MAX_TIMER_DURATION = 300  # 5 minutes
    MIN_ATTEMPTS = 1
    MAX_ATTEMPTS = 10
    MIN_HISTORY_LIMIT = 1
    MAX_HISTORY_LIMIT = 100000
    MIN_GENERATION_TIMEOUT = 1
    MAX_GENERATION_TIMEOUT = 120

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = self._default_settings()

    def _default_settings(self) -> TriviaSettings:
        return TriviaSettings(
            timer_duration=self.DEFAULT_TIMER_DURATION,
            max_attempts=self.DEFAULT_MAX_ATTEMPTS,
            history_limit=self.DEFAULT_HISTORY_LIMIT,
            generation_timeout=self.DEFAULT_GENERATION_TIMEOUT,
            model_name=self.DEFAULT_MODEL_NAME,
            default_region=self.DEFAULT_REGION
        )

    def get_trivia_settings(self) -> TriviaSettings:
        """
        Get current trivia settings.

        Returns:
            Copy of the current TriviaSettings
        """
        return TriviaSettings(
            timer_duration=self._settings.timer_duration,
            max_attempts=self._settings.max_attempts,
            history_limit=self._settings.history_limit,
            generation_timeout=self._settings.generation_timeout,
            model_name=self._settings.model_name,
            default_region=self._settings.default_region
        )

    def _failure(self, error_msg: str, user_message: str) -> Dict[str, Any]:
        self.logger.error(error_msg)
        return {
            'success': False,
            'error': error_msg,
            'user_message': user_message
        }

    def _success(self, message: str, user_message: str) -> Dict[str, Any]:
        self.logger.info(message)
        return {
            'success': True,
            'message': message,
            'user_message': user_message
        }

    def _validate_int(self, value: Any, name: str, minimum: int, maximum: int, unit: str = "") -> Optional[Dict[str, Any]]:
        # bool is an int subclass but never a valid setting
        if isinstance(value, bool) or not isinstance(value, int):
            return self._failure(
                f"{name} must be an integer, got {type(value).__name__}",
                f"❌ Invalid input: Expected a number, got {type(value).__name__}"
            )
        if value < minimum:
            return self._failure(
                f"{name} must be at least {minimum}{unit}",
                f"❌ {name} too small: Minimum is {minimum}{unit}"
            )
        if value > maximum:
            return self._failure(
                f"{name} cannot exceed {maximum}{unit}",
                f"❌ {name} too large: Maximum is {maximum}{unit}"
            )
        return None

    def set_timer_duration(self, duration: int) -> Dict[str, Any]:
        """
        Set how long each round accepts answers.

        Args:
            duration: Collection window in seconds

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        failure = self._validate_int(
            duration, "Timer duration", self.MIN_TIMER_DURATION, self.MAX_TIMER_DURATION, " seconds"
        )
        if failure:
            return failure

        self._settings.timer_duration = duration
        return self._success(
            f"Timer duration set to {duration} seconds",
            f"✅ Timer set to {duration} seconds"
        )

    def get_timer_duration(self) -> float:
        return self._settings.timer_duration

    def set_max_attempts(self, attempts: int) -> Dict[str, Any]:
        """
        Set how many generation attempts a round may use.

        Args:
            attempts: Total attempts, including the first one

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        failure = self._validate_int(attempts, "Max attempts", self.MIN_ATTEMPTS, self.MAX_ATTEMPTS)
        if failure:
            return failure

        self._settings.max_attempts = attempts
        return self._success(
            f"Max generation attempts set to {attempts}",
            f"✅ Up to {attempts} generation attempts per round"
        )

    def get_max_attempts(self) -> int:
        return self._settings.max_attempts

    def set_history_limit(self, limit: Optional[int]) -> Dict[str, Any]:
        """
        Set how many asked questions are remembered for deduplication.

        Args:
            limit: Maximum remembered questions, or None to remember all

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if limit is None:
            self._settings.history_limit = None
            return self._success(
                "Question history set to unbounded",
                "✅ Every asked question will be remembered"
            )

        failure = self._validate_int(limit, "History limit", self.MIN_HISTORY_LIMIT, self.MAX_HISTORY_LIMIT)
        if failure:
            return failure

        self._settings.history_limit = limit
        return self._success(
            f"Question history limit set to {limit}",
            f"✅ The last {limit} questions will be remembered"
        )

    def get_history_limit(self) -> Optional[int]:
        return self._settings.history_limit

    def set_generation_timeout(self, timeout: int) -> Dict[str, Any]:
        """Set how long one Gemini call may take, in seconds."""
        failure = self._validate_int(
            timeout, "Generation timeout", self.MIN_GENERATION_TIMEOUT, self.MAX_GENERATION_TIMEOUT, " seconds"
        )
        if failure:
            return failure

        self._settings.generation_timeout = timeout
        return self._success(
            f"Generation timeout set to {timeout} seconds",
            f"✅ Generation timeout set to {timeout} seconds"
        )

    def get_generation_timeout(self) -> float:
        return self._settings.generation_timeout

    def set_model_name(self, model_name: str) -> Dict[str, Any]:
        """Set the Gemini model used for question generation."""
        if not isinstance(model_name, str) or not model_name.strip():
            return self._failure(
                "Model name must be a non-empty string",
                "❌ Model name cannot be empty"
            )

        self._settings.model_name = model_name.strip()
        return self._success(
            f"Model set to {self._settings.model_name}",
            f"✅ Questions will be generated with {self._settings.model_name}"
        )

    def get_model_name(self) -> str:
        return self._settings.model_name

    def set_default_region(self, region: str) -> Dict[str, Any]:
        """Set the region used when `!trivia` is called without one."""
        if not isinstance(region, str) or not region.strip():
            return self._failure(
                "Default region must be a non-empty string",
                "❌ Region cannot be empty"
            )

        self._settings.default_region = region.strip()
        return self._success(
            f"Default region set to {self._settings.default_region}",
            f"✅ Default region set to {self._settings.default_region}"
        )

    def get_default_region(self) -> str:
        return self._settings.default_region

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }

        timer = self._settings.timer_duration
        if (not isinstance(timer, (int, float)) or
                timer < self.MIN_TIMER_DURATION or
                timer > self.MAX_TIMER_DURATION):
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid timer duration: {timer}")

        attempts = self._settings.max_attempts
        if not isinstance(attempts, int) or not self.MIN_ATTEMPTS <= attempts <= self.MAX_ATTEMPTS:
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid max attempts: {attempts}")

        limit = self._settings.history_limit
        if limit is not None and (not isinstance(limit, int) or
                                  not self.MIN_HISTORY_LIMIT <= limit <= self.MAX_HISTORY_LIMIT):
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid history limit: {limit}")

        if not isinstance(self._settings.model_name, str) or not self._settings.model_name.strip():
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid model name: {self._settings.model_name}")

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        history_str = (
            str(self._settings.history_limit)
            if self._settings.history_limit is not None
            else "unbounded"
        )

        return (
            f"Trivia Settings:\n"
            f"• Timer: {self._settings.timer_duration} seconds\n"
            f"• Generation attempts: {self._settings.max_attempts}\n"
            f"• Question history: {history_str}\n"
            f"• Model: {self._settings.model_name}\n"
            f"• Default region: {self._settings.default_region}"
        )
