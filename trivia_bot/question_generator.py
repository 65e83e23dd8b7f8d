"""
Question generator for the Discord Trivia Bot.
Builds prompts from a topic and asks the Gemini API for a question.
"""
import asyncio
import logging
import random
import re
from typing import Optional

from google import genai
from google.genai import types

from .errors import GenerationError
from .models import TopicSpec

logger = logging.getLogger(__name__)

DEFAULT_TOPIC_VALUE = "General"

THEMES = ["Science", "History", "Technology", "Movies", "Sports"]
FIELDS = ["General", "Physics", "Politics", "Entertainment", "Geography"]

PROMPT_TEMPLATE = """
Generate a trivia question about "{theme}" for "{region}" in the field of "{field}" in JSON format:
{{
    "question": "string",
    "options": ["A) string", "B) string", "C) string", "D) string"],
    "correctAnswer": "string" // Use the letter only, e.g., "A"
}}
Ensure the JSON is valid, well-formed, and avoid including any markdown or non-JSON content.
"""

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def build_prompt(topic: TopicSpec) -> str:
    """
    Format the instruction sent to the generation service.

    Args:
        topic: Theme, region and field for the question

    Returns:
        Prompt asking for a JSON object with question, options and correctAnswer
    """
    return PROMPT_TEMPLATE.format(theme=topic.theme, region=topic.region, field=topic.field)


def resolve_topic(
    theme: Optional[str] = None,
    region: Optional[str] = None,
    field: Optional[str] = None,
    default_region: str = DEFAULT_TOPIC_VALUE,
    rng: Optional[random.Random] = None
) -> TopicSpec:
    """
    Build a TopicSpec from optional command arguments.

    Missing values fall back to "General". When both theme and field are
    general, they are replaced by a random theme and field so plain
    `!trivia` calls still vary.
    """
    rng = rng or random
    theme = theme or DEFAULT_TOPIC_VALUE
    region = region or default_region
    field = field or DEFAULT_TOPIC_VALUE

    if theme == DEFAULT_TOPIC_VALUE and field == DEFAULT_TOPIC_VALUE:
        theme = rng.choice(THEMES)
        field = rng.choice(FIELDS)

    return TopicSpec(theme=theme, region=region, field=field)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences the model sometimes wraps JSON in."""
    return _CODE_FENCE.sub("", text).strip()


class QuestionGenerator:
    """Requests trivia questions from the Gemini generative-language API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-2.5-flash",
        timeout: float = 30,
        client: Optional[genai.Client] = None
    ):
        """
        Initialize the generator.

        Args:
            api_key: Gemini API key, used when no client is supplied
            model_name: Gemini model identifier
            timeout: Seconds to wait for one generation call
            client: Pre-built genai client
        """
        if client is None:
            if not api_key:
                raise ValueError("A Gemini API key or client is required")
            client = genai.Client(api_key=api_key)
        self.client = client
        self.model_name = model_name
        self.timeout = timeout

    async def request_question(self, prompt: str) -> str:
        """
        Send one prompt to the generation service.

        Args:
            prompt: Natural-language instruction from build_prompt

        Returns:
            Generated text with any markdown code fences removed

        Raises:
            GenerationError: If the call fails, times out, or returns no text
        """
        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=types.GenerateContentConfig(response_mime_type="application/json"),
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(f"Generation timed out after {self.timeout}s") from e
        except Exception as e:
            raise GenerationError(f"Generation request failed: {e}") from e

        text = getattr(response, "text", None)
        if not isinstance(text, str):
            logger.error(f"Unexpected response format: {response!r}")
            raise GenerationError("Generation response did not contain text")

        return strip_code_fences(text)
