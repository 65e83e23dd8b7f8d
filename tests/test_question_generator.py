"""
Unit tests for prompt construction, topic resolution and Gemini requests.
"""
import unittest
import asyncio
import logging
import random
from unittest.mock import Mock, AsyncMock, patch

from trivia_bot.errors import GenerationError
from trivia_bot.models import TopicSpec
from trivia_bot.question_generator import (
    FIELDS,
    THEMES,
    QuestionGenerator,
    build_prompt,
    resolve_topic,
    strip_code_fences,
)
from tests.test_fixtures import TestFixtures, async_test


class TestBuildPrompt(unittest.TestCase):
    """Test cases for prompt formatting."""

    def test_prompt_mentions_topic(self):
        prompt = build_prompt(TopicSpec(theme="History", region="India", field="Politics"))

        self.assertIn('"History"', prompt)
        self.assertIn('"India"', prompt)
        self.assertIn('"Politics"', prompt)

    def test_prompt_requests_json_fields(self):
        prompt = build_prompt(TestFixtures.create_sample_topic())

        self.assertIn('"question"', prompt)
        self.assertIn('"options"', prompt)
        self.assertIn('"correctAnswer"', prompt)
        self.assertIn("A) string", prompt)
        self.assertIn("D) string", prompt)

    def test_prompt_is_deterministic(self):
        topic = TestFixtures.create_sample_topic()
        self.assertEqual(build_prompt(topic), build_prompt(topic))


class TestResolveTopic(unittest.TestCase):
    """Test cases for building topics from command arguments."""

    def test_explicit_arguments_are_kept(self):
        topic = resolve_topic("Movies", "Japan", "Entertainment")
        self.assertEqual(topic, TopicSpec(theme="Movies", region="Japan", field="Entertainment"))

    def test_defaults_are_randomized(self):
        topic = resolve_topic(rng=random.Random(7))

        self.assertIn(topic.theme, THEMES)
        self.assertIn(topic.field, FIELDS)
        self.assertEqual(topic.region, "General")

    def test_default_region_is_used(self):
        topic = resolve_topic(default_region="India", rng=random.Random(1))
        self.assertEqual(topic.region, "India")

    def test_theme_only_keeps_general_field(self):
        topic = resolve_topic("Sports")
        self.assertEqual(topic, TopicSpec(theme="Sports", region="General", field="General"))

    def test_explicit_general_is_randomized(self):
        topic = resolve_topic("General", "Brazil", "General", rng=random.Random(3))

        self.assertIn(topic.theme, THEMES)
        self.assertEqual(topic.region, "Brazil")


class TestStripCodeFences(unittest.TestCase):
    """Test cases for markdown fence removal."""

    def test_json_fence(self):
        self.assertEqual(strip_code_fences('```json\n{"a": 1}\n```'), '{"a": 1}')

    def test_plain_fence(self):
        self.assertEqual(strip_code_fences('```\n{"a": 1}\n```  '), '{"a": 1}')

    def test_unfenced_text_is_trimmed(self):
        self.assertEqual(strip_code_fences('  {"a": 1}\n'), '{"a": 1}')


class TestQuestionGenerator(unittest.TestCase):
    """Test cases for QuestionGenerator.request_question."""

    def setUp(self):
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def _client(self, response=None, side_effect=None):
        client = Mock()
        client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
        return client

    @async_test
    async def test_request_question_strips_fences(self):
        payload = TestFixtures.create_question_json()
        client = self._client(Mock(text=f"```json\n{payload}\n```"))
        generator = QuestionGenerator(client=client, model_name="gemini-test")

        text = await generator.request_question("prompt")

        self.assertEqual(text, payload)
        kwargs = client.aio.models.generate_content.call_args[1]
        self.assertEqual(kwargs["model"], "gemini-test")
        self.assertEqual(kwargs["contents"], "prompt")

    @async_test
    async def test_request_question_wraps_client_errors(self):
        generator = QuestionGenerator(client=self._client(side_effect=RuntimeError("unreachable")))

        with self.assertRaises(GenerationError):
            await generator.request_question("prompt")

    @async_test
    async def test_request_question_rejects_missing_text(self):
        generator = QuestionGenerator(client=self._client(Mock(text=None)))

        with self.assertRaises(GenerationError):
            await generator.request_question("prompt")

    @async_test
    async def test_request_question_times_out(self):
        async def slow_response(**kwargs):
            await asyncio.sleep(1)

        client = Mock()
        client.aio.models.generate_content = slow_response
        generator = QuestionGenerator(client=client, timeout=0.01)

        with self.assertRaises(GenerationError):
            await generator.request_question("prompt")

    def test_requires_key_or_client(self):
        with self.assertRaises(ValueError):
            QuestionGenerator()

    @patch('trivia_bot.question_generator.genai.Client')
    def test_builds_client_from_api_key(self, mock_client_cls):
        generator = QuestionGenerator(api_key="secret")

        mock_client_cls.assert_called_once_with(api_key="secret")
        self.assertIs(generator.client, mock_client_cls.return_value)


if __name__ == '__main__':
    unittest.main()
