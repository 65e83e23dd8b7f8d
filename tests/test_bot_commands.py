"""
Unit tests for TriviaBot command handling with mocked Discord objects.
"""
import unittest
import logging
from unittest.mock import Mock, AsyncMock, patch
import discord

from trivia_bot.bot import (
    GENERATION_EXHAUSTED_MESSAGE,
    ROUND_CONFLICT_MESSAGE,
    TriviaBot,
)
from trivia_bot.config_manager import ConfigManager
from trivia_bot.errors import GenerationExhausted, RoundConflictError
from trivia_bot.models import TopicSpec
from trivia_bot.round_controller import RoundController
from trivia_bot.scoreboard import NO_SCORES_MESSAGE, Scoreboard
from tests.test_fixtures import MockDiscordObjects, async_test


class TestTriviaBotCommands(unittest.TestCase):
    """Test trivia and leaderboard command handlers."""

    def setUp(self):
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        logging.disable(logging.NOTSET)

    def create_bot(self) -> TriviaBot:
        bot = TriviaBot("test-key")
        bot.config_manager = ConfigManager()
        bot.scoreboard = Scoreboard()
        bot.round_controller = Mock(spec=RoundController)
        bot.round_controller.run_round = AsyncMock()
        return bot

    @async_test
    async def test_trivia_runs_round_with_topic(self):
        bot = self.create_bot()
        ctx = MockDiscordObjects.create_mock_context()

        await bot.handle_trivia(ctx, "History", "India", "Politics")

        bot.round_controller.run_round.assert_awaited_once_with(
            ctx.channel, TopicSpec(theme="History", region="India", field="Politics")
        )
        ctx.reply.assert_not_called()

    @async_test
    async def test_trivia_uses_configured_default_region(self):
        bot = self.create_bot()
        bot.config_manager.set_default_region("India")
        ctx = MockDiscordObjects.create_mock_context()

        await bot.handle_trivia(ctx)

        topic = bot.round_controller.run_round.call_args[0][1]
        self.assertEqual(topic.region, "India")

    @async_test
    async def test_trivia_generation_exhausted_apologizes(self):
        bot = self.create_bot()
        bot.round_controller.run_round.side_effect = GenerationExhausted(4)
        ctx = MockDiscordObjects.create_mock_context()

        await bot.handle_trivia(ctx)

        ctx.reply.assert_awaited_once_with(GENERATION_EXHAUSTED_MESSAGE)

    @async_test
    async def test_trivia_round_conflict_is_reported(self):
        bot = self.create_bot()
        bot.round_controller.run_round.side_effect = RoundConflictError(12345)
        ctx = MockDiscordObjects.create_mock_context()

        await bot.handle_trivia(ctx)

        ctx.reply.assert_awaited_once_with(ROUND_CONFLICT_MESSAGE)

    @async_test
    async def test_trivia_discord_error_is_contained(self):
        bot = self.create_bot()
        bot.round_controller.run_round.side_effect = discord.HTTPException(Mock(), "API Error")
        ctx = MockDiscordObjects.create_mock_context()

        await bot.handle_trivia(ctx)

        ctx.reply.assert_not_called()

    @async_test
    async def test_leaderboard_empty(self):
        bot = self.create_bot()
        ctx = MockDiscordObjects.create_mock_context()

        await bot.handle_leaderboard(ctx)

        ctx.reply.assert_awaited_once_with(NO_SCORES_MESSAGE)
        ctx.send.assert_not_called()

    @async_test
    async def test_leaderboard_with_scores(self):
        bot = self.create_bot()
        bot.scoreboard.award(42, "alice")
        ctx = MockDiscordObjects.create_mock_context()

        await bot.handle_leaderboard(ctx)

        ctx.send.assert_awaited_once()
        self.assertIn("**Leaderboard**", ctx.send.call_args[0][0])
        self.assertIn("<@42> - 1 point(s)", ctx.send.call_args[0][0])

    @patch('trivia_bot.bot.asyncio.sleep', new_callable=AsyncMock)
    @async_test
    async def test_send_with_retry_gives_up(self, mock_sleep):
        bot = self.create_bot()
        send = AsyncMock(side_effect=discord.HTTPException(Mock(), "API Error"))

        result = await bot.send_with_retry(send, "hello")

        self.assertFalse(result)
        self.assertEqual(send.await_count, 3)
        self.assertEqual(mock_sleep.await_count, 2)

    @patch('trivia_bot.bot.asyncio.sleep', new_callable=AsyncMock)
    @async_test
    async def test_send_with_retry_recovers(self, mock_sleep):
        bot = self.create_bot()
        send = AsyncMock(side_effect=[discord.HTTPException(Mock(), "API Error"), None])

        result = await bot.send_with_retry(send, "hello")

        self.assertTrue(result)
        self.assertEqual(send.await_count, 2)


class TestTriviaBotEvents(unittest.TestCase):
    """Test message routing and startup wiring."""

    def setUp(self):
        logging.disable(logging.CRITICAL)

    def tearDown(self):
        logging.disable(logging.NOTSET)

    @async_test
    async def test_on_message_ignores_bots(self):
        bot = TriviaBot("test-key")
        bot.round_controller = Mock(spec=RoundController)
        message = MockDiscordObjects.create_mock_message(content="B", bot=True)

        with patch.object(bot, 'process_commands', new_callable=AsyncMock) as process_commands:
            await bot.on_message(message)

        bot.round_controller.handle_message.assert_not_called()
        process_commands.assert_not_called()

    @async_test
    async def test_on_message_feeds_round_and_commands(self):
        bot = TriviaBot("test-key")
        bot.round_controller = Mock(spec=RoundController)
        message = MockDiscordObjects.create_mock_message(content="B")

        with patch.object(bot, 'process_commands', new_callable=AsyncMock) as process_commands:
            await bot.on_message(message)

        bot.round_controller.handle_message.assert_called_once_with(message)
        process_commands.assert_awaited_once_with(message)

    @async_test
    async def test_command_prefix_from_config(self):
        self.assertEqual(TriviaBot("test-key").command_prefix, "!")
        self.assertEqual(TriviaBot("test-key", {'bot': {'command_prefix': '?'}}).command_prefix, "?")

    @patch('trivia_bot.bot.QuestionGenerator')
    @async_test
    async def test_setup_hook_applies_configuration(self, mock_generator_cls):
        config = {
            'trivia': {'timer_duration': 20, 'max_attempts': 2, 'history_limit': None, 'default_region': 'India'},
            'gemini': {'model': 'gemini-2.5-pro', 'timeout': 10}
        }
        bot = TriviaBot("test-key", config)

        await bot.setup_hook()

        mock_generator_cls.assert_called_once_with(api_key="test-key", model_name="gemini-2.5-pro", timeout=10)
        settings = bot.round_controller.settings
        self.assertEqual(settings.timer_duration, 20)
        self.assertEqual(settings.max_attempts, 2)
        self.assertIsNone(bot.question_history.limit)
        self.assertEqual(bot.config_manager.get_default_region(), "India")
        self.assertIs(bot.round_controller.scoreboard, bot.scoreboard)
        self.assertIsNotNone(bot.get_command("trivia"))
        self.assertIsNotNone(bot.get_command("leaderboard"))


if __name__ == '__main__':
    unittest.main()
