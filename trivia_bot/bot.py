import discord
from discord.ext import commands
import logging
import asyncio
from typing import Optional
from pathlib import Path

from .config_manager import ConfigManager
from .errors import GenerationExhausted, RoundConflictError
from .question_generator import QuestionGenerator, resolve_topic
from .question_validator import QuestionHistory
from .round_controller import RoundController
from .scoreboard import NO_SCORES_MESSAGE, Scoreboard

logger = logging.getLogger(__name__)

GENERATION_EXHAUSTED_MESSAGE = "Sorry, I couldn't generate a unique trivia question. Please try again later."
ROUND_CONFLICT_MESSAGE = "⏳ A trivia round is already running in this channel. Answer that one first!"


def setup_logging(log_directory: str = "logs", level: int = logging.INFO):
    """Set up logging to the console, a bot log and an error log."""
    logs_dir = Path(log_directory)
    logs_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),  # Console output
            logging.FileHandler(logs_dir / "bot.log", encoding='utf-8'),  # File output
        ]
    )

    error_handler = logging.FileHandler(logs_dir / "errors.log", encoding='utf-8')
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    logging.getLogger().addHandler(error_handler)

    # Reduce discord.py noise
    logging.getLogger('discord').setLevel(logging.WARNING)
    logging.getLogger('discord.http').setLevel(logging.WARNING)

    return logging.getLogger(__name__)


class TriviaBot(commands.Bot):
    """Discord bot that runs Gemini-generated trivia rounds"""

    def __init__(self, gemini_api_key: Optional[str] = None, config=None):
        # Prefix commands need to read message content
        intents = discord.Intents.default()
        intents.guilds = True
        intents.messages = True
        intents.message_content = True

        command_prefix = '!'
        if config and 'bot' in config:
            command_prefix = config['bot'].get('command_prefix', '!')

        super().__init__(
            command_prefix=command_prefix,
            intents=intents,
            help_command=None
        )

        self.app_config = config or {}
        self.gemini_api_key = gemini_api_key

        # Initialize core components
        self.config_manager: Optional[ConfigManager] = None
        self.scoreboard: Optional[Scoreboard] = None
        self.question_history: Optional[QuestionHistory] = None
        self.question_generator: Optional[QuestionGenerator] = None
        self.round_controller: Optional[RoundController] = None

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")

            self.config_manager = ConfigManager()
            if self.app_config:
                self.apply_configuration()

            settings = self.config_manager.get_trivia_settings()
            self.scoreboard = Scoreboard()
            self.question_history = QuestionHistory(settings.history_limit)
            self.question_generator = QuestionGenerator(
                api_key=self.gemini_api_key,
                model_name=settings.model_name,
                timeout=settings.generation_timeout
            )
            self.round_controller = RoundController(
                self.question_generator,
                self.question_history,
                self.scoreboard,
                settings
            )

            self.setup_commands()

            logger.info(self.config_manager.get_settings_summary())
            logger.info("Bot setup completed successfully")

        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    def apply_configuration(self):
        """Apply settings from configuration file to the config manager."""
        trivia_config = self.app_config.get('trivia', {})
        gemini_config = self.app_config.get('gemini', {})

        if 'timer_duration' in trivia_config:
            self.config_manager.set_timer_duration(trivia_config['timer_duration'])
        if 'max_attempts' in trivia_config:
            self.config_manager.set_max_attempts(trivia_config['max_attempts'])
        if 'history_limit' in trivia_config:
            self.config_manager.set_history_limit(trivia_config['history_limit'])
        if 'default_region' in trivia_config:
            self.config_manager.set_default_region(trivia_config['default_region'])
        if 'model' in gemini_config:
            self.config_manager.set_model_name(gemini_config['model'])
        if 'timeout' in gemini_config:
            self.config_manager.set_generation_timeout(gemini_config['timeout'])

        validation = self.config_manager.validate_settings()
        if not validation['valid']:
            logger.warning(f"Configuration issues: {validation['issues']}")
        logger.info("Configuration applied")

    def setup_commands(self):
        """Register all prefix commands"""

        @self.command(name="trivia")
        async def trivia_command(ctx: commands.Context, theme: str = None, region: str = None, field: str = None):
            await self.handle_trivia(ctx, theme, region, field)

        @self.command(name="leaderboard")
        async def leaderboard_command(ctx: commands.Context):
            await self.handle_leaderboard(ctx)

        logger.info("Commands registered successfully")

    async def on_ready(self):
        """Called when the bot has successfully connected to Discord"""
        logger.info(f"Bot is ready! Logged in as {self.user}")
        logger.info(f"Bot is in {len(self.guilds)} guilds")
        print(f"🤖 {self.user} is Ready and Online!")

    async def on_message(self, message: discord.Message):
        """Feed answers to the channel's round, then dispatch commands"""
        if message.author.bot:
            return

        if self.round_controller is not None:
            self.round_controller.handle_message(message)

        await self.process_commands(message)

    async def on_error(self, event, *args, **kwargs):
        """Handle general bot errors"""
        logger.error(f"An error occurred in event {event}", exc_info=True)

    async def on_command_error(self, ctx, error):
        """Handle command errors"""
        if isinstance(error, commands.CommandNotFound):
            return  # Ignore unknown commands

        logger.error(f"Command error in {ctx.command}: {error}")

    async def send_with_retry(self, send_func: callable, content: str, max_retries: int = 3) -> bool:
        """Send a message with retry logic for Discord API failures"""
        for attempt in range(max_retries):
            try:
                await send_func(content)
                return True

            except discord.HTTPException as e:
                if attempt == max_retries - 1:
                    logger.error(f"All retry attempts failed for message: {e}")
                    return False

                # Wait before retry with exponential backoff
                wait_time = 2 ** attempt
                logger.warning(f"Discord API error (attempt {attempt + 1}), retrying in {wait_time}s: {e}")
                await asyncio.sleep(wait_time)

        return False

    async def handle_trivia(self, ctx: commands.Context, theme: str = None, region: str = None, field: str = None):
        """Handle !trivia command"""
        topic = resolve_topic(
            theme, region, field,
            default_region=self.config_manager.get_default_region()
        )
        logger.info(f"Trivia requested in channel {ctx.channel.id}: {topic}")

        try:
            await self.round_controller.run_round(ctx.channel, topic)
        except RoundConflictError:
            await self.send_with_retry(ctx.reply, ROUND_CONFLICT_MESSAGE)
        except GenerationExhausted as e:
            logger.warning(f"Generation exhausted in channel {ctx.channel.id}: {e}")
            await self.send_with_retry(ctx.reply, GENERATION_EXHAUSTED_MESSAGE)
        except discord.HTTPException as e:
            logger.error(f"Discord error during trivia round in channel {ctx.channel.id}: {e}")

    async def handle_leaderboard(self, ctx: commands.Context):
        """Handle !leaderboard command"""
        if self.scoreboard.is_empty:
            await self.send_with_retry(ctx.reply, NO_SCORES_MESSAGE)
            return

        await self.send_with_retry(ctx.send, self.scoreboard.format_leaderboard())


async def run_bot(token=None, gemini_api_key=None, config=None):
    """Run the bot with proper error handling"""
    if not token:
        logger.error("No Discord bot token provided")
        return

    if not gemini_api_key:
        logger.error("No Gemini API key provided")
        return

    bot = TriviaBot(gemini_api_key, config)

    try:
        logger.info("Starting Discord Trivia Bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
