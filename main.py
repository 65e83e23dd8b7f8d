#!/usr/bin/env python3
"""
Discord Trivia Bot - Main Entry Point

This script runs the Discord trivia bot. Secrets are read from the
environment (a .env file is loaded first); config.json is optional.

Usage:
    python main.py

Environment Variables:
    DISCORD_TOKEN: Your Discord bot token (DISCORD_BOT_TOKEN also accepted)
    GEMINI_API_KEY: Your Gemini API key (API_KEY also accepted)
"""

import asyncio
import sys
import os
import json
import logging
from pathlib import Path

from dotenv import load_dotenv


def load_config(config_path: Path = Path("config.json")):
    """Load configuration from config.json if it exists."""
    if not config_path.exists():
        return {}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        print(f"❌ Error: Invalid JSON in {config_path}: {e}")
        sys.exit(1)
    except OSError as e:
        print(f"❌ Error loading {config_path}: {e}")
        sys.exit(1)


def get_bot_token(config):
    """Get bot token from environment variable or config file."""
    token = os.getenv('DISCORD_TOKEN') or os.getenv('DISCORD_BOT_TOKEN')
    if token:
        return token

    token = config.get('bot', {}).get('token')
    if not token or token == "YOUR_DISCORD_BOT_TOKEN_HERE":
        print("❌ Error: Discord bot token not configured!")
        print("Either:")
        print("  1. Set DISCORD_TOKEN environment variable")
        print("  2. Update the 'bot.token' field in config.json")
        sys.exit(1)

    return token


def get_gemini_api_key(config):
    """Get Gemini API key from environment variable or config file."""
    api_key = os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY')
    if api_key:
        return api_key

    api_key = config.get('gemini', {}).get('api_key')
    if not api_key or api_key == "YOUR_GEMINI_API_KEY_HERE":
        print("❌ Error: Gemini API key not configured!")
        print("Either:")
        print("  1. Set GEMINI_API_KEY environment variable")
        print("  2. Update the 'gemini.api_key' field in config.json")
        sys.exit(1)

    return api_key


def setup_logging_from_config(config):
    """Set up logging based on configuration."""
    from trivia_bot.bot import setup_logging

    log_config = config.get('logging', {})
    log_level = getattr(logging, log_config.get('level', 'INFO').upper(), logging.INFO)
    setup_logging(log_config.get('log_directory', './logs/'), log_level)


async def run_bot_with_config():
    """Run the bot with configuration."""
    load_dotenv()
    config = load_config()

    setup_logging_from_config(config)

    token = get_bot_token(config)
    api_key = get_gemini_api_key(config)

    from trivia_bot.bot import run_bot
    await run_bot(token, api_key, config)


if __name__ == "__main__":
    try:
        print("🤖 Starting Discord Trivia Bot...")
        asyncio.run(run_bot_with_config())
    except KeyboardInterrupt:
        print("\n👋 Bot stopped by user")
    except Exception as e:
        print(f"❌ Failed to start bot: {e}")
        sys.exit(1)
