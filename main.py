# ============================================================================
# Command Permissions Manager - Discord Command Override Administration
# Copyright © 2025 404ConnerNotFound. All Rights Reserved.
# ============================================================================
#
# This source code is proprietary and confidential software.
#
# PERMITTED:
#   - View and study the code for educational purposes
#   - Reference in technical discussions with attribution
#   - Report bugs and security issues
#
# PROHIBITED:
#   - Distributing, selling, or sublicensing
#   - Any use that competes with the official service
#
# NO WARRANTY: Provided "AS IS" without warranty of any kind.
# NO LIABILITY: Author not liable for any damages from unauthorized use.
#
# Contact: licensing@404connernotfound.dev
# ============================================================================



import os
from dotenv import load_dotenv
import logging
import discord

from Core.Bot import Bot
from Utils.logger import configure_logging

load_dotenv()

configure_logging(os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

if __name__ == '__main__':
    TOKEN = os.getenv("DISCORD_AUTH_TOKEN")
    PREFIX = os.getenv("COMMAND_PREFIX", ".")
    APPLICATION_ID = os.getenv("DISCORD_APPLICATION_ID")

    if not TOKEN:
        logger.error("No token provided. Set DISCORD_AUTH_TOKEN. Exiting.")
        raise SystemExit(1)

    bot = Bot(
        prefix=PREFIX,
        intents=discord.Intents.default(),
        application_id=int(APPLICATION_ID) if APPLICATION_ID else None,
    )

    bot.run(TOKEN, log_handler=None)
