import logging
from typing import Iterable, Optional

import discord
from discord.ext import commands

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = ('commands.permissions',)


class Bot(commands.Bot):
    """Hosts the /permissions command group and syncs it on startup"""

    def __init__(self, prefix: str, intents: discord.Intents, application_id: Optional[int] = None,
                 extensions: Iterable[str] = DEFAULT_EXTENSIONS):
        super().__init__(command_prefix=prefix, intents=intents, application_id=application_id)
        self.extension_names = tuple(extensions)
        self.loaded_extensions = []

    async def setup_hook(self):
        for name in self.extension_names:
            try:
                await self.load_extension(name)
            except commands.ExtensionError as e:
                logger.error(f"Failed to load extension {name}: {e}")
                continue
            self.loaded_extensions.append(name)
            logger.info(f"Loaded extension: {name}")

        synced = await self.tree.sync()
        logger.info(f"Synced {len(synced)} application commands")

    async def on_ready(self):
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")

    async def on_command_error(self, ctx: commands.Context, error):
        logger.error(f'Error in command "{ctx.command}": {error}')
