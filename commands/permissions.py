import discord
from discord.ext import commands
from discord import app_commands
import logging
from typing import List, Optional

from Utils.config import ManagerConfig
from Utils.errors import AccessDenied, NotFound, PermissionsManagerError
from Utils.manager import DiscordPermissionsManager
from Utils.models import CommandPermission, CommandPermissionType

logger = logging.getLogger(__name__)


class CommandPermissionsCog(commands.Cog):
    """Inspect and edit per-command permission overrides"""

    def __init__(self, bot):
        self.bot = bot
        logger.info("CommandPermissionsCog initialized")

    async def cog_unload(self):
        logger.info("CommandPermissionsCog unloaded")

    def _build_manager(self, interaction: discord.Interaction) -> DiscordPermissionsManager:
        config = ManagerConfig.from_env(
            guild_id=interaction.guild.id,
            application_id=self.bot.application_id,
        )
        return DiscordPermissionsManager(config, actor_id=interaction.user.id)

    async def _resolve_command_id(self, manager: DiscordPermissionsManager, value: str) -> int:
        """Accept a command id or a command name"""
        value = value.strip().lstrip("/")
        if value.isdigit():
            return int(value)
        for command in await manager.client.fetch_commands():
            if command.name == value:
                return command.id
        raise NotFound(f"No command named `{value}`", context={'command': value})

    def _build_targets(self, allow: bool, role: Optional[discord.Role], user: Optional[discord.Member],
                       channel: Optional[discord.abc.GuildChannel]) -> List[CommandPermission]:
        targets = []
        if role is not None:
            targets.append(CommandPermission(id=role.id, type=CommandPermissionType.ROLE, permission=allow))
        if user is not None:
            targets.append(CommandPermission(id=user.id, type=CommandPermissionType.USER, permission=allow))
        if channel is not None:
            targets.append(CommandPermission(id=channel.id, type=CommandPermissionType.CHANNEL, permission=allow))
        return targets

    def _format_target(self, permission: CommandPermission) -> str:
        if permission.type is CommandPermissionType.ROLE:
            return f"<@&{permission.id}>"
        if permission.type is CommandPermissionType.USER:
            return f"<@{permission.id}>"
        return f"<#{permission.id}>"

    def _create_permissions_embed(self, title: str, command_id: int,
                                  permissions: List[CommandPermission]) -> discord.Embed:
        embed = discord.Embed(title=title, color=discord.Color.blue())
        embed.add_field(name="Command", value=f"`{command_id}`", inline=False)

        if not permissions:
            embed.description = "No overrides configured. Default member permissions apply."
            return embed

        allowed = [self._format_target(p) for p in permissions if p.permission]
        denied = [self._format_target(p) for p in permissions if not p.permission]
        embed.add_field(name="✅ Allowed", value="\n".join(allowed) or "None", inline=True)
        embed.add_field(name="⛔ Denied", value="\n".join(denied) or "None", inline=True)
        return embed

    def _create_error_embed(self, error: PermissionsManagerError) -> discord.Embed:
        embed = discord.Embed(
            title="❌ Error",
            description=error.message,
            color=discord.Color.red()
        )
        if isinstance(error, AccessDenied):
            embed.title = "🔒 Access Denied"
            if error.missing:
                embed.add_field(
                    name="Missing Permissions",
                    value=", ".join(f"`{name}`" for name in error.missing),
                    inline=False
                )
        embed.add_field(name="Error Code", value=f"`{type(error).__name__}`", inline=True)
        return embed

    def _create_generic_error_embed(self, error: Exception) -> discord.Embed:
        embed = discord.Embed(
            title="❌ Unexpected Error",
            description="An unexpected error occurred.",
            color=discord.Color.red()
        )
        embed.add_field(name="🆔 Error ID", value=f"`{hash(str(error)) % 100000:05d}`", inline=True)
        return embed

    async def _send_error(self, interaction: discord.Interaction, error: Exception):
        if isinstance(error, PermissionsManagerError):
            embed = self._create_error_embed(error)
        else:
            logger.error(f"Unexpected error in permissions command: {error}", exc_info=error)
            embed = self._create_generic_error_embed(error)
        await interaction.followup.send(embed=embed, ephemeral=True)

    permissions_group = app_commands.Group(
        name="permissions",
        description="🔐 Manage who can use this bot's commands",
        guild_only=True
    )

    @permissions_group.command(name="check", description="🔐 Check whether you may edit a command's permissions")
    @app_commands.describe(command="Command name or id")
    async def permissions_check(self, interaction: discord.Interaction, command: str):
        await interaction.response.defer(ephemeral=True)
        try:
            async with self._build_manager(interaction) as manager:
                command_id = await self._resolve_command_id(manager, command)
                await manager.validate_command_permission_access(command_id)

            embed = discord.Embed(
                title="✅ Access Granted",
                description=f"You may edit the permissions of `{command}`.",
                color=discord.Color.green()
            )
            await interaction.followup.send(embed=embed, ephemeral=True)
        except Exception as e:
            await self._send_error(interaction, e)

    @permissions_group.command(name="view", description="🔐 View a command's permission overrides")
    @app_commands.describe(command="Command name or id")
    async def permissions_view(self, interaction: discord.Interaction, command: str):
        await interaction.response.defer(ephemeral=True)
        try:
            async with self._build_manager(interaction) as manager:
                command_id = await self._resolve_command_id(manager, command)
                current = await manager.get_command_permissions(command_id)

            embed = self._create_permissions_embed(f"🔐 Overrides for {command}", command_id, current)
            await interaction.followup.send(embed=embed, ephemeral=True)
        except Exception as e:
            await self._send_error(interaction, e)

    async def _apply(self, interaction: discord.Interaction, command: str, allow: bool,
                     role: Optional[discord.Role], user: Optional[discord.Member],
                     channel: Optional[discord.abc.GuildChannel]):
        await interaction.response.defer(ephemeral=True)

        targets = self._build_targets(allow, role, user, channel)
        if not targets:
            embed = discord.Embed(
                title="❌ Missing Target",
                description="Pick at least one role, user or channel.",
                color=discord.Color.red()
            )
            await interaction.followup.send(embed=embed, ephemeral=True)
            return

        try:
            async with self._build_manager(interaction) as manager:
                command_id = await self._resolve_command_id(manager, command)
                updated = await manager.add_command_permissions(command_id, targets)

            title = f"✅ Allowed on {command}" if allow else f"⛔ Denied on {command}"
            embed = self._create_permissions_embed(title, command_id, updated)
            await interaction.followup.send(embed=embed, ephemeral=True)
        except Exception as e:
            await self._send_error(interaction, e)

    @permissions_group.command(name="allow", description="🔐 Allow a role, user or channel to use a command")
    @app_commands.describe(command="Command name or id", role="Role to allow", user="User to allow", channel="Channel to allow")
    async def permissions_allow(self, interaction: discord.Interaction, command: str,
                                role: Optional[discord.Role] = None, user: Optional[discord.Member] = None,
                                channel: Optional[discord.abc.GuildChannel] = None):
        await self._apply(interaction, command, True, role, user, channel)

    @permissions_group.command(name="deny", description="🔐 Deny a role, user or channel from using a command")
    @app_commands.describe(command="Command name or id", role="Role to deny", user="User to deny", channel="Channel to deny")
    async def permissions_deny(self, interaction: discord.Interaction, command: str,
                               role: Optional[discord.Role] = None, user: Optional[discord.Member] = None,
                               channel: Optional[discord.abc.GuildChannel] = None):
        await self._apply(interaction, command, False, role, user, channel)

    @permissions_group.command(name="remove", description="🔐 Remove an override from a command")
    @app_commands.describe(command="Command name or id", target_id="Role, user or channel id", target_type="Kind of target")
    @app_commands.choices(target_type=[
        app_commands.Choice(name="Role", value=int(CommandPermissionType.ROLE)),
        app_commands.Choice(name="User", value=int(CommandPermissionType.USER)),
        app_commands.Choice(name="Channel", value=int(CommandPermissionType.CHANNEL))
    ])
    async def permissions_remove(self, interaction: discord.Interaction, command: str,
                                 target_id: str, target_type: int):
        await interaction.response.defer(ephemeral=True)
        try:
            async with self._build_manager(interaction) as manager:
                command_id = await self._resolve_command_id(manager, command)
                updated = await manager.remove_command_permission(
                    command_id, int(target_id), CommandPermissionType(target_type)
                )

            embed = self._create_permissions_embed(f"🗑️ Updated overrides for {command}", command_id, updated)
            await interaction.followup.send(embed=embed, ephemeral=True)
        except ValueError:
            embed = discord.Embed(
                title="❌ Invalid Target",
                description="`target_id` must be a numeric id.",
                color=discord.Color.red()
            )
            await interaction.followup.send(embed=embed, ephemeral=True)
        except Exception as e:
            await self._send_error(interaction, e)

    @permissions_group.command(name="resources", description="🔐 Roles, channels and commands you can manage")
    async def permissions_resources(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        try:
            async with self._build_manager(interaction) as manager:
                resources = await manager.get_manageable_resources()

            embed = discord.Embed(title="🧭 Manageable Resources", color=discord.Color.blue())
            sections = [
                ("🎭 Roles", [f"<@&{r.id}>" for r in resources.roles]),
                ("💬 Channels", [f"<#{c.id}>" for c in resources.channels]),
                ("⚙️ Commands", [f"`/{c.name}`" for c in resources.commands]),
            ]
            for name, items in sections:
                value = " ".join(items) if items else "None"
                if len(value) > 1024:
                    value = value[:1000].rsplit(" ", 1)[0] + f" … ({len(items)} total)"
                embed.add_field(name=f"{name} ({len(items)})", value=value, inline=False)

            await interaction.followup.send(embed=embed, ephemeral=True)
        except Exception as e:
            await self._send_error(interaction, e)

    @permissions_group.command(name="summary", description="🔐 Your effective server permissions")
    async def permissions_summary(self, interaction: discord.Interaction):
        await interaction.response.defer(ephemeral=True)
        try:
            async with self._build_manager(interaction) as manager:
                summary = await manager.get_permission_summary()

            embed = discord.Embed(title="📋 Permission Summary", color=discord.Color.blue())
            embed.add_field(name="Mask", value=f"`{summary['effective_mask_hex']}`", inline=True)
            embed.add_field(name="Owner", value="Yes" if summary['is_owner'] else "No", inline=True)
            embed.add_field(name="Administrator", value="Yes" if summary['is_administrator'] else "No", inline=True)
            embed.add_field(
                name="Can Manage Overrides",
                value="✅ Yes" if summary['can_manage_overrides'] else "❌ No",
                inline=False
            )
            granted = ", ".join(f"`{name}`" for name in summary['granted_permissions']) or "None"
            embed.add_field(name="Granted", value=granted[:1024], inline=False)

            await interaction.followup.send(embed=embed, ephemeral=True)
        except Exception as e:
            await self._send_error(interaction, e)


# ========================================================================
# COG SETUP
# ========================================================================

async def setup(bot):
    """Setup function for the cog"""
    await bot.add_cog(CommandPermissionsCog(bot))
    logger.info("CommandPermissionsCog loaded successfully")

async def teardown(bot):
    """Teardown function for the cog"""
    cog = bot.get_cog("CommandPermissionsCog")
    if cog:
        await cog.cog_unload()
    logger.info("CommandPermissionsCog unloaded")
