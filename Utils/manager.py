import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from .config import ManagerConfig
from .discord_api import DiscordAPIClient
from .errors import AccessDenied, NotFound
from .models import Command, CommandPermission, CommandPermissionType, ManageableResources
from .permissions import (
    OVERRIDE_MANAGEMENT_FLOOR,
    check_override_access,
    compute_base_permissions,
    compute_manageable_resources,
    format_permission_mask,
    has_all,
    is_administrator,
    permissions_to_list,
)

logger = logging.getLogger(__name__)


def dedupe_command_permissions(permissions: Sequence[CommandPermission]) -> List[CommandPermission]:
    """Collapse entries sharing (id, type), the last one wins"""
    return list({p.key: p for p in permissions}.values())


def merge_command_permissions(current: Sequence[CommandPermission],
                              incoming: Sequence[CommandPermission]) -> List[CommandPermission]:
    """Replace entries sharing (id, type) with the incoming ones, append the rest"""
    incoming = dedupe_command_permissions(incoming)
    incoming_keys = {p.key for p in incoming}
    kept = [p for p in current if p.key not in incoming_keys]
    return kept + incoming


def remove_command_permission_entry(current: Sequence[CommandPermission], target_id: int,
                                    target_type: CommandPermissionType) -> List[CommandPermission]:
    return [p for p in current if p.key != (target_id, target_type)]


class DiscordPermissionsManager:
    """
    Reads and edits the permission overrides of a guild's application
    commands on behalf of an acting user.

    The acting user is ``actor_id`` when given (e.g. the user of a slash
    command interaction), otherwise the owner of the configured bearer token.
    Every mutation runs validate_command_permission_access first.
    """

    def __init__(self, config: ManagerConfig, client: Optional[DiscordAPIClient] = None,
                 actor_id: Optional[int] = None):
        self.config = config
        self.client = client or DiscordAPIClient(config)
        self.actor_id = actor_id

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "DiscordPermissionsManager":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _resolve_actor_id(self) -> int:
        if self.actor_id is None:
            self.actor_id = await self.client.fetch_current_user()
        return self.actor_id

    def _find_command(self, commands: Sequence[Command], command_id: int) -> Command:
        for command in commands:
            if command.id == command_id:
                return command
        raise NotFound("Command not found", context={'command_id': command_id})

    # ========================================================================
    # AUTHORIZATION GATE
    # ========================================================================

    async def validate_command_permission_access(self, command_id: int) -> bool:
        """
        Check that the actor may edit the overrides of ``command_id``.
        Returns True or raises NotFound / AccessDenied.
        """
        user_id = await self._resolve_actor_id()
        guild, roles, commands, member = await asyncio.gather(
            self.client.fetch_guild(),
            self.client.fetch_guild_roles(),
            self.client.fetch_commands(),
            self.client.fetch_member(user_id),
        )

        command = self._find_command(commands, command_id)
        permissions = compute_base_permissions(member, roles)

        try:
            check_override_access(user_id, command, permissions, guild.owner_id)
        except AccessDenied as e:
            logger.warning(
                f"Denied override access: guild={guild.id}, user={user_id}, "
                f"command={command_id}, reason={e.reason.value}, missing={e.missing}"
            )
            raise
        return True

    # ========================================================================
    # COMMAND PERMISSION OVERRIDES
    # ========================================================================

    async def get_command_permissions(self, command_id: int) -> List[CommandPermission]:
        """Current overrides; an unconfigured command has none"""
        try:
            return await self.client.fetch_command_permissions(command_id)
        except NotFound:
            logger.debug(f"No permission overrides configured for command {command_id}")
            return []

    async def add_command_permissions(self, command_id: int,
                                      new_permissions: Sequence[CommandPermission]) -> List[CommandPermission]:
        await self.validate_command_permission_access(command_id)

        current = await self.get_command_permissions(command_id)
        updated = merge_command_permissions(current, new_permissions)

        await self.client.put_command_permissions(command_id, updated)
        logger.info(f"Added {len(new_permissions)} permission overrides to command {command_id}")
        return updated

    async def remove_command_permission(self, command_id: int, target_id: int,
                                        target_type: CommandPermissionType) -> List[CommandPermission]:
        await self.validate_command_permission_access(command_id)

        current = await self.get_command_permissions(command_id)
        updated = remove_command_permission_entry(current, target_id, target_type)

        await self.client.put_command_permissions(command_id, updated)
        logger.info(f"Removed {target_type.name.lower()} {target_id} from command {command_id} overrides")
        return updated

    async def set_command_permissions(self, command_id: int,
                                      permissions: Sequence[CommandPermission]) -> None:
        await self.validate_command_permission_access(command_id)
        await self.client.put_command_permissions(command_id, dedupe_command_permissions(permissions))

    # ========================================================================
    # READ-ONLY VIEWS
    # ========================================================================

    async def get_manageable_resources(self) -> ManageableResources:
        user_id = await self._resolve_actor_id()
        guild, roles, channels, commands, member = await asyncio.gather(
            self.client.fetch_guild(),
            self.client.fetch_guild_roles(),
            self.client.fetch_guild_channels(),
            self.client.fetch_commands(),
            self.client.fetch_member(user_id),
        )
        return compute_manageable_resources(member, roles, channels, commands, guild.owner_id)

    async def get_permission_summary(self) -> Dict[str, Any]:
        """Get detailed permission summary for the acting user"""
        user_id = await self._resolve_actor_id()
        guild, roles, member = await asyncio.gather(
            self.client.fetch_guild(),
            self.client.fetch_guild_roles(),
            self.client.fetch_member(user_id),
        )
        effective_mask = compute_base_permissions(member, roles)
        is_owner = user_id == guild.owner_id
        is_admin = is_administrator(effective_mask)

        return {
            'guild_id': guild.id,
            'user_id': user_id,
            'effective_mask': str(effective_mask),
            'effective_mask_hex': format_permission_mask(effective_mask),
            'granted_permissions': permissions_to_list(effective_mask),
            'is_owner': is_owner,
            'is_administrator': is_admin,
            'can_manage_overrides': is_owner or is_admin or has_all(effective_mask, OVERRIDE_MANAGEMENT_FLOOR),
        }
