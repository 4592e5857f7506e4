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



import logging
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import AccessDenied, AccessDeniedReason
from .models import (
    Channel,
    Command,
    ManageableResources,
    Member,
    OverwriteKind,
    Role,
)

logger = logging.getLogger(__name__)


# ============================================================================
# PERMISSION FLAG REGISTRY - Discord bitmask layout
# ============================================================================

class PermissionFlags:
    """
    Discord permission bits as published in the API documentation.
    Values go past bit 32, so they are kept as plain Python ints.
    """

    CREATE_INSTANT_INVITE = 1 << 0
    KICK_MEMBERS = 1 << 1
    BAN_MEMBERS = 1 << 2
    ADMINISTRATOR = 1 << 3
    MANAGE_CHANNELS = 1 << 4
    MANAGE_GUILD = 1 << 5
    ADD_REACTIONS = 1 << 6
    VIEW_AUDIT_LOG = 1 << 7
    PRIORITY_SPEAKER = 1 << 8
    STREAM = 1 << 9
    VIEW_CHANNEL = 1 << 10
    SEND_MESSAGES = 1 << 11
    SEND_TTS_MESSAGES = 1 << 12
    MANAGE_MESSAGES = 1 << 13
    EMBED_LINKS = 1 << 14
    ATTACH_FILES = 1 << 15
    READ_MESSAGE_HISTORY = 1 << 16
    MENTION_EVERYONE = 1 << 17
    USE_EXTERNAL_EMOJIS = 1 << 18
    VIEW_GUILD_INSIGHTS = 1 << 19
    CONNECT = 1 << 20
    SPEAK = 1 << 21
    MUTE_MEMBERS = 1 << 22
    DEAFEN_MEMBERS = 1 << 23
    MOVE_MEMBERS = 1 << 24
    USE_VAD = 1 << 25
    CHANGE_NICKNAME = 1 << 26
    MANAGE_NICKNAMES = 1 << 27
    MANAGE_ROLES = 1 << 28
    MANAGE_WEBHOOKS = 1 << 29
    MANAGE_GUILD_EXPRESSIONS = 1 << 30
    USE_APPLICATION_COMMANDS = 1 << 31
    REQUEST_TO_SPEAK = 1 << 32
    MANAGE_EVENTS = 1 << 33
    MANAGE_THREADS = 1 << 34
    CREATE_PUBLIC_THREADS = 1 << 35
    CREATE_PRIVATE_THREADS = 1 << 36
    USE_EXTERNAL_STICKERS = 1 << 37
    SEND_MESSAGES_IN_THREADS = 1 << 38
    USE_EMBEDDED_ACTIVITIES = 1 << 39
    MODERATE_MEMBERS = 1 << 40
    VIEW_CREATOR_MONETIZATION_ANALYTICS = 1 << 41
    USE_SOUNDBOARD = 1 << 42
    CREATE_GUILD_EXPRESSIONS = 1 << 43
    CREATE_EVENTS = 1 << 44
    USE_EXTERNAL_SOUNDS = 1 << 45
    SEND_VOICE_MESSAGES = 1 << 46
    # bits 47-48 unassigned
    SEND_POLLS = 1 << 49
    USE_EXTERNAL_APPS = 1 << 50

    @classmethod
    def get_flag_map(cls) -> Dict[str, int]:
        """Get mapping of snake_case permission names to bitmasks"""
        return {
            name.lower(): value
            for name, value in vars(cls).items()
            if name.isupper() and isinstance(value, int)
        }

    @classmethod
    def all(cls) -> int:
        mask = 0
        for value in cls.get_flag_map().values():
            mask |= value
        return mask

    @classmethod
    def resolve_permission(cls, permission: str) -> int:
        """
        Resolve a permission name ("manage_roles", "Manage Roles",
        "MANAGE_ROLES") to its bitmask. Unknown names resolve to 0.
        """
        key = permission.strip().lower().replace(" ", "_").replace("-", "_")
        flag_map = cls.get_flag_map()
        if key in flag_map:
            return flag_map[key]

        logger.warning(f"Unknown permission flag: {permission}")
        return 0


# Both are required before a command's permission overrides may be changed
OVERRIDE_MANAGEMENT_FLOOR = PermissionFlags.MANAGE_GUILD | PermissionFlags.MANAGE_ROLES


# ============================================================================
# BITMASK ALGEBRA
# ============================================================================

def union(a: int, b: int) -> int:
    return a | b


def subtract(a: int, b: int) -> int:
    """Clear the bits of ``b`` from ``a``"""
    return a & ~b


def has_any(a: int, b: int) -> bool:
    return (a & b) != 0


def has_all(a: int, b: int) -> bool:
    return (a & b) == b


def is_administrator(permissions: int) -> bool:
    return has_any(permissions, PermissionFlags.ADMINISTRATOR)


# ============================================================================
# BASE PERMISSIONS
# ============================================================================

def get_member_roles(member: Member, roles: Sequence[Role]) -> List[Role]:
    """Roles of ``roles`` the member holds, in the order of ``roles``"""
    held = set(member.role_ids)
    member_roles = [role for role in roles if role.id in held]

    if len(member_roles) != len(held):
        known = {role.id for role in member_roles}
        logger.debug(
            f"Ignoring unknown role ids for member {member.user_id}: "
            f"{sorted(held - known)}"
        )
    return member_roles


def compute_base_permissions(member: Member, roles: Sequence[Role]) -> int:
    """
    Union of the permissions of every role the member holds.
    Role ids missing from ``roles`` are skipped. Owner and administrator
    handling is left to the caller.
    """
    permissions = 0
    for role in get_member_roles(member, roles):
        permissions = union(permissions, role.permissions)
    return permissions


# ============================================================================
# CHANNEL OVERWRITES
# ============================================================================

def compute_channel_permissions(member: Member, channel: Channel,
                                roles: Sequence[Role], guild_owner_id: int) -> int:
    """
    Effective permissions of ``member`` in ``channel``.

    Layer order: @everyone overwrite, then the merged overwrites of the
    member's roles, then the member's own overwrite. Each layer clears its
    deny bits before adding its allow bits.
    """
    if member.user_id == guild_owner_id:
        return PermissionFlags.ADMINISTRATOR

    permissions = compute_base_permissions(member, roles)
    if is_administrator(permissions):
        return PermissionFlags.ADMINISTRATOR

    if channel.permission_overwrites is None:
        return permissions

    everyone_overwrite = None
    member_overwrite = None
    role_allow = 0
    role_deny = 0
    held = set(member.role_ids)

    for overwrite in channel.permission_overwrites:
        if overwrite.kind is OverwriteKind.EVERYONE:
            everyone_overwrite = overwrite
        elif overwrite.kind is OverwriteKind.ROLE:
            if overwrite.id in held:
                role_allow = union(role_allow, overwrite.allow)
                role_deny = union(role_deny, overwrite.deny)
        elif overwrite.kind is OverwriteKind.MEMBER:
            if overwrite.id == member.user_id:
                member_overwrite = overwrite

    if everyone_overwrite:
        permissions = subtract(permissions, everyone_overwrite.deny)
        permissions = union(permissions, everyone_overwrite.allow)

    permissions = subtract(permissions, role_deny)
    permissions = union(permissions, role_allow)

    if member_overwrite:
        permissions = subtract(permissions, member_overwrite.deny)
        permissions = union(permissions, member_overwrite.allow)

    return permissions


def has_channel_manage_access(permissions: int) -> bool:
    return has_any(permissions, PermissionFlags.MANAGE_CHANNELS | PermissionFlags.ADMINISTRATOR)


# ============================================================================
# COMMAND ACCESS
# ============================================================================

def can_user_run_command(user_id: int, command: Command, user_permissions: int,
                         guild_owner_id: int) -> bool:
    """
    Whether a user may run ``command``.

    Commands without default member permissions, or with "0", are closed to
    everyone but the guild owner and administrators.
    """
    if user_id == guild_owner_id:
        return True
    if is_administrator(user_permissions):
        return True

    required = command.default_member_permissions
    if not required:
        return False

    return has_all(user_permissions, required)


def check_override_access(user_id: int, command: Command, user_permissions: int,
                          guild_owner_id: int) -> bool:
    """
    Authorization gate for changing a command's permission overrides.

    Raises AccessDenied when the actor lacks Manage Guild / Manage Roles, or
    could not run ``command`` themself.
    """
    if user_id == guild_owner_id or is_administrator(user_permissions):
        return True

    if not has_all(user_permissions, OVERRIDE_MANAGEMENT_FLOOR):
        missing = permissions_to_list(subtract(OVERRIDE_MANAGEMENT_FLOOR, user_permissions))
        raise AccessDenied(
            "Missing Manage Guild or Manage Roles permissions",
            reason=AccessDeniedReason.MISSING_BASE_PERMISSIONS,
            missing=missing,
            context={'user_id': user_id, 'command_id': command.id},
        )

    if not can_user_run_command(user_id, command, user_permissions, guild_owner_id):
        missing = []
        if command.default_member_permissions:
            missing = permissions_to_list(
                subtract(command.default_member_permissions, user_permissions)
            )
        raise AccessDenied(
            "User does not have access to run this command",
            reason=AccessDeniedReason.CANNOT_RUN_COMMAND,
            missing=missing,
            context={'user_id': user_id, 'command_id': command.id},
        )

    return True


# ============================================================================
# MANAGEABLE RESOURCES
# ============================================================================

def get_manageable_roles(member: Member, roles: Sequence[Role], guild_owner_id: int) -> List[Role]:
    """Roles strictly below the member's highest Manage Roles capable role"""
    if member.user_id == guild_owner_id:
        return list(roles)

    eligible = [
        role for role in get_member_roles(member, roles)
        if has_any(role.permissions, PermissionFlags.MANAGE_ROLES | PermissionFlags.ADMINISTRATOR)
    ]
    if not eligible:
        return []

    highest = max(eligible, key=lambda role: role.position)
    return [role for role in roles if role.position < highest.position]


def get_manageable_channels(member: Member, channels: Sequence[Channel],
                            roles: Sequence[Role], guild_owner_id: int) -> List[Channel]:
    if member.user_id == guild_owner_id:
        return list(channels)

    base = compute_base_permissions(member, roles)
    if has_channel_manage_access(base):
        return list(channels)

    return [
        channel for channel in channels
        if has_channel_manage_access(
            compute_channel_permissions(member, channel, roles, guild_owner_id)
        )
    ]


def get_manageable_commands(user_id: int, commands: Iterable[Command], user_permissions: int,
                            guild_owner_id: int) -> List[Command]:
    return [
        command for command in commands
        if can_user_run_command(user_id, command, user_permissions, guild_owner_id)
    ]


def compute_manageable_resources(member: Member, roles: Sequence[Role],
                                 channels: Sequence[Channel], commands: Sequence[Command],
                                 guild_owner_id: int) -> ManageableResources:
    user_permissions = compute_base_permissions(member, roles)
    return ManageableResources(
        roles=get_manageable_roles(member, roles, guild_owner_id),
        channels=get_manageable_channels(member, channels, roles, guild_owner_id),
        commands=get_manageable_commands(member.user_id, commands, user_permissions, guild_owner_id),
    )


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def permissions_to_list(mask: int) -> List[str]:
    """Convert permission mask to list of permission names"""
    return [name for name, value in PermissionFlags.get_flag_map().items() if has_all(mask, value)]


def permissions_from_list(permissions: Iterable[str]) -> int:
    """Convert list of permission names to mask"""
    mask = 0
    for perm in permissions:
        mask |= PermissionFlags.resolve_permission(perm)
    return mask


def format_permission_mask(mask: int) -> str:
    """Format permission mask as human-readable string"""
    return f"0x{mask:016X}"


def parse_permission_mask(mask_str: Optional[str]) -> Optional[int]:
    """
    Parse a permission mask as Discord sends it (decimal string) or as
    formatted by format_permission_mask. Empty input means "not declared".
    """
    if mask_str is None:
        return None
    text = str(mask_str).strip()
    if not text:
        return None
    if text.lower().startswith("0x"):
        return int(text, 16)
    return int(text)
