import pytest
from typing import Dict, List, Optional

from Utils.config import ManagerConfig
from Utils.errors import NotFound, RemoteRejected
from Utils.models import (
    Channel,
    Command,
    CommandPermission,
    Guild,
    Member,
    OverwriteKind,
    PermissionOverwrite,
    Role,
)
from Utils.permissions import PermissionFlags as P

GUILD_ID = 1000
OWNER_ID = 1
ADMIN_ID = 2
MANAGER_ID = 3
MOD_ID = 4
GUILD_STAFF_ID = 5
ROLE_MANAGER_ID = 6
NOBODY_ID = 7

EVERYONE_ROLE = 1000
GUILD_STAFF_ROLE = 2005
MOD_ROLE = 2001
MANAGER_ROLE = 2002
SENIOR_ROLE = 2003
ADMIN_ROLE = 2004

BAN_COMMAND = 3001
PURGE_COMMAND = 3002
LOCKED_COMMAND = 3003
ZERO_COMMAND = 3004
ROLES_COMMAND = 3005


class SnapshotBuilder:
    """Builds a consistent guild snapshot for tests"""

    def __init__(self, guild_id: int = GUILD_ID, owner_id: int = OWNER_ID):
        self.guild = Guild(id=guild_id, owner_id=owner_id, name="Test Guild")
        self.roles: List[Role] = []
        self.channels: List[Channel] = []
        self.commands: List[Command] = []
        self.members: Dict[int, Member] = {}

    def role(self, role_id: int, permissions: int, position: int, name: str = ""):
        self.roles.append(Role(
            id=role_id, permissions=permissions, position=position,
            name=name or f"role-{role_id}", is_default=role_id == self.guild.id,
        ))
        return self

    def member(self, user_id: int, *role_ids: int):
        self.members[user_id] = Member(user_id=user_id, guild_id=self.guild.id, role_ids=tuple(role_ids))
        return self

    def channel(self, channel_id: int, overwrites: Optional[List[PermissionOverwrite]] = None, name: str = ""):
        self.channels.append(Channel(
            id=channel_id, guild_id=self.guild.id, name=name or f"channel-{channel_id}",
            permission_overwrites=tuple(overwrites) if overwrites is not None else None,
        ))
        return self

    def command(self, command_id: int, name: str, default_member_permissions: Optional[int]):
        self.commands.append(Command(id=command_id, name=name, default_member_permissions=default_member_permissions))
        return self


def build_default_snapshot() -> SnapshotBuilder:
    builder = (
        SnapshotBuilder()
        .role(EVERYONE_ROLE, P.VIEW_CHANNEL | P.SEND_MESSAGES, 0, "@everyone")
        .role(GUILD_STAFF_ROLE, P.MANAGE_GUILD, 5, "guild staff")
        .role(MOD_ROLE, P.MANAGE_MESSAGES, 10, "mod")
        .role(MANAGER_ROLE, P.MANAGE_ROLES | P.MANAGE_GUILD | P.USE_APPLICATION_COMMANDS, 20, "manager")
        .role(SENIOR_ROLE, P.MANAGE_ROLES, 30, "senior")
        .role(ADMIN_ROLE, P.ADMINISTRATOR, 40, "admin")
        .member(OWNER_ID)
        .member(ADMIN_ID, ADMIN_ROLE)
        .member(MANAGER_ID, MANAGER_ROLE, MOD_ROLE)
        .member(MOD_ID, MOD_ROLE)
        .member(GUILD_STAFF_ID, GUILD_STAFF_ROLE)
        .member(ROLE_MANAGER_ID, SENIOR_ROLE)
        .member(NOBODY_ID)
        .command(BAN_COMMAND, "ban", P.BAN_MEMBERS)
        .command(PURGE_COMMAND, "purge", P.MANAGE_MESSAGES)
        .command(LOCKED_COMMAND, "locked", None)
        .command(ZERO_COMMAND, "zero", 0)
        .command(ROLES_COMMAND, "roles", P.MANAGE_ROLES)
        .channel(4001, [], name="general")
        .channel(4002, [
            PermissionOverwrite(id=MOD_ROLE, kind=OverwriteKind.ROLE, allow=P.MANAGE_CHANNELS),
        ], name="mod-only")
        .channel(4003, None, name="thread")
    )
    return builder


class FakeDiscordClient:
    """In-memory stand-in for DiscordAPIClient"""

    def __init__(self, snapshot: SnapshotBuilder, current_user_id: Optional[int] = None):
        self.snapshot = snapshot
        self.current_user_id = current_user_id
        self.overrides: Dict[int, List[CommandPermission]] = {}
        self.put_calls = []
        self.reject_writes = False
        self.closed = False

    async def fetch_current_user(self) -> int:
        return self.current_user_id

    async def fetch_guild(self) -> Guild:
        return self.snapshot.guild

    async def fetch_guild_roles(self) -> List[Role]:
        return list(self.snapshot.roles)

    async def fetch_guild_channels(self) -> List[Channel]:
        return list(self.snapshot.channels)

    async def fetch_commands(self) -> List[Command]:
        return list(self.snapshot.commands)

    async def fetch_member(self, user_id: int) -> Member:
        if user_id not in self.snapshot.members:
            raise NotFound("Unknown Member", context={'user_id': user_id})
        return self.snapshot.members[user_id]

    async def fetch_command_permissions(self, command_id: int) -> List[CommandPermission]:
        if command_id not in self.overrides:
            raise NotFound("Unknown application command permissions")
        return list(self.overrides[command_id])

    async def put_command_permissions(self, command_id: int, permissions: List[CommandPermission]) -> None:
        self.put_calls.append((command_id, list(permissions)))
        if self.reject_writes:
            raise RemoteRejected("Failed to update command permissions", status=400, details={'code': 50035})
        self.overrides[command_id] = list(permissions)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def snapshot():
    return build_default_snapshot()


@pytest.fixture
def manager_config():
    return ManagerConfig(
        application_id=555,
        guild_id=GUILD_ID,
        bot_token="bot-token",
        bearer_token="bearer-token",
        api_base_url="https://discord.test/api/v10",
    )


@pytest.fixture
def fake_client(snapshot):
    return FakeDiscordClient(snapshot)
