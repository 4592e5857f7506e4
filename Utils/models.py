from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple


def _snowflake(value: Any) -> int:
    return int(value)


# ============================================================================
# GUILD SNAPSHOT RECORDS
# ============================================================================

@dataclass(frozen=True)
class Guild:
    id: int
    owner_id: int
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Guild":
        return cls(
            id=_snowflake(data['id']),
            owner_id=_snowflake(data['owner_id']),
            name=data.get('name', ""),
        )


@dataclass(frozen=True)
class Role:
    """A guild role. The @everyone role shares its id with the guild."""
    id: int
    permissions: int
    position: int
    name: str = ""
    is_default: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], guild_id: Optional[int] = None) -> "Role":
        role_id = _snowflake(data['id'])
        return cls(
            id=role_id,
            permissions=int(data.get('permissions', 0)),
            position=int(data.get('position', 0)),
            name=data.get('name', ""),
            is_default=guild_id is not None and role_id == guild_id,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': str(self.id),
            'name': self.name,
            'position': self.position,
            'permissions': str(self.permissions),
            'is_default': self.is_default,
        }


@dataclass(frozen=True)
class Member:
    user_id: int
    guild_id: int
    role_ids: Tuple[int, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any], guild_id: int) -> "Member":
        user = data.get('user') or {}
        return cls(
            user_id=_snowflake(user['id']),
            guild_id=guild_id,
            role_ids=tuple(_snowflake(r) for r in data.get('roles', [])),
        )


class OverwriteKind(Enum):
    """Subject of a channel overwrite"""
    EVERYONE = "everyone"
    ROLE = "role"
    MEMBER = "member"


# Discord wire values for permission_overwrites[].type
_OVERWRITE_WIRE_TYPES = {0: OverwriteKind.ROLE, 1: OverwriteKind.MEMBER}


@dataclass(frozen=True)
class PermissionOverwrite:
    id: int
    kind: OverwriteKind
    allow: int = 0
    deny: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], guild_id: int) -> "PermissionOverwrite":
        """
        Classify a raw overwrite.
        The overwrite targeting the guild id is the @everyone overwrite,
        everything else follows the wire type.
        """
        subject_id = _snowflake(data['id'])
        if subject_id == guild_id:
            kind = OverwriteKind.EVERYONE
        else:
            wire_type = int(data.get('type', -1))
            if wire_type not in _OVERWRITE_WIRE_TYPES:
                raise ValueError(f"Unknown overwrite type {wire_type!r} for subject {subject_id}")
            kind = _OVERWRITE_WIRE_TYPES[wire_type]
        return cls(
            id=subject_id,
            kind=kind,
            allow=int(data.get('allow', 0)),
            deny=int(data.get('deny', 0)),
        )


@dataclass(frozen=True)
class Channel:
    """
    A guild channel.
    ``permission_overwrites`` is None for channel kinds that carry no
    overwrite list, which is not the same as an empty list.
    """
    id: int
    guild_id: int
    name: str = ""
    type: int = 0
    position: int = 0
    permission_overwrites: Optional[Tuple[PermissionOverwrite, ...]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], guild_id: int) -> "Channel":
        raw_overwrites = data.get('permission_overwrites')
        overwrites = None
        if raw_overwrites is not None:
            overwrites = tuple(PermissionOverwrite.from_dict(o, guild_id) for o in raw_overwrites)
        return cls(
            id=_snowflake(data['id']),
            guild_id=guild_id,
            name=data.get('name', ""),
            type=int(data.get('type', 0)),
            position=int(data.get('position', 0)),
            permission_overwrites=overwrites,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': str(self.id),
            'name': self.name,
            'type': self.type,
            'position': self.position,
        }


@dataclass(frozen=True)
class Command:
    """
    An application command.
    ``default_member_permissions`` is None when undeclared and 0 for the
    explicit "nobody by default" value.
    """
    id: int
    name: str = ""
    description: str = ""
    default_member_permissions: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Command":
        raw = data.get('default_member_permissions')
        return cls(
            id=_snowflake(data['id']),
            name=data.get('name', ""),
            description=data.get('description', ""),
            default_member_permissions=int(raw) if raw is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': str(self.id),
            'name': self.name,
            'description': self.description,
            'default_member_permissions': (
                str(self.default_member_permissions)
                if self.default_member_permissions is not None else None
            ),
        }


class CommandPermissionType(IntEnum):
    ROLE = 1
    USER = 2
    CHANNEL = 3


@dataclass(frozen=True)
class CommandPermission:
    """One entry of a command's permission override list"""
    id: int
    type: CommandPermissionType
    permission: bool = True

    @property
    def key(self) -> Tuple[int, CommandPermissionType]:
        return self.id, self.type

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommandPermission":
        permission = data.get('permission', True)
        if not isinstance(permission, bool):
            raise ValueError(f"Override 'permission' must be a boolean, got {permission!r}")
        return cls(
            id=_snowflake(data['id']),
            type=CommandPermissionType(int(data['type'])),
            permission=permission,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': str(self.id),
            'type': int(self.type),
            'permission': self.permission,
        }


def command_permissions_to_payload(permissions: List[CommandPermission]) -> Dict[str, Any]:
    """Body for PUT .../commands/{id}/permissions"""
    return {'permissions': [p.to_dict() for p in permissions]}


@dataclass
class ManageableResources:
    roles: List[Role] = field(default_factory=list)
    channels: List[Channel] = field(default_factory=list)
    commands: List[Command] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'roles': [r.to_dict() for r in self.roles],
            'channels': [c.to_dict() for c in self.channels],
            'commands': [c.to_dict() for c in self.commands],
        }
