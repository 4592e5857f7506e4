import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from .config import ManagerConfig
from .errors import ConfigurationError, NotFound, RemoteRejected, UpstreamRequestError
from .models import (
    Channel,
    Command,
    CommandPermission,
    Guild,
    Member,
    Role,
    command_permissions_to_payload,
)

logger = logging.getLogger(__name__)


class DiscordAPIClient:
    """
    Thin async wrapper over the Discord REST endpoints the permission
    manager reads from and writes to.

    Guild data is read with the bot token. The current user and command
    permission endpoints need the user's OAuth bearer token.
    """

    def __init__(self, config: ManagerConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers={'Content-Type': 'application/json'},
                timeout=aiohttp.ClientTimeout(total=self.config.request_timeout),
            )
            self._owns_session = True
        return self.session

    async def close(self) -> None:
        """Close the session if this client created it"""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def __aenter__(self) -> "DiscordAPIClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _auth_header(self, auth: str) -> Dict[str, str]:
        if auth == "bearer":
            if not self.config.bearer_token:
                raise ConfigurationError("A bearer token is required for this request")
            return {'Authorization': f"Bearer {self.config.bearer_token}"}
        return {'Authorization': f"Bot {self.config.bot_token}"}

    async def _request(self, method: str, path: str, auth: str = "bot",
                       payload: Optional[Dict[str, Any]] = None):
        url = f"{self.config.api_base_url}{path}"
        session = await self._get_session()

        kwargs: Dict[str, Any] = {'headers': self._auth_header(auth)}
        if payload is not None:
            kwargs['json'] = payload

        logger.debug(f"{method} {url}")
        async with session.request(method, url, **kwargs) as response:
            body = await response.text()
            status = response.status

        data: Any = None
        if body:
            try:
                data = json.loads(body)
            except ValueError:
                data = body
        return status, data

    async def _get(self, path: str, auth: str = "bot") -> Any:
        status, data = await self._request("GET", path, auth=auth)
        if status == 404:
            raise NotFound(f"Resource not found: {path}", context={'path': path, 'details': data})
        if not 200 <= status < 300:
            raise UpstreamRequestError(
                f"Failed to fetch {path} ({status})",
                status=status,
                context={'path': path, 'details': data},
            )
        return data

    # ========================================================================
    # READS
    # ========================================================================

    @property
    def _guild_path(self) -> str:
        return f"/guilds/{self.config.guild_id}"

    @property
    def _commands_path(self) -> str:
        return f"/applications/{self.config.application_id}/guilds/{self.config.guild_id}/commands"

    async def fetch_current_user(self) -> int:
        data = await self._get("/users/@me", auth="bearer")
        return int(data['id'])

    async def fetch_guild(self) -> Guild:
        return Guild.from_dict(await self._get(self._guild_path))

    async def fetch_guild_roles(self) -> List[Role]:
        data = await self._get(f"{self._guild_path}/roles")
        return [Role.from_dict(r, guild_id=self.config.guild_id) for r in data]

    async def fetch_guild_channels(self) -> List[Channel]:
        data = await self._get(f"{self._guild_path}/channels")
        return [Channel.from_dict(c, guild_id=self.config.guild_id) for c in data]

    async def fetch_commands(self) -> List[Command]:
        data = await self._get(self._commands_path)
        return [Command.from_dict(c) for c in data]

    async def fetch_member(self, user_id: int) -> Member:
        data = await self._get(f"{self._guild_path}/members/{user_id}")
        return Member.from_dict(data, guild_id=self.config.guild_id)

    async def fetch_command_permissions(self, command_id: int) -> List[CommandPermission]:
        """Raises NotFound when no overrides were ever configured"""
        data = await self._get(f"{self._commands_path}/{command_id}/permissions", auth="bearer")
        return [CommandPermission.from_dict(p) for p in data.get('permissions', [])]

    # ========================================================================
    # WRITES
    # ========================================================================

    async def put_command_permissions(self, command_id: int,
                                      permissions: List[CommandPermission]) -> None:
        path = f"{self._commands_path}/{command_id}/permissions"
        status, data = await self._request(
            "PUT", path, auth="bearer", payload=command_permissions_to_payload(permissions)
        )
        if not 200 <= status < 300:
            raise RemoteRejected(
                f"Failed to update command permissions: {json.dumps(data) if data is not None else status}",
                status=status,
                details=data,
                context={'command_id': command_id},
            )
        logger.info(
            f"Updated permissions for command {command_id} in guild {self.config.guild_id}: "
            f"{len(permissions)} entries"
        )
