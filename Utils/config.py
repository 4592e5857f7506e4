import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_API_BASE_URL = "https://discord.com/api/v10"


@dataclass(frozen=True)
class ManagerConfig:
    """
    Credentials and target for the Discord REST collaborator.
    The permission computations never see this; only DiscordAPIClient does.
    """
    application_id: int
    guild_id: int
    bot_token: str
    bearer_token: Optional[str] = None
    api_base_url: str = DEFAULT_API_BASE_URL
    request_timeout: float = 10.0

    @classmethod
    def from_env(cls, require_bearer: bool = False, **overrides: Any) -> "ManagerConfig":
        """
        Build a config from environment variables (.env is loaded first).
        Keyword overrides win over the environment.
        """
        load_dotenv()

        values: Dict[str, Any] = {
            'application_id': os.getenv("DISCORD_APPLICATION_ID"),
            'guild_id': os.getenv("DISCORD_GUILD_ID"),
            'bot_token': os.getenv("DISCORD_AUTH_TOKEN"),
            'bearer_token': os.getenv("DISCORD_BEARER_TOKEN") or None,
            'api_base_url': os.getenv("DISCORD_API_BASE_URL", DEFAULT_API_BASE_URL),
            'request_timeout': os.getenv("DISCORD_REQUEST_TIMEOUT", "10"),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        required = ['application_id', 'guild_id', 'bot_token']
        if require_bearer:
            required.append('bearer_token')
        missing = [name for name in required if not values.get(name)]
        if missing:
            raise ConfigurationError(
                f"Missing configuration: {', '.join(missing)}",
                context={'missing': missing},
            )

        try:
            return cls(
                application_id=int(values['application_id']),
                guild_id=int(values['guild_id']),
                bot_token=values['bot_token'],
                bearer_token=values['bearer_token'],
                api_base_url=values['api_base_url'].rstrip("/"),
                request_timeout=float(values['request_timeout']),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration value: {e}", cause=e) from e

    def with_overrides(self, **changes: Any) -> "ManagerConfig":
        return replace(self, **changes)
