# API/utils/helpers.py
# ============================================================================
# Utility functions for the admin API
# ============================================================================

import asyncio
from flask import current_app, g
from typing import Any, Coroutine, Dict, List

from Utils.config import ManagerConfig
from Utils.manager import DiscordPermissionsManager
from Utils.models import CommandPermission


def run_async(coro: Coroutine) -> Any:
    """Helper to run async functions in Flask"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_manager(guild_id: int) -> DiscordPermissionsManager:
    """
    Manager for ``guild_id`` acting as the owner of the request's bearer
    token. Create it inside the coroutine passed to run_async so its HTTP
    session lives on that loop.
    """
    base_config: ManagerConfig = current_app.config['MANAGER_CONFIG']
    config = base_config.with_overrides(guild_id=guild_id, bearer_token=g.bearer_token)
    factory = current_app.config.get('MANAGER_FACTORY') or DiscordPermissionsManager
    return factory(config)


def parse_command_permissions(data: Any) -> List[CommandPermission]:
    """Parse {"permissions": [...]} from a request body; raises ValueError"""
    if not isinstance(data, dict) or not isinstance(data.get('permissions'), list):
        raise ValueError("Body must be a JSON object with a 'permissions' list")
    try:
        return [CommandPermission.from_dict(p) for p in data['permissions']]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid permission entry: {e}") from e


def serialize_permissions(permissions: List[CommandPermission]) -> List[Dict[str, Any]]:
    return [p.to_dict() for p in permissions]
