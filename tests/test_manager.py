import pytest

from Utils.errors import AccessDenied, AccessDeniedReason, NotFound, RemoteRejected
from Utils.manager import DiscordPermissionsManager, merge_command_permissions
from Utils.models import CommandPermission, CommandPermissionType

from conftest import (
    ADMIN_ID, BAN_COMMAND, GUILD_STAFF_ID, LOCKED_COMMAND, MANAGER_ID, MOD_ROLE, NOBODY_ID,
    OWNER_ID, PURGE_COMMAND, ROLE_MANAGER_ID,
)

ROLE = CommandPermissionType.ROLE
USER = CommandPermissionType.USER


def _manager(manager_config, fake_client, actor_id):
    return DiscordPermissionsManager(manager_config, client=fake_client, actor_id=actor_id)


@pytest.mark.asyncio
async def test_missing_overrides_read_as_empty(manager_config, fake_client):
    manager = _manager(manager_config, fake_client, MANAGER_ID)
    assert await manager.get_command_permissions(PURGE_COMMAND) == []


@pytest.mark.asyncio
async def test_add_replaces_entry_for_same_subject(manager_config, fake_client):
    fake_client.overrides[PURGE_COMMAND] = [
        CommandPermission(id=MOD_ROLE, type=ROLE, permission=True),
        CommandPermission(id=42, type=USER, permission=True),
    ]
    manager = _manager(manager_config, fake_client, MANAGER_ID)

    updated = await manager.add_command_permissions(
        PURGE_COMMAND, [CommandPermission(id=MOD_ROLE, type=ROLE, permission=False)]
    )

    assert len(updated) == 2
    assert CommandPermission(id=MOD_ROLE, type=ROLE, permission=False) in updated
    assert CommandPermission(id=MOD_ROLE, type=ROLE, permission=True) not in updated
    assert fake_client.put_calls == [(PURGE_COMMAND, updated)]


@pytest.mark.asyncio
async def test_add_appends_new_subjects(manager_config, fake_client):
    manager = _manager(manager_config, fake_client, OWNER_ID)
    updated = await manager.add_command_permissions(
        LOCKED_COMMAND, [CommandPermission(id=MOD_ROLE, type=ROLE), CommandPermission(id=MOD_ROLE, type=USER)]
    )
    # same id with a different type is a different subject
    assert [p.key for p in updated] == [(MOD_ROLE, ROLE), (MOD_ROLE, USER)]


def test_merge_keeps_existing_order():
    current = [
        CommandPermission(id=1, type=ROLE),
        CommandPermission(id=2, type=ROLE),
        CommandPermission(id=3, type=USER),
    ]
    merged = merge_command_permissions(current, [CommandPermission(id=2, type=ROLE, permission=False)])
    assert [p.key for p in merged] == [(1, ROLE), (3, USER), (2, ROLE)]
    assert merged[-1].permission is False


def test_merge_collapses_repeated_incoming_subject():
    merged = merge_command_permissions([], [
        CommandPermission(id=1, type=ROLE, permission=True),
        CommandPermission(id=1, type=ROLE, permission=False),
        CommandPermission(id=1, type=USER, permission=True),
    ])
    assert [p.key for p in merged] == [(1, ROLE), (1, USER)]
    assert merged[0].permission is False


@pytest.mark.asyncio
async def test_add_with_repeated_subject_persists_one_entry(manager_config, fake_client):
    manager = _manager(manager_config, fake_client, MANAGER_ID)

    await manager.add_command_permissions(PURGE_COMMAND, [
        CommandPermission(id=MOD_ROLE, type=ROLE, permission=True),
        CommandPermission(id=MOD_ROLE, type=ROLE, permission=False),
    ])
    assert fake_client.overrides[PURGE_COMMAND] == [CommandPermission(id=MOD_ROLE, type=ROLE, permission=False)]


@pytest.mark.asyncio
async def test_remove_missing_subject_leaves_list_unchanged(manager_config, fake_client):
    current = [CommandPermission(id=MOD_ROLE, type=ROLE)]
    fake_client.overrides[PURGE_COMMAND] = list(current)
    manager = _manager(manager_config, fake_client, MANAGER_ID)

    updated = await manager.remove_command_permission(PURGE_COMMAND, MOD_ROLE, USER)
    assert updated == current


@pytest.mark.asyncio
async def test_remove_existing_subject(manager_config, fake_client):
    fake_client.overrides[PURGE_COMMAND] = [
        CommandPermission(id=MOD_ROLE, type=ROLE),
        CommandPermission(id=42, type=USER),
    ]
    manager = _manager(manager_config, fake_client, ADMIN_ID)

    updated = await manager.remove_command_permission(PURGE_COMMAND, MOD_ROLE, ROLE)
    assert updated == [CommandPermission(id=42, type=USER)]
    assert fake_client.overrides[PURGE_COMMAND] == updated


@pytest.mark.asyncio
async def test_set_replaces_whole_list(manager_config, fake_client):
    fake_client.overrides[PURGE_COMMAND] = [CommandPermission(id=42, type=USER)]
    manager = _manager(manager_config, fake_client, MANAGER_ID)

    await manager.set_command_permissions(PURGE_COMMAND, [])
    assert fake_client.overrides[PURGE_COMMAND] == []


@pytest.mark.asyncio
async def test_set_collapses_repeated_subject(manager_config, fake_client):
    manager = _manager(manager_config, fake_client, MANAGER_ID)

    await manager.set_command_permissions(PURGE_COMMAND, [
        CommandPermission(id=42, type=USER, permission=True),
        CommandPermission(id=MOD_ROLE, type=ROLE, permission=True),
        CommandPermission(id=42, type=USER, permission=False),
    ])
    assert fake_client.overrides[PURGE_COMMAND] == [
        CommandPermission(id=42, type=USER, permission=False),
        CommandPermission(id=MOD_ROLE, type=ROLE, permission=True),
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("actor_id", [GUILD_STAFF_ID, ROLE_MANAGER_ID, NOBODY_ID])
async def test_gate_blocks_writes_without_both_floor_permissions(manager_config, fake_client, actor_id):
    manager = _manager(manager_config, fake_client, actor_id)

    with pytest.raises(AccessDenied) as exc_info:
        await manager.add_command_permissions(PURGE_COMMAND, [CommandPermission(id=MOD_ROLE, type=ROLE)])

    assert exc_info.value.reason is AccessDeniedReason.MISSING_BASE_PERMISSIONS
    assert fake_client.put_calls == []


@pytest.mark.asyncio
async def test_gate_blocks_commands_actor_cannot_run(manager_config, fake_client):
    manager = _manager(manager_config, fake_client, MANAGER_ID)

    for command_id in (BAN_COMMAND, LOCKED_COMMAND):
        with pytest.raises(AccessDenied) as exc_info:
            await manager.set_command_permissions(command_id, [])
        assert exc_info.value.reason is AccessDeniedReason.CANNOT_RUN_COMMAND

    assert fake_client.put_calls == []


@pytest.mark.asyncio
async def test_owner_passes_gate_for_locked_command(manager_config, fake_client):
    manager = _manager(manager_config, fake_client, OWNER_ID)
    assert await manager.validate_command_permission_access(LOCKED_COMMAND) is True


@pytest.mark.asyncio
async def test_unknown_command_is_not_found(manager_config, fake_client):
    manager = _manager(manager_config, fake_client, OWNER_ID)
    with pytest.raises(NotFound):
        await manager.validate_command_permission_access(999)


@pytest.mark.asyncio
async def test_remote_rejection_propagates(manager_config, fake_client):
    fake_client.reject_writes = True
    manager = _manager(manager_config, fake_client, OWNER_ID)

    with pytest.raises(RemoteRejected) as exc_info:
        await manager.set_command_permissions(PURGE_COMMAND, [])
    assert exc_info.value.details == {'code': 50035}


@pytest.mark.asyncio
async def test_actor_defaults_to_bearer_token_user(manager_config, fake_client):
    fake_client.current_user_id = MANAGER_ID
    manager = DiscordPermissionsManager(manager_config, client=fake_client)

    resources = await manager.get_manageable_resources()

    assert manager.actor_id == MANAGER_ID
    assert [c.name for c in resources.commands] == ["purge", "roles"]
    assert [r.name for r in resources.roles] == ["@everyone", "guild staff", "mod"]
    assert [c.name for c in resources.channels] == ["mod-only"]


@pytest.mark.asyncio
async def test_permission_summary(manager_config, fake_client):
    manager = _manager(manager_config, fake_client, GUILD_STAFF_ID)
    summary = await manager.get_permission_summary()

    assert summary['granted_permissions'] == ["manage_guild"]
    assert summary['is_owner'] is False
    assert summary['is_administrator'] is False
    assert summary['can_manage_overrides'] is False


@pytest.mark.asyncio
async def test_context_manager_closes_client(manager_config, fake_client):
    async with _manager(manager_config, fake_client, OWNER_ID) as manager:
        await manager.get_command_permissions(PURGE_COMMAND)
    assert fake_client.closed
