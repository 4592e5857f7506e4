# API/routes/permissions.py
from flask import Blueprint, request, jsonify

from Utils.models import CommandPermissionType
from ..middleware.auth import require_bearer_token
from ..utils.helpers import run_async, get_manager, parse_command_permissions, serialize_permissions

permissions_bp = Blueprint('permissions', __name__)


@permissions_bp.route('/resources', methods=['GET'])
@require_bearer_token
def get_resources(guild_id: int):
    async def fetch():
        async with get_manager(guild_id) as manager:
            return await manager.get_manageable_resources()

    resources = run_async(fetch())
    return jsonify({'guild_id': str(guild_id), **resources.to_dict()}), 200


@permissions_bp.route('/summary', methods=['GET'])
@require_bearer_token
def get_summary(guild_id: int):
    async def fetch():
        async with get_manager(guild_id) as manager:
            return await manager.get_permission_summary()

    summary = run_async(fetch())
    summary['guild_id'] = str(summary['guild_id'])
    summary['user_id'] = str(summary['user_id'])
    return jsonify(summary), 200


@permissions_bp.route('/commands/<int:command_id>', methods=['GET'])
@require_bearer_token
def get_command_permissions(guild_id: int, command_id: int):
    async def fetch():
        async with get_manager(guild_id) as manager:
            return await manager.get_command_permissions(command_id)

    permissions = run_async(fetch())
    return jsonify({'command_id': str(command_id), 'permissions': serialize_permissions(permissions)}), 200


@permissions_bp.route('/commands/<int:command_id>', methods=['POST'])
@require_bearer_token
def add_command_permissions(guild_id: int, command_id: int):
    new_permissions = parse_command_permissions(request.get_json(silent=True))

    async def add():
        async with get_manager(guild_id) as manager:
            return await manager.add_command_permissions(command_id, new_permissions)

    updated = run_async(add())
    return jsonify({'command_id': str(command_id), 'permissions': serialize_permissions(updated)}), 200


@permissions_bp.route('/commands/<int:command_id>', methods=['PUT'])
@require_bearer_token
def set_command_permissions(guild_id: int, command_id: int):
    permissions = parse_command_permissions(request.get_json(silent=True))

    async def replace():
        async with get_manager(guild_id) as manager:
            await manager.set_command_permissions(command_id, permissions)

    run_async(replace())
    return jsonify({'command_id': str(command_id), 'permissions': serialize_permissions(permissions)}), 200


@permissions_bp.route('/commands/<int:command_id>/<int:target_id>', methods=['DELETE'])
@require_bearer_token
def remove_command_permission(guild_id: int, command_id: int, target_id: int):
    raw_type = request.args.get('type')
    if raw_type is None:
        return jsonify({'error': 'Missing type', 'message': 'Query parameter "type" is required', 'code': 'HTTP_400'}), 400
    target_type = CommandPermissionType(int(raw_type))

    async def remove():
        async with get_manager(guild_id) as manager:
            return await manager.remove_command_permission(command_id, target_id, target_type)

    updated = run_async(remove())
    return jsonify({'command_id': str(command_id), 'permissions': serialize_permissions(updated)}), 200


@permissions_bp.route('/commands/<int:command_id>/access', methods=['GET'])
@require_bearer_token
def validate_access(guild_id: int, command_id: int):
    async def validate():
        async with get_manager(guild_id) as manager:
            return await manager.validate_command_permission_access(command_id)

    run_async(validate())
    return jsonify({'command_id': str(command_id), 'allowed': True}), 200
