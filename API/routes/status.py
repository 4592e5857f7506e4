# API/routes/status.py
# ============================================================================
# Status and info routes
# ============================================================================

from flask import Blueprint, jsonify
from datetime import datetime

status_bp = Blueprint('status', __name__)


@status_bp.route('/status', methods=['GET'])
def api_status():
    """Get API status"""
    return jsonify({
        'status': 'operational',
        'version': '1.0.0',
        'timestamp': datetime.now().isoformat(),
        'endpoints': {
            'permissions': '/api/v1/guild/{guild_id}/permissions',
        }
    }), 200
