# API/routes/__init__.py
# ============================================================================
# Import and expose all route blueprints
# ============================================================================

from .status import status_bp
from .permissions import permissions_bp

__all__ = ['status_bp', 'permissions_bp']
