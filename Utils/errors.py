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



import traceback
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================================
# EXCEPTIONS WITH CONTEXT
# ============================================================================

class PermissionsManagerError(Exception):
    """Base exception with detailed context"""
    def __init__(self, message: str, context: Dict[str, Any] = None, cause: Exception = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now()
        self.traceback_str = traceback.format_exc() if cause else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': type(self).__name__,
            'message': self.message,
            'context': self.context,
        }


class ConfigurationError(PermissionsManagerError):
    """Required settings missing or malformed"""
    pass


class NotFound(PermissionsManagerError):
    """A referenced command, member or resource does not exist"""
    pass


class AccessDeniedReason(Enum):
    MISSING_BASE_PERMISSIONS = "missing_base_permissions"
    CANNOT_RUN_COMMAND = "cannot_run_command"


class AccessDenied(PermissionsManagerError):
    """
    Authorization gate failure.

    ``reason`` tells apart an actor lacking the Manage Guild / Manage Roles
    floor from one who cannot run the command being configured.
    """
    def __init__(self, message: str, reason: AccessDeniedReason,
                 missing: Optional[List[str]] = None, context: Dict[str, Any] = None):
        super().__init__(message, context=context)
        self.reason = reason
        self.missing = list(missing or [])

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['reason'] = self.reason.value
        data['missing'] = self.missing
        return data


class UpstreamRequestError(PermissionsManagerError):
    """Discord answered a read with a non-success status"""
    def __init__(self, message: str, status: int, context: Dict[str, Any] = None):
        super().__init__(message, context=context)
        self.status = status


class RemoteRejected(PermissionsManagerError):
    """Discord rejected a command permission write"""
    def __init__(self, message: str, status: int, details: Any = None, context: Dict[str, Any] = None):
        super().__init__(message, context=context)
        self.status = status
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data['status'] = self.status
        data['details'] = self.details
        return data
