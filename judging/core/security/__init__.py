"""Security modules: route-level role permissions"""
from judging.core.security.rbac import (
    Operation,
    PERMISSIONS,
    has_permission,
    get_permitted_roles,
    require_permission,
    ensure_permitted,
)

__all__ = [
    "Operation",
    "PERMISSIONS",
    "has_permission",
    "get_permitted_roles",
    "require_permission",
    "ensure_permitted",
]
