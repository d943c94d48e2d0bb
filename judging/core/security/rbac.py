"""Role-Based Access Control (RBAC): route-level permission table"""
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Tuple

from fastapi import Depends

from judging.core.auth import Principal, get_current_principal
from judging.db.enums import Role, ScopeKind
from judging.exceptions import ForbiddenError
from judging.workflow.error_codes import ErrorCodeDictionary


class Operation(str, Enum):
    """Operations exposed over HTTP"""
    VIEW_PROGRESS = "VIEW_PROGRESS"
    CERTIFY = "CERTIFY"
    REQUEST_DEDUCTION = "REQUEST_DEDUCTION"
    DECIDE_DEDUCTION = "DECIDE_DEDUCTION"
    APPLY_DEDUCTION = "APPLY_DEDUCTION"
    VIEW_DEDUCTIONS = "VIEW_DEDUCTIONS"
    REQUEST_UNCERTIFICATION = "REQUEST_UNCERTIFICATION"
    SIGN_UNCERTIFICATION = "SIGN_UNCERTIFICATION"
    EXECUTE_UNCERTIFICATION = "EXECUTE_UNCERTIFICATION"
    REJECT_UNCERTIFICATION = "REJECT_UNCERTIFICATION"
    VIEW_UNCERTIFICATIONS = "VIEW_UNCERTIFICATIONS"
    RESET_CERTIFICATIONS = "RESET_CERTIFICATIONS"


def _roles(*roles: Role) -> FrozenSet[Role]:
    return frozenset(roles)


_CERTIFIERS = _roles(Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.ORGANIZER)
_UNCERT_DECIDERS = _roles(Role.ORGANIZER, Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD)

# (operation, scope kind or None) -> permitted roles; ADMIN is always permitted.
# A None scope entry applies to every scope kind without its own entry.
PERMISSIONS: Dict[Tuple[Operation, Optional[ScopeKind]], FrozenSet[Role]] = {
    (Operation.VIEW_PROGRESS, None): _roles(
        Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.JUDGE, Role.ORGANIZER
    ),
    (Operation.CERTIFY, ScopeKind.JUDGE_CONTESTANT): _roles(Role.JUDGE, Role.TALLY_MASTER, Role.AUDITOR),
    (Operation.CERTIFY, ScopeKind.CONTESTANT_CATEGORY): _roles(Role.TALLY_MASTER, Role.AUDITOR),
    (Operation.CERTIFY, ScopeKind.CATEGORY): _CERTIFIERS,
    (Operation.CERTIFY, ScopeKind.CONTEST): _CERTIFIERS,
    (Operation.CERTIFY, ScopeKind.EVENT): _roles(Role.BOARD, Role.ORGANIZER),
    (Operation.REQUEST_DEDUCTION, None): _roles(Role.JUDGE, Role.ORGANIZER, Role.BOARD),
    (Operation.DECIDE_DEDUCTION, None): _roles(
        Role.JUDGE, Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.ORGANIZER
    ),
    (Operation.APPLY_DEDUCTION, None): _roles(Role.TALLY_MASTER, Role.BOARD, Role.ORGANIZER),
    (Operation.VIEW_DEDUCTIONS, None): _roles(
        Role.JUDGE, Role.TALLY_MASTER, Role.AUDITOR, Role.BOARD, Role.ORGANIZER
    ),
    (Operation.REQUEST_UNCERTIFICATION, None): _roles(Role.JUDGE),
    (Operation.SIGN_UNCERTIFICATION, None): _UNCERT_DECIDERS,
    (Operation.EXECUTE_UNCERTIFICATION, None): _UNCERT_DECIDERS,
    (Operation.REJECT_UNCERTIFICATION, None): _UNCERT_DECIDERS,
    (Operation.VIEW_UNCERTIFICATIONS, None): _UNCERT_DECIDERS,
    (Operation.RESET_CERTIFICATIONS, None): _roles(Role.ORGANIZER, Role.BOARD),
}


def get_permitted_roles(operation: Operation, scope_kind: Optional[ScopeKind] = None) -> FrozenSet[Role]:
    """
    Roles permitted to perform an operation on a scope kind.

    Args:
        operation: Operation being attempted
        scope_kind: Scope kind, for operations that differ per kind

    Returns:
        Permitted roles, always including ADMIN
    """
    roles = PERMISSIONS.get((operation, scope_kind))
    if roles is None:
        roles = PERMISSIONS.get((operation, None), frozenset())
    return roles | {Role.ADMIN}


def has_permission(role: Role, operation: Operation, scope_kind: Optional[ScopeKind] = None) -> bool:
    """Check if a role may perform an operation"""
    return role in get_permitted_roles(operation, scope_kind)


def require_permission(
    operation: Operation,
    scope_kind: Optional[ScopeKind] = None,
) -> Callable[..., Principal]:
    """
    FastAPI dependency factory enforcing the permission table.

    Example:
        @router.post("/deductions/request")
        async def create(principal: Principal = Depends(require_permission(Operation.REQUEST_DEDUCTION))):
            ...
    """
    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        return ensure_permitted(principal, operation, scope_kind)

    return dependency


def ensure_permitted(
    principal: Principal,
    operation: Operation,
    scope_kind: Optional[ScopeKind] = None,
) -> Principal:
    """
    Check the permission table for a scope kind only known after parsing the request.

    Raises:
        ForbiddenError: If the principal's role is not permitted
    """
    if not has_permission(principal.role, operation, scope_kind):
        raise ForbiddenError(
            ErrorCodeDictionary.AUTH_001,
            context={
                "operation": operation.value,
                "role": principal.role.value,
                "scope_kind": scope_kind.value if scope_kind else None,
            },
        )
    return principal
