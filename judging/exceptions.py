"""Exceptions raised at the HTTP boundary for failed workflow results"""
from typing import Optional, Dict, Any

from judging.workflow.error_codes import ErrorCode, ErrorKind


class WorkflowError(Exception):
    """Base exception for workflow errors surfaced to API clients"""

    def __init__(
        self,
        error_code: ErrorCode,
        entity_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.entity_id = entity_id
        self.context = context or {}
        super().__init__(error_code.message)

    @property
    def status_code(self) -> int:
        return self.error_code.kind.http_status

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        return {
            "code": self.error_code.code,
            "message": self.error_code.message,
            "kind": self.error_code.kind.value,
            "remediation_steps": self.error_code.remediation_steps,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "context": self.context,
        }

    @classmethod
    def from_code(
        cls,
        error_code: ErrorCode,
        entity_id: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> "WorkflowError":
        """Build the exception subclass matching the error's kind"""
        exc_class = _KIND_EXCEPTIONS.get(error_code.kind, WorkflowError)
        return exc_class(error_code, entity_id=entity_id, context=context)


class ForbiddenError(WorkflowError):
    """Role not permitted for the requested transition"""
    pass


class NotFoundError(WorkflowError):
    """Scope or request does not exist"""
    pass


class ConflictError(WorkflowError):
    """Duplicate transition, wrong status, or quorum not met"""
    pass


class ValidationError(WorkflowError):
    """Malformed input"""
    pass


_KIND_EXCEPTIONS = {
    ErrorKind.FORBIDDEN: ForbiddenError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.VALIDATION: ValidationError,
}
