"""Result type returned by every workflow operation."""
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from judging.workflow.error_codes import ErrorCode

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Outcome of a workflow operation: either a value or an error code.

    Workflow services never raise for domain failures; callers inspect
    ``ok`` or call ``unwrap()`` at the HTTP boundary.

    Attributes:
        value: Payload on success
        error: ErrorCode on failure
        entity_id: Entity the failure refers to, if any
        context: Extra details for the caller (e.g., missing roles)
    """

    value: Optional[T] = None
    error: Optional[ErrorCode] = None
    entity_id: Optional[Any] = None
    context: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        error: ErrorCode,
        entity_id: Optional[Any] = None,
        **context: Any,
    ) -> "Result[T]":
        return cls(error=error, entity_id=entity_id, context=context)

    def unwrap(self) -> T:
        """
        Return the value or raise the matching WorkflowError.

        Raises:
            WorkflowError: Subclass chosen by the error's kind
        """
        if self.error is not None:
            from judging.exceptions import WorkflowError

            raise WorkflowError.from_code(
                self.error, entity_id=self.entity_id, context=self.context
            )
        return self.value
