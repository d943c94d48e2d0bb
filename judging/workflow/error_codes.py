"""Error code dictionary - standardized workflow errors with remediation steps."""
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional

from enum import Enum


class ErrorKind(str, Enum):
    """Error taxonomy shared by every workflow operation."""

    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    INTERNAL = "internal"

    @property
    def http_status(self) -> int:
        """HTTP status code the API layer uses for this kind."""
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.VALIDATION: 422,
    ErrorKind.INTERNAL: 500,
}


@dataclass(frozen=True)
class ErrorCode:
    """
    Standardized error code with remediation.

    Attributes:
        code: Unique error code identifier (e.g., CERT_003)
        message: Human-readable error message
        kind: Taxonomy bucket, decides the HTTP status
        remediation_steps: List of steps to resolve the error
    """

    code: str
    message: str
    kind: ErrorKind
    remediation_steps: List[str]

    def to_dict(self) -> Dict[str, object]:
        """Convert error code to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "kind": self.kind.value,
            "remediation_steps": self.remediation_steps,
        }


class ErrorCodeDictionary:
    """
    Catalog of every error the workflow engine can report.

    Codes are grouped by prefix: AUTH, SCOPE, CERT, DEDUCT, UNCERT, RESET
    and SYSTEM.
    """

    # Authorization (AUTH_*)
    AUTH_001: ClassVar[ErrorCode] = ErrorCode(
        code="AUTH_001",
        message="Your role is not permitted to perform this operation",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=[
            "Check the roles permitted for this endpoint",
            "Ask an administrator to perform the operation",
        ],
    )

    # Scope resolution (SCOPE_*)
    SCOPE_001: ClassVar[ErrorCode] = ErrorCode(
        code="SCOPE_001",
        message="Scope entity not found",
        kind=ErrorKind.NOT_FOUND,
        remediation_steps=[
            "Verify the event, contest, category, judge or contestant id",
        ],
    )

    SCOPE_002: ClassVar[ErrorCode] = ErrorCode(
        code="SCOPE_002",
        message="Judge or contestant is not assigned to this category",
        kind=ErrorKind.NOT_FOUND,
        remediation_steps=[
            "Check the category's judge and contestant assignments",
        ],
    )

    SCOPE_003: ClassVar[ErrorCode] = ErrorCode(
        code="SCOPE_003",
        message="Scope is malformed or not supported for this operation",
        kind=ErrorKind.VALIDATION,
        remediation_steps=[
            "Provide every id the scope kind requires",
            "Use a scope kind accepted by the operation",
        ],
    )

    # Certification (CERT_*)
    CERT_001: ClassVar[ErrorCode] = ErrorCode(
        code="CERT_001",
        message="Role is not permitted to certify this scope",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=[
            "Check the certifying roles allowed for the scope kind",
        ],
    )

    CERT_002: ClassVar[ErrorCode] = ErrorCode(
        code="CERT_002",
        message="Only the assigned judge may certify this judge-contestant scope",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=[
            "Sign in as the judge assigned to the category",
            "Ask a tally master, auditor or admin to override",
        ],
    )

    CERT_003: ClassVar[ErrorCode] = ErrorCode(
        code="CERT_003",
        message="Scope already certified for this role",
        kind=ErrorKind.CONFLICT,
        remediation_steps=[
            "No further action is needed",
            "Reset or uncertify the scope before certifying again",
        ],
    )

    CERT_004: ClassVar[ErrorCode] = ErrorCode(
        code="CERT_004",
        message="Earlier sign-offs on this scope are not complete",
        kind=ErrorKind.CONFLICT,
        remediation_steps=[
            "Sign-offs follow judge, tally master, auditor, board, organizer",
            "Wait for the missing roles to certify first",
        ],
    )

    CERT_005: ClassVar[ErrorCode] = ErrorCode(
        code="CERT_005",
        message="Lower-level certifications beneath this scope are incomplete",
        kind=ErrorKind.CONFLICT,
        remediation_steps=[
            "Check certification progress for the scope",
            "Complete all judge and contestant certifications first",
        ],
    )

    # Deductions (DEDUCT_*)
    DEDUCT_001: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_001",
        message="Role is not permitted to request deductions",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Deductions are requested by judges, organizers, board or admin"],
    )

    DEDUCT_002: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_002",
        message="Deduction amount must be greater than 0",
        kind=ErrorKind.VALIDATION,
        remediation_steps=["Provide a positive number of points"],
    )

    DEDUCT_003: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_003",
        message="A reason is required",
        kind=ErrorKind.VALIDATION,
        remediation_steps=["Provide a non-empty reason"],
    )

    DEDUCT_004: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_004",
        message="Deduction request not found",
        kind=ErrorKind.NOT_FOUND,
        remediation_steps=["Verify the deduction request id"],
    )

    DEDUCT_005: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_005",
        message="Deduction request is not pending",
        kind=ErrorKind.CONFLICT,
        remediation_steps=["Only pending requests accept decisions"],
    )

    DEDUCT_006: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_006",
        message="Role is not a required approver for deductions",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Check the configured deduction approver roles"],
    )

    DEDUCT_007: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_007",
        message="Only a head judge assigned to the category may decide as judge",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Ask the category's head judge to decide"],
    )

    DEDUCT_008: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_008",
        message="This role has already decided on the deduction request",
        kind=ErrorKind.CONFLICT,
        remediation_steps=["Each approver role decides once"],
    )

    DEDUCT_009: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_009",
        message="Deduction request is not approved",
        kind=ErrorKind.CONFLICT,
        remediation_steps=["Wait until every required role has approved"],
    )

    DEDUCT_010: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_010",
        message="Deduction has already been applied",
        kind=ErrorKind.CONFLICT,
        remediation_steps=["No further action is needed"],
    )

    DEDUCT_011: ClassVar[ErrorCode] = ErrorCode(
        code="DEDUCT_011",
        message="Role is not permitted to apply deductions",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Deductions are applied by tally master, board, organizer or admin"],
    )

    # Uncertification (UNCERT_*)
    UNCERT_001: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_001",
        message="Only judges can request uncertification",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Sign in as the judge whose certification should be revoked"],
    )

    UNCERT_002: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_002",
        message="Judges may only request uncertification for themselves",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Use your own judge id"],
    )

    UNCERT_003: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_003",
        message="A reason is required",
        kind=ErrorKind.VALIDATION,
        remediation_steps=["Provide a non-empty reason"],
    )

    UNCERT_004: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_004",
        message="Uncertification request not found",
        kind=ErrorKind.NOT_FOUND,
        remediation_steps=["Verify the uncertification request id"],
    )

    UNCERT_005: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_005",
        message="Uncertification request is not pending",
        kind=ErrorKind.CONFLICT,
        remediation_steps=["Only pending requests can be signed, executed or rejected"],
    )

    UNCERT_006: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_006",
        message="Role is not a required signer for uncertification",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Check the configured uncertification signer roles"],
    )

    UNCERT_007: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_007",
        message="The requester cannot sign their own uncertification request",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Another user holding the role must sign"],
    )

    UNCERT_008: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_008",
        message="Not all parties have signed",
        kind=ErrorKind.CONFLICT,
        remediation_steps=["Collect signatures from every required role before executing"],
    )

    UNCERT_009: ClassVar[ErrorCode] = ErrorCode(
        code="UNCERT_009",
        message="A pending uncertification request already exists for this judge and category",
        kind=ErrorKind.CONFLICT,
        remediation_steps=["Follow up on the existing request"],
    )

    # Bulk reset (RESET_*)
    RESET_001: ClassVar[ErrorCode] = ErrorCode(
        code="RESET_001",
        message="You do not have permission to reset certifications",
        kind=ErrorKind.FORBIDDEN,
        remediation_steps=["Resets are limited to admin, organizer and board"],
    )

    RESET_002: ClassVar[ErrorCode] = ErrorCode(
        code="RESET_002",
        message="Either eventId, contestId, categoryId, or resetAll must be provided",
        kind=ErrorKind.VALIDATION,
        remediation_steps=["Provide exactly one reset target"],
    )

    # System (SYSTEM_*)
    SYSTEM_001: ClassVar[ErrorCode] = ErrorCode(
        code="SYSTEM_001",
        message="An unexpected error occurred",
        kind=ErrorKind.INTERNAL,
        remediation_steps=["Retry the request", "Contact support if the problem persists"],
    )

    # Error code registry for efficient lookup
    _ERROR_REGISTRY: ClassVar[Dict[str, ErrorCode]] = {}

    @classmethod
    def _build_registry(cls) -> Dict[str, ErrorCode]:
        """Build error code registry from class attributes."""
        if not cls._ERROR_REGISTRY:
            for attr_name in dir(cls):
                if not attr_name.startswith("_"):
                    attr = getattr(cls, attr_name)
                    if isinstance(attr, ErrorCode):
                        cls._ERROR_REGISTRY[attr.code] = attr
        return cls._ERROR_REGISTRY

    @classmethod
    def get_error(cls, code: str) -> Optional[ErrorCode]:
        """
        Get error code by code string.

        Args:
            code: Error code identifier (e.g., "CERT_003")

        Returns:
            ErrorCode if found, None otherwise
        """
        return cls._build_registry().get(code)

    @classmethod
    def get_all_errors(cls) -> List[ErrorCode]:
        """Get all error codes in the dictionary."""
        return list(cls._build_registry().values())

    @classmethod
    def get_errors_by_category(cls, category: str) -> List[ErrorCode]:
        """
        Get errors by category prefix.

        Args:
            category: Category prefix (e.g., 'CERT', 'UNCERT')

        Returns:
            List of ErrorCode instances matching the category
        """
        prefix = category.upper() + "_"
        return [
            error
            for error in cls.get_all_errors()
            if error.code.startswith(prefix)
        ]
