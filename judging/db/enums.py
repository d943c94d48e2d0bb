"""Database model enumerations"""
import enum
from typing import Optional


class Role(str, enum.Enum):
    """Principal roles known to the judging workflow"""
    ADMIN = "ADMIN"
    ORGANIZER = "ORGANIZER"
    BOARD = "BOARD"
    TALLY_MASTER = "TALLY_MASTER"
    AUDITOR = "AUDITOR"
    JUDGE = "JUDGE"
    CONTESTANT = "CONTESTANT"
    EMCEE = "EMCEE"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """
        Parse a role string without guessing.

        Args:
            value: Raw role string (case-insensitive)

        Returns:
            Role enum value, or None for unknown/empty input
        """
        if not value:
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class ScopeKind(str, enum.Enum):
    """Levels of the certification scope hierarchy, leaf to root"""
    JUDGE_CONTESTANT = "JUDGE_CONTESTANT"
    CONTESTANT_CATEGORY = "CONTESTANT_CATEGORY"
    CATEGORY = "CATEGORY"
    CONTEST = "CONTEST"
    EVENT = "EVENT"


class RequestStatus(str, enum.Enum):
    """Lifecycle of deduction and uncertification requests"""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Decision(str, enum.Enum):
    """A single approver's decision on a deduction request"""
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
