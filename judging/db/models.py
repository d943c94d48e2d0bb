"""Database models for the judging certification workflow"""
from datetime import datetime
import uuid

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, Float, Uuid,
    ForeignKey, JSON, CheckConstraint, UniqueConstraint, Index
)
from sqlalchemy.sql import func, text

from judging.core.database import Base

ROLE_VALUES = "('ADMIN', 'ORGANIZER', 'BOARD', 'TALLY_MASTER', 'AUDITOR', 'JUDGE', 'CONTESTANT', 'EMCEE')"
STATUS_VALUES = "('PENDING', 'APPROVED', 'REJECTED')"


class Event(Base):
    """Top-level event containing contests"""
    __tablename__ = "events"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="chk_event_name_not_empty"),
    )


class Contest(Base):
    """Contest within an event"""
    __tablename__ = "contests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="chk_contest_name_not_empty"),
        Index("idx_contests_event_id", "event_id"),
    )


class Category(Base):
    """Judged category within a contest"""
    __tablename__ = "categories"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    contest_id = Column(Uuid, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("length(trim(name)) > 0", name="chk_category_name_not_empty"),
        Index("idx_categories_contest_id", "contest_id"),
    )


class Contestant(Base):
    """Contestant competing in one or more categories"""
    __tablename__ = "contestants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    contestant_number = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Judge(Base):
    """Judge profile linked to an authenticated user"""
    __tablename__ = "judges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String, unique=True, nullable=False)  # Principal id from the auth layer
    name = Column(String, nullable=False)
    is_head_judge = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CategoryContestant(Base):
    """Assignment of a contestant to a category, carrying applied deductions"""
    __tablename__ = "category_contestants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    contestant_id = Column(Uuid, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=False)
    deduction_points = Column(Float, nullable=False, default=0.0)

    __table_args__ = (
        CheckConstraint("deduction_points >= 0", name="chk_deduction_points_non_negative"),
        UniqueConstraint("category_id", "contestant_id", name="uniq_category_contestant"),
        Index("idx_category_contestants_category_id", "category_id"),
    )


class CategoryJudge(Base):
    """Assignment of a judge to a category"""
    __tablename__ = "category_judges"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    judge_id = Column(Uuid, ForeignKey("judges.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("category_id", "judge_id", name="uniq_category_judge"),
        Index("idx_category_judges_category_id", "category_id"),
    )


class Score(Base):
    """Score entered by a judge for a contestant in a category"""
    __tablename__ = "scores"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    contestant_id = Column(Uuid, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=False)
    judge_id = Column(Uuid, ForeignKey("judges.id", ondelete="CASCADE"), nullable=False)
    criterion = Column(String, nullable=False, default="overall")
    value = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("value >= 0", name="chk_score_value_non_negative"),
        UniqueConstraint("category_id", "contestant_id", "judge_id", "criterion", name="uniq_score"),
        Index("idx_scores_judge_category", "judge_id", "category_id"),
    )


class Certification(Base):
    """
    One role's sign-off on one scope.

    Rows are only ever inserted or deleted. The unique constraint on
    (scope_type, scope_key, role) is what makes concurrent duplicate
    certifications impossible; application checks are a fast path only.
    The path columns (event/contest/category/judge/contestant) are copied
    from the resolved scope so cascade resets are plain deletes.
    """
    __tablename__ = "certifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    scope_type = Column(String(32), nullable=False)
    scope_key = Column(String(160), nullable=False)
    role = Column(String(20), nullable=False)  # Certified slot
    actor_user_id = Column(String, nullable=False)
    actor_role = Column(String(20), nullable=False)  # Role the actor held (differs from slot on overrides)
    comment = Column(Text, nullable=True)
    certified_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    event_id = Column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), nullable=True)
    contest_id = Column(Uuid, ForeignKey("contests.id", ondelete="CASCADE"), nullable=True)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=True)
    judge_id = Column(Uuid, ForeignKey("judges.id", ondelete="CASCADE"), nullable=True)
    contestant_id = Column(Uuid, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "scope_type IN ('JUDGE_CONTESTANT', 'CONTESTANT_CATEGORY', 'CATEGORY', 'CONTEST', 'EVENT')",
            name="chk_certification_scope_type_valid",
        ),
        CheckConstraint(f"role IN {ROLE_VALUES}", name="chk_certification_role_valid"),
        CheckConstraint(f"actor_role IN {ROLE_VALUES}", name="chk_certification_actor_role_valid"),
        UniqueConstraint("scope_type", "scope_key", "role", name="uniq_certification_scope_role"),
        Index("idx_certifications_event_id", "event_id"),
        Index("idx_certifications_contest_id", "contest_id"),
        Index("idx_certifications_category_id", "category_id"),
        Index("idx_certifications_judge_category", "judge_id", "category_id"),
    )


class DeductionRequest(Base):
    """Proposed point deduction awaiting multi-role approval"""
    __tablename__ = "deduction_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    contestant_id = Column(Uuid, ForeignKey("contestants.id", ondelete="CASCADE"), nullable=False)
    requested_by = Column(String, nullable=False)
    requester_role = Column(String(20), nullable=False)
    points = Column(Float, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="PENDING")
    rejection_reason = Column(Text, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    applied_at = Column(DateTime(timezone=True), nullable=True)
    applied_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("points > 0", name="chk_deduction_points_positive"),
        CheckConstraint("length(trim(reason)) > 0", name="chk_deduction_reason_not_empty"),
        CheckConstraint(f"status IN {STATUS_VALUES}", name="chk_deduction_status_valid"),
        CheckConstraint("applied_at IS NULL OR status = 'APPROVED'", name="chk_deduction_applied_only_when_approved"),
        Index("idx_deduction_requests_status", "status"),
        Index("idx_deduction_requests_category", "category_id", "contestant_id"),
    )


class DeductionApproval(Base):
    """One approver slot's decision on a deduction request"""
    __tablename__ = "deduction_approvals"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id = Column(Uuid, ForeignKey("deduction_requests.id", ondelete="CASCADE"), nullable=False)
    approver_user_id = Column(String, nullable=False)
    approver_role = Column(String(20), nullable=False)  # Approver slot after aliasing
    decision = Column(String(20), nullable=False)
    notes = Column(Text, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("decision IN ('APPROVED', 'REJECTED')", name="chk_deduction_decision_valid"),
        UniqueConstraint("request_id", "approver_role", name="uniq_deduction_approval_role"),
        Index("idx_deduction_approvals_request_id", "request_id"),
    )


class UncertificationRequest(Base):
    """A judge's request to revoke their certifications in a category"""
    __tablename__ = "uncertification_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    judge_id = Column(Uuid, ForeignKey("judges.id", ondelete="CASCADE"), nullable=False)
    category_id = Column(Uuid, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    reason = Column(Text, nullable=False)
    requested_by = Column(String, nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    status = Column(String(20), nullable=False, default="PENDING")
    rejection_reason = Column(Text, nullable=True)
    rejected_by = Column(String, nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    executed_by = Column(String, nullable=True)
    executed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("length(trim(reason)) > 0", name="chk_uncertification_reason_not_empty"),
        CheckConstraint(f"status IN {STATUS_VALUES}", name="chk_uncertification_status_valid"),
        Index("idx_uncertification_requests_status", "status"),
        Index("idx_uncertification_requests_judge", "judge_id", "category_id"),
        # At most one open request per judge and category
        Index(
            "uniq_uncertification_pending",
            "judge_id",
            "category_id",
            unique=True,
            postgresql_where=text("status = 'PENDING'"),
            sqlite_where=text("status = 'PENDING'"),
        ),
    )


class UncertificationSignature(Base):
    """Co-signature of one required role on an uncertification request"""
    __tablename__ = "uncertification_signatures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    request_id = Column(Uuid, ForeignKey("uncertification_requests.id", ondelete="CASCADE"), nullable=False)
    signer_user_id = Column(String, nullable=False)
    signer_role = Column(String(20), nullable=False)
    signed_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(f"signer_role IN {ROLE_VALUES}", name="chk_signature_role_valid"),
        UniqueConstraint("request_id", "signer_role", name="uniq_uncertification_signature_role"),
        Index("idx_uncertification_signatures_request_id", "request_id"),
    )


class SystemEvent(Base):
    """Audit trail for every workflow transition"""
    __tablename__ = "system_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_type = Column(Text, nullable=False)
    entity_type = Column(Text, nullable=False)
    entity_id = Column(String, nullable=True)
    actor_user_id = Column(String, nullable=True)
    payload = Column(JSON, default=lambda: {})
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("length(trim(event_type)) > 0", name="chk_event_type_not_empty"),
        CheckConstraint("length(trim(entity_type)) > 0", name="chk_entity_type_not_empty"),
        Index("idx_system_events_entity", "entity_type", "entity_id"),
        Index("idx_system_events_created_at", "created_at"),
        Index("idx_system_events_type", "event_type"),
    )
