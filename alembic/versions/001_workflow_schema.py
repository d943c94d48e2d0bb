"""Judging workflow schema: scope hierarchy, certifications, deductions, uncertification

Revision ID: 001_workflow_schema
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_workflow_schema'
down_revision = None
branch_labels = None
depends_on = None

ROLE_VALUES = "('ADMIN', 'ORGANIZER', 'BOARD', 'TALLY_MASTER', 'AUDITOR', 'JUDGE', 'CONTESTANT', 'EMCEE')"
STATUS_VALUES = "('PENDING', 'APPROVED', 'REJECTED')"


def _id() -> sa.Column:
    return sa.Column('id', sa.Uuid(), primary_key=True)


def _fk(name: str, target: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey(f'{target}.id', ondelete='CASCADE'), nullable=nullable)


def upgrade() -> None:
    # Scope hierarchy
    op.create_table(
        'events',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('length(trim(name)) > 0', name='chk_event_name_not_empty'),
    )

    op.create_table(
        'contests',
        _id(),
        _fk('event_id', 'events'),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('length(trim(name)) > 0', name='chk_contest_name_not_empty'),
    )
    op.create_index('idx_contests_event_id', 'contests', ['event_id'])

    op.create_table(
        'categories',
        _id(),
        _fk('contest_id', 'contests'),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('length(trim(name)) > 0', name='chk_category_name_not_empty'),
    )
    op.create_index('idx_categories_contest_id', 'categories', ['contest_id'])

    op.create_table(
        'contestants',
        _id(),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('contestant_number', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'judges',
        _id(),
        sa.Column('user_id', sa.String(), unique=True, nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('is_head_judge', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'category_contestants',
        _id(),
        _fk('category_id', 'categories'),
        _fk('contestant_id', 'contestants'),
        sa.Column('deduction_points', sa.Float(), nullable=False, server_default='0'),
        sa.CheckConstraint('deduction_points >= 0', name='chk_deduction_points_non_negative'),
        sa.UniqueConstraint('category_id', 'contestant_id', name='uniq_category_contestant'),
    )
    op.create_index('idx_category_contestants_category_id', 'category_contestants', ['category_id'])

    op.create_table(
        'category_judges',
        _id(),
        _fk('category_id', 'categories'),
        _fk('judge_id', 'judges'),
        sa.UniqueConstraint('category_id', 'judge_id', name='uniq_category_judge'),
    )
    op.create_index('idx_category_judges_category_id', 'category_judges', ['category_id'])

    op.create_table(
        'scores',
        _id(),
        _fk('category_id', 'categories'),
        _fk('contestant_id', 'contestants'),
        _fk('judge_id', 'judges'),
        sa.Column('criterion', sa.String(), nullable=False, server_default='overall'),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('value >= 0', name='chk_score_value_non_negative'),
        sa.UniqueConstraint('category_id', 'contestant_id', 'judge_id', 'criterion', name='uniq_score'),
    )
    op.create_index('idx_scores_judge_category', 'scores', ['judge_id', 'category_id'])

    # Certifications: one row per (scope, slot), enforced by the unique constraint
    op.create_table(
        'certifications',
        _id(),
        sa.Column('scope_type', sa.String(32), nullable=False),
        sa.Column('scope_key', sa.String(160), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('actor_user_id', sa.String(), nullable=False),
        sa.Column('actor_role', sa.String(20), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('certified_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        _fk('event_id', 'events', nullable=True),
        _fk('contest_id', 'contests', nullable=True),
        _fk('category_id', 'categories', nullable=True),
        _fk('judge_id', 'judges', nullable=True),
        _fk('contestant_id', 'contestants', nullable=True),
        sa.CheckConstraint(
            "scope_type IN ('JUDGE_CONTESTANT', 'CONTESTANT_CATEGORY', 'CATEGORY', 'CONTEST', 'EVENT')",
            name='chk_certification_scope_type_valid',
        ),
        sa.CheckConstraint(f'role IN {ROLE_VALUES}', name='chk_certification_role_valid'),
        sa.CheckConstraint(f'actor_role IN {ROLE_VALUES}', name='chk_certification_actor_role_valid'),
        sa.UniqueConstraint('scope_type', 'scope_key', 'role', name='uniq_certification_scope_role'),
    )
    op.create_index('idx_certifications_event_id', 'certifications', ['event_id'])
    op.create_index('idx_certifications_contest_id', 'certifications', ['contest_id'])
    op.create_index('idx_certifications_category_id', 'certifications', ['category_id'])
    op.create_index('idx_certifications_judge_category', 'certifications', ['judge_id', 'category_id'])

    # Deductions
    op.create_table(
        'deduction_requests',
        _id(),
        _fk('category_id', 'categories'),
        _fk('contestant_id', 'contestants'),
        sa.Column('requested_by', sa.String(), nullable=False),
        sa.Column('requester_role', sa.String(20), nullable=False),
        sa.Column('points', sa.Float(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('applied_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('applied_by', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('points > 0', name='chk_deduction_points_positive'),
        sa.CheckConstraint('length(trim(reason)) > 0', name='chk_deduction_reason_not_empty'),
        sa.CheckConstraint(f'status IN {STATUS_VALUES}', name='chk_deduction_status_valid'),
        sa.CheckConstraint(
            "applied_at IS NULL OR status = 'APPROVED'",
            name='chk_deduction_applied_only_when_approved',
        ),
    )
    op.create_index('idx_deduction_requests_status', 'deduction_requests', ['status'])
    op.create_index('idx_deduction_requests_category', 'deduction_requests', ['category_id', 'contestant_id'])

    op.create_table(
        'deduction_approvals',
        _id(),
        _fk('request_id', 'deduction_requests'),
        sa.Column('approver_user_id', sa.String(), nullable=False),
        sa.Column('approver_role', sa.String(20), nullable=False),
        sa.Column('decision', sa.String(20), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('decided_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("decision IN ('APPROVED', 'REJECTED')", name='chk_deduction_decision_valid'),
        sa.UniqueConstraint('request_id', 'approver_role', name='uniq_deduction_approval_role'),
    )
    op.create_index('idx_deduction_approvals_request_id', 'deduction_approvals', ['request_id'])

    # Uncertification
    op.create_table(
        'uncertification_requests',
        _id(),
        _fk('judge_id', 'judges'),
        _fk('category_id', 'categories'),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('requested_by', sa.String(), nullable=False),
        sa.Column('requested_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejected_by', sa.String(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('executed_by', sa.String(), nullable=True),
        sa.Column('executed_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('length(trim(reason)) > 0', name='chk_uncertification_reason_not_empty'),
        sa.CheckConstraint(f'status IN {STATUS_VALUES}', name='chk_uncertification_status_valid'),
    )
    op.create_index('idx_uncertification_requests_status', 'uncertification_requests', ['status'])
    op.create_index('idx_uncertification_requests_judge', 'uncertification_requests', ['judge_id', 'category_id'])
    op.create_index(
        'uniq_uncertification_pending',
        'uncertification_requests',
        ['judge_id', 'category_id'],
        unique=True,
        postgresql_where=sa.text("status = 'PENDING'"),
        sqlite_where=sa.text("status = 'PENDING'"),
    )

    op.create_table(
        'uncertification_signatures',
        _id(),
        _fk('request_id', 'uncertification_requests'),
        sa.Column('signer_user_id', sa.String(), nullable=False),
        sa.Column('signer_role', sa.String(20), nullable=False),
        sa.Column('signed_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(f'signer_role IN {ROLE_VALUES}', name='chk_signature_role_valid'),
        sa.UniqueConstraint('request_id', 'signer_role', name='uniq_uncertification_signature_role'),
    )
    op.create_index('idx_uncertification_signatures_request_id', 'uncertification_signatures', ['request_id'])

    # Audit trail
    op.create_table(
        'system_events',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('event_type', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.Text(), nullable=False),
        sa.Column('entity_id', sa.String(), nullable=True),
        sa.Column('actor_user_id', sa.String(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('length(trim(event_type)) > 0', name='chk_event_type_not_empty'),
        sa.CheckConstraint('length(trim(entity_type)) > 0', name='chk_entity_type_not_empty'),
    )
    op.create_index('idx_system_events_entity', 'system_events', ['entity_type', 'entity_id'])
    op.create_index('idx_system_events_created_at', 'system_events', ['created_at'])
    op.create_index('idx_system_events_type', 'system_events', ['event_type'])


def downgrade() -> None:
    # Drop tables in reverse order
    op.drop_table('system_events')
    op.drop_table('uncertification_signatures')
    op.drop_table('uncertification_requests')
    op.drop_table('deduction_approvals')
    op.drop_table('deduction_requests')
    op.drop_table('certifications')
    op.drop_table('scores')
    op.drop_table('category_judges')
    op.drop_table('category_contestants')
    op.drop_table('judges')
    op.drop_table('contestants')
    op.drop_table('categories')
    op.drop_table('contests')
    op.drop_table('events')
