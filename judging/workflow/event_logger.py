"""Event logging for the workflow engine - audit trail for every transition."""
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from judging.db.models import SystemEvent


class EventLogger:
    """
    Records workflow transitions as SystemEvent rows.

    Events are added to the caller's session and commit or roll back with
    the transition they describe; the logger never commits on its own.
    """

    @staticmethod
    def log_event(
        db: AsyncSession,
        event_type: str,
        entity_type: str,
        entity_id: Optional[Any],
        actor_user_id: Optional[str],
        payload: Optional[Dict[str, Any]] = None,
    ) -> SystemEvent:
        """
        Stage an audit event in the current transaction.

        Args:
            db: Database session
            event_type: e.g. "certification_created"
            entity_type: Table/entity the event refers to
            entity_id: Entity identifier
            actor_user_id: Principal who triggered the transition
            payload: Extra details, must be JSON serializable
        """
        event = SystemEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            actor_user_id=actor_user_id,
            payload={
                **(payload or {}),
                "timestamp": datetime.utcnow().isoformat(),
            },
        )
        db.add(event)
        return event

    @staticmethod
    def log_certification(
        db: AsyncSession,
        certification_id: Any,
        actor_user_id: str,
        payload: Dict[str, Any],
    ) -> SystemEvent:
        return EventLogger.log_event(
            db, "certification_created", "certifications", certification_id, actor_user_id, payload
        )

    @staticmethod
    def log_reset(
        db: AsyncSession,
        actor_user_id: str,
        payload: Dict[str, Any],
    ) -> SystemEvent:
        return EventLogger.log_event(
            db, "certifications_reset", "certifications", None, actor_user_id, payload
        )

    @staticmethod
    def log_deduction(
        db: AsyncSession,
        event_type: str,
        request_id: Any,
        actor_user_id: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> SystemEvent:
        return EventLogger.log_event(
            db, event_type, "deduction_requests", request_id, actor_user_id, payload
        )

    @staticmethod
    def log_uncertification(
        db: AsyncSession,
        event_type: str,
        request_id: Any,
        actor_user_id: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> SystemEvent:
        return EventLogger.log_event(
            db, event_type, "uncertification_requests", request_id, actor_user_id, payload
        )
