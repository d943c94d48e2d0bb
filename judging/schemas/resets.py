"""Pydantic schemas for bulk certification reset"""
from pydantic import BaseModel
from typing import Optional
from uuid import UUID


class ResetRequest(BaseModel):
    """
    Request model for a bulk certification reset.

    Exactly one of event_id, contest_id, category_id or reset_all selects
    what is reset; anything else is rejected with RESET_002.
    """
    event_id: Optional[UUID] = None
    contest_id: Optional[UUID] = None
    category_id: Optional[UUID] = None
    reset_all: bool = False
