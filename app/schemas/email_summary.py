# app/schemas/email_summary.py
from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional


class EmailSummaryOut(BaseModel):
    id: int
    sender_name: Optional[str]
    email_subject: Optional[str]
    summary: Optional[str]
    contextual_notes: Optional[str]
    received_at: Optional[datetime]
    status: str
    reviewed_by: Optional[int]
    reviewed_at: Optional[datetime]
    action_taken: Optional[bool]
    action_notes: Optional[str]

    class Config:
        from_attributes = True


class AcknowledgeIn(BaseModel):
    status: Literal["reviewed", "actioned"] = "reviewed"
    action_notes: Optional[str] = None
