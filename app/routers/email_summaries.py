# app/routers/email_summaries.py
"""Summaries of inbound emails awaiting review."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_acting_user_id, get_or_404
from app.models.email_summary import EmailSummary
from app.schemas.email_summary import AcknowledgeIn, EmailSummaryOut
from app.services.audit_service import log_audit

router = APIRouter()


@router.get("/email-summaries", response_model=list[EmailSummaryOut], summary="Email summaries, newest first")
def list_email_summaries(
    search: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    q = db.query(EmailSummary)
    if status:
        q = q.filter(EmailSummary.status == status)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(EmailSummary.sender_name.ilike(pattern),
                         EmailSummary.email_subject.ilike(pattern),
                         EmailSummary.summary.ilike(pattern)))
    return q.order_by(EmailSummary.received_at.desc()).limit(min(limit, 100)).all()


@router.post("/email-summaries/{summary_id}/acknowledge", response_model=EmailSummaryOut,
             summary="Mark a summary reviewed or actioned")
def acknowledge(summary_id: int, body: AcknowledgeIn, db: Session = Depends(get_db),
                user_id: Optional[int] = Depends(get_acting_user_id)):
    summary = get_or_404(db, EmailSummary, summary_id, "Email summary")
    summary.status = body.status
    summary.reviewed_by = user_id
    summary.reviewed_at = datetime.utcnow()
    summary.action_taken = body.status == "actioned"
    summary.action_notes = body.action_notes or None
    log_audit(db, "email_summaries", summary.id, "UPDATE", user_id)
    db.commit()
    db.refresh(summary)
    return summary
