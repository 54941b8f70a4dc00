# app/routers/call_logs.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import apply_changes, get_acting_user_id, get_or_404
from app.models.call_log import CallLog
from app.schemas.call_log import CallLogCreate, CallLogOut, CallLogUpdate
from app.services.audit_service import log_audit

router = APIRouter()


@router.get("/call-logs", response_model=list[CallLogOut], summary="Call log, newest first")
def list_call_logs(
    status: Optional[str] = None,
    priority: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    q = db.query(CallLog)
    if status:
        q = q.filter(CallLog.status == status)
    if priority:
        q = q.filter(CallLog.priority == priority)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(CallLog.caller_name.ilike(pattern),
                         CallLog.subject.ilike(pattern),
                         CallLog.notes.ilike(pattern)))
    return q.order_by(CallLog.call_date.desc()).limit(limit).all()


@router.post("/call-logs", response_model=CallLogOut, status_code=201)
def create_call_log(body: CallLogCreate, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    data = body.model_dump()
    data["call_date"] = data["call_date"] or datetime.utcnow()
    call = CallLog(**data)
    db.add(call)
    db.flush()
    log_audit(db, "call_logs", call.id, "CREATE", user_id)
    db.commit()
    db.refresh(call)
    return call


@router.get("/call-logs/{call_id}", response_model=CallLogOut)
def get_call_log(call_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, CallLog, call_id, "Call log")


@router.put("/call-logs/{call_id}", response_model=CallLogOut)
def update_call_log(call_id: int, body: CallLogUpdate, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    call = get_or_404(db, CallLog, call_id, "Call log")
    apply_changes(call, body)
    log_audit(db, "call_logs", call.id, "UPDATE", user_id)
    db.commit()
    db.refresh(call)
    return call


@router.delete("/call-logs/{call_id}")
def delete_call_log(call_id: int, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(get_or_404(db, CallLog, call_id, "Call log"))
    log_audit(db, "call_logs", call_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "id": call_id}
