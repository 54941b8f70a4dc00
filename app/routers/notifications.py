# app/routers/notifications.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_acting_user_id, get_or_404
from app.models.notification import Notification, SystemActivity
from app.schemas.notification import NotificationOut, SystemActivityOut
from app.services.audit_service import log_audit
from app.services.notification_service import dismiss_notification, resolve_notification

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut], summary="Notifications, newest first")
def list_notifications(
    status: Optional[str] = None,
    admin_response_required: Optional[bool] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    q = db.query(Notification)
    if status:
        q = q.filter(Notification.status == status)
    if admin_response_required is not None:
        q = q.filter(Notification.admin_response_required == admin_response_required)
    return q.order_by(Notification.created_at.desc()).limit(limit).all()


@router.post("/notifications/{notification_id}/resolve", response_model=NotificationOut)
def resolve(notification_id: int, db: Session = Depends(get_db),
            user_id: Optional[int] = Depends(get_acting_user_id)):
    notification = resolve_notification(db, get_or_404(db, Notification, notification_id, "Notification"))
    log_audit(db, "notifications", notification.id, "UPDATE", user_id)
    db.commit()
    db.refresh(notification)
    return notification


@router.post("/notifications/{notification_id}/dismiss", response_model=NotificationOut)
def dismiss(notification_id: int, db: Session = Depends(get_db),
            user_id: Optional[int] = Depends(get_acting_user_id)):
    notification = dismiss_notification(db, get_or_404(db, Notification, notification_id, "Notification"))
    log_audit(db, "notifications", notification.id, "UPDATE", user_id)
    db.commit()
    db.refresh(notification)
    return notification


@router.get("/activities", response_model=list[SystemActivityOut], summary="System activity feed")
def list_activities(activity_type: Optional[str] = None, limit: int = 50, db: Session = Depends(get_db)):
    q = db.query(SystemActivity)
    if activity_type:
        q = q.filter(SystemActivity.activity_type == activity_type)
    return q.order_by(SystemActivity.created_at.desc()).limit(limit).all()
