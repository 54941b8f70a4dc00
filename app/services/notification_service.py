# app/services/notification_service.py
"""
Certificate notifications: admin resolve/dismiss, and the summary recorded
when an employee answers a notification (document upload or appointment).
"""

import json
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.models.notification import Notification, SystemActivity
from app.utils.logger import get_logger

logger = get_logger(__name__)

ACTIVITY_RESPONSE = {
    "document_upload": "document_uploaded",
    "appointment_booking": "appointment_booked",
}


class NotificationNotFound(Exception):
    pass


def get_notification(db: Session, notification_id: int) -> Notification:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification:
        raise NotificationNotFound(notification_id)
    return notification


def record_employee_response(db: Session, notification_id: int, activity_type: str,
                             entity_type: str, entity_name: str, certificate_name: str,
                             recipient_name: Optional[str] = None,
                             recipient_email: Optional[str] = None,
                             details: Optional[dict] = None) -> SystemActivity:
    """
    Log a SystemActivity for the response and flag the notification for
    admin review. The notification stays 'sent' until an admin resolves it.
    """
    if activity_type not in ACTIVITY_RESPONSE:
        raise ValueError(f"Unknown activity type '{activity_type}'")
    notification = get_notification(db, notification_id)
    details_json = json.dumps(details or {})

    activity = SystemActivity(
        activity_type=activity_type,
        notification_id=notification.id,
        entity_type=entity_type,
        entity_id=notification.entity_id,
        entity_name=entity_name,
        certificate_name=certificate_name,
        recipient_name=recipient_name,
        recipient_email=recipient_email or notification.recipient_email,
        details=details_json,
    )
    db.add(activity)

    notification.employee_response_type = ACTIVITY_RESPONSE[activity_type]
    notification.employee_response_details = details_json
    notification.employee_response_received_at = datetime.utcnow()
    notification.admin_response_required = True
    notification.status = "sent"

    logger.info(f"[NOTIFY] {activity_type} recorded for notification #{notification.id}")
    return activity


def resolve_notification(db: Session, notification: Notification) -> Notification:
    notification.status = "resolved"
    notification.resolved_at = datetime.utcnow()
    notification.admin_response_required = False
    return notification


def dismiss_notification(db: Session, notification: Notification) -> Notification:
    notification.status = "dismissed"
    notification.admin_response_required = False
    return notification
