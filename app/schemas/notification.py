# app/schemas/notification.py
from pydantic import BaseModel
from datetime import date, datetime
from typing import Literal, Optional


class NotificationOut(BaseModel):
    id: int
    notification_type: Optional[str]
    entity_type: str
    entity_id: int
    certificate_type: Optional[str]
    certificate_name: Optional[str]
    expiry_date: Optional[date]
    recipient_employee_id: Optional[int]
    recipient_email: Optional[str]
    status: str
    resolved_at: Optional[datetime]
    employee_response_type: Optional[str]
    employee_response_received_at: Optional[datetime]
    admin_response_required: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class NotifySummaryIn(BaseModel):
    type: Literal["document_upload", "appointment_booking"]
    notification_id: int
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    entity_type: str
    entity_name: str
    certificate_name: str
    details: dict = {}


class SystemActivityOut(BaseModel):
    id: int
    activity_type: str
    notification_id: Optional[int]
    entity_type: Optional[str]
    entity_id: Optional[int]
    entity_name: Optional[str]
    certificate_name: Optional[str]
    recipient_name: Optional[str]
    recipient_email: Optional[str]
    details: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
