# app/schemas/call_log.py
from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Optional

from app.utils.validators import clean_phone


class CallLogCreate(BaseModel):
    call_date: Optional[datetime] = None
    caller_name: Optional[str] = None
    caller_phone: Optional[str] = None
    caller_type: str = "Parent"
    call_type: str = "Inquiry"
    related_passenger_id: Optional[int] = None
    related_employee_id: Optional[int] = None
    related_route_id: Optional[int] = None
    subject: str
    notes: Optional[str] = None
    action_required: bool = False
    action_taken: Optional[str] = None
    follow_up_required: bool = False
    follow_up_date: Optional[date] = None
    priority: str = "Medium"
    status: str = "Open"

    @field_validator("caller_phone")
    @classmethod
    def _phone(cls, v):
        return clean_phone(v)


class CallLogUpdate(BaseModel):
    call_date: Optional[datetime] = None
    caller_name: Optional[str] = None
    caller_phone: Optional[str] = None
    caller_type: Optional[str] = None
    call_type: Optional[str] = None
    related_passenger_id: Optional[int] = None
    related_employee_id: Optional[int] = None
    related_route_id: Optional[int] = None
    subject: Optional[str] = None
    notes: Optional[str] = None
    action_required: Optional[bool] = None
    action_taken: Optional[str] = None
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[date] = None
    priority: Optional[str] = None
    status: Optional[str] = None

    @field_validator("caller_phone")
    @classmethod
    def _phone(cls, v):
        return clean_phone(v)


class CallLogOut(BaseModel):
    id: int
    call_date: datetime
    caller_name: Optional[str]
    caller_phone: Optional[str]
    caller_type: Optional[str]
    call_type: Optional[str]
    related_passenger_id: Optional[int]
    related_employee_id: Optional[int]
    related_route_id: Optional[int]
    subject: str
    notes: Optional[str]
    action_required: Optional[bool]
    action_taken: Optional[str]
    follow_up_required: Optional[bool]
    follow_up_date: Optional[date]
    priority: Optional[str]
    status: Optional[str]

    class Config:
        from_attributes = True
