# app/schemas/portal.py
from pydantic import BaseModel
from datetime import date, datetime
from typing import Optional

from app.schemas.document import DocumentOut
from app.schemas.route import RouteSessionOut
from app.schemas.vehicle import VehicleOut, VehicleUpdateOut


class BreakdownIn(BaseModel):
    route_session_id: Optional[int] = None     # checked by the router → 400
    description: Optional[str] = None
    location: Optional[str] = None


class BreakdownOut(BaseModel):
    id: int
    route_session_id: int
    vehicle_id: Optional[int]
    description: Optional[str]
    location: Optional[str]
    status: str
    reported_at: datetime

    class Config:
        from_attributes = True


class SessionDocumentOut(BaseModel):
    id: int
    doc_type: Optional[str]
    file_name: Optional[str]
    uploaded_at: Optional[datetime]
    file_urls: list[str]
    file_count: int


class AssistantPortalOut(BaseModel):
    assistant_id: int
    employee_id: int
    full_name: Optional[str]
    sessions: list[RouteSessionOut]


class SupplierPortalOut(BaseModel):
    vehicle: VehicleOut
    updates: list[VehicleUpdateOut]


class NotesIn(BaseModel):
    notes: Optional[str] = None
    supplier_name: Optional[str] = None


class VorIn(BaseModel):
    off_the_road: Optional[bool] = None        # omitted → toggle
    supplier_name: Optional[str] = None


class UploadPortalOut(BaseModel):
    notification_id: int
    entity_type: str
    certificate_name: Optional[str]
    expiry_date: Optional[date]
    status: str


class UploadPortalResult(BaseModel):
    notification_id: int
    file_urls: list[str]
    rejected: list[dict] = []
    errors: list[str] = []


class AssistantUploadOut(DocumentOut):
    rejected: list[dict] = []           # {file_name, reason} for files refused by type or size


class SupplierUpdateOut(VehicleUpdateOut):
    rejected: list[dict] = []
