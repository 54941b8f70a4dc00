# app/schemas/incident.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class IncidentCreate(BaseModel):
    employee_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    route_id: Optional[int] = None
    incident_type: str
    description: Optional[str] = None
    reported_at: Optional[datetime] = None
    resolved: bool = False


class IncidentUpdate(BaseModel):
    employee_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    route_id: Optional[int] = None
    incident_type: Optional[str] = None
    description: Optional[str] = None
    reported_at: Optional[datetime] = None
    resolved: Optional[bool] = None


class IncidentOut(BaseModel):
    id: int
    employee_id: Optional[int]
    vehicle_id: Optional[int]
    route_id: Optional[int]
    incident_type: Optional[str]
    description: Optional[str]
    reported_at: datetime
    resolved: bool

    class Config:
        from_attributes = True
