# app/schemas/route.py
from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Literal, Optional

from app.services.route_sequencer import StopOrigin
from app.utils.validators import clean_time


class RoutePointIn(BaseModel):
    id: Optional[int] = None
    point_name: str = ""
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    passenger_id: Optional[int] = None
    pickup_time_am: Optional[str] = None
    pickup_time_pm: Optional[str] = None
    origin: StopOrigin = StopOrigin.USER

    @field_validator("pickup_time_am", "pickup_time_pm")
    @classmethod
    def _time(cls, v):
        return clean_time(v)


class RoutePointOut(BaseModel):
    id: Optional[int]
    point_name: str
    address: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    passenger_id: Optional[int]
    pickup_time_am: Optional[str]
    pickup_time_pm: Optional[str]
    stop_order: int
    origin: str

    class Config:
        from_attributes = True


class RouteCreate(BaseModel):
    route_number: str
    school_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    am_start_time: Optional[str] = None
    pm_start_time: Optional[str] = None
    days_of_week: Optional[str] = None
    notes: Optional[str] = None
    assistant_ids: list[int] = []
    points: list[RoutePointIn] = []

    @field_validator("am_start_time", "pm_start_time")
    @classmethod
    def _time(cls, v):
        return clean_time(v)


class RouteUpdate(BaseModel):
    route_number: Optional[str] = None
    school_id: Optional[int] = None
    driver_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    am_start_time: Optional[str] = None
    pm_start_time: Optional[str] = None
    days_of_week: Optional[str] = None
    notes: Optional[str] = None
    assistant_ids: Optional[list[int]] = None
    points: Optional[list[RoutePointIn]] = None    # omitted → keep current points

    @field_validator("am_start_time", "pm_start_time")
    @classmethod
    def _time(cls, v):
        return clean_time(v)


class RouteOut(BaseModel):
    id: int
    route_number: Optional[str]
    school_id: Optional[int]
    driver_id: Optional[int]
    vehicle_id: Optional[int]
    am_start_time: Optional[str]
    pm_start_time: Optional[str]
    days_of_week: Optional[str]
    notes: Optional[str]
    assistant_ids: list[int] = []
    points: list[RoutePointOut] = []
    created_at: Optional[datetime]

    @classmethod
    def from_route(cls, route) -> "RouteOut":
        out = cls.model_validate(route)
        out.assistant_ids = [a.id for a in route.assistants]
        return out

    class Config:
        from_attributes = True


class SequenceRequest(BaseModel):
    """Wizard step transition: current stops plus the route's assistant and times."""
    assistant_id: Optional[int] = None
    am_start_time: Optional[str] = None
    pm_start_time: Optional[str] = None
    points: list[RoutePointIn] = []
    drop_unnamed: bool = False

    @field_validator("am_start_time", "pm_start_time")
    @classmethod
    def _time(cls, v):
        return clean_time(v)


class SequenceResponse(BaseModel):
    points: list[RoutePointOut]


class RouteSessionCreate(BaseModel):
    session_type: Literal["AM", "PM"]
    session_date: Optional[date] = None          # today when omitted
    driver_id: Optional[int] = None              # route's driver when omitted
    passenger_assistant_id: Optional[int] = None  # employees.id; route's first assistant when omitted
    notes: Optional[str] = None
    start: bool = False


class RouteSessionOut(BaseModel):
    id: int
    route_id: int
    session_date: date
    session_type: str
    driver_id: Optional[int] = None
    passenger_assistant_id: Optional[int] = None
    started_at: Optional[datetime]
    ended_at: Optional[datetime]
    notes: Optional[str] = None

    class Config:
        from_attributes = True
