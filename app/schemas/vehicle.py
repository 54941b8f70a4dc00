# app/schemas/vehicle.py
from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Optional

from app.utils.file_urls import parse_file_urls


class VehicleFields(BaseModel):
    vehicle_identifier: Optional[str] = None
    registration: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    plate_number: Optional[str] = None
    plate_expiry_date: Optional[date] = None
    vehicle_type: Optional[str] = None
    ownership_type: Optional[str] = None
    mot_date: Optional[date] = None
    tax_date: Optional[date] = None
    insurance_expiry_date: Optional[date] = None
    tail_lift: bool = False
    loler_expiry_date: Optional[date] = None
    first_aid_expiry: Optional[date] = None
    fire_extinguisher_expiry: Optional[date] = None
    spare_vehicle: bool = False
    off_the_road: bool = False
    notes: Optional[str] = None


class VehicleCreate(VehicleFields):
    pass


class VehicleUpdate(VehicleFields):
    """Partial update: only fields present in the request body are applied."""


class VehicleOut(VehicleFields):
    id: int
    qr_token: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class VehicleUpdateOut(BaseModel):
    id: int
    vehicle_id: int
    update_text: str
    file_urls: list[str] = []
    updated_by: Optional[int]
    created_at: Optional[datetime]

    @field_validator("file_urls", mode="before")
    @classmethod
    def _parse(cls, v):
        return parse_file_urls(v)

    class Config:
        from_attributes = True
