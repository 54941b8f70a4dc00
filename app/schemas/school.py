# app/schemas/school.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class SchoolCreate(BaseModel):
    name: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class SchoolUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class SchoolOut(SchoolCreate):
    id: int
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
