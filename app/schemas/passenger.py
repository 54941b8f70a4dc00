# app/schemas/passenger.py
from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Optional

from app.utils.validators import clean_email, clean_phone


class ParentContactCreate(BaseModel):
    full_name: str
    relationship: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return clean_email(v)

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v):
        return clean_phone(v)


class ParentContactUpdate(BaseModel):
    full_name: Optional[str] = None
    relationship: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _email(cls, v):
        return clean_email(v)

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v):
        return clean_phone(v)


class ParentContactOut(BaseModel):
    id: int
    full_name: str
    relationship: Optional[str]
    phone_number: Optional[str]
    email: Optional[str]
    address: Optional[str]

    class Config:
        from_attributes = True


class PassengerCreate(BaseModel):
    full_name: str
    dob: Optional[date] = None
    address: Optional[str] = None
    sen_requirements: Optional[str] = None
    school_id: Optional[int] = None
    mobility_type: Optional[str] = None
    route_id: Optional[int] = None
    seat_number: Optional[str] = None
    parent_contacts: list[ParentContactCreate] = []       # created and linked
    parent_contact_ids: list[int] = []                    # existing contacts to link


class PassengerUpdate(BaseModel):
    full_name: Optional[str] = None
    dob: Optional[date] = None
    address: Optional[str] = None
    sen_requirements: Optional[str] = None
    school_id: Optional[int] = None
    mobility_type: Optional[str] = None
    route_id: Optional[int] = None
    seat_number: Optional[str] = None


class PassengerOut(BaseModel):
    id: int
    full_name: str
    dob: Optional[date]
    address: Optional[str]
    sen_requirements: Optional[str]
    school_id: Optional[int]
    mobility_type: Optional[str]
    route_id: Optional[int]
    seat_number: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class PassengerDetail(PassengerOut):
    parent_contacts: list[ParentContactOut] = []
