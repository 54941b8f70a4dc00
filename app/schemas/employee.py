# app/schemas/employee.py
from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Optional

from app.utils.validators import clean_email, clean_phone


class DriverProfile(BaseModel):
    spare_driver: bool = False
    psv_license: bool = False
    tas_badge_number: Optional[str] = None
    tas_badge_expiry_date: Optional[date] = None
    taxi_badge_number: Optional[str] = None
    taxi_badge_expiry_date: Optional[date] = None
    dbs_number: Optional[str] = None
    dbs_expiry_date: Optional[date] = None
    first_aid_certificate_expiry_date: Optional[date] = None
    passport_expiry_date: Optional[date] = None
    driving_license_expiry_date: Optional[date] = None
    cpc_expiry_date: Optional[date] = None
    vehicle_insurance_expiry_date: Optional[date] = None
    mot_expiry_date: Optional[date] = None
    utility_bill_date: Optional[date] = None
    birth_certificate: bool = False
    marriage_certificate: bool = False
    photo_taken: bool = False
    private_hire_badge: bool = False
    paper_licence: bool = False
    taxi_plate_photo: bool = False
    logbook: bool = False
    safeguarding_training_completed: bool = False
    safeguarding_training_date: Optional[date] = None
    tas_pats_training_completed: bool = False
    tas_pats_training_date: Optional[date] = None
    psa_training_completed: bool = False
    psa_training_date: Optional[date] = None
    additional_notes: Optional[str] = None


class DriverCreate(DriverProfile):
    employee_id: int


class DriverOut(DriverProfile):
    employee_id: int

    class Config:
        from_attributes = True


class AssistantProfile(BaseModel):
    auto_home_stop: Optional[bool] = None     # None → name marker decides
    tas_badge_number: Optional[str] = None
    tas_badge_expiry_date: Optional[date] = None
    dbs_number: Optional[str] = None
    dbs_expiry_date: Optional[date] = None
    safeguarding_training_completed: bool = False
    safeguarding_training_date: Optional[date] = None
    tas_pats_training_completed: bool = False
    tas_pats_training_date: Optional[date] = None
    additional_notes: Optional[str] = None


class AssistantCreate(AssistantProfile):
    employee_id: int


class AssistantOut(AssistantProfile):
    id: int
    employee_id: int
    qr_token: Optional[str]

    class Config:
        from_attributes = True


class EmployeeFields(BaseModel):
    full_name: str
    role: Optional[str] = None
    employment_status: Optional[str] = "Active"
    phone_number: Optional[str] = None
    personal_email: Optional[str] = None
    address: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    wheelchair_access: bool = False
    can_work: bool = True


class EmployeeCreate(EmployeeFields):
    driver: Optional[DriverProfile] = None
    assistant: Optional[AssistantProfile] = None

    @field_validator("personal_email")
    @classmethod
    def _email(cls, v):
        return clean_email(v)

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v):
        return clean_phone(v)


class EmployeeUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[str] = None
    employment_status: Optional[str] = None
    phone_number: Optional[str] = None
    personal_email: Optional[str] = None
    address: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    wheelchair_access: Optional[bool] = None
    can_work: Optional[bool] = None

    @field_validator("personal_email")
    @classmethod
    def _email(cls, v):
        return clean_email(v)

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v):
        return clean_phone(v)


class EmployeeOut(EmployeeFields):
    id: int
    created_at: Optional[datetime]
    driver: Optional[DriverOut] = None
    assistant: Optional[AssistantOut] = None

    class Config:
        from_attributes = True
