# app/schemas/document.py
from pydantic import BaseModel, field_validator
from datetime import date, datetime
from typing import Optional

from app.utils.file_urls import parse_file_urls


class DocumentOut(BaseModel):
    id: int
    owner_type: Optional[str]
    employee_id: Optional[int]
    vehicle_id: Optional[int]
    route_session_id: Optional[int]
    file_name: Optional[str]
    file_type: Optional[str]
    file_path: Optional[str]
    file_url: Optional[str]
    file_urls: list[str] = []
    doc_type: Optional[str]
    uploaded_by: Optional[int]
    uploaded_at: Optional[datetime]

    @classmethod
    def from_document(cls, doc) -> "DocumentOut":
        out = cls.model_validate(doc)
        out.file_urls = parse_file_urls(doc.file_url)
        return out

    class Config:
        from_attributes = True


class UploadResult(BaseModel):
    uploaded: list[DocumentOut] = []
    rejected: list[dict] = []
    errors: list[str] = []


class RequirementIn(BaseModel):
    """name/subject_type are checked by the service so a missing one reads as 400, not 422."""
    name: Optional[str] = None
    code: Optional[str] = None
    subject_type: Optional[str] = None
    requires_expiry: bool = False
    requires_upload: bool = False
    requires_number: bool = False
    criticality: str = "recommended"
    default_validity_days: Optional[int] = None
    renewal_notice_days: Optional[int] = None
    is_required: bool = True
    is_active: bool = True
    icon_path: Optional[str] = None
    color: Optional[str] = None


class RequirementUpdate(BaseModel):
    name: Optional[str] = None
    code: Optional[str] = None
    subject_type: Optional[str] = None
    requires_expiry: Optional[bool] = None
    requires_upload: Optional[bool] = None
    requires_number: Optional[bool] = None
    criticality: Optional[str] = None
    default_validity_days: Optional[int] = None
    renewal_notice_days: Optional[int] = None
    is_required: Optional[bool] = None
    is_active: Optional[bool] = None
    icon_path: Optional[str] = None
    color: Optional[str] = None


class RequirementOut(BaseModel):
    id: int
    name: str
    code: Optional[str]
    subject_type: str
    requires_expiry: bool
    requires_upload: bool
    requires_number: bool
    criticality: str
    default_validity_days: Optional[int]
    renewal_notice_days: Optional[int]
    is_required: bool
    is_active: bool
    icon_path: Optional[str]
    color: Optional[str]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class SubjectDocumentIn(BaseModel):
    requirement_id: Optional[int] = None
    subject_type: Optional[str] = None
    subject_id: Optional[int] = None
    status: Optional[str] = None
    certificate_number: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None


class SubjectDocumentUpdate(BaseModel):
    status: Optional[str] = None
    certificate_number: Optional[str] = None
    issue_date: Optional[date] = None
    expiry_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _status(cls, v):
        if v is not None and not v.strip():
            raise ValueError("status cannot be blank")
        return v


class SubjectDocumentOut(BaseModel):
    id: int
    requirement_id: int
    subject_type: str
    driver_employee_id: Optional[int]
    pa_employee_id: Optional[int]
    vehicle_id: Optional[int]
    employee_id: Optional[int]
    status: str
    certificate_number: Optional[str]
    issue_date: Optional[date]
    expiry_date: Optional[date]
    notes: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True


class SubjectDocumentsOut(BaseModel):
    requirements: list[RequirementOut]
    documents: list[SubjectDocumentOut]
