# app/schemas/certificate.py
from pydantic import BaseModel
from datetime import date
from typing import Optional


class ExpiringCertificateOut(BaseModel):
    entity_type: str
    entity_id: int
    entity_name: str
    entity_identifier: str
    certificate_type: str
    expiry_date: date
    days_remaining: int
    severity: Optional[str]


class ExpiryReport(BaseModel):
    period: str
    entity_type: str
    certificates: list[ExpiringCertificateOut]
    errors: list[str] = []


class ExpirySummary(BaseModel):
    entity_type: str
    counts: dict[str, int]
    errors: list[str] = []
