# app/schemas/audit.py
from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional


class AuditIn(BaseModel):
    table_name: str
    record_id: int
    action: Literal["CREATE", "UPDATE", "DELETE"]


class AuditOut(BaseModel):
    id: int
    table_name: str
    record_id: int
    action: str
    changed_by: Optional[int]
    changed_at: datetime

    class Config:
        from_attributes = True
