# app/services/audit_service.py
"""
Audit trail shared by every create/update/delete endpoint.
Rows are added to the caller's session and committed with the change itself.
"""

from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog
from app.models.user import User
from app.utils.logger import get_logger

logger = get_logger(__name__)

ACTIONS = ("CREATE", "UPDATE", "DELETE")


def resolve_user_id(db: Session, email: Optional[str]) -> Optional[int]:
    """Map a login email to users.id (case-insensitive). None when unknown."""
    if not email:
        return None
    user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
    return user.id if user else None


def log_audit(db: Session, table_name: str, record_id: int, action: str,
              changed_by: Optional[int] = None) -> AuditLog:
    if action not in ACTIONS:
        raise ValueError(f"Unknown audit action '{action}'")
    entry = AuditLog(table_name=table_name, record_id=record_id,
                     action=action, changed_by=changed_by)
    db.add(entry)
    logger.info(f"[AUDIT] {action} {table_name}#{record_id} by user={changed_by}")
    return entry
