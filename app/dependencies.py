# app/dependencies.py
"""Request-scoped helpers shared by the routers."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.schemas.document import DocumentOut
from app.services import upload_service as uploads
from app.services.audit_service import log_audit, resolve_user_id
from app.services.upload_service import IncomingFile


def get_acting_user_id(
    x_user_email: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Optional[int]:
    """users.id of the dashboard user making the request, if the header names one."""
    return resolve_user_id(db, x_user_email)


def get_or_404(db: Session, model, record_id, label: Optional[str] = None):
    obj = db.query(model).filter(model.id == record_id).first()
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label or model.__name__} not found")
    return obj


def apply_changes(obj, body: BaseModel, exclude: tuple = ()) -> dict:
    """Copy only the fields the client sent onto obj. Returns what was applied."""
    changes = body.model_dump(exclude_unset=True, exclude=set(exclude))
    for key, value in changes.items():
        setattr(obj, key, value)
    return changes


async def read_uploads(files: list[UploadFile], max_bytes: int = settings.UPLOAD_MAX_BYTES) -> list[IncomingFile]:
    """
    Read each upload, stopping one byte past max_bytes. An oversized file keeps
    only that prefix, which is enough for validation to refuse it.
    """
    incoming = []
    for f in files:
        incoming.append(IncomingFile(
            file_name=f.filename or "file",
            content_type=f.content_type or "application/octet-stream",
            data=await f.read(max_bytes + 1),
        ))
    return incoming


async def upload_documents(db: Session, storage, files: list[UploadFile], policy, entity_id,
                           category: str, fields: dict, user_id: Optional[int]) -> dict:
    """Shared body of the POST .../documents endpoints. Commits on success."""
    incoming = await read_uploads(files, policy.max_bytes)
    try:
        outcome = uploads.upload_and_link(
            db, storage, incoming, policy,
            entity_id=entity_id, category=category,
            document_fields=fields, uploaded_by=user_id,
        )
    except uploads.UploadError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    for doc in outcome.documents:
        log_audit(db, "documents", doc.id, "CREATE", user_id)
    db.commit()
    return {
        "uploaded": [DocumentOut.from_document(d) for d in outcome.documents],
        "rejected": uploads.rejection_dicts(outcome.rejected),
        "errors": outcome.errors,
    }
