# app/routers/documents.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_or_404
from app.models.document import Document
from app.schemas.document import DocumentOut

router = APIRouter()


@router.get("/documents", response_model=list[DocumentOut], summary="Uploaded documents, newest first")
def list_documents(
    owner_type: Optional[str] = None,
    employee_id: Optional[int] = None,
    vehicle_id: Optional[int] = None,
    route_session_id: Optional[int] = None,
    doc_type: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """file_urls holds every URL of the row, whichever shape file_url was stored in."""
    q = db.query(Document)
    if owner_type:
        q = q.filter(Document.owner_type == owner_type)
    if employee_id:
        q = q.filter(Document.employee_id == employee_id)
    if vehicle_id:
        q = q.filter(Document.vehicle_id == vehicle_id)
    if route_session_id:
        q = q.filter(Document.route_session_id == route_session_id)
    if doc_type:
        q = q.filter(Document.doc_type == doc_type)
    docs = q.order_by(Document.uploaded_at.desc()).limit(limit).all()
    return [DocumentOut.from_document(d) for d in docs]


@router.get("/documents/{document_id}", response_model=DocumentOut)
def get_document(document_id: int, db: Session = Depends(get_db)):
    return DocumentOut.from_document(get_or_404(db, Document, document_id, "Document"))
