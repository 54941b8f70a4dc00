# app/routers/admin.py
"""
Admin API: document requirements, subject documents, the audit write
endpoint and employee-response summaries.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_acting_user_id, get_or_404, read_uploads
from app.models.document import DocumentRequirement, SubjectDocument
from app.schemas.audit import AuditIn, AuditOut
from app.schemas.document import (
    DocumentOut, RequirementIn, RequirementOut, RequirementUpdate, SubjectDocumentIn,
    SubjectDocumentOut, SubjectDocumentsOut, SubjectDocumentUpdate, UploadResult,
)
from app.schemas.notification import NotifySummaryIn, SystemActivityOut
from app.services import requirement_service as requirements
from app.services import upload_service as uploads
from app.services.audit_service import log_audit
from app.services.notification_service import NotificationNotFound, record_employee_response
from app.services.storage import LocalObjectStorage, get_storage

router = APIRouter()

SUBJECT_POLICIES = {
    "driver": uploads.DRIVER_DOCUMENTS,
    "pa": uploads.ASSISTANT_DOCUMENTS,
    "vehicle": uploads.VEHICLE_DOCUMENTS,
    "employee": uploads.EMPLOYEE_DOCUMENTS,
}


# ── Document requirements ────────────────────────────────────────────────────

@router.get("/admin/document-requirements", response_model=list[RequirementOut],
            summary="List document requirements")
def list_requirements(
    subject_type: Optional[str] = None,
    criticality: Optional[str] = None,
    is_active: Optional[bool] = None,
    is_required: Optional[bool] = None,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return requirements.list_requirements(db, subject_type, criticality, is_active, is_required, search)


@router.post("/admin/document-requirements", response_model=RequirementOut, status_code=201)
def create_requirement(body: RequirementIn, db: Session = Depends(get_db),
                       user_id: Optional[int] = Depends(get_acting_user_id)):
    try:
        requirement = requirements.create_requirement(db, body.model_dump(), user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_audit(db, "document_requirements", requirement.id, "CREATE", user_id)
    db.commit()
    db.refresh(requirement)
    return requirement


@router.get("/admin/document-requirements/{requirement_id}", response_model=RequirementOut)
def get_requirement(requirement_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, DocumentRequirement, requirement_id, "Requirement")


@router.patch("/admin/document-requirements/{requirement_id}", response_model=RequirementOut)
def update_requirement(requirement_id: int, body: RequirementUpdate, db: Session = Depends(get_db),
                       user_id: Optional[int] = Depends(get_acting_user_id)):
    requirement = get_or_404(db, DocumentRequirement, requirement_id, "Requirement")
    try:
        requirements.update_requirement(db, requirement, body.model_dump(exclude_unset=True), user_id)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    log_audit(db, "document_requirements", requirement.id, "UPDATE", user_id)
    db.commit()
    db.refresh(requirement)
    return requirement


@router.delete("/admin/document-requirements/{requirement_id}")
def delete_requirement(requirement_id: int, db: Session = Depends(get_db),
                       user_id: Optional[int] = Depends(get_acting_user_id)):
    requirement = get_or_404(db, DocumentRequirement, requirement_id, "Requirement")
    try:
        requirements.delete_requirement(db, requirement)
    except requirements.RequirementInUse as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_audit(db, "document_requirements", requirement_id, "DELETE", user_id)
    db.commit()
    return {"success": True}


# ── Subject documents ────────────────────────────────────────────────────────

@router.get("/admin/subject-documents", response_model=SubjectDocumentsOut,
            summary="Active requirements and recorded documents for one subject")
def list_subject_documents(subject_type: Optional[str] = None, subject_id: Optional[str] = None,
                           db: Session = Depends(get_db)):
    if not subject_type or not subject_id:
        raise HTTPException(status_code=400, detail="subject_type and subject_id required")
    try:
        return requirements.get_subject_documents(db, subject_type, subject_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/admin/subject-documents", response_model=SubjectDocumentOut, status_code=201)
def create_subject_document(body: SubjectDocumentIn, db: Session = Depends(get_db),
                            user_id: Optional[int] = Depends(get_acting_user_id)):
    try:
        document = requirements.create_subject_document(db, body.model_dump(), user_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_audit(db, "subject_documents", document.id, "CREATE", user_id)
    db.commit()
    db.refresh(document)
    return document


@router.patch("/admin/subject-documents/{document_id}", response_model=SubjectDocumentOut)
def update_subject_document(document_id: int, body: SubjectDocumentUpdate, db: Session = Depends(get_db),
                            user_id: Optional[int] = Depends(get_acting_user_id)):
    document = get_or_404(db, SubjectDocument, document_id, "Subject document")
    requirements.update_subject_document(db, document, body.model_dump(exclude_unset=True), user_id)
    log_audit(db, "subject_documents", document.id, "UPDATE", user_id)
    db.commit()
    db.refresh(document)
    return document


@router.delete("/admin/subject-documents/{document_id}")
def delete_subject_document(document_id: int, db: Session = Depends(get_db),
                            user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(get_or_404(db, SubjectDocument, document_id, "Subject document"))
    log_audit(db, "subject_documents", document_id, "DELETE", user_id)
    db.commit()
    return {"success": True}


@router.post("/admin/subject-documents/{document_id}/files", response_model=UploadResult,
             summary="Upload files and link them to a subject document")
async def upload_subject_document_files(
    document_id: int,
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
    user_id: Optional[int] = Depends(get_acting_user_id),
):
    subject = get_or_404(db, SubjectDocument, document_id, "Subject document")
    requirement = get_or_404(db, DocumentRequirement, subject.requirement_id, "Requirement")
    column, subject_id = next(iter(requirements.subject_filter(
        subject.subject_type, getattr(subject, requirements.SUBJECT_COLUMNS[subject.subject_type]),
    ).items()))
    fields = {"owner_type": subject.subject_type}
    fields["vehicle_id" if column == "vehicle_id" else "employee_id"] = subject_id

    policy = SUBJECT_POLICIES[subject.subject_type]
    incoming = await read_uploads(files, policy.max_bytes)
    try:
        outcome = uploads.upload_and_link(
            db, storage, incoming, policy,
            entity_id=subject_id,
            category=requirement.code or requirement.name,
            document_fields=fields,
            link=requirements.link_writer(subject.id),
            uploaded_by=user_id,
        )
    except uploads.UploadError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return {
        "uploaded": [DocumentOut.from_document(d) for d in outcome.documents],
        "rejected": uploads.rejection_dicts(outcome.rejected),
        "errors": outcome.errors,
    }


# ── Audit / notify summary ───────────────────────────────────────────────────

@router.post("/audit", response_model=AuditOut, status_code=201, summary="Record an audit entry")
def write_audit(body: AuditIn, db: Session = Depends(get_db),
                user_id: Optional[int] = Depends(get_acting_user_id)):
    if user_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    entry = log_audit(db, body.table_name, body.record_id, body.action, user_id)
    db.commit()
    db.refresh(entry)
    return entry


@router.post("/admin/notify-summary", response_model=SystemActivityOut,
             summary="Record an employee's response to a notification")
def notify_summary(body: NotifySummaryIn, db: Session = Depends(get_db)):
    try:
        activity = record_employee_response(
            db, body.notification_id, body.type,
            entity_type=body.entity_type,
            entity_name=body.entity_name,
            certificate_name=body.certificate_name,
            recipient_name=body.recipient_name,
            recipient_email=body.recipient_email,
            details=body.details,
        )
    except NotificationNotFound:
        raise HTTPException(status_code=404, detail="Notification not found")
    db.commit()
    db.refresh(activity)
    return activity
