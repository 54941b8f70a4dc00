# app/services/requirement_service.py
"""
Document requirements (the per-subject checklist configured by admins) and
the subject documents that satisfy them for one driver, PA, vehicle or
employee.
"""

import re
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.document import DocumentRequirement, SubjectDocument, DocumentSubjectDocumentLink
from app.utils.logger import get_logger

logger = get_logger(__name__)

SUBJECT_TYPES = ("driver", "pa", "vehicle", "employee")
SUBJECT_COLUMNS = {
    "driver": "driver_employee_id",
    "pa": "pa_employee_id",
    "vehicle": "vehicle_id",
    "employee": "employee_id",
}
HEX_COLOUR = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
DEFAULT_RENEWAL_NOTICE_DAYS = 30

REQUIREMENT_FIELDS = (
    "name", "code", "subject_type", "requires_expiry", "requires_upload", "requires_number",
    "criticality", "default_validity_days", "renewal_notice_days", "is_required",
    "is_active", "icon_path", "color",
)


class RequirementInUse(Exception):
    pass


def slugify(value: str) -> str:
    """'TAS Badge (front)' -> 'tas_badge_front'"""
    return re.sub(r"[^a-z0-9]+", "_", value.strip().lower()).strip("_")


def subject_filter(subject_type: Optional[str], subject_id) -> Optional[dict]:
    """Column/value pair identifying one subject, or None when either part is invalid."""
    column = SUBJECT_COLUMNS.get(subject_type or "")
    if column is None:
        return None
    try:
        sid = int(str(subject_id))
    except (TypeError, ValueError):
        return None
    return {column: sid}


def _validate_requirement(values: dict):
    if not (values.get("name") or "").strip() or not values.get("subject_type"):
        raise ValueError("name and subject_type are required")
    if values["subject_type"] not in SUBJECT_TYPES:
        raise ValueError(f"subject_type must be one of {', '.join(SUBJECT_TYPES)}")
    color = values.get("color")
    if color and not HEX_COLOUR.match(color):
        raise ValueError("color must be a hex colour like #1a2b3c or #abc")


def _normalise(values: dict) -> dict:
    values["name"] = values["name"].strip()
    code = (values.get("code") or "").strip()
    values["code"] = code or slugify(values["name"])
    if values.get("requires_expiry") and values.get("renewal_notice_days") is None:
        values["renewal_notice_days"] = DEFAULT_RENEWAL_NOTICE_DAYS
    return values


# ── Requirements ─────────────────────────────────────────────────────────────

def list_requirements(db: Session, subject_type: Optional[str] = None,
                      criticality: Optional[str] = None, is_active: Optional[bool] = None,
                      is_required: Optional[bool] = None, search: Optional[str] = None):
    q = db.query(DocumentRequirement)
    if subject_type:
        q = q.filter(DocumentRequirement.subject_type == subject_type)
    if criticality:
        q = q.filter(DocumentRequirement.criticality == criticality)
    if is_active is not None:
        q = q.filter(DocumentRequirement.is_active == is_active)
    if is_required is not None:
        q = q.filter(DocumentRequirement.is_required == is_required)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(DocumentRequirement.name.ilike(pattern),
                         DocumentRequirement.code.ilike(pattern)))
    return q.order_by(DocumentRequirement.updated_at.desc()).all()


def create_requirement(db: Session, values: dict, user_id: Optional[int] = None) -> DocumentRequirement:
    _validate_requirement(values)
    values = _normalise(dict(values))
    requirement = DocumentRequirement(
        **{f: values[f] for f in REQUIREMENT_FIELDS if values.get(f) is not None},
        created_by=user_id,
        updated_by=user_id,
    )
    db.add(requirement)
    db.flush()
    logger.info(f"[REQUIREMENTS] Created {requirement.subject_type}:{requirement.code}")
    return requirement


def update_requirement(db: Session, requirement: DocumentRequirement, changes: dict,
                       user_id: Optional[int] = None) -> DocumentRequirement:
    merged = {f: getattr(requirement, f) for f in REQUIREMENT_FIELDS}
    merged.update(changes)
    if "code" in changes and not (changes["code"] or "").strip():
        merged["code"] = None
    _validate_requirement(merged)
    merged = _normalise(merged)
    for f in REQUIREMENT_FIELDS:
        setattr(requirement, f, merged.get(f))
    requirement.updated_by = user_id
    return requirement


def delete_requirement(db: Session, requirement: DocumentRequirement):
    in_use = db.query(SubjectDocument).filter(SubjectDocument.requirement_id == requirement.id).count()
    if in_use:
        raise RequirementInUse("Cannot delete requirement with existing documents")
    db.delete(requirement)


# ── Subject documents ────────────────────────────────────────────────────────

def get_subject_documents(db: Session, subject_type: str, subject_id) -> dict:
    match = subject_filter(subject_type, subject_id)
    if match is None:
        raise ValueError("Invalid subject_id")

    requirements = (
        db.query(DocumentRequirement)
        .filter(DocumentRequirement.subject_type == subject_type,
                DocumentRequirement.is_active.is_(True))
        .order_by(DocumentRequirement.name)
        .all()
    )
    q = db.query(SubjectDocument).filter(SubjectDocument.subject_type == subject_type)
    for column, value in match.items():
        q = q.filter(getattr(SubjectDocument, column) == value)
    documents = q.order_by(SubjectDocument.created_at.desc()).all()
    return {"requirements": requirements, "documents": documents}


def create_subject_document(db: Session, values: dict, user_id: Optional[int] = None) -> SubjectDocument:
    if not values.get("requirement_id") or not values.get("subject_type") or not values.get("subject_id"):
        raise ValueError("requirement_id, subject_type, subject_id required")
    match = subject_filter(values["subject_type"], values["subject_id"])
    if match is None:
        raise ValueError("Invalid subject_id")

    document = SubjectDocument(
        requirement_id=values["requirement_id"],
        subject_type=values["subject_type"],
        status=values.get("status") or "missing",
        certificate_number=values.get("certificate_number") or None,
        issue_date=values.get("issue_date"),
        expiry_date=values.get("expiry_date"),
        notes=values.get("notes") or None,
        created_by=user_id,
        updated_by=user_id,
        **match,
    )
    db.add(document)
    db.flush()
    return document


def update_subject_document(db: Session, document: SubjectDocument, changes: dict,
                            user_id: Optional[int] = None) -> SubjectDocument:
    for key in ("status", "certificate_number", "issue_date", "expiry_date", "notes"):
        if key in changes:
            setattr(document, key, changes[key])
    document.updated_by = user_id
    return document


def link_writer(subject_document_id: int):
    """Link callback for upload_and_link: ties each uploaded Document to the subject document."""
    def link(db: Session, document):
        db.add(DocumentSubjectDocumentLink(document_id=document.id,
                                           subject_document_id=subject_document_id))
    return link
