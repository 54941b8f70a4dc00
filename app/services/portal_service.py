# app/services/portal_service.py
"""
Public token-gated portals. No login: possession of the token is the access
check, so every operation starts by resolving its token and stops with
PortalNotFound when the token is unknown.

    assistant  passenger_assistants.qr_token   session documents + breakdowns
    supplier   vehicles.qr_token               notes, VOR flag, update log
    upload     notifications.email_token       certificate upload for a notification
"""

import secrets
from dataclasses import replace
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.models.document import Document
from app.models.employee import PassengerAssistant
from app.models.notification import Notification
from app.models.route import RouteSession
from app.models.vehicle import Vehicle, VehicleUpdate
from app.services import upload_service as uploads
from app.services.breakdown_service import report_vehicle_breakdown
from app.services.storage import LocalObjectStorage
from app.utils.file_urls import encode_file_urls, parse_file_urls
from app.utils.logger import get_logger

logger = get_logger(__name__)

TR_DOCUMENT_TYPES = ("TR1", "TR2", "TR3", "TR4", "TR5", "TR6")
UPDATE_LOG_LIMIT = 50


class PortalNotFound(Exception):
    """Unknown token; the message is shown to the portal visitor."""


def issue_token() -> str:
    return secrets.token_urlsafe(24)


# ── Assistant QR portal ──────────────────────────────────────────────────────

def assistant_by_token(db: Session, token: str) -> PassengerAssistant:
    assistant = (
        db.query(PassengerAssistant)
        .options(joinedload(PassengerAssistant.employee))
        .filter(PassengerAssistant.qr_token == token)
        .first()
    )
    if not token or not assistant:
        raise PortalNotFound("Invalid QR token. Please scan a valid passenger assistant QR code.")
    return assistant


def active_sessions(db: Session, assistant: PassengerAssistant) -> list[RouteSession]:
    """Sessions the assistant is on that have started and not yet ended."""
    return (
        db.query(RouteSession)
        .filter(
            RouteSession.passenger_assistant_id == assistant.employee_id,
            RouteSession.started_at.isnot(None),
            RouteSession.ended_at.is_(None),
        )
        .order_by(RouteSession.session_date.desc(), RouteSession.session_type.asc())
        .all()
    )


def _assistant_session(db: Session, assistant: PassengerAssistant, session_id: int) -> RouteSession:
    session = db.query(RouteSession).filter(RouteSession.id == session_id).first()
    if not session or session.passenger_assistant_id != assistant.employee_id:
        raise ValueError("This route session is not assigned to you")
    return session


def session_documents(db: Session, route_session_id: int) -> list[dict]:
    documents = (
        db.query(Document)
        .filter(Document.route_session_id == route_session_id)
        .order_by(Document.uploaded_at.desc())
        .all()
    )
    result = []
    for doc in documents:
        urls = parse_file_urls(doc.file_url)
        result.append({
            "id": doc.id,
            "doc_type": doc.doc_type,
            "file_name": doc.file_name,
            "uploaded_at": doc.uploaded_at,
            "file_urls": urls,
            "file_count": len(urls),
        })
    return result


def assistant_session_documents(db: Session, token: str, route_session_id: int) -> list[dict]:
    """Documents of a session, only when the session is the token holder's."""
    assistant = assistant_by_token(db, token)
    session = _assistant_session(db, assistant, route_session_id)
    return session_documents(db, session.id)


def upload_assistant_document(db: Session, storage: LocalObjectStorage, token: str,
                              files: list[uploads.IncomingFile], doc_type: str,
                              route_session_id: int) -> uploads.UploadOutcome:
    """
    All accepted files of one submission land in a single documents row
    (JSON array of URLs). Refused files come back in outcome.rejected.
    """
    assistant = assistant_by_token(db, token)
    if doc_type not in TR_DOCUMENT_TYPES:
        raise ValueError(f"Unknown document type '{doc_type}'")
    session = _assistant_session(db, assistant, route_session_id)

    outcome = uploads.upload_and_link(
        db, storage, files, uploads.ROUTE_DOCUMENTS,
        entity_id=assistant.id,
        category=doc_type,
        combine=True,
        document_fields={
            "owner_type": "passenger_assistant",
            "employee_id": assistant.employee_id,
            "route_session_id": session.id,
        },
    )
    logger.info(f"[PORTAL] Assistant #{assistant.id} uploaded {doc_type} "
                f"({len(outcome.uploaded)} files, {len(outcome.rejected)} refused) for session #{session.id}")
    return outcome


def assistant_report_breakdown(db: Session, token: str, route_session_id: int,
                               description: Optional[str], location: Optional[str]):
    assistant = assistant_by_token(db, token)
    session = _assistant_session(db, assistant, route_session_id)
    return report_vehicle_breakdown(db, session.id, description, location)


# ── Supplier vehicle portal ──────────────────────────────────────────────────

def vehicle_by_token(db: Session, token: str) -> Vehicle:
    vehicle = db.query(Vehicle).filter(Vehicle.qr_token == token).first()
    if not token or not vehicle:
        raise PortalNotFound("Vehicle not found with this QR code")
    return vehicle


def vehicle_updates(db: Session, vehicle: Vehicle, limit: int = UPDATE_LOG_LIMIT) -> list[VehicleUpdate]:
    return (
        db.query(VehicleUpdate)
        .filter(VehicleUpdate.vehicle_id == vehicle.id)
        .order_by(VehicleUpdate.created_at.desc())
        .limit(limit)
        .all()
    )


def _append_update(db: Session, vehicle: Vehicle, text: str,
                   file_urls: Optional[list[str]] = None) -> VehicleUpdate:
    update = VehicleUpdate(vehicle_id=vehicle.id, update_text=text,
                           file_urls=encode_file_urls(file_urls or []))
    db.add(update)
    return update


def save_vehicle_notes(db: Session, vehicle: Vehicle, notes: Optional[str],
                       supplier_name: Optional[str] = None) -> VehicleUpdate:
    vehicle.notes = notes or None
    shown = notes or "(cleared)"
    text = (f"📝 Notes updated by {supplier_name}: {shown}" if supplier_name
            else f"📝 Notes updated: {shown}")
    return _append_update(db, vehicle, text)


def set_vehicle_vor(db: Session, vehicle: Vehicle, off_the_road: Optional[bool] = None,
                    supplier_name: Optional[str] = None) -> VehicleUpdate:
    """Set the VOR flag; None flips the current value."""
    if off_the_road is None:
        off_the_road = not bool(vehicle.off_the_road)
    vehicle.off_the_road = off_the_road
    state = "VOR (Vehicle Off Road)" if off_the_road else "Active"
    text = (f"🚩 Vehicle status changed by {supplier_name}: {state}" if supplier_name
            else f"🚩 Vehicle status changed: {state}")
    logger.info(f"[PORTAL] Vehicle #{vehicle.id} VOR={off_the_road}")
    return _append_update(db, vehicle, text)


def add_vehicle_update(db: Session, storage: LocalObjectStorage, vehicle: Vehicle, text: str,
                       files: Optional[list[uploads.IncomingFile]] = None,
                       supplier_name: Optional[str] = None) -> tuple[VehicleUpdate, list[uploads.FileRejection]]:
    """Log an update with its attachments. Returns (update, files refused by type or size)."""
    text = (text or "").strip()
    if not text:
        raise ValueError("Please enter an update")

    urls, uploaded, rejected = [], [], []
    policy = uploads.VEHICLE_UPDATE_FILES
    if files:
        accepted, rejected = uploads.validate_files(files, policy)
        if not accepted:
            raise uploads.UploadError(rejected[0].reason)
        outcome = uploads.upload_files(storage, accepted, policy, vehicle.id, "update")
        uploaded, urls = outcome.uploaded, outcome.urls

    line = f"📋 {supplier_name}: {text}" if supplier_name else f"📋 {text}"
    try:
        update = _append_update(db, vehicle, line, urls)
        db.flush()
    except SQLAlchemyError:
        uploads.rollback_uploads(storage, policy.bucket, uploaded)
        raise
    return update, rejected


# ── Notification upload portal ───────────────────────────────────────────────

def notification_by_token(db: Session, token: str) -> Notification:
    notification = db.query(Notification).filter(Notification.email_token == token).first()
    if not token or not notification:
        raise PortalNotFound("Invalid or expired upload link")
    return notification


def notification_policy(notification: Notification) -> tuple[uploads.UploadPolicy, int]:
    """(policy, path entity id) for the notification's subject."""
    if notification.entity_type == "vehicle":
        return replace(uploads.VEHICLE_DOCUMENTS, on_error=uploads.ABORT), notification.entity_id
    if notification.entity_type in ("driver", "assistant"):
        return replace(uploads.EMPLOYEE_DOCUMENTS, on_error=uploads.ABORT), notification.entity_id
    return uploads.NOTIFICATION_DOCUMENTS, notification.id


def upload_for_notification(db: Session, storage: LocalObjectStorage, token: str,
                            files: list[uploads.IncomingFile]) -> dict:
    """
    Upload the employee's files, record a documents row per file and resolve
    the notification. A failed documents insert is logged and skipped; the
    file is already stored and the upload still counts.
    """
    notification = notification_by_token(db, token)
    if not files:
        raise uploads.UploadError("Please select at least one file to upload.")

    policy, entity_id = notification_policy(notification)
    accepted, rejected = uploads.validate_files(files, policy)
    if not accepted:
        raise uploads.UploadError(rejected[0].reason)
    outcome = uploads.upload_files(storage, accepted, policy, entity_id,
                                   notification.certificate_type or "document")

    errors = []
    for item in outcome.uploaded:
        try:
            with db.begin_nested():
                db.add(Document(
                    owner_type=notification.entity_type,
                    employee_id=notification.recipient_employee_id,
                    vehicle_id=notification.entity_id if notification.entity_type == "vehicle" else None,
                    file_name=item.file_name,
                    file_type=item.content_type,
                    file_path=item.path,
                    file_url=item.public_url,
                    doc_type=notification.certificate_name,
                ))
        except SQLAlchemyError as e:
            logger.error(f"[PORTAL] Could not record document {item.file_name} "
                         f"for notification #{notification.id}: {e}")
            errors.append(f"Could not record {item.file_name}")

    notification.status = "resolved"
    notification.resolved_at = datetime.utcnow()
    logger.info(f"[PORTAL] Notification #{notification.id} resolved with {len(outcome.uploaded)} file(s)")
    return {
        "notification_id": notification.id,
        "file_urls": outcome.urls,
        "rejected": uploads.rejection_dicts(rejected),
        "errors": errors,
    }
