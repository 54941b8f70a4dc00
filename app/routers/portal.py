# app/routers/portal.py
"""
Public portals opened from a QR code or an emailed link. No API key and no
login: the token in the path is the only credential.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import read_uploads
from app.schemas.portal import (
    AssistantPortalOut, AssistantUploadOut, BreakdownIn, BreakdownOut, NotesIn, SessionDocumentOut,
    SupplierPortalOut, SupplierUpdateOut, UploadPortalOut, UploadPortalResult, VorIn,
)
from app.schemas.vehicle import VehicleOut, VehicleUpdateOut
from app.services import portal_service as portal
from app.services.breakdown_service import SessionNotFound
from app.services import upload_service as uploads
from app.services.upload_service import UploadError
from app.services.storage import LocalObjectStorage, get_storage

router = APIRouter()


def _not_found(e: portal.PortalNotFound):
    return HTTPException(status_code=404, detail=str(e))


# ── Passenger assistant ──────────────────────────────────────────────────────

@router.get("/portal/assistant/{qr_token}", response_model=AssistantPortalOut,
            summary="PA portal: who am I and which sessions are running")
def assistant_portal(qr_token: str, db: Session = Depends(get_db)):
    try:
        assistant = portal.assistant_by_token(db, qr_token)
    except portal.PortalNotFound as e:
        raise _not_found(e)
    return {
        "assistant_id": assistant.id,
        "employee_id": assistant.employee_id,
        "full_name": assistant.employee.full_name if assistant.employee else None,
        "sessions": portal.active_sessions(db, assistant),
    }


@router.get("/portal/assistant/{qr_token}/sessions/{session_id}/documents",
            response_model=list[SessionDocumentOut])
def assistant_session_documents(qr_token: str, session_id: int, db: Session = Depends(get_db)):
    try:
        return portal.assistant_session_documents(db, qr_token, session_id)
    except portal.PortalNotFound as e:
        raise _not_found(e)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/portal/assistant/{qr_token}/documents", response_model=AssistantUploadOut, status_code=201,
             summary="PA portal: upload a TR document; refused files are listed, the rest are kept")
async def assistant_upload(
    qr_token: str,
    route_session_id: int = Form(...),
    doc_type: str = Form(...),
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    incoming = await read_uploads(files, uploads.ROUTE_DOCUMENTS.max_bytes)
    try:
        outcome = portal.upload_assistant_document(db, storage, qr_token, incoming, doc_type, route_session_id)
    except portal.PortalNotFound as e:
        raise _not_found(e)
    except (UploadError, ValueError) as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    out = AssistantUploadOut.from_document(outcome.documents[0])
    out.rejected = uploads.rejection_dicts(outcome.rejected)
    return out


@router.post("/portal/assistant/{qr_token}/breakdown", response_model=BreakdownOut, status_code=201)
def assistant_breakdown(qr_token: str, body: BreakdownIn, db: Session = Depends(get_db)):
    if not body.route_session_id:
        raise HTTPException(status_code=400, detail="route_session_id is required")
    try:
        breakdown = portal.assistant_report_breakdown(db, qr_token, body.route_session_id,
                                                      body.description, body.location)
    except portal.PortalNotFound as e:
        raise _not_found(e)
    except (ValueError, SessionNotFound) as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(breakdown)
    return breakdown


# ── Supplier vehicle portal ──────────────────────────────────────────────────

def _vehicle(db: Session, qr_token: str):
    try:
        return portal.vehicle_by_token(db, qr_token)
    except portal.PortalNotFound as e:
        raise _not_found(e)


def _supplier_view(db: Session, vehicle) -> dict:
    return {
        "vehicle": VehicleOut.model_validate(vehicle),
        "updates": [VehicleUpdateOut.model_validate(u) for u in portal.vehicle_updates(db, vehicle)],
    }


@router.get("/portal/supplier/{qr_token}", response_model=SupplierPortalOut,
            summary="Supplier portal: vehicle and its last 50 updates")
def supplier_portal(qr_token: str, db: Session = Depends(get_db)):
    return _supplier_view(db, _vehicle(db, qr_token))


@router.put("/portal/supplier/{qr_token}/notes", response_model=SupplierPortalOut)
def supplier_notes(qr_token: str, body: NotesIn, db: Session = Depends(get_db)):
    vehicle = _vehicle(db, qr_token)
    portal.save_vehicle_notes(db, vehicle, body.notes, body.supplier_name)
    db.commit()
    db.refresh(vehicle)
    return _supplier_view(db, vehicle)


@router.post("/portal/supplier/{qr_token}/vor", response_model=SupplierPortalOut,
             summary="Supplier portal: set or toggle Vehicle Off Road")
def supplier_vor(qr_token: str, body: VorIn, db: Session = Depends(get_db)):
    vehicle = _vehicle(db, qr_token)
    portal.set_vehicle_vor(db, vehicle, body.off_the_road, body.supplier_name)
    db.commit()
    db.refresh(vehicle)
    return _supplier_view(db, vehicle)


@router.post("/portal/supplier/{qr_token}/updates", response_model=SupplierUpdateOut, status_code=201)
async def supplier_update(
    qr_token: str,
    update_text: str = Form(...),
    supplier_name: Optional[str] = Form(None),
    files: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    vehicle = _vehicle(db, qr_token)
    incoming = await read_uploads(files, uploads.VEHICLE_UPDATE_FILES.max_bytes)
    try:
        update, rejected = portal.add_vehicle_update(db, storage, vehicle, update_text, incoming, supplier_name)
    except (UploadError, ValueError) as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(update)
    out = SupplierUpdateOut.model_validate(update)
    out.rejected = uploads.rejection_dicts(rejected)
    return out


# ── Notification upload link ─────────────────────────────────────────────────

@router.get("/portal/upload/{token}", response_model=UploadPortalOut,
            summary="Upload link: which certificate is being requested")
def upload_portal(token: str, db: Session = Depends(get_db)):
    try:
        notification = portal.notification_by_token(db, token)
    except portal.PortalNotFound as e:
        raise _not_found(e)
    return {
        "notification_id": notification.id,
        "entity_type": notification.entity_type,
        "certificate_name": notification.certificate_name,
        "expiry_date": notification.expiry_date,
        "status": notification.status,
    }


@router.post("/portal/upload/{token}", response_model=UploadPortalResult, status_code=201)
async def upload_portal_files(
    token: str,
    files: list[UploadFile] = File(...),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
):
    incoming = await read_uploads(files)
    try:
        result = portal.upload_for_notification(db, storage, token, incoming)
    except portal.PortalNotFound as e:
        raise _not_found(e)
    except UploadError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    return result
