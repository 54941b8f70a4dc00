# app/routers/vehicles.py
"""Fleet vehicles: CRUD, certificate uploads and the update log."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import apply_changes, get_acting_user_id, get_or_404, upload_documents
from app.models.vehicle import Vehicle, VehicleUpdate
from app.schemas.document import UploadResult
from app.schemas.vehicle import VehicleCreate, VehicleOut, VehicleUpdate as VehicleUpdateIn, VehicleUpdateOut
from app.services import upload_service as uploads
from app.services.audit_service import log_audit
from app.services.portal_service import issue_token
from app.services.storage import LocalObjectStorage, get_storage

router = APIRouter()


@router.get("/vehicles", response_model=list[VehicleOut], summary="List vehicles")
def list_vehicles(
    search: Optional[str] = None,
    off_the_road: Optional[bool] = None,
    spare_vehicle: Optional[bool] = None,
    limit: int = 200,
    db: Session = Depends(get_db),
):
    q = db.query(Vehicle)
    if search:
        pattern = f"%{search}%"
        q = q.filter(or_(Vehicle.registration.ilike(pattern),
                         Vehicle.vehicle_identifier.ilike(pattern),
                         Vehicle.make.ilike(pattern),
                         Vehicle.model.ilike(pattern)))
    if off_the_road is not None:
        q = q.filter(Vehicle.off_the_road == off_the_road)
    if spare_vehicle is not None:
        q = q.filter(Vehicle.spare_vehicle == spare_vehicle)
    return q.order_by(Vehicle.vehicle_identifier).limit(limit).all()


@router.post("/vehicles", response_model=VehicleOut, status_code=201,
             summary="Register a vehicle (issues a supplier QR token)")
def create_vehicle(body: VehicleCreate, db: Session = Depends(get_db),
                   user_id: Optional[int] = Depends(get_acting_user_id)):
    vehicle = Vehicle(**body.model_dump(), qr_token=issue_token())
    db.add(vehicle)
    db.flush()
    log_audit(db, "vehicles", vehicle.id, "CREATE", user_id)
    db.commit()
    db.refresh(vehicle)
    return vehicle


@router.get("/vehicles/{vehicle_id}", response_model=VehicleOut)
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Vehicle, vehicle_id, "Vehicle")


@router.put("/vehicles/{vehicle_id}", response_model=VehicleOut)
def update_vehicle(vehicle_id: int, body: VehicleUpdateIn, db: Session = Depends(get_db),
                   user_id: Optional[int] = Depends(get_acting_user_id)):
    vehicle = get_or_404(db, Vehicle, vehicle_id, "Vehicle")
    apply_changes(vehicle, body)
    log_audit(db, "vehicles", vehicle.id, "UPDATE", user_id)
    db.commit()
    db.refresh(vehicle)
    return vehicle


@router.delete("/vehicles/{vehicle_id}")
def delete_vehicle(vehicle_id: int, db: Session = Depends(get_db),
                   user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(get_or_404(db, Vehicle, vehicle_id, "Vehicle"))
    log_audit(db, "vehicles", vehicle_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "id": vehicle_id}


@router.get("/vehicles/{vehicle_id}/updates", response_model=list[VehicleUpdateOut],
            summary="Vehicle update log, newest first")
def list_vehicle_updates(vehicle_id: int, limit: int = 50, db: Session = Depends(get_db)):
    get_or_404(db, Vehicle, vehicle_id, "Vehicle")
    return (
        db.query(VehicleUpdate)
        .filter(VehicleUpdate.vehicle_id == vehicle_id)
        .order_by(VehicleUpdate.created_at.desc())
        .limit(limit)
        .all()
    )


@router.post("/vehicles/{vehicle_id}/documents", response_model=UploadResult,
             summary="Upload vehicle certificate files")
async def upload_vehicle_documents(
    vehicle_id: int,
    files: list[UploadFile] = File(...),
    category: str = Form("document"),
    db: Session = Depends(get_db),
    storage: LocalObjectStorage = Depends(get_storage),
    user_id: Optional[int] = Depends(get_acting_user_id),
):
    """Invalid files are reported in `rejected`; the valid ones are still stored."""
    get_or_404(db, Vehicle, vehicle_id, "Vehicle")
    return await upload_documents(db, storage, files, uploads.VEHICLE_DOCUMENTS, vehicle_id, category,
                                  {"owner_type": "vehicle", "vehicle_id": vehicle_id}, user_id)
