# app/routers/incidents.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import apply_changes, get_acting_user_id, get_or_404
from app.models.incident import Incident
from app.schemas.incident import IncidentCreate, IncidentOut, IncidentUpdate
from app.services.audit_service import log_audit

router = APIRouter()


@router.get("/incidents", response_model=list[IncidentOut], summary="Incidents, newest first")
def list_incidents(
    resolved: Optional[bool] = None,
    incident_type: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    q = db.query(Incident)
    if resolved is not None:
        q = q.filter(Incident.resolved == resolved)
    if incident_type:
        q = q.filter(Incident.incident_type == incident_type)
    return q.order_by(Incident.reported_at.desc()).limit(limit).all()


@router.post("/incidents", response_model=IncidentOut, status_code=201)
def create_incident(body: IncidentCreate, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    data = body.model_dump()
    data["reported_at"] = data["reported_at"] or datetime.utcnow()
    incident = Incident(**data)
    db.add(incident)
    db.flush()
    log_audit(db, "incidents", incident.id, "CREATE", user_id)
    db.commit()
    db.refresh(incident)
    return incident


@router.get("/incidents/{incident_id}", response_model=IncidentOut)
def get_incident(incident_id: int, db: Session = Depends(get_db)):
    return get_or_404(db, Incident, incident_id, "Incident")


@router.put("/incidents/{incident_id}", response_model=IncidentOut)
def update_incident(incident_id: int, body: IncidentUpdate, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    incident = get_or_404(db, Incident, incident_id, "Incident")
    apply_changes(incident, body)
    log_audit(db, "incidents", incident.id, "UPDATE", user_id)
    db.commit()
    db.refresh(incident)
    return incident


@router.post("/incidents/{incident_id}/toggle-resolved", response_model=IncidentOut,
             summary="Flip an incident between open and resolved")
def toggle_resolved(incident_id: int, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    incident = get_or_404(db, Incident, incident_id, "Incident")
    incident.resolved = not incident.resolved
    log_audit(db, "incidents", incident.id, "UPDATE", user_id)
    db.commit()
    db.refresh(incident)
    return incident


@router.delete("/incidents/{incident_id}")
def delete_incident(incident_id: int, db: Session = Depends(get_db),
                    user_id: Optional[int] = Depends(get_acting_user_id)):
    db.delete(get_or_404(db, Incident, incident_id, "Incident"))
    log_audit(db, "incidents", incident_id, "DELETE", user_id)
    db.commit()
    return {"status": "deleted", "id": incident_id}
