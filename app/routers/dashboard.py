# app/routers/dashboard.py
"""Dashboard counters and recent-activity panels."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.incident import IncidentOut
from app.schemas.notification import SystemActivityOut
from app.services.stats_service import get_dashboard_stats, recent_activities, recent_incidents

router = APIRouter()


@router.get("/dashboard/stats", summary="Fleet counters and certificate expiry counts")
def dashboard_stats(db: Session = Depends(get_db)):
    """
    Returns {"counts": {...}, "expiry": {"employees": {...}, "vehicles": {...}}, "errors": [...]}.
    A failed counter reads 0 and its cause is listed in errors.
    """
    return get_dashboard_stats(db)


@router.get("/dashboard/recent", summary="Latest activities and incidents")
def dashboard_recent(limit: int = 4, db: Session = Depends(get_db)):
    return {
        "activities": [SystemActivityOut.model_validate(a) for a in recent_activities(db, limit)],
        "incidents": [IncidentOut.model_validate(i) for i in recent_incidents(db, limit)],
    }
