# app/routers/certificates.py
"""Certificate expiry report: expired / expiring in 14 or 30 days."""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.certificate import ExpiryReport, ExpirySummary
from app.services.expiry_service import (
    ENTITY_TYPES, PERIODS, get_expiring_certificates, get_expiry_summary,
)

router = APIRouter()


def _check_entity_type(entity_type: str):
    if entity_type not in ENTITY_TYPES:
        raise HTTPException(status_code=400,
                            detail=f"entity_type must be one of {', '.join(ENTITY_TYPES)}")


@router.get("/certificates/expiring", response_model=ExpiryReport, summary="Certificates in one expiry window")
def expiring_certificates(
    period: str = Query("expired", description="expired | 14-days | 30-days"),
    entity_type: str = Query("employees", description="employees | vehicles"),
    db: Session = Depends(get_db),
):
    """Rows sorted by days remaining. Query failures are listed in `errors`."""
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(PERIODS)}")
    _check_entity_type(entity_type)
    rows, errors = get_expiring_certificates(db, period, entity_type)
    return {
        "period": period,
        "entity_type": entity_type,
        "certificates": [r.to_dict() for r in rows],
        "errors": errors,
    }


@router.get("/certificates/summary", response_model=ExpirySummary, summary="Counts per expiry window")
def expiry_summary(entity_type: str = "employees", db: Session = Depends(get_db)):
    _check_entity_type(entity_type)
    counts, errors = get_expiry_summary(db, entity_type)
    return {"entity_type": entity_type, "counts": counts, "errors": errors}
