# app/routers/breakdowns.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.portal import BreakdownIn, BreakdownOut
from app.services.breakdown_service import SessionNotFound, report_vehicle_breakdown

router = APIRouter()


@router.post("/breakdowns/report", response_model=BreakdownOut, status_code=201,
             summary="Report a vehicle breakdown for a route session")
def report_breakdown(body: BreakdownIn, db: Session = Depends(get_db)):
    if not body.route_session_id:
        raise HTTPException(status_code=400, detail="route_session_id is required")
    try:
        breakdown = report_vehicle_breakdown(db, body.route_session_id, body.description, body.location)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Route session not found")
    db.commit()
    db.refresh(breakdown)
    return breakdown
