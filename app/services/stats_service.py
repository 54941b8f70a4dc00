# app/services/stats_service.py
"""
Dashboard counters. Each count is its own Result: one failing query is
reported in `errors` and leaves the other counters intact.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.models.employee import Employee
from app.models.incident import Incident
from app.models.notification import SystemActivity
from app.models.passenger import Passenger
from app.models.route import Route
from app.models.school import School
from app.models.vehicle import Vehicle
from app.services.expiry_service import get_expiry_summary
from app.utils.logger import get_logger
from app.utils.result import attempt

logger = get_logger(__name__)


def _count(db: Session, model, *criteria) -> int:
    q = db.query(func.count(model.id))
    if criteria:
        q = q.filter(*criteria)
    return q.scalar() or 0


def count_queries(db: Session, today: Optional[date] = None) -> dict:
    today = today or date.today()
    month_start = datetime(today.year, today.month, 1)
    return {
        "employees": lambda: _count(db, Employee),
        "vehicles": lambda: _count(db, Vehicle),
        "schools": lambda: _count(db, School),
        "routes": lambda: _count(db, Route),
        "passengers": lambda: _count(db, Passenger),
        "open_incidents": lambda: _count(db, Incident, Incident.resolved.is_(False)),
        "incidents_this_month": lambda: _count(db, Incident, Incident.reported_at >= month_start),
        "spare_vehicles": lambda: _count(
            db, Vehicle, Vehicle.spare_vehicle.is_(True),
            or_(Vehicle.off_the_road.is_(None), Vehicle.off_the_road.is_(False)),
        ),
        "vor_vehicles": lambda: _count(db, Vehicle, Vehicle.off_the_road.is_(True)),
        "flagged_employees": lambda: _count(db, Employee, Employee.can_work.is_(False)),
    }


def get_dashboard_stats(db: Session, today: Optional[date] = None) -> dict:
    counts, errors = {}, []
    for name, query in count_queries(db, today).items():
        result = attempt(name, query, db)
        counts[name] = result.unwrap_or(0)
        if not result.ok:
            errors.append(result.error)

    expiry = {}
    for entity_type in ("employees", "vehicles"):
        summary, summary_errors = get_expiry_summary(db, entity_type, today)
        expiry[entity_type] = summary
        errors.extend(summary_errors)

    if errors:
        logger.warning(f"[STATS] Dashboard built with {len(errors)} failed queries")
    return {"counts": counts, "expiry": expiry, "errors": errors}


def recent_activities(db: Session, limit: int = 4) -> list[SystemActivity]:
    return db.query(SystemActivity).order_by(SystemActivity.created_at.desc()).limit(limit).all()


def recent_incidents(db: Session, limit: int = 4) -> list[Incident]:
    return db.query(Incident).order_by(Incident.reported_at.desc()).limit(limit).all()
