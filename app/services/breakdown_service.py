# app/services/breakdown_service.py
"""
Vehicle breakdown reports from a running route session.
Records the breakdown against the session's route vehicle and raises a
pending notification so the office can arrange a replacement.
"""

from typing import Optional

from sqlalchemy.orm import Session

from app.models.breakdown import VehicleBreakdown
from app.models.notification import Notification
from app.models.route import Route, RouteSession
from app.utils.logger import get_logger

logger = get_logger(__name__)


class SessionNotFound(Exception):
    pass


def report_vehicle_breakdown(db: Session, route_session_id: int,
                             description: Optional[str] = None,
                             location: Optional[str] = None) -> VehicleBreakdown:
    session = db.query(RouteSession).filter(RouteSession.id == route_session_id).first()
    if not session:
        raise SessionNotFound(route_session_id)

    route = db.query(Route).filter(Route.id == session.route_id).first()
    vehicle_id = route.vehicle_id if route else None

    breakdown = VehicleBreakdown(
        route_session_id=session.id,
        vehicle_id=vehicle_id,
        description=description or None,
        location=location or None,
        status="reported",
    )
    db.add(breakdown)

    db.add(Notification(
        notification_type="vehicle_breakdown",
        entity_type="vehicle" if vehicle_id else "route",
        entity_id=vehicle_id or session.route_id,
        certificate_name="Vehicle breakdown",
        status="pending",
        admin_response_required=True,
    ))
    db.flush()

    logger.warning(f"[BREAKDOWN] Session #{session.id} route #{session.route_id} "
                   f"vehicle={vehicle_id} at {location or 'unknown location'}")
    return breakdown
