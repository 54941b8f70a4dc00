# app/services/route_service.py
"""
Route persistence around route_sequencer.

Every write that touches pickup points goes through _apply_stops so that
route_points.stop_order stays dense and auto-inserted assistant home stops
are persisted with origin=auto-assistant-home. Daily route sessions are
created, started and ended here too. Changes are staged in the caller's
session; routers commit once per request.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from app.models.employee import PassengerAssistant
from app.models.route import Route, RoutePoint, RouteSession
from app.services import route_sequencer as seq
from app.services.audit_service import log_audit
from app.utils.logger import get_logger

logger = get_logger(__name__)

POINT_FIELDS = ("point_name", "address", "latitude", "longitude", "passenger_id",
                "pickup_time_am", "pickup_time_pm")
ROUTE_FIELDS = ("route_number", "school_id", "driver_id", "vehicle_id",
                "am_start_time", "pm_start_time", "days_of_week", "notes")


class RouteNotFound(Exception):
    pass


class SessionStateError(ValueError):
    """A start/end that does not fit the session's current state."""


# ── Conversions ──────────────────────────────────────────────────────────────

def point_to_stop(point: RoutePoint) -> seq.RouteStop:
    return seq.RouteStop(
        id=point.id,
        stop_order=point.stop_order,
        origin=seq.StopOrigin(point.origin or seq.StopOrigin.USER.value),
        **{f: getattr(point, f) for f in POINT_FIELDS},
    )


def payload_to_stop(payload) -> seq.RouteStop:
    """Accepts a RoutePointIn schema or a plain dict."""
    data = payload if isinstance(payload, dict) else payload.model_dump()
    return seq.RouteStop(
        id=data.get("id"),
        origin=seq.StopOrigin(data.get("origin") or seq.StopOrigin.USER.value),
        **{f: data.get(f) for f in POINT_FIELDS},
    )


def stop_to_dict(stop: seq.RouteStop) -> dict:
    data = {f: getattr(stop, f) for f in POINT_FIELDS}
    data.update(id=stop.id, stop_order=stop.stop_order, origin=stop.origin.value)
    return data


def load_assistant(db: Session, assistant_id: Optional[int]) -> Optional[seq.AssistantInfo]:
    if not assistant_id:
        return None
    assistant = (
        db.query(PassengerAssistant)
        .options(joinedload(PassengerAssistant.employee))
        .filter(PassengerAssistant.id == assistant_id)
        .first()
    )
    if not assistant:
        return None
    employee = assistant.employee
    return seq.AssistantInfo(
        assistant_id=assistant.id,
        name=employee.full_name if employee else "",
        home_address=employee.address if employee else None,
        auto_home_stop=assistant.auto_home_stop,
    )


# ── Sequencing ───────────────────────────────────────────────────────────────

def sequence_stops(db: Session, stops: list[seq.RouteStop], assistant_id: Optional[int],
                   am_time: Optional[str], pm_time: Optional[str]) -> list[seq.RouteStop]:
    """The wizard transition: re-derive assistant home stops, then renumber."""
    assistant = load_assistant(db, assistant_id)
    return seq.sync_assistant_stops(stops, assistant, am_time, pm_time)


def _primary_assistant_id(route: Route) -> Optional[int]:
    return route.assistants[0].id if route.assistants else None


def _apply_stops(route: Route, stops: list[seq.RouteStop]):
    """Replace route.points with stops, reusing rows whose id is still present."""
    existing = {p.id: p for p in route.points if p.id is not None}
    points = []
    for stop in seq.drop_unnamed(stops):
        point = existing.pop(stop.id, None) if stop.id else None
        if point is None:
            point = RoutePoint()
        for f in POINT_FIELDS:
            setattr(point, f, getattr(stop, f))
        point.stop_order = stop.stop_order
        point.origin = stop.origin.value
        points.append(point)
    route.points = points


def _resync(db: Session, route: Route, stops: Optional[list[seq.RouteStop]] = None):
    if stops is None:
        stops = [point_to_stop(p) for p in route.points]
    stops = sequence_stops(db, stops, _primary_assistant_id(route),
                           route.am_start_time, route.pm_start_time)
    _apply_stops(route, stops)


def _set_assistants(db: Session, route: Route, assistant_ids: list[int]):
    if not assistant_ids:
        route.assistants = []
        return
    found = db.query(PassengerAssistant).filter(PassengerAssistant.id.in_(assistant_ids)).all()
    by_id = {a.id: a for a in found}
    # keep the caller's order: the first assistant drives the home-stop rule
    route.assistants = [by_id[i] for i in assistant_ids if i in by_id]


# ── Route CRUD ───────────────────────────────────────────────────────────────

def get_route(db: Session, route_id: int) -> Route:
    route = (
        db.query(Route)
        .options(joinedload(Route.points), joinedload(Route.assistants))
        .filter(Route.id == route_id)
        .first()
    )
    if not route:
        raise RouteNotFound(route_id)
    return route


def create_route(db: Session, data, user_id: Optional[int] = None) -> Route:
    route = Route(**{f: getattr(data, f) for f in ROUTE_FIELDS})
    db.add(route)
    _set_assistants(db, route, data.assistant_ids)
    _resync(db, route, [payload_to_stop(p) for p in data.points])
    db.flush()
    log_audit(db, "routes", route.id, "CREATE", user_id)
    logger.info(f"[ROUTE] Created route {route.route_number} with {len(route.points)} points")
    return route


def update_route(db: Session, route: Route, data, user_id: Optional[int] = None) -> Route:
    changes = data.model_dump(exclude_unset=True)
    for f in ROUTE_FIELDS:
        if f in changes:
            setattr(route, f, changes[f])
    if "assistant_ids" in changes:
        _set_assistants(db, route, changes["assistant_ids"] or [])

    stops = None
    if "points" in changes and changes["points"] is not None:
        stops = [payload_to_stop(p) for p in changes["points"]]
    _resync(db, route, stops)
    db.flush()
    log_audit(db, "routes", route.id, "UPDATE", user_id)
    return route


def delete_route(db: Session, route: Route, user_id: Optional[int] = None):
    route_id = route.id
    db.delete(route)
    log_audit(db, "routes", route_id, "DELETE", user_id)


# ── Point operations ─────────────────────────────────────────────────────────

def _index_of(route: Route, point_id: int) -> int:
    for index, point in enumerate(route.points):
        if point.id == point_id:
            return index
    raise RouteNotFound(f"point {point_id}")


def add_point(db: Session, route: Route, payload, user_id: Optional[int] = None) -> Route:
    stops = [point_to_stop(p) for p in route.points]
    stops = seq.add_stop(stops, payload_to_stop(payload))
    _apply_stops(route, stops)
    db.flush()
    log_audit(db, "routes", route.id, "UPDATE", user_id)
    return route


def delete_point(db: Session, route: Route, point_id: int, user_id: Optional[int] = None) -> Route:
    stops = [point_to_stop(p) for p in route.points]
    stops = seq.remove_stop(stops, _index_of(route, point_id))
    _apply_stops(route, stops)
    db.flush()
    log_audit(db, "routes", route.id, "UPDATE", user_id)
    return route


def move_point(db: Session, route: Route, point_id: int, direction: str,
               user_id: Optional[int] = None) -> Route:
    stops = [point_to_stop(p) for p in route.points]
    stops = seq.move_stop(stops, _index_of(route, point_id), direction)
    _apply_stops(route, stops)
    db.flush()
    log_audit(db, "routes", route.id, "UPDATE", user_id)
    return route


# ── Sessions ─────────────────────────────────────────────────────────────────

SESSION_HISTORY_LIMIT = 50


def list_sessions(db: Session, route_id: int, limit: int = SESSION_HISTORY_LIMIT) -> list[RouteSession]:
    return (
        db.query(RouteSession)
        .filter(RouteSession.route_id == route_id)
        .order_by(RouteSession.session_date.desc(), RouteSession.session_type.asc())
        .limit(limit)
        .all()
    )


def get_session(db: Session, route_id: int, session_id: int) -> RouteSession:
    session = (
        db.query(RouteSession)
        .filter(RouteSession.id == session_id, RouteSession.route_id == route_id)
        .first()
    )
    if not session:
        raise RouteNotFound(f"session {session_id}")
    return session


def create_session(db: Session, route: Route, data, user_id: Optional[int] = None) -> RouteSession:
    """
    One AM and one PM session per route per day. Crew defaults to the route's
    driver and the employee behind its first assistant.
    """
    session_date = data.session_date or date.today()
    clash = db.query(RouteSession).filter(
        RouteSession.route_id == route.id,
        RouteSession.session_date == session_date,
        RouteSession.session_type == data.session_type,
    ).first()
    if clash:
        raise SessionStateError(
            f"{data.session_type} session already exists for this route on {session_date.isoformat()}")

    assistant_employee_id = data.passenger_assistant_id
    if assistant_employee_id is None and route.assistants:
        assistant_employee_id = route.assistants[0].employee_id

    session = RouteSession(
        route_id=route.id,
        session_date=session_date,
        session_type=data.session_type,
        driver_id=data.driver_id if data.driver_id is not None else route.driver_id,
        passenger_assistant_id=assistant_employee_id,
        notes=data.notes,
        started_at=datetime.utcnow() if data.start else None,
    )
    db.add(session)
    db.flush()
    log_audit(db, "route_sessions", session.id, "CREATE", user_id)
    logger.info(f"[ROUTE] Session #{session.id} {session.session_type} {session_date} for route #{route.id}")
    return session


def start_session(db: Session, session: RouteSession, user_id: Optional[int] = None) -> RouteSession:
    if session.ended_at is not None:
        raise SessionStateError("Session has already ended")
    if session.started_at is not None:
        raise SessionStateError("Session has already started")
    session.started_at = datetime.utcnow()
    log_audit(db, "route_sessions", session.id, "UPDATE", user_id)
    return session


def end_session(db: Session, session: RouteSession, user_id: Optional[int] = None) -> RouteSession:
    if session.started_at is None:
        raise SessionStateError("Session has not started")
    if session.ended_at is not None:
        raise SessionStateError("Session has already ended")
    session.ended_at = datetime.utcnow()
    log_audit(db, "route_sessions", session.id, "UPDATE", user_id)
    logger.info(f"[ROUTE] Session #{session.id} ended")
    return session
