# app/routers/routes.py
"""Routes, their ordered pickup points and daily sessions."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.dependencies import get_acting_user_id
from app.models.route import Route
from app.schemas.route import (
    RouteCreate, RouteOut, RouteUpdate, RoutePointIn, RouteSessionCreate, RouteSessionOut,
    SequenceRequest, SequenceResponse,
)
from app.services import route_sequencer as seq
from app.services import route_service
from app.services.route_service import RouteNotFound, SessionStateError

router = APIRouter()


def _load(db: Session, route_id: int) -> Route:
    try:
        return route_service.get_route(db, route_id)
    except RouteNotFound:
        raise HTTPException(status_code=404, detail="Route not found")


@router.post("/routes/sequence", response_model=SequenceResponse, summary="Re-derive stops for the route wizard")
def sequence(body: SequenceRequest, db: Session = Depends(get_db)):
    """
    Stateless: applies the assistant home-stop rule to the submitted stops and
    renumbers them. Nothing is saved.
    """
    stops = [route_service.payload_to_stop(p) for p in body.points]
    stops = route_service.sequence_stops(db, stops, body.assistant_id,
                                         body.am_start_time, body.pm_start_time)
    if body.drop_unnamed:
        stops = seq.drop_unnamed(stops)
    return {"points": [route_service.stop_to_dict(s) for s in stops]}


@router.get("/routes", response_model=list[RouteOut], summary="List routes")
def list_routes(
    search: Optional[str] = None,
    school_id: Optional[int] = None,
    limit: int = 200,
    db: Session = Depends(get_db),
):
    q = db.query(Route)
    if search:
        q = q.filter(Route.route_number.ilike(f"%{search}%"))
    if school_id:
        q = q.filter(Route.school_id == school_id)
    return [RouteOut.from_route(r) for r in q.order_by(Route.route_number).limit(limit).all()]


@router.post("/routes", response_model=RouteOut, status_code=201, summary="Create a route with its stops")
def create_route(body: RouteCreate, db: Session = Depends(get_db),
                 user_id: Optional[int] = Depends(get_acting_user_id)):
    route = route_service.create_route(db, body, user_id)
    db.commit()
    db.refresh(route)
    return RouteOut.from_route(route)


@router.get("/routes/{route_id}", response_model=RouteOut)
def get_route(route_id: int, db: Session = Depends(get_db)):
    return RouteOut.from_route(_load(db, route_id))


@router.put("/routes/{route_id}", response_model=RouteOut, summary="Update a route; home stops re-derived")
def update_route(route_id: int, body: RouteUpdate, db: Session = Depends(get_db),
                 user_id: Optional[int] = Depends(get_acting_user_id)):
    route = route_service.update_route(db, _load(db, route_id), body, user_id)
    db.commit()
    db.refresh(route)
    return RouteOut.from_route(route)


@router.delete("/routes/{route_id}")
def delete_route(route_id: int, db: Session = Depends(get_db),
                 user_id: Optional[int] = Depends(get_acting_user_id)):
    route_service.delete_route(db, _load(db, route_id), user_id)
    db.commit()
    return {"status": "deleted", "id": route_id}


@router.post("/routes/{route_id}/points", response_model=RouteOut, summary="Add a pickup point")
def add_point(route_id: int, body: RoutePointIn, db: Session = Depends(get_db),
              user_id: Optional[int] = Depends(get_acting_user_id)):
    if not body.point_name.strip():
        raise HTTPException(status_code=400, detail="point_name is required")
    route = route_service.add_point(db, _load(db, route_id), body, user_id)
    db.commit()
    db.refresh(route)
    return RouteOut.from_route(route)


@router.delete("/routes/{route_id}/points/{point_id}", response_model=RouteOut)
def delete_point(route_id: int, point_id: int, db: Session = Depends(get_db),
                 user_id: Optional[int] = Depends(get_acting_user_id)):
    try:
        route = route_service.delete_point(db, _load(db, route_id), point_id, user_id)
    except RouteNotFound:
        raise HTTPException(status_code=404, detail="Point not found on this route")
    db.commit()
    db.refresh(route)
    return RouteOut.from_route(route)


@router.post("/routes/{route_id}/points/{point_id}/move", response_model=RouteOut,
             summary="Move a pickup point one place up or down")
def move_point(route_id: int, point_id: int,
               direction: str = Query(..., pattern="^(up|down)$"),
               db: Session = Depends(get_db),
               user_id: Optional[int] = Depends(get_acting_user_id)):
    try:
        route = route_service.move_point(db, _load(db, route_id), point_id, direction, user_id)
    except RouteNotFound:
        raise HTTPException(status_code=404, detail="Point not found on this route")
    db.commit()
    db.refresh(route)
    return RouteOut.from_route(route)


# ── Sessions ─────────────────────────────────────────────────────────────────

def _load_session(db: Session, route_id: int, session_id: int):
    try:
        return route_service.get_session(db, route_id, session_id)
    except RouteNotFound:
        raise HTTPException(status_code=404, detail="Session not found on this route")


@router.get("/routes/{route_id}/sessions", response_model=list[RouteSessionOut],
            summary="Session history, newest first")
def list_sessions(route_id: int, db: Session = Depends(get_db)):
    _load(db, route_id)
    return route_service.list_sessions(db, route_id)


@router.post("/routes/{route_id}/sessions", response_model=RouteSessionOut, status_code=201,
             summary="Create an AM or PM session, optionally started now")
def create_session(route_id: int, body: RouteSessionCreate, db: Session = Depends(get_db),
                   user_id: Optional[int] = Depends(get_acting_user_id)):
    try:
        session = route_service.create_session(db, _load(db, route_id), body, user_id)
    except SessionStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(session)
    return session


@router.post("/routes/{route_id}/sessions/{session_id}/start", response_model=RouteSessionOut)
def start_session(route_id: int, session_id: int, db: Session = Depends(get_db),
                  user_id: Optional[int] = Depends(get_acting_user_id)):
    session = _load_session(db, route_id, session_id)
    try:
        route_service.start_session(db, session, user_id)
    except SessionStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(session)
    return session


@router.post("/routes/{route_id}/sessions/{session_id}/end", response_model=RouteSessionOut)
def end_session(route_id: int, session_id: int, db: Session = Depends(get_db),
                user_id: Optional[int] = Depends(get_acting_user_id)):
    session = _load_session(db, route_id, session_id)
    try:
        route_service.end_session(db, session, user_id)
    except SessionStateError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(session)
    return session
