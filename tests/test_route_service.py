# tests/test_route_service.py
"""Route persistence: stops stay dense and home stops follow the assigned assistant."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pytest
from app.models.audit_log import AuditLog
from app.models.employee import Employee, PassengerAssistant
from app.models.route import RoutePoint
from app.schemas.route import RouteCreate, RoutePointIn, RouteSessionCreate, RouteUpdate
from app.services import route_service


@pytest.fixture
def assistant(db_session):
    employee = Employee(full_name="Mary APA", role="PA", address="1 High St")
    employee.assistant = PassengerAssistant(qr_token="pa-token")
    db_session.add(employee)
    db_session.commit()
    return employee.assistant


def point_names(route):
    return [p.point_name for p in sorted(route.points, key=lambda p: p.stop_order)]


def create(db_session, assistant_ids, **kw):
    data = RouteCreate(
        route_number="R1",
        am_start_time=kw.get("am", "07:30"),
        pm_start_time=kw.get("pm", "15:00"),
        assistant_ids=assistant_ids,
        points=[RoutePointIn(point_name="Stop A"), RoutePointIn(point_name="Stop B"),
                RoutePointIn(point_name="  ")],
    )
    route = route_service.create_route(db_session, data, user_id=None)
    db_session.commit()
    return route


class TestCreateRoute:
    def test_home_stops_inserted_and_unnamed_dropped(self, db_session, assistant):
        route = create(db_session, [assistant.id])

        assert point_names(route) == ["Mary APA (Home)", "Stop A", "Stop B", "Mary APA (Home)"]
        assert [p.stop_order for p in route.points] == [1, 2, 3, 4]
        assert [p.origin for p in route.points] == [
            "auto-assistant-home", "user", "user", "auto-assistant-home"]
        assert db_session.query(AuditLog).filter(AuditLog.table_name == "routes").count() == 1

    def test_no_assistant_no_home_stops(self, db_session):
        route = create(db_session, [])
        assert point_names(route) == ["Stop A", "Stop B"]


class TestUpdateRoute:
    def test_removing_assistant_removes_home_stops(self, db_session, assistant):
        route = create(db_session, [assistant.id])
        route_service.update_route(db_session, route, RouteUpdate(assistant_ids=[]))
        db_session.commit()

        assert point_names(route) == ["Stop A", "Stop B"]
        assert [p.stop_order for p in route.points] == [1, 2]
        assert db_session.query(RoutePoint).count() == 2

    def test_clearing_pm_time_drops_tail(self, db_session, assistant):
        route = create(db_session, [assistant.id])
        route_service.update_route(db_session, route, RouteUpdate(pm_start_time=""))
        db_session.commit()
        assert point_names(route) == ["Mary APA (Home)", "Stop A", "Stop B"]

    def test_replacing_points_keeps_home_stops(self, db_session, assistant):
        route = create(db_session, [assistant.id], pm=None)
        payload = [{"point_name": "Stop C"}, {"point_name": "Stop A"}]
        route_service.update_route(db_session, route, RouteUpdate(points=payload))
        db_session.commit()
        assert point_names(route) == ["Mary APA (Home)", "Stop C", "Stop A"]


class TestPointOperations:
    def test_add_point_before_pm_home(self, db_session, assistant):
        route = create(db_session, [assistant.id])
        route_service.add_point(db_session, route, RoutePointIn(point_name="Stop C"))
        db_session.commit()
        assert point_names(route)[-2:] == ["Stop C", "Mary APA (Home)"]
        assert [p.stop_order for p in route.points] == [1, 2, 3, 4, 5]

    def test_move_and_delete_point(self, db_session):
        route = create(db_session, [])
        stop_b = next(p for p in route.points if p.point_name == "Stop B")

        route_service.move_point(db_session, route, stop_b.id, "up")
        db_session.commit()
        assert point_names(route) == ["Stop B", "Stop A"]

        route_service.delete_point(db_session, route, stop_b.id)
        db_session.commit()
        assert point_names(route) == ["Stop A"]
        assert route.points[0].stop_order == 1

    def test_unknown_point(self, db_session):
        route = create(db_session, [])
        with pytest.raises(route_service.RouteNotFound):
            route_service.delete_point(db_session, route, 9999)

    def test_get_route_missing(self, db_session):
        with pytest.raises(route_service.RouteNotFound):
            route_service.get_route(db_session, 12345)


class TestSessions:
    def test_crew_defaults_from_route(self, db_session, assistant):
        route = create(db_session, [assistant.id])
        route.driver_id = assistant.employee_id
        session = route_service.create_session(db_session, route, RouteSessionCreate(session_type="AM"))
        db_session.commit()

        assert session.session_date == date.today()
        assert session.passenger_assistant_id == assistant.employee_id
        assert session.driver_id == assistant.employee_id
        assert session.started_at is None

    def test_start_and_end_once(self, db_session):
        route = create(db_session, [])
        session = route_service.create_session(db_session, route, RouteSessionCreate(session_type="PM"))

        with pytest.raises(route_service.SessionStateError, match="has not started"):
            route_service.end_session(db_session, session)
        route_service.start_session(db_session, session)
        with pytest.raises(route_service.SessionStateError, match="already started"):
            route_service.start_session(db_session, session)
        route_service.end_session(db_session, session)
        assert session.ended_at >= session.started_at
        with pytest.raises(route_service.SessionStateError, match="already ended"):
            route_service.end_session(db_session, session)

    def test_duplicate_session_type_same_day(self, db_session):
        route = create(db_session, [])
        day = date(2025, 3, 3)
        route_service.create_session(db_session, route, RouteSessionCreate(session_type="AM", session_date=day))
        with pytest.raises(route_service.SessionStateError):
            route_service.create_session(db_session, route,
                                         RouteSessionCreate(session_type="AM", session_date=day))

    def test_session_must_belong_to_route(self, db_session):
        route = create(db_session, [])
        other = route_service.create_route(db_session, RouteCreate(route_number="R2"))
        session = route_service.create_session(db_session, other, RouteSessionCreate(session_type="AM"))
        db_session.commit()
        with pytest.raises(route_service.RouteNotFound):
            route_service.get_session(db_session, route.id, session.id)
