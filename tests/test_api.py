# tests/test_api.py
"""End-to-end router tests against an in-memory SQLite database."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date, datetime, timedelta
from unittest.mock import patch

import requests
from app.models.notification import Notification
from app.models.route import RouteSession
from app.models.user import User

API = "/api/v1"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def create_assistant_employee(client, name="Mary APA"):
    resp = client.post(f"{API}/employees", json={
        "full_name": name,
        "role": "PA",
        "address": "1 High St",
        "personal_email": "mary@example.com",
        "phone_number": "07700 900123",
        "assistant": {"tas_badge_number": "PA-1"},
    })
    assert resp.status_code == 201
    return resp.json()


def start_assistant_session(client, name="Mary APA"):
    """Assistant on a route with a started AM session. Returns (qr_token, session_id)."""
    employee = create_assistant_employee(client, name)
    route = client.post(f"{API}/routes", json={
        "route_number": "R1", "assistant_ids": [employee["assistant"]["id"]],
    }).json()
    resp = client.post(f"{API}/routes/{route['id']}/sessions", json={"session_type": "AM", "start": True})
    assert resp.status_code == 201
    return employee["assistant"]["qr_token"], resp.json()["id"]


class TestEmployees:
    def test_create_with_assistant_profile_issues_qr_token(self, client):
        employee = create_assistant_employee(client)
        assert employee["assistant"]["qr_token"]
        assert employee["can_work"] is True

    def test_invalid_email_rejected(self, client):
        resp = client.post(f"{API}/employees", json={"full_name": "X", "personal_email": "not-an-email"})
        assert resp.status_code == 422

    def test_short_phone_rejected(self, client):
        resp = client.post(f"{API}/employees", json={"full_name": "X", "phone_number": "12345"})
        assert resp.status_code == 422

    def test_missing_employee(self, client):
        assert client.get(f"{API}/employees/999").status_code == 404

    def test_driver_upload_keeps_valid_files(self, client):
        resp = client.post(f"{API}/employees", json={"full_name": "John Smith", "driver": {}})
        employee_id = resp.json()["id"]

        resp = client.post(
            f"{API}/drivers/{employee_id}/documents",
            data={"category": "dbs"},
            files=[("files", ("dbs.pdf", b"%PDF", "application/pdf")),
                   ("files", ("cv.docx", b"PK", DOCX))],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert [d["file_name"] for d in body["uploaded"]] == ["dbs.pdf"]
        assert body["rejected"][0]["file_name"] == "cv.docx"
        assert body["rejected"][0]["reason"].startswith("Invalid file type for cv.docx")

    def test_driver_upload_with_only_bad_files(self, client):
        employee_id = client.post(f"{API}/employees", json={"full_name": "John Smith", "driver": {}}).json()["id"]
        resp = client.post(f"{API}/drivers/{employee_id}/documents", data={"category": "dbs"},
                           files=[("files", ("cv.docx", b"PK", DOCX))])
        assert resp.status_code == 400
        assert "cv.docx" in resp.json()["detail"]


class TestCertificates:
    def test_expired_driver_certificate_listed(self, client):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        client.post(f"{API}/employees", json={
            "full_name": "John Smith",
            "driver": {"tas_badge_number": "TAS123", "tas_badge_expiry_date": yesterday},
        })

        resp = client.get(f"{API}/certificates/expiring", params={"period": "expired"})
        assert resp.status_code == 200
        rows = resp.json()["certificates"]
        assert len(rows) == 1
        assert rows[0]["certificate_type"] == "TAS Badge"
        assert rows[0]["days_remaining"] == -1
        assert rows[0]["entity_name"] == "John Smith"

    def test_bad_period(self, client):
        resp = client.get(f"{API}/certificates/expiring", params={"period": "7-days"})
        assert resp.status_code == 400

    def test_summary(self, client):
        resp = client.get(f"{API}/certificates/summary", params={"entity_type": "vehicles"})
        assert resp.status_code == 200
        assert resp.json()["counts"] == {"expired": 0, "14-days": 0, "30-days": 0}


class TestRoutes:
    def test_sequence_inserts_home_stops(self, client):
        employee = create_assistant_employee(client)
        resp = client.post(f"{API}/routes/sequence", json={
            "assistant_id": employee["assistant"]["id"],
            "am_start_time": "09:00",
            "pm_start_time": "15:00",
            "points": [{"point_name": "School Gate"}],
        })
        assert resp.status_code == 200
        points = resp.json()["points"]
        assert [p["point_name"] for p in points] == [
            "Mary APA (Home)", "School Gate", "Mary APA (Home)"]
        assert [p["origin"] for p in points] == [
            "auto-assistant-home", "user", "auto-assistant-home"]

    def test_create_and_move(self, client):
        resp = client.post(f"{API}/routes", json={
            "route_number": "R7",
            "points": [{"point_name": "A"}, {"point_name": "B"}],
        })
        assert resp.status_code == 201
        route = resp.json()
        b_id = route["points"][1]["id"]

        resp = client.post(f"{API}/routes/{route['id']}/points/{b_id}/move", params={"direction": "up"})
        assert [p["point_name"] for p in resp.json()["points"]] == ["B", "A"]

        resp = client.post(f"{API}/routes/{route['id']}/points/{b_id}/move", params={"direction": "left"})
        assert resp.status_code == 422

    def test_bad_time(self, client):
        resp = client.post(f"{API}/routes", json={"route_number": "R1", "am_start_time": "25:00"})
        assert resp.status_code == 422

    def test_unknown_route(self, client):
        assert client.get(f"{API}/routes/404").status_code == 404


class TestRouteSessions:
    def test_started_session_shows_on_portal_until_ended(self, client):
        token, session_id = start_assistant_session(client)
        portal_view = client.get(f"{API}/portal/assistant/{token}").json()
        assert [s["id"] for s in portal_view["sessions"]] == [session_id]
        route_id = portal_view["sessions"][0]["route_id"]

        resp = client.post(f"{API}/routes/{route_id}/sessions/{session_id}/end")
        assert resp.status_code == 200
        assert resp.json()["ended_at"] is not None
        assert client.get(f"{API}/portal/assistant/{token}").json()["sessions"] == []

        resp = client.post(f"{API}/routes/{route_id}/sessions/{session_id}/start")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Session has already ended"

    def test_start_then_end(self, client):
        vehicle = client.post(f"{API}/vehicles", json={"registration": "AB12 CDE"}).json()
        route = client.post(f"{API}/routes", json={"route_number": "R9", "vehicle_id": vehicle["id"]}).json()
        base = f"{API}/routes/{route['id']}/sessions"

        session = client.post(base, json={"session_type": "PM", "session_date": "2025-03-03"}).json()
        assert session["started_at"] is None

        resp = client.post(f"{base}/{session['id']}/end")
        assert resp.json()["detail"] == "Session has not started"

        assert client.post(f"{base}/{session['id']}/start").json()["started_at"] is not None
        assert client.post(f"{base}/{session['id']}/start").status_code == 400

        resp = client.post(f"{API}/breakdowns/report", json={"route_session_id": session["id"]})
        assert resp.status_code == 201
        assert resp.json()["vehicle_id"] == vehicle["id"]

    def test_one_session_per_type_per_day(self, client):
        route = client.post(f"{API}/routes", json={"route_number": "R2"}).json()
        base = f"{API}/routes/{route['id']}/sessions"
        assert client.post(base, json={"session_type": "AM", "session_date": "2025-03-03"}).status_code == 201
        assert client.post(base, json={"session_type": "PM", "session_date": "2025-03-03"}).status_code == 201

        resp = client.post(base, json={"session_type": "AM", "session_date": "2025-03-03"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "AM session already exists for this route on 2025-03-03"

        assert [s["session_type"] for s in client.get(base).json()] == ["AM", "PM"]
        assert client.post(base, json={"session_type": "XX"}).status_code == 422

    def test_unknown_session_or_route(self, client):
        route = client.post(f"{API}/routes", json={"route_number": "R3"}).json()
        assert client.post(f"{API}/routes/{route['id']}/sessions/999/start").status_code == 404
        assert client.get(f"{API}/routes/999/sessions").status_code == 404


class TestRequirements:
    def test_create_validation(self, client):
        resp = client.post(f"{API}/admin/document-requirements", json={"subject_type": "driver"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "name and subject_type are required"

        resp = client.post(f"{API}/admin/document-requirements",
                           json={"name": "DBS", "subject_type": "driver", "color": "red"})
        assert resp.status_code == 400

    def test_in_use_requirement_cannot_be_deleted(self, client):
        resp = client.post(f"{API}/admin/document-requirements",
                           json={"name": "TAS Badge", "subject_type": "driver", "requires_expiry": True})
        requirement = resp.json()
        assert requirement["code"] == "tas_badge"
        assert requirement["renewal_notice_days"] == 30

        employee = client.post(f"{API}/employees", json={"full_name": "John Smith", "driver": {}}).json()
        resp = client.post(f"{API}/admin/subject-documents", json={
            "requirement_id": requirement["id"], "subject_type": "driver", "subject_id": employee["id"],
        })
        assert resp.status_code == 201

        resp = client.delete(f"{API}/admin/document-requirements/{requirement['id']}")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Cannot delete requirement with existing documents"

        listing = client.get(f"{API}/admin/subject-documents",
                             params={"subject_type": "driver", "subject_id": employee["id"]}).json()
        assert len(listing["requirements"]) == 1
        assert len(listing["documents"]) == 1

    def test_subject_documents_need_both_params(self, client):
        resp = client.get(f"{API}/admin/subject-documents", params={"subject_type": "driver"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "subject_type and subject_id required"

        resp = client.get(f"{API}/admin/subject-documents",
                          params={"subject_type": "driver", "subject_id": "abc"})
        assert resp.json()["detail"] == "Invalid subject_id"


class TestAuditAndNotifications:
    def test_audit_requires_known_user(self, client, db_session):
        body = {"table_name": "vehicles", "record_id": 1, "action": "UPDATE"}
        assert client.post(f"{API}/audit", json=body).status_code == 401

        db_session.add(User(email="admin@example.com", role="admin"))
        db_session.commit()
        resp = client.post(f"{API}/audit", json=body, headers={"X-User-Email": "Admin@Example.com"})
        assert resp.status_code == 201
        assert resp.json()["changed_by"] is not None

    def test_notify_summary_unknown_notification(self, client):
        resp = client.post(f"{API}/admin/notify-summary", json={
            "type": "document_upload", "notification_id": 999,
            "entity_type": "driver", "entity_name": "John", "certificate_name": "DBS",
        })
        assert resp.status_code == 404

    def test_notify_summary_flags_notification(self, client, db_session):
        notification = Notification(entity_type="driver", entity_id=1, certificate_name="DBS")
        db_session.add(notification)
        db_session.commit()

        resp = client.post(f"{API}/admin/notify-summary", json={
            "type": "appointment_booking", "notification_id": notification.id,
            "entity_type": "driver", "entity_name": "John", "certificate_name": "DBS",
            "details": {"slot": "2025-02-01 10:00"},
        })
        assert resp.status_code == 200
        listing = client.get(f"{API}/notifications").json()
        assert listing[0]["employee_response_type"] == "appointment_booked"
        assert listing[0]["admin_response_required"] is True


class TestPortals:
    def test_assistant_portal(self, client, db_session):
        employee = create_assistant_employee(client)
        token = employee["assistant"]["qr_token"]

        resp = client.get(f"{API}/portal/assistant/{token}")
        assert resp.status_code == 200
        assert resp.json()["full_name"] == "Mary APA"

        resp = client.get(f"{API}/portal/assistant/not-a-token")
        assert resp.status_code == 404
        assert resp.json()["detail"].startswith("Invalid QR token")

    def test_assistant_uploads_tr_document(self, client, db_session):
        employee = create_assistant_employee(client)
        token = employee["assistant"]["qr_token"]
        route = client.post(f"{API}/routes", json={"route_number": "R1"}).json()
        session = RouteSession(route_id=route["id"], session_date=date.today(), session_type="AM",
                               passenger_assistant_id=employee["id"], started_at=datetime.utcnow())
        db_session.add(session)
        db_session.commit()

        resp = client.post(
            f"{API}/portal/assistant/{token}/documents",
            data={"route_session_id": str(session.id), "doc_type": "TR1"},
            files=[("files", ("p1.jpg", b"\xff\xd8", "image/jpeg")),
                   ("files", ("p2.jpg", b"\xff\xd8", "image/jpeg"))],
        )
        assert resp.status_code == 201
        assert len(resp.json()["file_urls"]) == 2

        docs = client.get(f"{API}/portal/assistant/{token}/sessions/{session.id}/documents").json()
        assert docs[0]["file_count"] == 2

    def test_assistant_upload_keeps_valid_file_next_to_bad_one(self, client):
        token, session_id = start_assistant_session(client)
        resp = client.post(
            f"{API}/portal/assistant/{token}/documents",
            data={"route_session_id": str(session_id), "doc_type": "TR2"},
            files=[("files", ("ok.pdf", b"%PDF", "application/pdf")),
                   ("files", ("cv.docx", b"PK", DOCX))],
        )
        assert resp.status_code == 201
        body = resp.json()
        assert len(body["file_urls"]) == 1
        assert body["file_name"] == "ok.pdf"
        assert [r["file_name"] for r in body["rejected"]] == ["cv.docx"]

    def test_session_documents_only_for_own_session(self, client):
        mary_token, session_id = start_assistant_session(client)
        client.post(f"{API}/portal/assistant/{mary_token}/documents",
                    data={"route_session_id": str(session_id), "doc_type": "TR1"},
                    files=[("files", ("ok.pdf", b"%PDF", "application/pdf"))])
        bob = create_assistant_employee(client, name="Bob Jones")
        bob_token = bob["assistant"]["qr_token"]

        resp = client.get(f"{API}/portal/assistant/{bob_token}/sessions/{session_id}/documents")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "This route session is not assigned to you"

        docs = client.get(f"{API}/portal/assistant/{mary_token}/sessions/{session_id}/documents").json()
        assert docs[0]["file_name"] == "ok.pdf"

    def test_supplier_portal(self, client):
        vehicle = client.post(f"{API}/vehicles", json={"registration": "AB12 CDE"}).json()
        token = vehicle["qr_token"]

        resp = client.post(f"{API}/portal/supplier/{token}/vor", json={"supplier_name": "Acme"})
        assert resp.json()["vehicle"]["off_the_road"] is True

        resp = client.put(f"{API}/portal/supplier/{token}/notes",
                          json={"notes": "Brakes checked", "supplier_name": "Acme"})
        texts = [u["update_text"] for u in resp.json()["updates"]]
        assert "📝 Notes updated by Acme: Brakes checked" in texts
        assert "🚩 Vehicle status changed by Acme: VOR (Vehicle Off Road)" in texts

        resp = client.post(f"{API}/portal/supplier/{token}/updates",
                           data={"update_text": "Serviced", "supplier_name": "Acme"},
                           files=[("files", ("invoice.pdf", b"%PDF", "application/pdf"))])
        assert resp.status_code == 201
        assert len(resp.json()["file_urls"]) == 1

        assert client.get(f"{API}/portal/supplier/unknown").status_code == 404

    def test_breakdown_requires_session(self, client):
        assert client.post(f"{API}/breakdowns/report", json={}).status_code == 400
        assert client.post(f"{API}/breakdowns/report", json={"route_session_id": 77}).status_code == 404


class TestDashboardAndHealth:
    def test_dashboard_stats(self, client):
        client.post(f"{API}/vehicles", json={"registration": "AB12 CDE", "spare_vehicle": True})
        stats = client.get(f"{API}/dashboard/stats").json()
        assert stats["counts"]["vehicles"] == 1
        assert stats["counts"]["spare_vehicles"] == 1
        assert stats["errors"] == []

    def test_health_reports_unreachable_file_server(self, client):
        with patch("app.routers.health.requests.head",
                   side_effect=requests.exceptions.ConnectionError("refused")):
            resp = client.get(f"{API}/health")
        body = resp.json()
        assert body["database"] == "ok"
        assert body["public_storage"] == "unreachable"
        assert body["status"] == "degraded"
        assert set(body["buckets"].values()) == {"ok"}
