# tests/test_crud_api.py
"""Router tests for the plain CRUD resources."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime

from app.models.audit_log import AuditLog
from app.models.document import Document
from app.models.email_summary import EmailSummary
from app.models.user import User

API = "/api/v1"


class TestSchools:
    def test_create_update_delete(self, client, db_session):
        resp = client.post(f"{API}/schools", json={"name": "Hillside Primary", "address": "2 Hill Rd"})
        assert resp.status_code == 201
        school = resp.json()

        resp = client.put(f"{API}/schools/{school['id']}", json={"address": "3 Hill Rd"})
        assert resp.json()["name"] == "Hillside Primary"
        assert resp.json()["address"] == "3 Hill Rd"

        assert client.delete(f"{API}/schools/{school['id']}").json() == {"status": "deleted", "id": school["id"]}
        assert client.get(f"{API}/schools/{school['id']}").status_code == 404

        actions = [a.action for a in db_session.query(AuditLog).filter(AuditLog.table_name == "schools")]
        assert sorted(actions) == ["CREATE", "DELETE", "UPDATE"]

    def test_name_required(self, client):
        assert client.post(f"{API}/schools", json={"address": "Nowhere"}).status_code == 422

    def test_search(self, client):
        client.post(f"{API}/schools", json={"name": "Hillside Primary"})
        client.post(f"{API}/schools", json={"name": "Oak Academy"})
        names = [s["name"] for s in client.get(f"{API}/schools", params={"search": "oak"}).json()]
        assert names == ["Oak Academy"]


class TestPassengers:
    def test_create_with_new_contact(self, client):
        resp = client.post(f"{API}/passengers", json={
            "full_name": "Tom Brown",
            "dob": "2015-06-01",
            "parent_contacts": [{"full_name": "Jane Brown", "relationship": "Mother",
                                 "phone_number": "07700 900456"}],
        })
        assert resp.status_code == 201
        passenger = resp.json()
        assert [c["full_name"] for c in passenger["parent_contacts"]] == ["Jane Brown"]

        contacts = client.get(f"{API}/parent-contacts", params={"search": "jane"}).json()
        assert len(contacts) == 1

    def test_link_and_unlink_existing_contact(self, client):
        contact = client.post(f"{API}/parent-contacts", json={"full_name": "Ann Green"}).json()
        passenger = client.post(f"{API}/passengers", json={"full_name": "Sam Green"}).json()
        assert passenger["parent_contacts"] == []

        path = f"{API}/passengers/{passenger['id']}/parent-contacts/{contact['id']}"
        resp = client.post(path)
        assert [c["id"] for c in resp.json()["parent_contacts"]] == [contact["id"]]

        resp = client.post(path)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Contact already linked to this passenger"

        resp = client.delete(path)
        assert resp.json()["parent_contacts"] == []

        resp = client.delete(path)
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Contact is not linked to this passenger"

    def test_existing_ids_linked_once(self, client):
        contact = client.post(f"{API}/parent-contacts", json={"full_name": "Ann Green"}).json()
        resp = client.post(f"{API}/passengers", json={
            "full_name": "Sam Green", "parent_contact_ids": [contact["id"], contact["id"]],
        })
        assert len(resp.json()["parent_contacts"]) == 1

    def test_bad_contact_email(self, client):
        resp = client.post(f"{API}/parent-contacts", json={"full_name": "X", "email": "nope"})
        assert resp.status_code == 422

    def test_unknown_contact_link(self, client):
        passenger = client.post(f"{API}/passengers", json={"full_name": "Sam Green"}).json()
        resp = client.post(f"{API}/passengers/{passenger['id']}/parent-contacts/999")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Parent contact not found"


class TestIncidentsAndCalls:
    def test_toggle_resolved(self, client):
        resp = client.post(f"{API}/incidents", json={"incident_type": "Late pickup"})
        assert resp.status_code == 201
        incident = resp.json()
        assert incident["resolved"] is False
        assert incident["reported_at"]

        resp = client.post(f"{API}/incidents/{incident['id']}/toggle-resolved")
        assert resp.json()["resolved"] is True
        assert client.get(f"{API}/incidents", params={"resolved": "false"}).json() == []

        resp = client.post(f"{API}/incidents/{incident['id']}/toggle-resolved")
        assert resp.json()["resolved"] is False

    def test_incident_type_required(self, client):
        assert client.post(f"{API}/incidents", json={"description": "?"}).status_code == 422

    def test_call_log(self, client):
        resp = client.post(f"{API}/call-logs", json={"subject": "Pickup time", "caller_name": "Jane"})
        assert resp.status_code == 201
        call = resp.json()
        assert call["status"] == "Open"
        assert call["priority"] == "Medium"
        assert call["call_date"]

        resp = client.put(f"{API}/call-logs/{call['id']}", json={"status": "Closed"})
        assert resp.json()["status"] == "Closed"
        assert resp.json()["subject"] == "Pickup time"

        assert client.post(f"{API}/call-logs", json={"caller_name": "Jane"}).status_code == 422


class TestEmailSummaries:
    def test_acknowledge_actioned(self, client, db_session):
        db_session.add(User(email="admin@example.com", role="admin"))
        summary = EmailSummary(sender_name="School office", email_subject="Route change",
                               received_at=datetime(2025, 1, 10, 9, 0))
        db_session.add(summary)
        db_session.commit()

        resp = client.post(f"{API}/email-summaries/{summary.id}/acknowledge",
                           json={"status": "actioned", "action_notes": "Route updated"},
                           headers={"X-User-Email": "admin@example.com"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "actioned"
        assert body["action_taken"] is True
        assert body["reviewed_by"] is not None
        assert body["reviewed_at"]

    def test_reviewed_is_not_actioned(self, client, db_session):
        summary = EmailSummary(sender_name="Parent", received_at=datetime(2025, 1, 10))
        db_session.add(summary)
        db_session.commit()

        body = client.post(f"{API}/email-summaries/{summary.id}/acknowledge", json={}).json()
        assert body["status"] == "reviewed"
        assert body["action_taken"] is False

    def test_bad_status(self, client, db_session):
        summary = EmailSummary(sender_name="Parent")
        db_session.add(summary)
        db_session.commit()
        resp = client.post(f"{API}/email-summaries/{summary.id}/acknowledge", json={"status": "done"})
        assert resp.status_code == 422

    def test_listing_newest_first(self, client, db_session):
        db_session.add_all([
            EmailSummary(email_subject="older", received_at=datetime(2025, 1, 1)),
            EmailSummary(email_subject="newer", received_at=datetime(2025, 1, 2)),
        ])
        db_session.commit()
        subjects = [s["email_subject"] for s in client.get(f"{API}/email-summaries").json()]
        assert subjects == ["newer", "older"]


class TestDocuments:
    def test_file_urls_from_either_shape(self, client, db_session):
        db_session.add_all([
            Document(owner_type="vehicle", file_name="mot.pdf", doc_type="mot",
                     file_url="http://files.test/storage/vehicle-documents/mot.pdf",
                     uploaded_at=datetime(2025, 1, 1)),
            Document(owner_type="passenger_assistant", file_name="TR1", doc_type="TR1",
                     file_url='["http://files.test/a.jpg", "http://files.test/b.jpg"]',
                     uploaded_at=datetime(2025, 1, 2)),
        ])
        db_session.commit()

        docs = client.get(f"{API}/documents").json()
        assert [len(d["file_urls"]) for d in docs] == [2, 1]

        docs = client.get(f"{API}/documents", params={"doc_type": "mot"}).json()
        assert docs[0]["file_urls"] == ["http://files.test/storage/vehicle-documents/mot.pdf"]

    def test_missing_document(self, client):
        assert client.get(f"{API}/documents/42").status_code == 404
