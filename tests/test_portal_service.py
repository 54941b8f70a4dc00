# tests/test_portal_service.py
"""Unit tests for the token-gated assistant, supplier and upload portals."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from unittest.mock import MagicMock
from app.models.document import Document
from app.models.employee import PassengerAssistant
from app.models.notification import Notification
from app.models.route import RouteSession
from app.models.vehicle import Vehicle
from app.services import portal_service as portal
from app.services.upload_service import IncomingFile, UploadError
from app.utils.file_urls import parse_file_urls


def pdf(name="dbs.pdf"):
    return IncomingFile(file_name=name, content_type="application/pdf", data=b"%PDF-1.4")


def db_returning(obj):
    db = MagicMock()
    db.query.return_value.filter.return_value.first.return_value = obj
    db.query.return_value.options.return_value.filter.return_value.first.return_value = obj
    return db


class TestTokens:
    def test_issue_token_is_unique(self):
        assert portal.issue_token() != portal.issue_token()

    def test_unknown_assistant_token(self):
        with pytest.raises(portal.PortalNotFound, match="Invalid QR token"):
            portal.assistant_by_token(db_returning(None), "nope")

    def test_unknown_vehicle_token(self):
        with pytest.raises(portal.PortalNotFound, match="Vehicle not found with this QR code"):
            portal.vehicle_by_token(db_returning(None), "nope")

    def test_unknown_upload_token(self):
        with pytest.raises(portal.PortalNotFound, match="Invalid or expired upload link"):
            portal.notification_by_token(db_returning(None), "nope")

    def test_blank_token_never_matches(self):
        with pytest.raises(portal.PortalNotFound):
            portal.vehicle_by_token(db_returning(Vehicle(id=1)), "")


class TestSupplierPortal:
    def test_vor_toggle_and_log_text(self):
        vehicle = Vehicle(id=1, off_the_road=False)
        update = portal.set_vehicle_vor(MagicMock(), vehicle, None, "Acme Garage")
        assert vehicle.off_the_road is True
        assert update.update_text == "🚩 Vehicle status changed by Acme Garage: VOR (Vehicle Off Road)"

        update = portal.set_vehicle_vor(MagicMock(), vehicle)
        assert vehicle.off_the_road is False
        assert update.update_text == "🚩 Vehicle status changed: Active"

    def test_explicit_vor_value(self):
        vehicle = Vehicle(id=1, off_the_road=True)
        portal.set_vehicle_vor(MagicMock(), vehicle, True)
        assert vehicle.off_the_road is True

    def test_notes_logged(self):
        vehicle = Vehicle(id=1)
        db = MagicMock()
        update = portal.save_vehicle_notes(db, vehicle, "Brakes checked", "Acme")
        assert vehicle.notes == "Brakes checked"
        assert update.update_text == "📝 Notes updated by Acme: Brakes checked"
        assert update.vehicle_id == 1
        db.add.assert_called_once_with(update)

    def test_empty_update_rejected(self, storage):
        with pytest.raises(ValueError, match="Please enter an update"):
            portal.add_vehicle_update(MagicMock(), storage, Vehicle(id=1), "   ")

    def test_update_with_files(self, storage):
        update, rejected = portal.add_vehicle_update(MagicMock(), storage, Vehicle(id=1), "New tyres fitted",
                                                     [pdf("invoice.pdf")], "Acme")
        assert rejected == []
        assert update.update_text == "📋 Acme: New tyres fitted"
        urls = parse_file_urls(update.file_urls)
        assert len(urls) == 1
        assert "/VEHICLE_DOCUMENTS/vehicles/1/updates/" in urls[0]

    def test_update_keeps_valid_files_next_to_a_bad_one(self, storage):
        bad = IncomingFile(file_name="notes.txt", content_type="text/plain", data=b"hi")
        update, rejected = portal.add_vehicle_update(MagicMock(), storage, Vehicle(id=1), "See attached",
                                                     [pdf(), bad])
        assert len(parse_file_urls(update.file_urls)) == 1
        assert [r.file_name for r in rejected] == ["notes.txt"]

    def test_update_with_only_bad_files_stores_nothing(self, storage):
        bad = IncomingFile(file_name="notes.txt", content_type="text/plain", data=b"hi")
        db = MagicMock()
        with pytest.raises(UploadError, match="notes.txt"):
            portal.add_vehicle_update(db, storage, Vehicle(id=1), "See attached", [bad])
        db.add.assert_not_called()


class TestUploadPortal:
    def test_policy_by_entity_type(self):
        policy, entity_id = portal.notification_policy(Notification(id=5, entity_type="vehicle", entity_id=9))
        assert (policy.bucket, entity_id) == ("VEHICLE_DOCUMENTS", 9)
        policy, entity_id = portal.notification_policy(Notification(id=5, entity_type="driver", entity_id=7))
        assert (policy.bucket, entity_id) == ("EMPLOYEE_DOCUMENTS", 7)
        policy, entity_id = portal.notification_policy(Notification(id=5, entity_type="school", entity_id=2))
        assert (policy.bucket, entity_id) == ("DOCUMENTS", 5)

    def test_upload_resolves_notification(self, storage):
        notification = Notification(id=5, entity_type="driver", entity_id=7, recipient_employee_id=7,
                                    certificate_type="dbs", certificate_name="DBS", status="sent")
        db = db_returning(notification)

        result = portal.upload_for_notification(db, storage, "tok", [pdf()])

        assert result["notification_id"] == 5
        assert len(result["file_urls"]) == 1
        assert result["errors"] == []
        assert result["rejected"] == []
        assert notification.status == "resolved"
        assert notification.resolved_at is not None
        document = db.add.call_args[0][0]
        assert isinstance(document, Document)
        assert document.doc_type == "DBS"
        assert document.employee_id == 7

    def test_upload_without_files(self, storage):
        db = db_returning(Notification(id=5, entity_type="driver", entity_id=7))
        with pytest.raises(UploadError):
            portal.upload_for_notification(db, storage, "tok", [])

    def test_upload_keeps_valid_files_and_reports_bad_ones(self, storage):
        notification = Notification(id=5, entity_type="vehicle", entity_id=9, certificate_name="MOT",
                                    status="sent")
        db = db_returning(notification)
        bad = IncomingFile(file_name="cv.docx", content_type="application/msword", data=b"PK")

        result = portal.upload_for_notification(db, storage, "tok", [pdf("mot.pdf"), bad])

        assert len(result["file_urls"]) == 1
        assert result["rejected"][0]["file_name"] == "cv.docx"
        assert notification.status == "resolved"


class TestAssistantPortal:
    def test_other_assistants_session_is_refused(self):
        assistant = PassengerAssistant(id=2, employee_id=20, qr_token="bob")
        foreign = RouteSession(id=8, route_id=1, passenger_assistant_id=10)
        db = MagicMock()
        db.query.return_value.options.return_value.filter.return_value.first.return_value = assistant
        db.query.return_value.filter.return_value.first.return_value = foreign

        with pytest.raises(ValueError, match="not assigned to you"):
            portal.assistant_session_documents(db, "bob", 8)
