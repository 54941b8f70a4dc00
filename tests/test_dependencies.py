# tests/test_dependencies.py
"""Unit tests for the shared router helpers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from dataclasses import replace
from unittest.mock import MagicMock, AsyncMock, patch
from fastapi import HTTPException
from app.dependencies import apply_changes, get_or_404, read_uploads, upload_documents
from app.models.vehicle import Vehicle
from app.schemas.vehicle import VehicleUpdate
from app.services import upload_service as uploads
from app.services.upload_service import UploadError, UploadOutcome


def make_upload(name="mot.pdf", content_type="application/pdf", data=b"%PDF"):
    f = MagicMock()
    f.filename = name
    f.content_type = content_type
    f.read = AsyncMock(return_value=data)
    return f


class TestHelpers:
    def test_get_or_404(self):
        db = MagicMock()
        db.query.return_value.filter.return_value.first.return_value = None
        with pytest.raises(HTTPException) as exc:
            get_or_404(db, Vehicle, 3, "Vehicle")
        assert exc.value.status_code == 404
        assert exc.value.detail == "Vehicle not found"

    def test_apply_changes_only_sent_fields(self):
        vehicle = Vehicle(registration="AB12 CDE", spare_vehicle=True, off_the_road=False)
        applied = apply_changes(vehicle, VehicleUpdate(notes="New tyres"))
        assert applied == {"notes": "New tyres"}
        assert vehicle.spare_vehicle is True
        assert vehicle.registration == "AB12 CDE"


class TestUploads:
    @pytest.mark.asyncio
    async def test_read_uploads(self):
        incoming = await read_uploads([make_upload(), make_upload(name=None, content_type=None)])
        assert incoming[0].file_name == "mot.pdf"
        assert incoming[0].size == 4
        assert incoming[1].file_name == "file"
        assert incoming[1].content_type == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_read_stops_past_the_limit(self):
        class SizedUpload:
            filename = "big.jpg"
            content_type = "image/jpeg"

            def __init__(self, data):
                self.data = data
                self.requested = []

            async def read(self, size=-1):
                self.requested.append(size)
                return self.data if size < 0 else self.data[:size]

        upload = SizedUpload(b"\xff" * 5000)
        incoming = await read_uploads([upload], max_bytes=1024)

        assert upload.requested == [1025]
        assert incoming[0].size == 1025
        _, rejected = uploads.validate_files(incoming, replace(uploads.VEHICLE_DOCUMENTS, max_bytes=1024))
        assert rejected[0].reason.startswith("File size exceeds")

    @pytest.mark.asyncio
    async def test_upload_error_becomes_400(self):
        db = MagicMock()
        with patch("app.dependencies.uploads.upload_and_link",
                   side_effect=UploadError("File size exceeds 10 MB limit for mot.pdf.")):
            with pytest.raises(HTTPException) as exc:
                await upload_documents(db, MagicMock(), [make_upload()], uploads.VEHICLE_DOCUMENTS,
                                       5, "mot", {"vehicle_id": 5}, None)
        assert exc.value.status_code == 400
        db.rollback.assert_called_once()
        db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejections_reported(self):
        db = MagicMock()
        outcome = UploadOutcome(rejected=[uploads.FileRejection("cv.docx", "Invalid file type")])
        with patch("app.dependencies.uploads.upload_and_link", return_value=outcome):
            result = await upload_documents(db, MagicMock(), [make_upload()], uploads.VEHICLE_DOCUMENTS,
                                            5, "mot", {"vehicle_id": 5}, None)
        assert result["uploaded"] == []
        assert result["rejected"] == [{"file_name": "cv.docx", "reason": "Invalid file type"}]
        db.commit.assert_called_once()
