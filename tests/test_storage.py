# tests/test_storage.py
"""Unit tests for bucket-per-directory object storage and the file-url helpers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from app.services.storage import BucketNotFoundError, LocalObjectStorage, StorageError
from app.utils.file_urls import encode_file_urls, parse_file_urls


@pytest.fixture
def store(tmp_path):
    s = LocalObjectStorage(str(tmp_path), "http://files.test/storage/")
    s.create_bucket("DOCUMENTS")
    return s


class TestLocalObjectStorage:
    def test_upload_and_public_url(self, store):
        path = store.upload("DOCUMENTS", "notifications/1/a.pdf", b"%PDF", "application/pdf")
        assert store.exists("DOCUMENTS", path)
        assert store.get_public_url("DOCUMENTS", path) == \
            "http://files.test/storage/DOCUMENTS/notifications/1/a.pdf"

    def test_missing_bucket(self, store):
        with pytest.raises(BucketNotFoundError) as exc:
            store.upload("ROUTE_DOCUMENTS", "x.pdf", b"data")
        assert str(exc.value) == "Bucket not found: ROUTE_DOCUMENTS"

    def test_no_overwrite_without_upsert(self, store):
        store.upload("DOCUMENTS", "a.png", b"1")
        with pytest.raises(StorageError):
            store.upload("DOCUMENTS", "a.png", b"2")
        store.upload("DOCUMENTS", "a.png", b"2", upsert=True)

    def test_path_cannot_escape_bucket(self, store):
        with pytest.raises(StorageError):
            store.upload("DOCUMENTS", "../outside.png", b"1")

    def test_invalid_bucket_name(self, store):
        with pytest.raises(StorageError):
            store.bucket_exists("../etc")

    def test_remove_ignores_missing(self, store):
        store.upload("DOCUMENTS", "a.png", b"1")
        assert store.remove("DOCUMENTS", ["a.png", "never-uploaded.png"]) == 1
        assert not store.exists("DOCUMENTS", "a.png")

    def test_ensure_buckets(self, store):
        store.ensure_buckets(["DOCUMENTS", "VEHICLE_DOCUMENTS"])
        assert store.bucket_exists("VEHICLE_DOCUMENTS")


class TestFileUrls:
    @pytest.mark.parametrize("stored,expected", [
        (None, []),
        ("", []),
        ("http://x/a.pdf", ["http://x/a.pdf"]),
        ('["http://x/a.pdf", "http://x/b.png"]', ["http://x/a.pdf", "http://x/b.png"]),
        ('"http://x/a.pdf"', ["http://x/a.pdf"]),
        ("[not json", ["[not json"]),
        ('{"url": "http://x/a.pdf"}', ['{"url": "http://x/a.pdf"}']),
        (["http://x/a.pdf", None], ["http://x/a.pdf"]),
    ])
    def test_parse_both_shapes(self, stored, expected):
        assert parse_file_urls(stored) == expected

    def test_encode(self):
        assert encode_file_urls([]) is None
        assert parse_file_urls(encode_file_urls(["http://x/a.pdf"])) == ["http://x/a.pdf"]
