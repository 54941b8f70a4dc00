# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + DB + object storage buckets + public file URL.
"""

import requests
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from app.database import get_db
from app.config import settings
from app.services.storage import LocalObjectStorage, StorageError, get_storage
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db), storage: LocalObjectStorage = Depends(get_storage)):
    """
    Returns:
    - Backend status
    - Database connectivity
    - Whether each storage bucket exists
    - Reachability of STORAGE_PUBLIC_URL (where uploaded files are served from)
    """
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
        "buckets": {},
        "public_storage": "unknown",
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {str(e)}"
        result["status"] = "degraded"

    # Buckets
    for bucket in settings.BUCKETS:
        try:
            result["buckets"][bucket] = "ok" if storage.bucket_exists(bucket) else "missing"
        except StorageError as e:
            result["buckets"][bucket] = f"error: {str(e)}"
        if result["buckets"][bucket] != "ok":
            result["status"] = "degraded"

    # Public file server
    try:
        resp = requests.head(settings.STORAGE_PUBLIC_URL, timeout=3)
        result["public_storage"] = "ok" if resp.status_code < 500 else f"http_{resp.status_code}"
    except requests.exceptions.ConnectionError:
        result["public_storage"] = "unreachable"
        result["status"] = "degraded"
    except requests.exceptions.RequestException as e:
        result["public_storage"] = f"error: {str(e)}"

    return result
