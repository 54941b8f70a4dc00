# app/services/upload_service.py
"""
File upload + metadata linking, shared by every page that accepts files.

    validate  → reject by MIME type / size, keep the valid files
    upload    → write each file to its bucket under the policy's path template
    record    → insert a Document row per file (or one row holding a JSON
                array of URLs when combine=True) and hand it to a link writer

An UploadPolicy decides the bucket, the path template, the allow-list and
the size ceiling. A file refused by type or size is reported in `rejected`
and never stops the batch. on_error only decides what a failed storage
write does: "continue" skips the file, "abort" removes what was already
uploaded and raises UploadError.
"""

import re
import secrets
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.document import Document
from app.services.storage import LocalObjectStorage, StorageError, BucketNotFoundError
from app.utils.file_urls import encode_file_urls
from app.utils.logger import get_logger

logger = get_logger(__name__)

CONTINUE = "continue"
ABORT = "abort"


class UploadError(Exception):
    """A batch was stopped; message is safe to show to the user."""


@dataclass
class IncomingFile:
    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        if "." in self.file_name:
            return self.file_name.rsplit(".", 1)[-1].lower() or "bin"
        return "bin"


@dataclass
class UploadPolicy:
    bucket: str
    path_template: str
    allowed_types: list[str] = field(default_factory=lambda: list(settings.UPLOAD_ALLOWED_TYPES))
    max_bytes: int = settings.UPLOAD_MAX_BYTES
    on_error: str = CONTINUE


@dataclass
class FileRejection:
    file_name: str
    reason: str


@dataclass
class UploadedFile:
    file_name: str
    content_type: str
    path: str
    public_url: str
    size: int


@dataclass
class UploadOutcome:
    uploaded: list[UploadedFile] = field(default_factory=list)
    rejected: list[FileRejection] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    documents: list[Document] = field(default_factory=list)

    @property
    def urls(self) -> list[str]:
        return [u.public_url for u in self.uploaded]


# ── Policies ─────────────────────────────────────────────────────────────────

DRIVER_DOCUMENTS = UploadPolicy(
    bucket="DRIVER_DOCUMENTS",
    path_template="drivers/{entity_id}/{category}_{timestamp}_{index}_{token}.{ext}",
    on_error=ABORT,
)
ASSISTANT_DOCUMENTS = UploadPolicy(
    bucket="DRIVER_DOCUMENTS",
    path_template="assistants/{entity_id}/{category}_{timestamp}_{index}_{token}.{ext}",
    on_error=ABORT,
)
EMPLOYEE_DOCUMENTS = UploadPolicy(
    bucket="EMPLOYEE_DOCUMENTS",
    path_template="employees/{entity_id}/{category}_{timestamp}_{index}_{token}.{ext}",
)
VEHICLE_DOCUMENTS = UploadPolicy(
    bucket="VEHICLE_DOCUMENTS",
    path_template="vehicles/{entity_id}/{category}_{timestamp}_{index}_{token}.{ext}",
)
VEHICLE_UPDATE_FILES = UploadPolicy(
    bucket="VEHICLE_DOCUMENTS",
    path_template="vehicles/{entity_id}/updates/{timestamp}_{index}_{token}.{ext}",
    on_error=ABORT,
)
ROUTE_DOCUMENTS = UploadPolicy(
    bucket="ROUTE_DOCUMENTS",
    path_template="assistants/{entity_id}/{category}_{timestamp}_{index}_{token}.{ext}",
    on_error=ABORT,
)
NOTIFICATION_DOCUMENTS = UploadPolicy(
    bucket="DOCUMENTS",
    path_template="notifications/{entity_id}/{timestamp}_{index}_{token}.{ext}",
    on_error=ABORT,
)


# ── Validation ───────────────────────────────────────────────────────────────

def _limit_label(max_bytes: int) -> str:
    mb = max_bytes / (1024 * 1024)
    return f"{mb:g} MB"


def check_file(file: IncomingFile, policy: UploadPolicy) -> Optional[str]:
    """Reason the file is refused, or None."""
    if file.content_type not in policy.allowed_types:
        return (f"Invalid file type for {file.file_name}. "
                f"Only images (JPEG, PNG, GIF) and PDF files are allowed.")
    if file.size > policy.max_bytes:
        return f"File size exceeds {_limit_label(policy.max_bytes)} limit for {file.file_name}."
    return None


def validate_files(files: list[IncomingFile], policy: UploadPolicy):
    """Split a selection into (accepted, rejections). Rejections never touch accepted files."""
    accepted, rejections = [], []
    for f in files:
        reason = check_file(f, policy)
        if reason:
            rejections.append(FileRejection(file_name=f.file_name, reason=reason))
        else:
            accepted.append(f)
    return accepted, rejections


def describe_storage_error(error: Exception, bucket: str, file_name: str) -> str:
    if isinstance(error, BucketNotFoundError):
        return (f'Storage bucket "{bucket}" not found. '
                f"Create the bucket or run scripts/setup/init_db.py.")
    return f"Upload failed for {file_name}: {error}"


# ── Upload ───────────────────────────────────────────────────────────────────

def _slug(value) -> str:
    return re.sub(r"[^\w\-]+", "_", str(value)).strip("_") or "file"


def build_path(policy: UploadPolicy, file: IncomingFile, entity_id, category: str, index: int) -> str:
    return policy.path_template.format(
        entity_id=entity_id,
        category=_slug(category),
        timestamp=int(time.time() * 1000),
        index=index,
        token=secrets.token_hex(6),
        ext=file.extension,
    )


def upload_files(storage: LocalObjectStorage, files: list[IncomingFile], policy: UploadPolicy,
                 entity_id, category: str = "document") -> UploadOutcome:
    """Upload files that already passed validation."""
    outcome = UploadOutcome()

    for index, f in enumerate(files):
        path = build_path(policy, f, entity_id, category, index)
        try:
            storage.upload(policy.bucket, path, f.data, content_type=f.content_type)
        except StorageError as e:
            message = describe_storage_error(e, policy.bucket, f.file_name)
            logger.error(f"[UPLOAD] {message}")
            if policy.on_error == ABORT:
                rollback_uploads(storage, policy.bucket, outcome.uploaded)
                raise UploadError(message) from e
            outcome.errors.append(message)
            continue

        outcome.uploaded.append(UploadedFile(
            file_name=f.file_name,
            content_type=f.content_type,
            path=path,
            public_url=storage.get_public_url(policy.bucket, path),
            size=f.size,
        ))

    return outcome


def rejection_dicts(rejected: list[FileRejection]) -> list[dict]:
    return [{"file_name": r.file_name, "reason": r.reason} for r in rejected]


def rollback_uploads(storage: LocalObjectStorage, bucket: str, uploaded: list[UploadedFile]):
    if not uploaded:
        return
    try:
        storage.remove(bucket, [u.path for u in uploaded])
    except StorageError as e:
        logger.error(f"[UPLOAD] Cleanup of {len(uploaded)} object(s) in {bucket} failed: {e}")


def upload_and_link(
    db: Session,
    storage: LocalObjectStorage,
    files: list[IncomingFile],
    policy: UploadPolicy,
    *,
    entity_id,
    category: str,
    document_fields: Optional[dict] = None,
    link: Optional[Callable[[Session, Document], None]] = None,
    combine: bool = False,
    uploaded_by: Optional[int] = None,
) -> UploadOutcome:
    """
    Validate, upload and record files. The caller commits the session.
    Rejected files are reported and the accepted ones proceed; only a
    selection with nothing acceptable in it raises.
    """
    if not files:
        raise UploadError("Please select at least one file to upload.")

    accepted, rejected = validate_files(files, policy)
    if not accepted:
        raise UploadError(rejected[0].reason)

    outcome = upload_files(storage, accepted, policy, entity_id, category)
    outcome.rejected = rejected
    if not outcome.uploaded:
        return outcome

    fields = dict(document_fields or {})
    if combine:
        rows = [Document(
            file_name=", ".join(u.file_name for u in outcome.uploaded),
            file_type=outcome.uploaded[0].content_type,
            file_path=outcome.uploaded[0].path,
            file_url=encode_file_urls(outcome.urls),
            doc_type=category,
            uploaded_by=uploaded_by,
            **fields,
        )]
    else:
        rows = [Document(
            file_name=u.file_name,
            file_type=u.content_type,
            file_path=u.path,
            file_url=u.public_url,
            doc_type=category,
            uploaded_by=uploaded_by,
            **fields,
        ) for u in outcome.uploaded]

    try:
        for row in rows:
            db.add(row)
        db.flush()
        if link:
            for row in rows:
                link(db, row)
    except Exception:
        # metadata failed: do not leave orphaned objects behind
        rollback_uploads(storage, policy.bucket, outcome.uploaded)
        raise

    outcome.documents = rows
    logger.info(f"[UPLOAD] {len(outcome.uploaded)} file(s) → {policy.bucket} for {category} #{entity_id}")
    return outcome
