# app/utils/result.py
"""
Result wrapper for data-access calls whose failure the caller may choose to
surface or suppress (dashboard counters, expiry collection).
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from sqlalchemy.orm import Session

from app.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "Result[T]":
        return cls(ok=False, error=error)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default


def attempt(label: str, fn: Callable[[], Any], db: Optional[Session] = None) -> Result:
    """
    Run fn() and wrap its return value. Exceptions are logged and captured.
    With db given, fn runs inside a SAVEPOINT: a failed statement is rolled
    back on its own and the session stays usable for the next query.
    """
    try:
        if db is None:
            return Result.success(fn())
        with db.begin_nested():
            return Result.success(fn())
    except Exception as e:
        logger.error(f"{label} failed: {e}", exc_info=True)
        return Result.failure(f"{label}: {e}")
