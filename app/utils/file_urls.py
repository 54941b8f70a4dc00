# app/utils/file_urls.py
"""
Helpers for the documents.file_url / vehicle_updates.file_urls columns.
Legacy rows hold either a single URL or a JSON-encoded array of URLs.
"""

import json
from typing import Any, Optional


def parse_file_urls(value: Any) -> list[str]:
    """Return the URLs stored in a file-url column. Never raises."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v]
    if not isinstance(value, str):
        return [str(value)]

    stripped = value.strip()
    if not stripped:
        return []
    try:
        parsed = json.loads(stripped)
    except (json.JSONDecodeError, ValueError):
        return [stripped]

    if isinstance(parsed, list):
        return [str(v) for v in parsed if v]
    if isinstance(parsed, str):
        return [parsed] if parsed else []
    return [stripped]


def encode_file_urls(urls: list[str]) -> Optional[str]:
    """Encode a list of URLs as a JSON array string, or None when empty."""
    return json.dumps(list(urls)) if urls else None
