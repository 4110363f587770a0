"""Opaque cursor helpers: Base64-encoded JSON objects."""

import base64
import binascii
import json
from typing import Any


def cursor_encode(payload: dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> dict[str, Any] | None:
    """Decode a cursor, or None when absent or malformed (first page)."""
    if cursor is None:
        return None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None
