"""Opaque pagination tokens for the link listing.

A token marks the last row of a page: its ``created_at`` and ``id``, which
together give a total order over links. The pair is JSON encoded and wrapped
in URL-safe base64 so clients never parse it.
"""
import base64
import binascii
import json
from datetime import datetime


def encode_cursor(created_at: datetime, link_id: str) -> str:
    payload = json.dumps({"created_at": created_at.isoformat(), "id": link_id})
    return base64.urlsafe_b64encode(payload.encode()).decode().rstrip("=")


def decode_cursor(token: str) -> tuple[datetime, str]:
    """Returns ``(created_at, id)``; raises ValueError on a malformed token."""
    padded = token + "=" * (-len(token) % 4)
    try:
        data = json.loads(base64.urlsafe_b64decode(padded.encode()))
        created_at = datetime.fromisoformat(data["created_at"])
        link_id = data["id"]
    except (binascii.Error, UnicodeError, TypeError, KeyError, json.JSONDecodeError) as exc:
        raise ValueError("invalid cursor") from exc
    if not isinstance(link_id, str):
        raise ValueError("invalid cursor")
    return created_at, link_id
