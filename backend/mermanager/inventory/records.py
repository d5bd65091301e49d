"""
Write payloads for the listing collection.

Every writer (the editor and the HTTP routes) builds its create and update
payloads here, so timestamps and required fields are stamped one way.
"""

import time
from typing import Any, Dict, Optional

from mermanager.errors import StoreError


def now_ms() -> int:
    return int(time.time() * 1000)


def check_title(data: Dict[str, Any], required: bool) -> None:
    if "title" not in data and not required:
        return
    if not (data.get("title") or "").strip():
        raise StoreError("Title is required")


def new_record(fields: Dict[str, Any], owner_id: str, timestamp: Optional[int] = None) -> Dict[str, Any]:
    check_title(fields, required=True)
    timestamp = timestamp if timestamp is not None else now_ms()
    return {**fields, "owner_id": owner_id, "created_at": timestamp, "updated_at": timestamp}


def edited_record(changes: Dict[str, Any], base_updated_at: int, timestamp: Optional[int] = None) -> Dict[str, Any]:
    # updated_at never moves backwards, even with a skewed clock
    check_title(changes, required=False)
    timestamp = timestamp if timestamp is not None else now_ms()
    return {**changes, "updated_at": max(timestamp, base_updated_at)}
