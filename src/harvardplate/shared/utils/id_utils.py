from __future__ import annotations
import uuid
from typing import Optional


def new_id() -> str:
    """
    Generate an opaque random identifier for stored records and generated recipes.
    """
    return str(uuid.uuid4())


def parse_telegram_id(value: object) -> Optional[int]:
    """
    Return `value` as a positive integer Telegram id, or None when it is not one.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        num = int(value.strip())
        return num if num > 0 else None
    return None
