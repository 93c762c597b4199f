from __future__ import annotations

import secrets
import string
import time

from ..core.constants import RECEIPT_PREFIX, STUDENT_ID_PREFIX

_ALPHABET = string.ascii_lowercase + string.digits


def new_id(length: int = 9) -> str:
    """Opaque random identifier for stored records."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def new_student_id() -> str:
    return STUDENT_ID_PREFIX + new_id(6).upper()


def new_receipt_number(now_ms: int | None = None) -> str:
    """Receipt number: fixed prefix plus the last six digits of the millisecond clock."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{RECEIPT_PREFIX}{str(now_ms)[-6:]}"
