from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class School:
    """Domain entity: one registered school (tenant).

    Note: Plain data object, no storage access.
    """

    school_id: str
    school_name: str
    login_handle: str
    password_hash: str
    address: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    created_at: Optional[str] = None
