from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GalleryEntry:
    """One known person offered to the external matcher."""

    student_id: str
    name: str
    image: str


@dataclass(frozen=True)
class MatchResult:
    """Either a gallery id (Matched) or no id (NoMatch)."""

    student_id: Optional[str] = None
    confidence: Optional[float] = None

    @property
    def matched(self) -> bool:
        return self.student_id is not None


NO_MATCH = MatchResult()


@dataclass
class GatewayStats:
    calls: int = 0
    matches: int = 0
    failures: int = 0
    last_error: Optional[str] = None
