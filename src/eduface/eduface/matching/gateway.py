from __future__ import annotations

import base64
import json
import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_GALLERY_WINDOW, DEFAULT_MATCHER_MODEL, DEFAULT_MATCHER_TIMEOUT
from ..imaging.frames import strip_data_url
from ..students.model import Student
from .client import ProviderError, inline_jpeg
from .model import NO_MATCH, GalleryEntry, GatewayStats, MatchResult

logger = logging.getLogger(__name__)

NEW_SENTINEL = "NEW"

DEFAULT_PROMPT = """
IDENTITY VERIFICATION PROTOCOL:
Target: The first provided image.
Gallery: The subsequent images, each corresponding to a student ID, in the order listed below.

Task: Is the person in the Target image already present in the Gallery?
Look for identical facial structure, eye shape, nose bridge, and bone structure.

Respond with the Student ID of the match if found.
If this is a completely NEW person not seen in the gallery, respond with "NEW".

Gallery IDs and Names for reference:
{gallery_listing}
"""

RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "matchId": {
            "type": "STRING",
            "description": "The exact Student ID from the gallery that matches the target, or 'NEW' if no duplicate is found.",
        },
        "confidence": {
            "type": "NUMBER",
            "description": "Confidence level of the match from 0 to 1.",
        },
    },
    "required": ["matchId"],
}


class IdentityMatcher(Protocol):
    """What the enrollment and attendance workflows need from the matcher."""

    def match(self, captured: bytes, gallery: Sequence[GalleryEntry]) -> MatchResult:
        raise NotImplementedError


class GenerativeBackend(Protocol):
    def generate(self, parts: list[dict], *, response_schema: Optional[dict] = None) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class MatcherConfig:
    """Tunable strategy for the external call.

    ``gallery_window`` bounds payload size and latency; when the population is
    larger, only the most recently enrolled students are considered.
    """

    model: str = DEFAULT_MATCHER_MODEL
    gallery_window: int = DEFAULT_GALLERY_WINDOW
    most_recent_first: bool = False
    prompt_template: str = DEFAULT_PROMPT
    timeout: float = DEFAULT_MATCHER_TIMEOUT
    min_confidence: float = 0.0


def gallery_from_students(students: Iterable[Student]) -> list[GalleryEntry]:
    return [
        GalleryEntry(student_id=s.student_id, name=s.full_name, image=s.face_reference)
        for s in students
        if s.face_reference
    ]


def window_gallery(gallery: Sequence[GalleryEntry], window: int, *, most_recent_first: bool = False) -> list[GalleryEntry]:
    """Keep the last ``window`` entries (insertion order = enrollment order)."""

    if window <= 0:
        return []
    entries = list(gallery)[-window:]
    if most_recent_first:
        entries.reverse()
    return entries


def _as_confidence(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        conf = float(value)
    except (TypeError, ValueError):
        return None
    if conf != conf:
        return None
    return conf


def parse_match_response(text: Optional[str], gallery_ids: Iterable[str], *, min_confidence: float = 0.0) -> MatchResult:
    """Interpret the provider's reply without trusting any field.

    NoMatch on: empty/non-JSON body, non-object JSON, missing or non-string
    ``matchId``, the ``NEW`` sentinel, an id outside the supplied gallery, or a
    confidence below ``min_confidence``.
    """

    if not text or not text.strip():
        return NO_MATCH
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return NO_MATCH
    if not isinstance(data, dict):
        return NO_MATCH

    raw_id = data.get("matchId")
    if not isinstance(raw_id, str):
        return NO_MATCH
    match_id = raw_id.strip()
    if not match_id or match_id.upper() == NEW_SENTINEL:
        return NO_MATCH
    if match_id not in set(gallery_ids):
        return NO_MATCH

    confidence = _as_confidence(data.get("confidence"))
    if confidence is not None and confidence < min_confidence:
        return NO_MATCH

    return MatchResult(student_id=match_id, confidence=confidence)


class MatcherGateway(IdentityMatcher):
    """Wraps the external recognition call behind ``match``.

    ``match`` never raises for provider trouble: every transport, auth,
    quota or parsing failure is logged, counted and turned into NO_MATCH so
    the attendance loop always gets an answer.
    """

    def __init__(self, backend: GenerativeBackend, config: Optional[MatcherConfig] = None):
        self._backend = backend
        self._config = config or MatcherConfig()
        self._stats = GatewayStats()
        self._stats_lock = threading.Lock()

    @property
    def config(self) -> MatcherConfig:
        return self._config

    @property
    def is_configured(self) -> bool:
        return bool(getattr(self._backend, "is_configured", True))

    def stats(self) -> GatewayStats:
        with self._stats_lock:
            return replace(self._stats)

    def build_prompt(self, gallery: Sequence[GalleryEntry]) -> str:
        listing = "\n".join(f"{g.student_id}: {g.name}" for g in gallery)
        return self._config.prompt_template.format(gallery_listing=listing)

    def build_parts(self, captured: bytes, gallery: Sequence[GalleryEntry]) -> list[dict]:
        parts: list[dict] = [{"text": self.build_prompt(gallery)}]
        parts.append(inline_jpeg(base64.b64encode(captured).decode("ascii")))
        parts.extend(inline_jpeg(strip_data_url(g.image)) for g in gallery)
        return parts

    def match(self, captured: bytes, gallery: Sequence[GalleryEntry]) -> MatchResult:
        window = window_gallery(
            gallery,
            self._config.gallery_window,
            most_recent_first=self._config.most_recent_first,
        )
        if not window or not captured:
            return NO_MATCH

        with self._stats_lock:
            self._stats.calls += 1

        try:
            text = self._backend.generate(self.build_parts(captured, window), response_schema=RESPONSE_SCHEMA)
        except ProviderError as e:
            self._record_failure(str(e))
            return NO_MATCH
        except Exception as e:
            # A faulty backend must not take the scanning loop down.
            logger.exception("Unexpected matcher backend failure")
            self._record_failure(f"{type(e).__name__}: {e}")
            return NO_MATCH

        result = parse_match_response(
            text,
            (g.student_id for g in window),
            min_confidence=self._config.min_confidence,
        )
        if result.matched:
            with self._stats_lock:
                self._stats.matches += 1
        return result

    def _record_failure(self, message: str) -> None:
        logger.warning("Identity verification failed: %s", message)
        with self._stats_lock:
            self._stats.failures += 1
            self._stats.last_error = message
