from __future__ import annotations

import io
import threading
from datetime import datetime
from typing import Optional, Sequence

import pytest
from PIL import Image

from src.eduface.eduface.core.enums import FacingMode, Gender
from src.eduface.eduface.core.exceptions import CaptureSourceError
from src.eduface.eduface.matching.model import NO_MATCH, GalleryEntry, MatchResult
from src.eduface.eduface.storage.json_store import JsonFileStore
from src.eduface.eduface.storage.record_store import RecordStore
from src.eduface.eduface.students.model import Student
from src.eduface.eduface.tenants.session import TenantSession


def make_jpeg(width: int = 64, height: int = 48, color=(120, 90, 60)) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), color).save(out, format="JPEG")
    return out.getvalue()


class FakeMatcher:
    """Returns a scripted verdict and records what it was asked."""

    def __init__(self, result: MatchResult = NO_MATCH):
        self.result = result
        self.calls: list[list[GalleryEntry]] = []

    def match(self, captured: bytes, gallery: Sequence[GalleryEntry]) -> MatchResult:
        self.calls.append(list(gallery))
        return self.result


class BlockingMatcher(FakeMatcher):
    """Holds every call until ``release`` is set."""

    def __init__(self, result: MatchResult = NO_MATCH):
        super().__init__(result)
        self.entered = threading.Event()
        self.release = threading.Event()

    def match(self, captured: bytes, gallery: Sequence[GalleryEntry]) -> MatchResult:
        self.calls.append(list(gallery))
        self.entered.set()
        self.release.wait(5)
        return self.result


class FakeCamera:
    def __init__(self, fail_open=False, fail_after=None):
        self.fail_open = fail_open
        self.fail_after = fail_after
        self.opened = []
        self.frames = 0
        self.released = 0

    def open(self, facing):
        if self.fail_open:
            raise CaptureSourceError("permission denied")
        self.opened.append(FacingMode(facing))

    def read_frame(self):
        if self.fail_after is not None and self.frames >= self.fail_after:
            raise CaptureSourceError("device unplugged")
        self.frames += 1
        return make_jpeg()

    def release(self):
        self.released += 1


class FakeBackend:
    def __init__(self, reply: str = "", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: list[list[dict]] = []

    def generate(self, parts, *, response_schema=None):
        self.calls.append(parts)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fixed_now():
    return datetime(2024, 6, 1, 9, 0, 0)


@pytest.fixture
def documents(tmp_path):
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def store(documents):
    return RecordStore(documents, default_due_date="2024-12-31")


@pytest.fixture
def session():
    return TenantSession(tenant_id="school1", school_name="Greenwood", login_handle="admin1")


@pytest.fixture
def jpeg():
    return make_jpeg()


def enroll_student(store, tenant_id, student_id="STU-000001", name="Asha", class_id="1", section="A"):
    student = Student(
        student_id=student_id,
        full_name=name,
        gender=Gender.FEMALE,
        date_of_birth="2015-04-02",
        class_id=class_id,
        section=section,
        father_name="Ravi",
        mother_name="",
        face_reference="data:image/jpeg;base64,QUJD",
        registration_date="2024-06-01",
    )
    store.add_student(tenant_id, student)
    return student
