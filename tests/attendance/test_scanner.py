from __future__ import annotations

import time

import pytest

from conftest import BlockingMatcher, FakeCamera, FakeMatcher, enroll_student

from src.eduface.eduface.attendance.scanner import AttendanceScanner
from src.eduface.eduface.attendance.service import AttendanceService
from src.eduface.eduface.core.enums import FacingMode, ScannerState
from src.eduface.eduface.core.exceptions import CaptureSourceError, CollisionError, ValidationError
from src.eduface.eduface.matching.model import MatchResult
from src.eduface.eduface.tenants.session import TenantSession


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def _scanner(store, matcher, camera):
    service = AttendanceService(store, matcher, clock=lambda: "2024-06-01")
    return AttendanceScanner(service, lambda: camera, match_dwell=0.05, retry_delay=0.01)


def test_scanner_marks_recognised_student(store, session):
    enroll_student(store, session.tenant_id)
    camera = FakeCamera()
    scanner = _scanner(store, FakeMatcher(MatchResult(student_id="STU-000001", confidence=0.9)), camera)

    scanner.start(session)
    try:
        assert _wait_for(lambda: scanner.status(session).recent)
        status = scanner.status(session)
        assert status.recent[0].student_name == "Asha"
    finally:
        scanner.stop(session)

    assert scanner.wait_stopped(2)
    assert len(store.load(session.tenant_id).attendance) == 1
    assert scanner.status(session).state is ScannerState.STOPPED
    assert camera.released >= 1


def test_stop_while_matcher_in_flight_drops_the_response(store, session):
    enroll_student(store, session.tenant_id)
    matcher = BlockingMatcher(MatchResult(student_id="STU-000001", confidence=0.9))
    camera = FakeCamera()
    scanner = _scanner(store, matcher, camera)

    scanner.start(session)
    assert matcher.entered.wait(2)

    scanner.stop(session)
    assert camera.released >= 1
    assert scanner.status(session).active is False

    matcher.release.set()
    assert scanner.wait_stopped(2)
    assert store.load(session.tenant_id).attendance == []
    assert scanner.status(session).recent == []


def test_camera_acquisition_failure_leaves_scanner_stopped(store, session):
    scanner = _scanner(store, FakeMatcher(), FakeCamera(fail_open=True))

    with pytest.raises(CaptureSourceError):
        scanner.start(session)

    status = scanner.status(session)
    assert status.state is ScannerState.STOPPED
    assert "permission denied" in status.last_error


def test_camera_loss_stops_the_loop(store, session):
    camera = FakeCamera(fail_after=2)
    scanner = _scanner(store, FakeMatcher(), camera)

    scanner.start(session)
    assert scanner.wait_stopped(3)

    status = scanner.status(session)
    assert status.state is ScannerState.STOPPED
    assert "unplugged" in status.last_error
    assert camera.released >= 1


def test_switch_facing_restarts_on_the_other_camera(store, session):
    camera = FakeCamera()
    scanner = _scanner(store, FakeMatcher(), camera)

    scanner.start(session)
    try:
        assert scanner.switch_facing(session) is FacingMode.ENVIRONMENT
        assert camera.opened == [FacingMode.USER, FacingMode.ENVIRONMENT]
        assert scanner.status(session).active
    finally:
        scanner.stop(session)
    assert scanner.wait_stopped(2)


def test_switch_while_stopped_only_changes_selection(store, session):
    camera = FakeCamera()
    scanner = _scanner(store, FakeMatcher(), camera)

    assert scanner.switch_facing(session) is FacingMode.ENVIRONMENT
    assert camera.opened == []
    assert scanner.status(session).facing is FacingMode.ENVIRONMENT


class ExplodingMatcher(FakeMatcher):
    def match(self, captured, gallery):
        raise RuntimeError("matcher blew up")


def test_unexpected_loop_error_stops_and_releases_the_camera(store, session):
    camera = FakeCamera()
    scanner = _scanner(store, ExplodingMatcher(), camera)

    scanner.start(session)
    assert scanner.wait_stopped(3)

    status = scanner.status(session)
    assert status.state is ScannerState.STOPPED
    assert status.active is False
    assert "blew up" in status.last_error
    assert camera.released == 1

    scanner.start(session)
    scanner.stop(session)
    assert scanner.wait_stopped(2)


def test_another_school_cannot_see_or_control_the_scanner(store, session):
    other = TenantSession(tenant_id="school2", school_name="Riverside", login_handle="admin2")
    enroll_student(store, session.tenant_id)
    camera = FakeCamera()
    scanner = _scanner(store, FakeMatcher(MatchResult(student_id="STU-000001", confidence=0.9)), camera)

    scanner.start(session)
    try:
        assert _wait_for(lambda: scanner.status(session).recent)

        foreign = scanner.status(other)
        assert foreign.state is ScannerState.STOPPED
        assert foreign.recent == []
        assert foreign.identified is None

        with pytest.raises(CollisionError):
            scanner.stop(other)
        with pytest.raises(CollisionError):
            scanner.switch_facing(other)
        with pytest.raises(CollisionError):
            scanner.start(other)
        assert scanner.release("school2") is False
        assert scanner.status(session).active
    finally:
        assert scanner.release(session.tenant_id) is True
    assert scanner.wait_stopped(2)
    assert scanner.status(other).recent == []


def test_invalid_camera_choice_is_a_validation_error(store, session):
    camera = FakeCamera()
    scanner = _scanner(store, FakeMatcher(), camera)

    with pytest.raises(ValidationError):
        scanner.start(session, "back")
    with pytest.raises(ValidationError):
        scanner.switch_facing(session, "sideways")
    assert camera.opened == []
    assert scanner.status(session).active is False
