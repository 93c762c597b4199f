from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..common.validators import require_choice
from ..core.constants import SCAN_HISTORY_LIMIT, SCAN_MATCH_DWELL_SECONDS, SCAN_RETRY_DELAY_SECONDS
from ..core.enums import FacingMode, ScannerState
from ..core.exceptions import CaptureSourceError, CollisionError, DomainError, ValidationError
from ..tenants.session import TenantSession, require_session
from .capture import CaptureSource
from .model import AttendanceLogRow
from .service import AttendanceService

logger = logging.getLogger(__name__)

MSG_IDLE = "Position face in center"
MSG_ANALYZING = "Analyzing features..."
MSG_SEARCHING = "Searching..."
MSG_NEXT = "Scanning next..."


@dataclass(frozen=True)
class ScannerStatus:
    state: ScannerState
    facing: FacingMode
    message: str
    identified: Optional[str] = None
    last_error: Optional[str] = None
    recent: list[AttendanceLogRow] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return self.state is not ScannerState.STOPPED


class AttendanceScanner:
    """Continuous capture -> identify -> mark loop on a background thread.

    Stopped -> Starting -> Scanning -> (Matched -> dwell | NoMatch -> short pause) -> Scanning.

    Every loop instance carries a generation number. ``stop`` bumps it and
    releases the camera while holding the loop lock, so a matcher response that
    comes back after ``stop`` sees a different generation and is dropped
    without touching attendance state.

    One camera serves the whole process, so the school that started the loop
    owns it: other schools get a CollisionError on stop/switch and an idle
    status with no recent activity.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        source_factory: Callable[[], CaptureSource],
        *,
        match_dwell: float = SCAN_MATCH_DWELL_SECONDS,
        retry_delay: float = SCAN_RETRY_DELAY_SECONDS,
        history_limit: int = SCAN_HISTORY_LIMIT,
    ):
        self._attendance = attendance
        self._source_factory = source_factory
        self._match_dwell = float(match_dwell)
        self._retry_delay = float(retry_delay)

        self._lock = threading.RLock()
        self._generation = 0
        self._active = False
        self._session: Optional[TenantSession] = None
        self._owner: Optional[str] = None
        self._source: Optional[CaptureSource] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._state = ScannerState.STOPPED
        self._facing = FacingMode.USER
        self._message = MSG_IDLE
        self._identified: Optional[str] = None
        self._last_error: Optional[str] = None
        self._recent: deque[AttendanceLogRow] = deque(maxlen=int(history_limit))

    # ----- control -----

    def start(self, session: Optional[TenantSession], facing=None) -> None:
        session = require_session(session)
        facing = require_choice(facing, FacingMode, "Camera") if facing is not None else None

        with self._lock:
            if self._active:
                if self._owner != session.tenant_id:
                    raise CollisionError("Scanner is in use by another school")
                raise ValidationError("Scanner is already running")
            if facing is not None:
                self._facing = facing

            self._owner = session.tenant_id
            self._recent.clear()
            self._state = ScannerState.STARTING
            self._identified = None
            self._last_error = None

            source = self._source_factory()
            try:
                source.open(self._facing)
            except CaptureSourceError as e:
                source.release()
                self._state = ScannerState.STOPPED
                self._last_error = str(e)
                logger.warning("Camera acquisition failed: %s", e)
                raise

            try:
                self._recent.extend(self._attendance.today_log(session)[: self._recent.maxlen])
            except DomainError as e:
                logger.warning("Could not load today's attendance log: %s", e)

            self._generation += 1
            generation = self._generation
            self._stop_event = threading.Event()
            self._session = session
            self._source = source
            self._active = True
            self._state = ScannerState.SCANNING
            self._message = MSG_IDLE

            self._thread = threading.Thread(
                target=self._run,
                args=(session, generation, source, self._stop_event),
                name=f"attendance-scanner-{generation}",
                daemon=True,
            )
            self._thread.start()

    def stop(self, session: Optional[TenantSession]) -> None:
        """Stop the loop and release the camera before returning."""

        session = require_session(session)
        with self._lock:
            if not self._active:
                return
            self._check_owner(session)
            self._halt_locked()

    def release(self, tenant_id: Optional[str]) -> bool:
        """Stop the loop only if ``tenant_id`` started it (used on logout)."""

        with self._lock:
            if not self._active or tenant_id is None or self._owner != tenant_id:
                return False
            self._halt_locked()
            return True

    def switch_facing(self, session: Optional[TenantSession], facing=None) -> FacingMode:
        """Select the other camera; a running loop is restarted on the new one."""

        session = require_session(session)
        facing = require_choice(facing, FacingMode, "Camera") if facing is not None else None

        with self._lock:
            was_active = self._active
            if was_active:
                self._check_owner(session)
            new_facing = facing if facing is not None else self._facing.toggled()
            if was_active:
                self._halt_locked()
            self._facing = new_facing
            if was_active:
                self.start(session, new_facing)
            return new_facing

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """Join the current loop thread (used at teardown and in tests)."""

        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def status(self, session: Optional[TenantSession]) -> ScannerStatus:
        """Live status for the owning school; everyone else sees an idle scanner."""

        session = require_session(session)
        with self._lock:
            if self._owner != session.tenant_id:
                return ScannerStatus(state=ScannerState.STOPPED, facing=self._facing, message=MSG_IDLE)
            return ScannerStatus(
                state=self._state,
                facing=self._facing,
                message=self._message,
                identified=self._identified,
                last_error=self._last_error,
                recent=list(self._recent),
            )

    # ----- loop -----

    def _check_owner(self, session: TenantSession) -> None:
        if self._owner != session.tenant_id:
            raise CollisionError("Scanner is in use by another school")

    def _halt_locked(self) -> None:
        self._active = False
        self._generation += 1
        self._stop_event.set()
        if self._source is not None:
            try:
                self._source.release()
            finally:
                self._source = None
        self._session = None
        self._identified = None
        self._state = ScannerState.STOPPED
        self._message = MSG_IDLE

    def _is_current(self, generation: int) -> bool:
        return self._active and generation == self._generation

    def _run(self, session: TenantSession, generation: int, source: CaptureSource, stop_event: threading.Event) -> None:
        try:
            self._loop(session, generation, source, stop_event)
        except Exception as e:
            logger.exception("Scanner loop failed")
            with self._lock:
                if self._is_current(generation):
                    self._last_error = str(e) or type(e).__name__
        finally:
            with self._lock:
                if self._is_current(generation):
                    self._halt_locked()

    def _loop(self, session: TenantSession, generation: int, source: CaptureSource, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            with self._lock:
                if not self._is_current(generation):
                    return
                try:
                    frame = source.read_frame()
                except CaptureSourceError as e:
                    logger.warning("Scanner stopped: %s", e)
                    self._halt_locked()
                    self._last_error = str(e)
                    return
                self._message = MSG_ANALYZING

            try:
                result, student = self._attendance.resolve(session, frame)
            except DomainError as e:
                logger.warning("Frame skipped: %s", e)
                with self._lock:
                    if not self._is_current(generation):
                        return
                    self._last_error = str(e)
                if stop_event.wait(self._retry_delay):
                    return
                continue

            with self._lock:
                if not self._is_current(generation):
                    # Stale response from before stop/switch: drop it.
                    return

                if student is not None:
                    self._apply_match(session, student, result.confidence)
                else:
                    self._state = ScannerState.NO_MATCH
                    self._message = MSG_SEARCHING
                matched = student is not None

            if stop_event.wait(self._match_dwell if matched else self._retry_delay):
                return

            with self._lock:
                if not self._is_current(generation):
                    return
                self._state = ScannerState.SCANNING
                self._identified = None
                self._message = MSG_NEXT if matched else MSG_IDLE

    def _apply_match(self, session: TenantSession, student, confidence: Optional[float]) -> None:
        try:
            record, newly = self._attendance.mark_automated(session, student)
        except DomainError as e:
            # Keep scanning; the operator sees the error in status().
            logger.error("Could not mark attendance for %s: %s", student.student_id, e)
            self._last_error = str(e)
            self._state = ScannerState.NO_MATCH
            self._message = MSG_SEARCHING
            return

        self._state = ScannerState.MATCHED
        self._identified = student.full_name
        self._message = f"Welcome, {student.full_name}!"
        if newly:
            logger.info("Marked %s present (confidence=%s)", student.student_id, confidence)
        self._recent.appendleft(
            AttendanceLogRow(
                attendance_id=record.attendance_id,
                student_id=student.student_id,
                student_name=student.full_name,
                date=record.date,
                status=record.status,
                marked_by=record.marked_by,
            )
        )
