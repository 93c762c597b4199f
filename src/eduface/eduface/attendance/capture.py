from __future__ import annotations

import logging
from typing import Optional, Protocol

import cv2

from ..core.enums import FacingMode
from ..core.exceptions import CaptureSourceError

logger = logging.getLogger(__name__)


class CaptureSource(Protocol):
    """A camera the scanner owns between ``open`` and ``release``."""

    def open(self, facing: FacingMode) -> None:
        raise NotImplementedError

    def read_frame(self) -> bytes:
        """Return the current frame as JPEG bytes."""

        raise NotImplementedError

    def release(self) -> None:
        raise NotImplementedError


class OpenCVCaptureSource(CaptureSource):
    """Local webcam via OpenCV; front/rear selection maps to device indices."""

    def __init__(self, *, front_index: int = 0, rear_index: int = 1, jpeg_quality: int = 90):
        self._indices = {FacingMode.USER: int(front_index), FacingMode.ENVIRONMENT: int(rear_index)}
        self._jpeg_quality = int(jpeg_quality)
        self._cap: Optional[cv2.VideoCapture] = None

    def open(self, facing: FacingMode) -> None:
        self.release()
        index = self._indices[FacingMode(facing)]
        cap = cv2.VideoCapture(index)
        if not cap.isOpened():
            cap.release()
            raise CaptureSourceError(f"Camera {index} is not available (permission denied or no device)")
        self._cap = cap
        logger.info("Camera %s opened (%s)", index, FacingMode(facing).value)

    def read_frame(self) -> bytes:
        if self._cap is None:
            raise CaptureSourceError("Camera is not open")
        ok, frame = self._cap.read()
        if not ok or frame is None:
            raise CaptureSourceError("Camera stopped delivering frames")
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self._jpeg_quality])
        if not ok:
            raise CaptureSourceError("Could not encode camera frame")
        return buf.tobytes()

    def release(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
