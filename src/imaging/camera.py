"""Live-capture path: CaptureDevice port, OpenCV device, and the scoped CameraStream."""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import cv2
import numpy as np

from src.constants import (
    ERR_CAMERA_CLOSED,
    ERR_CAMERA_OPEN,
    ERR_FRAME_ENCODE,
    ERR_FRAME_READ,
    MSG_CAMERA_RELEASED,
)
from src.errors import DeviceUnavailable
from src.imaging.image import EncodedImage

logger = logging.getLogger(__name__)


class CaptureDevice(ABC):
    @abstractmethod
    def open(self, width: int, height: int) -> None:
        """Start the video stream. Raises DeviceUnavailable on failure."""
        ...

    @abstractmethod
    def read(self) -> np.ndarray:
        """Return the current frame as BGR pixels. Raises DeviceUnavailable on failure."""
        ...

    @abstractmethod
    def release(self) -> None: ...


class OpenCVCaptureDevice(CaptureDevice):
    """A local camera through cv2.VideoCapture.

    OpenCV has no facing-mode selector, so ``index`` must point at the
    environment-facing camera (CAMERA_INDEX in .env).
    """

    def __init__(self, index: int) -> None:
        self._index = index
        self._cap: Optional[cv2.VideoCapture] = None

    def open(self, width: int, height: int) -> None:
        cap = cv2.VideoCapture(self._index)
        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailable(ERR_CAMERA_OPEN % self._index)
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self._cap = cap

    def read(self) -> np.ndarray:
        match self._cap:
            case None:
                raise DeviceUnavailable(ERR_CAMERA_CLOSED)
            case cap:
                ok, frame = cap.read()
        if not ok or frame is None:
            raise DeviceUnavailable(ERR_FRAME_READ % self._index)
        return frame

    def release(self) -> None:
        match self._cap:
            case None:
                pass
            case cap:
                cap.release()
                self._cap = None


class CameraStream:
    """Scoped handle over an open CaptureDevice; the device is released exactly once."""

    def __init__(
        self,
        device: CaptureDevice,
        *,
        quality: int,
        on_release: Optional[Callable[["CameraStream"], None]] = None,
    ) -> None:
        self._device = device
        self._quality = quality
        self._on_release = on_release
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def capture_frame(self) -> EncodedImage:
        """Rasterize the current video frame into a JPEG EncodedImage."""
        if self._released:
            raise DeviceUnavailable(ERR_CAMERA_CLOSED)
        frame = self._device.read()
        try:
            ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), self._quality])
        except cv2.error as exc:
            raise DeviceUnavailable(ERR_FRAME_ENCODE) from exc
        if not ok:
            raise DeviceUnavailable(ERR_FRAME_ENCODE)
        return EncodedImage(buf.tobytes())

    def release(self) -> bool:
        """Stop the stream. Returns False when it was already released."""
        if self._released:
            return False
        self._released = True
        try:
            self._device.release()
        finally:
            logger.info(MSG_CAMERA_RELEASED)
            if self._on_release is not None:
                self._on_release(self)
        return True

    def __enter__(self) -> "CameraStream":
        return self

    def __exit__(self, *_) -> None:
        self.release()
