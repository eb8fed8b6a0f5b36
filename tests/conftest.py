"""Shared fakes: a scriptable camera, a gated vision backend, a recording presenter."""
import asyncio
import io
from typing import Any

import numpy as np
import pytest
from PIL import Image

from src.errors import DeviceUnavailable
from src.imaging.camera import CaptureDevice
from src.imaging.source import ImageSource
from src.presenter import Presenter
from src.session import SessionController
from src.session_models import SessionSnapshot
from src.vision.client import VisionClient

HAND_XRAY = {
    "imagingType": "X-Ray, hand",
    "organName": "Left hand",
    "findings": "No acute fracture.",
    "professionalDetails": ["Mild soft tissue swelling", "No dislocation"],
}


def image_bytes(fmt: str = "JPEG", size: tuple[int, int] = (32, 24)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=(40, 90, 200)).save(buf, format=fmt)
    return buf.getvalue()


class FakeDevice(CaptureDevice):

    def __init__(self, *, fail_open: bool = False, fail_read: bool = False) -> None:
        self.fail_open = fail_open
        self.fail_read = fail_read
        self.opened = 0
        self.reads = 0
        self.released = 0

    def open(self, width: int, height: int) -> None:
        if self.fail_open:
            raise DeviceUnavailable("no camera")
        self.opened += 1

    def read(self) -> np.ndarray:
        self.reads += 1
        if self.fail_read:
            raise DeviceUnavailable("frame lost")
        return np.full((24, 32, 3), 128, dtype=np.uint8)

    def release(self) -> None:
        self.released += 1


class FakeVision(VisionClient):
    """Returns ``outcome`` (or raises it) once ``gate`` is open."""

    name = "fake"

    def __init__(self, outcome: Any = None, *, hold: bool = False) -> None:
        self.outcome = dict(HAND_XRAY) if outcome is None else outcome
        self.gate = asyncio.Event()
        if not hold:
            self.gate.set()
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def _request(self, image):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await self.gate.wait()
        finally:
            self.in_flight -= 1
        match self.outcome:
            case Exception() as exc:
                raise exc
            case payload:
                return payload


class RecordingPresenter(Presenter):

    def __init__(self) -> None:
        self.snapshots: list[SessionSnapshot] = []

    async def render(self, snapshot: SessionSnapshot) -> None:
        self.snapshots.append(snapshot)

    @property
    def states(self) -> list[str]:
        return [s.state.value for s in self.snapshots]


@pytest.fixture
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture
def source(device: FakeDevice) -> ImageSource:
    return ImageSource(
        lambda: device,
        max_upload_bytes=1024 * 1024,
        jpeg_quality=80,
        width=640,
        height=480,
    )


@pytest.fixture
def vision() -> FakeVision:
    return FakeVision()


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def controller(vision: FakeVision, source: ImageSource, presenter: RecordingPresenter) -> SessionController:
    return SessionController(vision, source, analysis_timeout=5, presenters=[presenter])


@pytest.fixture
def jpeg() -> bytes:
    return image_bytes()
