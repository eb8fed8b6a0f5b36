"""ImageSource — converges file upload and live capture on EncodedImage."""
import logging
from typing import Callable, Optional

from src.config import Config
from src.constants import ERR_CAMERA_BUSY, MSG_CAMERA_OPENED
from src.errors import DeviceUnavailable
from src.imaging.camera import CameraStream, CaptureDevice, OpenCVCaptureDevice
from src.imaging.image import EncodedImage
from src.imaging.upload import Upload, load_upload

logger = logging.getLogger(__name__)


class ImageSource:

    def __init__(
        self,
        device_factory: Callable[[], CaptureDevice],
        *,
        max_upload_bytes: int,
        jpeg_quality: int,
        width: int,
        height: int,
    ) -> None:
        self._device_factory = device_factory
        self._max_upload_bytes = max_upload_bytes
        self._quality = jpeg_quality
        self._width = width
        self._height = height
        self._active: Optional[CameraStream] = None

    @classmethod
    def from_config(cls, config: Config) -> "ImageSource":
        return cls(
            lambda: OpenCVCaptureDevice(config.camera_index),
            max_upload_bytes=config.max_upload_bytes,
            jpeg_quality=config.jpeg_quality,
            width=config.camera_width,
            height=config.camera_height,
        )

    @property
    def camera_open(self) -> bool:
        return self._active is not None

    def load_upload(self, upload: Upload) -> EncodedImage:
        """Read and normalize a user-selected file. Raises InvalidInput."""
        return load_upload(upload, max_bytes=self._max_upload_bytes, quality=self._quality)

    def open_camera(self) -> CameraStream:
        """Open the camera as a scoped stream. Only one stream may be open at a time."""
        match self._active:
            case None:
                pass
            case _:
                raise DeviceUnavailable(ERR_CAMERA_BUSY)
        device = self._device_factory()
        device.open(self._width, self._height)
        stream = CameraStream(device, quality=self._quality, on_release=self._forget)
        self._active = stream
        logger.info(MSG_CAMERA_OPENED, self._width, self._height)
        return stream

    def _forget(self, stream: CameraStream) -> None:
        if self._active is stream:
            self._active = None
