"""VisionClient — abstract base for remote image analysis backends."""
from abc import ABC, abstractmethod
from typing import Any

from src.constants import ERR_EMPTY_IMAGE, ERR_WRONG_MIME, IMAGE_MIME_TYPE
from src.errors import InvalidInput
from src.imaging.image import EncodedImage
from src.vision.schema import AnalysisResult, parse_result


def check_image(image: EncodedImage) -> None:
    match (len(image.data), image.mime_type):
        case (0, _):
            raise InvalidInput(ERR_EMPTY_IMAGE)
        case (_, mime) if mime != IMAGE_MIME_TYPE:
            raise InvalidInput(ERR_WRONG_MIME % (IMAGE_MIME_TYPE, mime))
        case _:
            pass


class VisionClient(ABC):
    name = "vision"

    async def analyze(self, image: EncodedImage) -> AnalysisResult:
        """Analyze one image. Single attempt, no retry.

        Raises InvalidInput before any network call, ServiceUnavailable on
        transport/service failure, MalformedResponse on a payload that does
        not match the schema.
        """
        check_image(image)
        payload = await self._request(image)
        return parse_result(payload)

    @abstractmethod
    async def _request(self, image: EncodedImage) -> Any:
        """Send image, instruction and schema; return the raw structured payload."""
        ...
