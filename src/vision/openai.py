"""OpenAIVisionClient — OpenAI GPT-4o vision backend."""
from typing import Any, Dict

from openai import APIError, AsyncOpenAI

from src.constants import (
    ANALYSIS_INSTRUCTION,
    ANALYSIS_SCHEMA_DESCRIPTION,
    ANALYSIS_SCHEMA_NAME,
    ERR_NO_STRUCTURED_OUTPUT,
    OPENAI_VISION_MODEL,
)
from src.errors import MalformedResponse, ServiceUnavailable
from src.imaging.image import EncodedImage
from src.vision.client import VisionClient
from src.vision.schema import ANALYSIS_SCHEMA

RESPONSE_FORMAT: Dict[str, Any] = {
    "type": "json_schema",
    "json_schema": {
        "name": ANALYSIS_SCHEMA_NAME,
        "description": ANALYSIS_SCHEMA_DESCRIPTION,
        "schema": ANALYSIS_SCHEMA,
        "strict": True,
    },
}


class OpenAIVisionClient(VisionClient):
    name = "openai"

    def __init__(self, api_key: str, model: str = OPENAI_VISION_MODEL) -> None:
        self._api_key = api_key
        self._model = model

    async def _request(self, image: EncodedImage) -> Any:
        client = AsyncOpenAI(api_key=self._api_key, max_retries=0)
        try:
            response = await client.chat.completions.create(
                model=self._model,
                response_format=RESPONSE_FORMAT,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image_url",
                                "image_url": {"url": image.to_data_url()},
                            },
                            {"type": "text", "text": ANALYSIS_INSTRUCTION},
                        ],
                    }
                ],
            )
        except APIError as exc:
            raise ServiceUnavailable(str(exc)) from exc

        match response.choices:
            case [first, *_] if first.message.content:
                return first.message.content
            case _:
                raise MalformedResponse(ERR_NO_STRUCTURED_OUTPUT)
