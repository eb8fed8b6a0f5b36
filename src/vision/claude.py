"""ClaudeVisionClient — Anthropic Claude vision backend."""
from typing import Any, Dict

from anthropic import APIError, AsyncAnthropic

from src.constants import (
    ANALYSIS_INSTRUCTION,
    ANALYSIS_SCHEMA_DESCRIPTION,
    ANALYSIS_SCHEMA_NAME,
    CLAUDE_MAX_TOKENS,
    CLAUDE_VISION_MODEL,
    ERR_NO_STRUCTURED_OUTPUT,
)
from src.errors import MalformedResponse, ServiceUnavailable
from src.imaging.image import EncodedImage
from src.vision.client import VisionClient
from src.vision.schema import ANALYSIS_SCHEMA

# The tool is forced, so its input is the structured answer.
ANALYSIS_TOOL: Dict[str, Any] = {
    "name": ANALYSIS_SCHEMA_NAME,
    "description": ANALYSIS_SCHEMA_DESCRIPTION,
    "input_schema": ANALYSIS_SCHEMA,
}


def _tool_input(message: Any) -> Any:
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) == "tool_use" and getattr(block, "name", None) == ANALYSIS_SCHEMA_NAME:
            return block.input
    raise MalformedResponse(ERR_NO_STRUCTURED_OUTPUT)


class ClaudeVisionClient(VisionClient):
    name = "claude"

    def __init__(self, api_key: str, model: str = CLAUDE_VISION_MODEL) -> None:
        self._api_key = api_key
        self._model = model

    async def _request(self, image: EncodedImage) -> Any:
        client = AsyncAnthropic(api_key=self._api_key, max_retries=0)
        try:
            message = await client.messages.create(
                model=self._model,
                max_tokens=CLAUDE_MAX_TOKENS,
                tools=[ANALYSIS_TOOL],
                tool_choice={"type": "tool", "name": ANALYSIS_SCHEMA_NAME},
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": image.mime_type,
                                    "data": image.to_base64(),
                                },
                            },
                            {"type": "text", "text": ANALYSIS_INSTRUCTION},
                        ],
                    }
                ],
            )
        except APIError as exc:
            raise ServiceUnavailable(str(exc)) from exc
        return _tool_input(message)
