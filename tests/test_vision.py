"""VisionClient backend and schema tests"""
import json

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from conftest import HAND_XRAY
from src.constants import ANALYSIS_INSTRUCTION, ANALYSIS_SCHEMA_NAME
from src.errors import InvalidInput, MalformedResponse, ServiceUnavailable
from src.imaging.image import EncodedImage
from src.vision.schema import ANALYSIS_SCHEMA, parse_result

IMAGE = EncodedImage(b"\xff\xd8fake-jpeg")


def without(field: str) -> dict:
    return {k: v for k, v in HAND_XRAY.items() if k != field}


# ── strict parsing ────────────────────────────────────────────────────────────


def test_parse_result_keeps_structure_and_detail_order():
    result = parse_result(dict(HAND_XRAY))

    assert result.imaging_type == "X-Ray, hand"
    assert result.organ_name == "Left hand"
    assert result.findings == "No acute fracture."
    assert result.professional_details == ["Mild soft tissue swelling", "No dislocation"]
    assert result.to_payload() == HAND_XRAY


def test_parse_result_accepts_json_text():
    assert parse_result(json.dumps(HAND_XRAY)).to_payload() == HAND_XRAY


def test_parse_result_accepts_empty_details():
    result = parse_result({**HAND_XRAY, "professionalDetails": []})

    assert result.professional_details == []


@pytest.mark.parametrize(
    "payload",
    [
        without("organName"),
        without("professionalDetails"),
        {**HAND_XRAY, "professionalDetails": "No dislocation"},
        {**HAND_XRAY, "professionalDetails": ["ok", 3]},
        {**HAND_XRAY, "findings": None},
        {**HAND_XRAY, "confidence": 0.9},
        "not json at all",
        ["a", "list"],
    ],
    ids=["missing-organ", "missing-details", "scalar-details", "non-string-item",
         "null-findings", "extra-field", "bad-json", "wrong-type"],
)
def test_parse_result_fails_closed(payload):
    with pytest.raises(MalformedResponse):
        parse_result(payload)


def test_schema_requires_all_four_fields():
    assert set(ANALYSIS_SCHEMA["required"]) == {
        "imagingType", "organName", "findings", "professionalDetails"
    }
    assert ANALYSIS_SCHEMA["additionalProperties"] is False
    assert ANALYSIS_SCHEMA["properties"]["professionalDetails"]["type"] == "array"


# ── input checks ──────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "image",
    [EncodedImage(b""), EncodedImage(b"\x89PNG", mime_type="image/png")],
    ids=["empty", "wrong-mime"],
)
async def test_invalid_input_fails_before_network(image):
    from src.vision.claude import ClaudeVisionClient

    client = ClaudeVisionClient(api_key="test-key")

    with patch("src.vision.claude.AsyncAnthropic") as mock_cls:
        with pytest.raises(InvalidInput):
            await client.analyze(image)

    mock_cls.assert_not_called()


# ── ClaudeVisionClient ────────────────────────────────────────────────────────


def claude_response(*blocks) -> MagicMock:
    response = MagicMock()
    response.content = list(blocks)
    return response


def tool_block(payload: dict) -> MagicMock:
    block = MagicMock()
    block.type = "tool_use"
    block.name = ANALYSIS_SCHEMA_NAME
    block.input = payload
    return block


async def test_claude_sends_image_instruction_and_forced_tool():
    from src.vision.claude import ClaudeVisionClient

    client = ClaudeVisionClient(api_key="test-key")

    with patch("src.vision.claude.AsyncAnthropic") as mock_cls:
        mock_anthropic = AsyncMock()
        mock_anthropic.messages.create = AsyncMock(return_value=claude_response(tool_block(dict(HAND_XRAY))))
        mock_cls.return_value = mock_anthropic

        result = await client.analyze(IMAGE)

    assert mock_cls.call_args.kwargs["api_key"] == "test-key"
    assert mock_cls.call_args.kwargs["max_retries"] == 0
    call_kwargs = mock_anthropic.messages.create.call_args.kwargs
    content = call_kwargs["messages"][0]["content"]
    image_block = next(b for b in content if b["type"] == "image")
    assert image_block["source"]["media_type"] == "image/jpeg"
    assert image_block["source"]["data"] == IMAGE.to_base64()
    assert any(b.get("text") == ANALYSIS_INSTRUCTION for b in content)
    assert call_kwargs["tool_choice"] == {"type": "tool", "name": ANALYSIS_SCHEMA_NAME}
    assert call_kwargs["tools"][0]["input_schema"] is ANALYSIS_SCHEMA
    assert result.to_payload() == HAND_XRAY


async def test_claude_without_tool_call_is_malformed():
    from src.vision.claude import ClaudeVisionClient

    text = MagicMock()
    text.type = "text"
    text.text = "I cannot read this image."
    client = ClaudeVisionClient(api_key="test-key")

    with patch("src.vision.claude.AsyncAnthropic") as mock_cls:
        mock_anthropic = AsyncMock()
        mock_anthropic.messages.create = AsyncMock(return_value=claude_response(text))
        mock_cls.return_value = mock_anthropic

        with pytest.raises(MalformedResponse):
            await client.analyze(IMAGE)


async def test_claude_missing_field_is_malformed():
    from src.vision.claude import ClaudeVisionClient

    client = ClaudeVisionClient(api_key="test-key")

    with patch("src.vision.claude.AsyncAnthropic") as mock_cls:
        mock_anthropic = AsyncMock()
        mock_anthropic.messages.create = AsyncMock(
            return_value=claude_response(tool_block(without("organName")))
        )
        mock_cls.return_value = mock_anthropic

        with pytest.raises(MalformedResponse):
            await client.analyze(IMAGE)


async def test_claude_api_error_is_service_unavailable():
    import anthropic

    from src.vision.claude import ClaudeVisionClient

    client = ClaudeVisionClient(api_key="test-key")
    error = anthropic.APIConnectionError(request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))

    with patch("src.vision.claude.AsyncAnthropic") as mock_cls:
        mock_anthropic = AsyncMock()
        mock_anthropic.messages.create = AsyncMock(side_effect=error)
        mock_cls.return_value = mock_anthropic

        with pytest.raises(ServiceUnavailable):
            await client.analyze(IMAGE)


# ── OpenAIVisionClient ────────────────────────────────────────────────────────


def openai_response(content) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


async def test_openai_sends_data_url_and_strict_schema():
    from src.vision.openai import OpenAIVisionClient

    client = OpenAIVisionClient(api_key="test-key")

    with patch("src.vision.openai.AsyncOpenAI") as mock_cls:
        mock_openai = AsyncMock()
        mock_openai.chat.completions.create = AsyncMock(return_value=openai_response(json.dumps(HAND_XRAY)))
        mock_cls.return_value = mock_openai

        result = await client.analyze(IMAGE)

    call_kwargs = mock_openai.chat.completions.create.call_args.kwargs
    content = call_kwargs["messages"][0]["content"]
    image_block = next(b for b in content if b["type"] == "image_url")
    assert image_block["image_url"]["url"] == IMAGE.to_data_url()
    assert call_kwargs["response_format"]["json_schema"]["strict"] is True
    assert result.professional_details == HAND_XRAY["professionalDetails"]


@pytest.mark.parametrize("content", [None, "", json.dumps(without("organName"))])
async def test_openai_bad_content_is_malformed(content):
    from src.vision.openai import OpenAIVisionClient

    client = OpenAIVisionClient(api_key="test-key")

    with patch("src.vision.openai.AsyncOpenAI") as mock_cls:
        mock_openai = AsyncMock()
        mock_openai.chat.completions.create = AsyncMock(return_value=openai_response(content))
        mock_cls.return_value = mock_openai

        with pytest.raises(MalformedResponse):
            await client.analyze(IMAGE)


async def test_openai_api_error_is_service_unavailable():
    import openai

    from src.vision.openai import OpenAIVisionClient

    client = OpenAIVisionClient(api_key="test-key")
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))

    with patch("src.vision.openai.AsyncOpenAI") as mock_cls:
        mock_openai = AsyncMock()
        mock_openai.chat.completions.create = AsyncMock(side_effect=error)
        mock_cls.return_value = mock_openai

        with pytest.raises(ServiceUnavailable):
            await client.analyze(IMAGE)
