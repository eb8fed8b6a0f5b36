"""Output schema for the remote analysis and its strict parser."""
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from src.errors import MalformedResponse

ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "imagingType": {
            "type": "string",
            "description": "Imaging modality and body region, e.g. 'X-Ray, hand'.",
        },
        "organName": {
            "type": "string",
            "description": "Name of the imaged organ.",
        },
        "findings": {
            "type": "string",
            "description": "Key medical findings and observations.",
        },
        "professionalDetails": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Precise details for specialists, most relevant first.",
        },
    },
    "required": ["imagingType", "organName", "findings", "professionalDetails"],
    "additionalProperties": False,
}


class AnalysisResult(BaseModel):
    """Structured interpretation of one image. Every field is mandatory."""

    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    imaging_type: str = Field(alias="imagingType")
    organ_name: str = Field(alias="organName")
    findings: str
    professional_details: list[str] = Field(alias="professionalDetails")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def parse_result(payload: Any) -> AnalysisResult:
    """Validate a raw service payload (JSON text or decoded object) against the schema.

    Fails closed: a missing field, an unknown field or a wrongly-typed value
    raises MalformedResponse. Nothing is coerced.
    """
    match payload:
        case dict():
            validate = AnalysisResult.model_validate
        case str() | bytes():
            validate = AnalysisResult.model_validate_json
        case _:
            raise MalformedResponse(f"unexpected payload type {type(payload).__name__}")
    try:
        return validate(payload)
    except ValidationError as exc:
        raise MalformedResponse(str(exc)) from exc
