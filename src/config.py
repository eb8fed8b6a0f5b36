from dataclasses import dataclass
from typing import Optional
import os
from dotenv import load_dotenv

from src.constants import (
    DEFAULT_ANALYSIS_TIMEOUT,
    DEFAULT_CAMERA_HEIGHT,
    DEFAULT_CAMERA_INDEX,
    DEFAULT_CAMERA_WIDTH,
    DEFAULT_JPEG_QUALITY,
    DEFAULT_MAX_UPLOAD_BYTES,
)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name) or str(default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Config:
    anthropic_api_key: Optional[str]
    openai_api_key: Optional[str]
    log_level: str
    analysis_timeout: int
    max_upload_bytes: int
    camera_index: int
    camera_width: int
    camera_height: int
    jpeg_quality: int
    telegram_bot_token: Optional[str] = None
    allowed_chat_id: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Config":
        load_dotenv()

        return cls._validate(
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY") or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            analysis_timeout=_int_env("ANALYSIS_TIMEOUT", DEFAULT_ANALYSIS_TIMEOUT),
            max_upload_bytes=_int_env("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            camera_index=_int_env("CAMERA_INDEX", DEFAULT_CAMERA_INDEX),
            camera_width=_int_env("CAMERA_WIDTH", DEFAULT_CAMERA_WIDTH),
            camera_height=_int_env("CAMERA_HEIGHT", DEFAULT_CAMERA_HEIGHT),
            jpeg_quality=_int_env("JPEG_QUALITY", DEFAULT_JPEG_QUALITY),
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            allowed_chat_id=os.getenv("ALLOWED_CHAT_ID") or None,
        )

    @staticmethod
    def _validate(
        anthropic_api_key: Optional[str],
        openai_api_key: Optional[str],
        log_level: str,
        analysis_timeout: int,
        max_upload_bytes: int,
        camera_index: int,
        camera_width: int,
        camera_height: int,
        jpeg_quality: int,
        telegram_bot_token: Optional[str],
        allowed_chat_id: Optional[str],
    ) -> "Config":
        match (anthropic_api_key, openai_api_key):
            case (None, None):
                raise ValueError("ANTHROPIC_API_KEY or OPENAI_API_KEY must be set in .env")
            case _:
                pass

        positives = {
            "ANALYSIS_TIMEOUT": analysis_timeout,
            "MAX_UPLOAD_BYTES": max_upload_bytes,
            "CAMERA_WIDTH": camera_width,
            "CAMERA_HEIGHT": camera_height,
        }
        for name, value in positives.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        match jpeg_quality:
            case q if 1 <= q <= 100:
                pass
            case q:
                raise ValueError(f"JPEG_QUALITY must be between 1 and 100, got {q}")

        return Config(
            anthropic_api_key=anthropic_api_key,
            openai_api_key=openai_api_key,
            log_level=log_level,
            analysis_timeout=analysis_timeout,
            max_upload_bytes=max_upload_bytes,
            camera_index=camera_index,
            camera_width=camera_width,
            camera_height=camera_height,
            jpeg_quality=jpeg_quality,
            telegram_bot_token=telegram_bot_token,
            allowed_chat_id=allowed_chat_id,
        )

    def require_telegram(self) -> tuple[str, str]:
        """Return (bot token, allowed chat id) or raise when the bot is not configured."""
        match (self.telegram_bot_token, self.allowed_chat_id):
            case (None, _):
                raise ValueError("TELEGRAM_BOT_TOKEN must be set in .env")
            case (_, None):
                raise ValueError("ALLOWED_CHAT_ID must be set in .env")
            case (token, chat_id):
                return token, chat_id
