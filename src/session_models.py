"""Session domain models for the capture-analyze-present loop."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from uuid import uuid4

from src.imaging.image import EncodedImage
from src.vision.schema import AnalysisResult


class SessionState(str, Enum):
    IDLE = "IDLE"
    CAPTURING_LIVE = "CAPTURING_LIVE"
    ANALYZING = "ANALYZING"
    RESULT = "RESULT"
    FAILED = "FAILED"


@dataclass
class Session:
    """Mutable orchestration record. Only SessionController writes to it."""

    session_id: str = field(default_factory=lambda: uuid4().hex)
    state: SessionState = SessionState.IDLE
    image: Optional[EncodedImage] = None
    result: Optional[AnalysisResult] = None
    error_detail: Optional[str] = None
    error_kind: Optional[str] = None
    scan_count: int = 0


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view handed to presenters."""

    session_id: str
    state: SessionState
    image: Optional[EncodedImage]
    result: Optional[AnalysisResult]
    error_detail: Optional[str]
    error_kind: Optional[str]
    scan_number: int

    @classmethod
    def of(cls, session: Session) -> "SessionSnapshot":
        return cls(
            session_id=session.session_id,
            state=session.state,
            image=session.image,
            result=session.result,
            error_detail=session.error_detail,
            error_kind=session.error_kind,
            scan_number=session.scan_count,
        )
