"""EncodedImage — the single image representation shared by upload and camera."""
import base64
from dataclasses import dataclass

from src.constants import IMAGE_MIME_TYPE


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    mime_type: str = IMAGE_MIME_TYPE

    def __len__(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        return base64.standard_b64encode(self.data).decode()

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"
