"""Upload path: read a user-selected file and normalize it to JPEG."""
import io
import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from src.constants import (
    ERR_EMPTY_IMAGE,
    ERR_FILE_MISSING,
    ERR_NOT_AN_IMAGE,
    ERR_TOO_LARGE,
    IMAGE_FORMAT,
)
from src.errors import InvalidInput
from src.imaging.image import EncodedImage

logger = logging.getLogger(__name__)

Upload = bytes | str | Path


def read_upload(upload: Upload, max_bytes: int) -> bytes:
    """Return the raw bytes of an upload given either as bytes or as a file path."""
    match upload:
        case bytes() as raw:
            pass
        case str() | Path() as path:
            path = Path(path)
            if not path.is_file():
                raise InvalidInput(ERR_FILE_MISSING % path)
            size = path.stat().st_size
            if size > max_bytes:
                raise InvalidInput(ERR_TOO_LARGE % (size, max_bytes))
            raw = path.read_bytes()
        case other:
            raise InvalidInput(ERR_NOT_AN_IMAGE % type(other).__name__)

    match len(raw):
        case 0:
            raise InvalidInput(ERR_EMPTY_IMAGE)
        case n if n > max_bytes:
            raise InvalidInput(ERR_TOO_LARGE % (n, max_bytes))
        case _:
            return raw


def to_jpeg(raw: bytes, quality: int) -> EncodedImage:
    """Validate that ``raw`` is an image and return it as JPEG.

    JPEG input is passed through untouched; any other format Pillow can
    decode is converted to RGB and re-encoded at ``quality``.
    """
    try:
        with Image.open(io.BytesIO(raw)) as probe:
            fmt = probe.format
            probe.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as exc:
        raise InvalidInput(ERR_NOT_AN_IMAGE % exc) from exc

    if fmt == IMAGE_FORMAT:
        return EncodedImage(raw)

    logger.debug("Re-encoding %s upload as JPEG", fmt)
    try:
        with Image.open(io.BytesIO(raw)) as img:
            buf = io.BytesIO()
            img.convert("RGB").save(buf, format=IMAGE_FORMAT, quality=quality)
    except (Image.DecompressionBombError, OSError) as exc:
        raise InvalidInput(ERR_NOT_AN_IMAGE % exc) from exc
    return EncodedImage(buf.getvalue())


def load_upload(upload: Upload, *, max_bytes: int, quality: int) -> EncodedImage:
    return to_jpeg(read_upload(upload, max_bytes), quality)
