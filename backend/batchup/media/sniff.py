"""Content-type sniffing for local files.

Detection inspects file contents, not the extension: Pillow reads just the
header to identify the format. Files Pillow cannot identify raise
``ContentTypeError``.
"""
import logging
from enum import Enum

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class MediaType(str, Enum):
    """Media categories derived from a MIME type."""
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    OTHER = "other"


class ContentTypeError(Exception):
    """Raised when a file's content type cannot be detected."""
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"cannot detect content type of {path}: {reason}")


def detect_file(path: str) -> str:
    """Return the MIME type of the file at *path*.

    Raises:
        ContentTypeError: If the file is unreadable or its format is unknown.
    """
    try:
        with Image.open(path) as img:
            fmt = img.format
    except UnidentifiedImageError as e:
        raise ContentTypeError(path, "unrecognized format") from e
    except Image.DecompressionBombError as e:
        raise ContentTypeError(path, str(e)) from e
    except OSError as e:
        raise ContentTypeError(path, str(e)) from e

    mime = Image.MIME.get(fmt or "")
    if not mime:
        raise ContentTypeError(path, f"no MIME type for format {fmt}")
    logger.debug("Detected %s as %s", path, mime)
    return mime


def get_media_type(mime_type: str) -> MediaType:
    """Categorize a MIME type by its top-level type.

    Examples:
        >>> get_media_type("image/jpeg")
        <MediaType.IMAGE: 'image'>
        >>> get_media_type("application/pdf")
        <MediaType.OTHER: 'other'>
    """
    major = mime_type.split("/", 1)[0].strip().lower()
    for media_type in (MediaType.IMAGE, MediaType.VIDEO, MediaType.AUDIO):
        if major == media_type.value:
            return media_type
    return MediaType.OTHER


def is_image(mime_type: str) -> bool:
    return get_media_type(mime_type) is MediaType.IMAGE
