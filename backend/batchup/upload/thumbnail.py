"""Thumbnail validation for upload elements."""
import logging
from typing import Optional

from batchup.errors import ThumbnailInvalidError, ThumbnailOpenError
from batchup.media.sniff import ContentTypeError, detect_file, is_image

from .schemas import UploadFile

logger = logging.getLogger(__name__)


def open_thumbnail(path: str) -> Optional[UploadFile]:
    """Validate and open the thumbnail at *path*.

    An empty path means the file has no thumbnail. A detection failure is
    reported the same way as a non-image type.

    Raises:
        ThumbnailInvalidError: If the file is not an image.
        ThumbnailOpenError: If the file cannot be opened.
    """
    if not path:
        return None

    try:
        mime = detect_file(path)
    except ContentTypeError as e:
        raise ThumbnailInvalidError(path) from e
    if not is_image(mime):
        # TODO: restrict to JPEG once the uploader converts other formats.
        raise ThumbnailInvalidError(path)

    try:
        fh = open(path, "rb")
    except OSError as e:
        raise ThumbnailOpenError(path) from e

    logger.debug("Attached thumbnail %s (%s)", path, mime)
    return UploadFile(file=fh, size=0)
