"""Media detection helpers for batchup.

Thumbnails must be images; this module sniffs file contents with Pillow
and classifies MIME types into coarse media categories:
- image, video, audio, other
"""
from .sniff import ContentTypeError, MediaType, detect_file, get_media_type, is_image

__all__ = ["ContentTypeError", "MediaType", "detect_file", "get_media_type", "is_image"]
