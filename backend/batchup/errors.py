"""Error taxonomy for the upload iterator.

Every error here is terminal for the whole iteration: the iterator records
the first failure, reports "no more elements" from then on, and exposes the
error through ``UploadIterator.err()``. Underlying causes (OS errors, peer
manager errors, evaluation errors) are chained as ``__cause__``.
"""
from typing import Any


class UploadIterError(Exception):
    """Base exception for upload iteration errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UploadCancelledError(UploadIterError):
    """Raised when the caller's cancellation signal is observed."""
    def __init__(self, message: str = "upload iteration cancelled"):
        super().__init__(message)


class OpenFileError(UploadIterError):
    """Raised when the primary file cannot be opened."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"open file: {path}")


class StatFileError(UploadIterError):
    """Raised when the opened primary file cannot be stat'ed."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"stat file: {path}")


class RoutingEvaluationError(UploadIterError):
    """Raised when the routing program fails to evaluate."""
    def __init__(self, detail: str):
        super().__init__(f"message routing: {detail}")


class RoutingResultTypeError(UploadIterError):
    """Raised when the routing program returns neither a string nor a mapping."""
    def __init__(self, result: Any):
        self.result = result
        self.type_name = type(result).__name__
        super().__init__(
            f"message router must return string or dest: {self.type_name}"
        )


class DestinationDecodeError(UploadIterError):
    """Raised when a mapping result cannot be coerced into a Destination."""
    def __init__(self, result: Any):
        self.result = result
        super().__init__(f"decode dest: {result!r}")


class PeerResolutionError(UploadIterError):
    """Raised when the peer manager cannot resolve an identifier."""
    def __init__(self, identifier: str):
        self.identifier = identifier
        shown = identifier if identifier else "<self>"
        super().__init__(f"resolve peer: {shown}")


class ThumbnailInvalidError(UploadIterError):
    """Raised when a thumbnail is not an image or its type cannot be detected."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"invalid thumbnail file: {path}")


class ThumbnailOpenError(UploadIterError):
    """Raised when a validated thumbnail cannot be opened."""
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"open thumbnail file: {path}")
