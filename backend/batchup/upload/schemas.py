"""Data models for the upload iterator.

- FileSpec: one local file to upload, optionally paired with a thumbnail
- UploadFile: an open handle plus its byte size
- UploadElement: a self-contained unit of work handed to the uploader
- PlanRequest / PlanItem / PlanResponse: payloads of the dry-run plan endpoint
"""
import os
from dataclasses import dataclass
from typing import BinaryIO, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from batchup.peers.schemas import Peer


class FileSpec(BaseModel):
    """A local file and its optional thumbnail path (empty means none)."""
    model_config = ConfigDict(frozen=True)

    path: str = Field("", description="File path")
    thumb: str = Field("", description="Thumbnail path")


@dataclass
class UploadFile:
    """An open binary handle and its size in bytes.

    Thumbnails are wrapped with ``size=0``; the uploader measures them on
    demand.
    """
    file: BinaryIO
    size: int

    @property
    def name(self) -> str:
        return os.path.basename(self.file.name)

    def read(self, n: int = -1) -> bytes:
        return self.file.read(n)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self.file.seek(offset, whence)

    def close(self) -> None:
        self.file.close()


@dataclass
class UploadElement:
    """One unit of work for the downstream uploader.

    The consumer owns the handles: it must close them (``close()`` or use the
    element as a context manager) and delete the source file when ``remove``
    is set and the upload succeeded.
    """
    file: UploadFile
    thumb: Optional[UploadFile]
    to: Peer
    thread: int
    as_photo: bool
    remove: bool

    def close(self) -> None:
        self.file.close()
        if self.thumb is not None:
            self.thumb.close()

    def __enter__(self) -> "UploadElement":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class PlanRequest(BaseModel):
    """Request body for ``POST /uploads/plan``.

    ``chat`` selects static routing; when it is empty and ``to`` holds a
    routing expression, each file is routed by evaluating it. ``to`` is
    always inline source; it is never read from the server's disk.
    """
    files: List[FileSpec] = Field(default_factory=list)
    chat: str = Field("", description="Static destination chat identifier")
    topic: int = Field(0, description="Static topic / reply-to message id")
    to: str = Field("", description="Inline routing expression")
    photo: bool = Field(False, description="Send images as photos")
    remove: bool = Field(False, description="Remove files after upload")


class PlanItem(BaseModel):
    """One resolved element of a dry-run plan."""
    path: str
    size: int
    peer_id: int
    peer_name: str
    thread: int
    thumb: Optional[str] = None
    as_photo: bool
    remove: bool


class PlanResponse(BaseModel):
    """Result of a dry run; ``error`` is set when iteration stopped early."""
    items: List[PlanItem] = Field(default_factory=list)
    complete: bool = True
    error: Optional[str] = None
