"""Lazy, cancellable producer of upload elements.

``UploadIterator`` walks a file list and, on each pull, routes the file,
validates its thumbnail and opens it, handing back a self-contained
``UploadElement``. The consumer drives the pace:

    it = UploadIterator(files, policy, as_photo=True)
    while it.next(cancel):
        with it.value() as elem:
            upload(elem)
    if it.err() is not None:
        raise it.err()

States:
    - Ready:     cursor < len(files), no error
    - Exhausted: cursor >= len(files)
    - Failed:    an error was recorded

Failed and Exhausted are terminal. The first failure stops the whole run;
files are never skipped or retried. Cancellation is polled at the start of
each pull only.

Not safe for concurrent pulls.
"""
import logging
import os
from typing import Iterator, Optional, Protocol, Sequence

from batchup.errors import (
    OpenFileError,
    StatFileError,
    UploadCancelledError,
    UploadIterError,
)
from batchup.peers.manager import PeerManager
from batchup.routing.expr import RoutingProgram
from batchup.routing.policy import RoutingPolicy

from .schemas import FileSpec, UploadElement, UploadFile
from .thumbnail import open_thumbnail

logger = logging.getLogger(__name__)


class CancelSignal(Protocol):
    """Anything with ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


class UploadIterator:
    """Pull-based iterator over upload elements.

    Args:
        files: Files to upload, processed strictly in order.
        policy: Routing policy resolving each file's destination.
        as_photo: Send images as photos (applies to every file).
        remove: Remove each file after a successful upload.
    """

    def __init__(
        self,
        files: Sequence[FileSpec],
        policy: RoutingPolicy,
        as_photo: bool = False,
        remove: bool = False,
    ):
        self._files = tuple(files)
        self._policy = policy
        self._as_photo = as_photo
        self._remove = remove

        self._cur = 0
        self._err: Optional[Exception] = None
        self._elem: Optional[UploadElement] = None

    @classmethod
    def create(
        cls,
        files: Sequence[FileSpec],
        manager: PeerManager,
        program: Optional[RoutingProgram] = None,
        chat: str = "",
        topic: int = 0,
        as_photo: bool = False,
        remove: bool = False,
    ) -> "UploadIterator":
        """Build an iterator from raw routing options.

        A non-empty ``chat`` routes every file statically to that chat and
        ``topic``; otherwise ``program`` is evaluated per file.
        """
        policy = RoutingPolicy(manager, chat=chat, topic=topic, program=program)
        logger.info(
            "Upload iterator over %d files (%s routing)",
            len(files),
            "static" if policy.is_static else "expression",
        )
        return cls(files, policy, as_photo=as_photo, remove=remove)

    @property
    def cursor(self) -> int:
        return self._cur

    def __len__(self) -> int:
        return len(self._files)

    def next(self, cancel: Optional[CancelSignal] = None) -> bool:
        """Advance to the next element.

        Returns:
            True if an element is ready via ``value()``; False on exhaustion
            or failure (see ``err()``).
        """
        if cancel is not None and cancel.is_set():
            self._err = UploadCancelledError()
            logger.info("Upload iteration cancelled at file %d/%d", self._cur, len(self._files))
            return False

        if self._cur >= len(self._files) or self._err is not None:
            return False

        spec = self._files[self._cur]
        self._cur += 1

        try:
            self._elem = self._build(spec)
        except UploadIterError as e:
            self._err = e
            logger.warning("Upload iteration stopped at %s: %s", spec.path, e)
            return False

        return True

    def value(self) -> Optional[UploadElement]:
        """Return the element produced by the last successful ``next()``."""
        return self._elem

    def err(self) -> Optional[Exception]:
        """Return the terminal error, or None if there is none."""
        return self._err

    def elements(self, cancel: Optional[CancelSignal] = None) -> Iterator[UploadElement]:
        """Generator over all elements; raises the terminal error at the end."""
        while self.next(cancel):
            yield self.value()
        if self._err is not None:
            raise self._err

    def _build(self, spec: FileSpec) -> UploadElement:
        to, thread = self._policy.resolve(spec)

        thumb = open_thumbnail(spec.thumb)
        try:
            file = self._open(spec.path)
        except UploadIterError:
            if thumb is not None:
                thumb.close()
            raise

        return UploadElement(
            file=file,
            thumb=thumb,
            to=to,
            thread=thread,
            as_photo=self._as_photo,
            remove=self._remove,
        )

    def _open(self, path: str) -> UploadFile:
        try:
            fh = open(path, "rb")
        except OSError as e:
            raise OpenFileError(path) from e

        try:
            size = os.fstat(fh.fileno()).st_size
        except OSError as e:
            fh.close()
            raise StatFileError(path) from e

        return UploadFile(file=fh, size=size)
