"""Peer manager interface and the in-memory directory implementation.

Every session back-end must implement ``PeerManager`` so the upload
iterator stays transport-agnostic. ``DirectoryPeerManager`` resolves
identifiers against a fixed directory (seeded from config or built by tests).

Identifier grammar accepted by the directory:
    - ``@username`` or bare ``username`` (case-insensitive)
    - ``t.me/username`` / ``https://t.me/username`` links
    - numeric ids, including negative group/channel ids
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, Optional

from .schemas import Peer

if TYPE_CHECKING:
    from batchup.config import PeerDirectorySettings

logger = logging.getLogger(__name__)

_LINK_RE = re.compile(r"^(?:https?://)?(?:www\.)?t(?:elegram)?\.me/([A-Za-z0-9_]+)/?$")
_ID_RE = re.compile(r"^-?\d+$")


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_manager: Optional["PeerManager"] = None


def get_peer_manager() -> Optional["PeerManager"]:
    """Return the global PeerManager, or None if not yet initialised."""
    return _manager


def set_peer_manager(manager: Optional["PeerManager"]) -> None:
    """Set (or replace) the global PeerManager instance."""
    global _manager
    _manager = manager


# ---------------------------------------------------------------------------
# Managers
# ---------------------------------------------------------------------------


class PeerNotFoundError(LookupError):
    """Raised when an identifier does not match any known peer."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"peer not found: {identifier!r}")


class PeerManager(ABC):
    """Abstract base class for peer/session managers.

    Both methods may perform network I/O and may raise on failure; callers
    treat any exception as a resolution failure.
    """

    @abstractmethod
    def self_peer(self) -> Peer:
        """Return the caller's own identity."""

    @abstractmethod
    def resolve(self, identifier: str) -> Peer:
        """Resolve a non-empty identifier string to a peer handle."""


class DirectoryPeerManager(PeerManager):
    """Resolves peers from an in-memory directory."""

    def __init__(self, me: Peer, peers: Iterable[Peer] = ()) -> None:
        self._me = me
        self._by_id: Dict[int, Peer] = {}
        self._by_username: Dict[str, Peer] = {}
        for peer in (me, *peers):
            self.add(peer)

    @classmethod
    def from_settings(cls, settings: PeerDirectorySettings) -> "DirectoryPeerManager":
        def _peer(entry) -> Peer:
            return Peer(
                id=entry.id,
                username=entry.username,
                title=entry.title,
                kind=entry.kind,
            )

        manager = cls(_peer(settings.self_peer), [_peer(e) for e in settings.peers])
        logger.info("Peer directory ready with %d peers", len(manager))
        return manager

    def __len__(self) -> int:
        return len(self._by_id)

    def add(self, peer: Peer) -> None:
        """Register (or replace) a peer."""
        self._by_id[peer.id] = peer
        if peer.username:
            self._by_username[peer.username.lower()] = peer

    def self_peer(self) -> Peer:
        return self._me

    def resolve(self, identifier: str) -> Peer:
        peer = self._lookup(identifier.strip())
        if peer is None:
            raise PeerNotFoundError(identifier)
        logger.debug("Resolved %r to peer %s", identifier, peer.id)
        return peer

    def _lookup(self, identifier: str) -> Optional[Peer]:
        if _ID_RE.match(identifier):
            return self._by_id.get(int(identifier))

        match = _LINK_RE.match(identifier)
        if match:
            identifier = match.group(1)
        return self._by_username.get(identifier.lstrip("@").lower())
