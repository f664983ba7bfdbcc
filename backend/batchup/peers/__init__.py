"""Peer resolution for batchup.

Turns chat identifiers into addressable peers. The session back-end sits
behind ``PeerManager``; ``DirectoryPeerManager`` is the in-memory directory
used by the plan API and by tests.
"""
from .schemas import Peer, PeerKind
from .manager import (
    DirectoryPeerManager,
    PeerManager,
    PeerNotFoundError,
    get_peer_manager,
    set_peer_manager,
)

__all__ = [
    "Peer",
    "PeerKind",
    "PeerManager",
    "DirectoryPeerManager",
    "PeerNotFoundError",
    "get_peer_manager",
    "set_peer_manager",
]
