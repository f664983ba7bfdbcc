"""Identifier -> peer resolution shared by static and expression routing."""
import logging

from batchup.errors import PeerResolutionError

from .manager import PeerManager
from .schemas import Peer

logger = logging.getLogger(__name__)


def resolve_peer(manager: PeerManager, identifier: str) -> Peer:
    """Resolve *identifier* through *manager*.

    An empty identifier is reserved for the caller's own identity. Every
    other form is handed to the manager's generic lookup, which owns the
    identifier grammar.

    Raises:
        PeerResolutionError: If the manager cannot resolve the identifier.
    """
    try:
        if identifier == "":
            return manager.self_peer()
        return manager.resolve(identifier)
    except Exception as e:
        logger.warning("Peer resolution failed for %r: %s", identifier, e)
        raise PeerResolutionError(identifier) from e
