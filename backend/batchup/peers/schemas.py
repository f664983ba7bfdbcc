"""Peer handles returned by a peer manager."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PeerKind(str, Enum):
    """Kinds of destination a file can be sent to."""
    USER = "user"
    GROUP = "group"
    CHANNEL = "channel"


@dataclass(frozen=True)
class Peer:
    """A resolved, addressable destination.

    Owned by the peer manager that produced it; the upload pipeline only
    borrows it while building an element.
    """
    id: int
    username: Optional[str] = None
    title: str = ""
    kind: PeerKind = PeerKind.USER

    @property
    def display_name(self) -> str:
        if self.username:
            return f"@{self.username}"
        return self.title or str(self.id)
