"""Destination routing policy.

Decides where each file goes. The mode is fixed at construction:

    - static:     one chat identifier and topic for every file
    - expression: a routing program evaluated per file

Routing results are decoded once into a ``RouteResult`` variant and then
resolved to a peer through the injected ``PeerManager``.
"""
import logging
from collections.abc import Mapping
from typing import Any, Optional, Tuple

from pydantic import ValidationError

from batchup.errors import DestinationDecodeError, RoutingResultTypeError
from batchup.peers.manager import PeerManager
from batchup.peers.resolver import resolve_peer
from batchup.peers.schemas import Peer
from batchup.upload.schemas import FileSpec

from .expr import RoutingProgram, run_program
from .schemas import (
    Destination,
    DestinationRoute,
    PeerRoute,
    RouteResult,
    RoutingEnvironment,
    UnrecognizedRoute,
)

logger = logging.getLogger(__name__)


def classify_result(result: Any) -> RouteResult:
    """Tag a raw routing result by its runtime shape."""
    if isinstance(result, str):
        return PeerRoute(peer=result)
    if isinstance(result, Mapping):
        try:
            return DestinationRoute(destination=Destination.model_validate(dict(result)))
        except ValidationError as e:
            raise DestinationDecodeError(result) from e
    return UnrecognizedRoute(result=result)


def route_to_destination(route: RouteResult) -> Destination:
    """Normalize a decoded route into a Destination.

    Raises:
        RoutingResultTypeError: For ``UnrecognizedRoute``.
    """
    if isinstance(route, PeerRoute):
        # Chat only, no reply-to; "" doubles as send-to-self.
        return Destination(peer=route.peer, thread=0)
    if isinstance(route, DestinationRoute):
        return route.destination
    raise RoutingResultTypeError(route.result)


class RoutingPolicy:
    """Resolves the destination peer and thread for each file.

    Args:
        manager: Peer manager used for every resolution.
        chat: Static chat identifier. Non-empty selects static mode.
        topic: Static thread index (static mode only).
        program: Compiled routing program. Used when ``chat`` is empty.
            With neither, files go to the caller's own identity.
    """

    def __init__(
        self,
        manager: PeerManager,
        chat: str = "",
        topic: int = 0,
        program: Optional[RoutingProgram] = None,
    ):
        self.manager = manager
        self.chat = chat
        self.topic = topic
        self.program = program if not chat else None

    @property
    def is_static(self) -> bool:
        return self.program is None

    def evaluate(self, spec: Optional[FileSpec]) -> Destination:
        """Compute the unresolved destination for *spec*."""
        if self.is_static:
            return Destination(peer=self.chat, thread=self.topic)

        result = run_program(self.program, RoutingEnvironment.for_file(spec))
        return route_to_destination(classify_result(result))

    def resolve(self, spec: Optional[FileSpec]) -> Tuple[Peer, int]:
        """Return the resolved peer and thread index for *spec*."""
        dest = self.evaluate(spec)
        peer = resolve_peer(self.manager, dest.peer)
        logger.debug(
            "Routed %s -> %s (thread=%d)",
            spec.path if spec is not None else "<none>",
            peer.display_name,
            dest.thread,
        )
        return peer, dest.thread
