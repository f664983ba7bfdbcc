"""Routing data models.

A routing program returns a dynamically typed value. It is decoded once at
the policy boundary into one of three variants:

- PeerRoute: a plain identifier string, thread 0
- DestinationRoute: a mapping decoded into a Destination
- UnrecognizedRoute: anything else, kept for the error message
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from batchup.upload.schemas import FileSpec


class Destination(BaseModel):
    """Peer identifier plus thread (topic or reply-to message, 0 for none).

    Decoding is tolerant: keys match case-insensitively, numbers are accepted
    for ``peer`` and numeric strings for ``thread``, fractional threads are
    truncated toward zero, and missing or ``None`` values keep their zero
    values.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)

    peer: str = ""
    thread: int = 0

    @model_validator(mode="before")
    @classmethod
    def _fold_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        folded = {str(k).lower(): v for k, v in data.items() if v is not None}
        thread = folded.get("thread")
        if isinstance(thread, float) and math.isfinite(thread):
            folded["thread"] = int(thread)
        return folded


class RoutingEnvironment(BaseModel):
    """Read-only view of the current file exposed to routing programs as ``File``."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    file: FileSpec = Field(default_factory=FileSpec, alias="File")

    @classmethod
    def for_file(cls, spec: Optional[FileSpec]) -> "RoutingEnvironment":
        return cls(file=spec if spec is not None else FileSpec())

    def names(self) -> Dict[str, Any]:
        return {"File": self.file}


@dataclass(frozen=True)
class PeerRoute:
    peer: str


@dataclass(frozen=True)
class DestinationRoute:
    destination: Destination


@dataclass(frozen=True)
class UnrecognizedRoute:
    result: Any


RouteResult = Union[PeerRoute, DestinationRoute, UnrecognizedRoute]
