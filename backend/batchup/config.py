"""Batchup application configuration.

Loads settings from a single YAML file:
  * batchup.settings.yaml: server, logging and peer directory

The peer directory seeds the in-memory ``DirectoryPeerManager`` used by the
plan endpoint; a missing file yields defaults (empty directory, anonymous self).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from batchup.peers.schemas import PeerKind

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

SETTINGS_FILE = Path("batchup.settings.yaml")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with path.open(encoding="utf-8") as fh:
        return yaml.safe_load(fh) or {}


# ---------------------------------------------------------------------------
# Settings models
# ---------------------------------------------------------------------------


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000


class LoggingSettings(BaseModel):
    level: str = "info"


class PeerEntry(BaseModel):
    """One peer known to the directory."""
    id:       int
    username: Optional[str] = None
    title:    str           = ""
    kind:     PeerKind      = PeerKind.USER


class PeerDirectorySettings(BaseModel):
    """Peers resolvable without a network session.

    ``self`` is the caller's own identity (the target of an empty chat
    identifier); it is a reserved word in Python, hence the alias.
    """
    model_config = ConfigDict(populate_by_name=True)

    self_peer: PeerEntry       = Field(
        default_factory=lambda: PeerEntry(id=0, title="Saved Messages"),
        alias="self",
    )
    peers:     List[PeerEntry] = Field(default_factory=list)


class BatchupConfig(BaseModel):
    server:    ServerSettings        = Field(default_factory=ServerSettings)
    logging:   LoggingSettings       = Field(default_factory=LoggingSettings)
    directory: PeerDirectorySettings = Field(default_factory=PeerDirectorySettings)


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(settings_path: Optional[Path] = None) -> BatchupConfig:
    """Load settings from *settings_path* (default ``batchup.settings.yaml``)."""
    path = Path(settings_path) if settings_path is not None else SETTINGS_FILE
    config = BatchupConfig(**_load_yaml(path))
    logger.info(
        "Settings loaded (server=%s:%s, directory.peers=%d)",
        config.server.host,
        config.server.port,
        len(config.directory.peers),
    )
    return config


_config: Optional[BatchupConfig] = None


def get_config() -> BatchupConfig:
    """Return the process-wide config, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached config (for testing)."""
    global _config
    _config = None
