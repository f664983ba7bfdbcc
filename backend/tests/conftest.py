"""Shared test fixtures and configuration for backend tests."""
import struct
import zlib

import pytest
from PIL import Image

from batchup.peers.manager import DirectoryPeerManager, set_peer_manager
from batchup.peers.schemas import Peer, PeerKind


ME = Peer(id=1000, username="me", title="Saved Messages")
ALICE = Peer(id=1001, username="alice", title="Alice")
GROUP = Peer(id=-100200, username="group", title="Team Group", kind=PeerKind.GROUP)
CHANNEL = Peer(id=-100300, title="Private Channel", kind=PeerKind.CHANNEL)


class CountingPeerManager(DirectoryPeerManager):
    """Directory manager that records every lookup it serves."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []

    def self_peer(self):
        self.calls.append("")
        return super().self_peer()

    def resolve(self, identifier):
        self.calls.append(identifier)
        return super().resolve(identifier)


@pytest.fixture
def manager():
    """A peer directory with the caller, one user, one group and one channel."""
    return CountingPeerManager(ME, [ALICE, GROUP, CHANNEL])


@pytest.fixture
def installed_manager(manager):
    """Install *manager* as the process-wide peer manager for the test."""
    set_peer_manager(manager)
    yield manager
    set_peer_manager(None)


@pytest.fixture
def make_file(tmp_path):
    """Create a plain file under tmp_path and return its path as a string."""
    def _make(name: str, content: bytes = b"payload") -> str:
        path = tmp_path / name
        path.write_bytes(content)
        return str(path)
    return _make


@pytest.fixture
def make_image(tmp_path):
    """Create a small real image (PNG by default) and return its path."""
    def _make(name: str = "thumb.png", fmt: str = "PNG") -> str:
        path = tmp_path / name
        Image.new("RGB", (4, 4), "red").save(path, format=fmt)
        return str(path)
    return _make


def _png_chunk(tag: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data))


@pytest.fixture
def make_oversized_png(tmp_path):
    """Create a PNG whose header declares 60000x60000 pixels.

    The body is empty, so the file is tiny on disk but trips Pillow's
    decompression bomb limit as soon as it is opened.
    """
    def _make(name: str = "bomb.png") -> str:
        path = tmp_path / name
        header = struct.pack(">IIBBBBB", 60000, 60000, 8, 2, 0, 0, 0)
        path.write_bytes(
            b"\x89PNG\r\n\x1a\n"
            + _png_chunk(b"IHDR", header)
            + _png_chunk(b"IDAT", b"")
            + _png_chunk(b"IEND", b"")
        )
        return str(path)
    return _make
