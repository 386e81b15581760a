"""
Shared Test Fixtures
====================

In-memory channels for exercising the SCP engine without a network:

- SimulatedPeer: a channel factory whose channels behave like a remote
  `scp -t` / `scp -f` process over an in-memory filesystem. Use it for
  round trips and for checking what actually landed on the "remote".
- ScriptedChannel: replays a fixed list of frames and records what the
  engine sends. Use it for malformed and adversarial peers.
"""

import shlex
from collections import deque
from typing import Optional

import pytest


# =============================================================================
# Simulated Remote scp
# =============================================================================

class PeerChannel:
    """One exec channel to the simulated remote scp process."""

    def __init__(self, peer: "SimulatedPeer"):
        self.peer = peer
        self.command: Optional[str] = None
        self.sent: list[bytes] = []
        self.close_count = 0
        self._outgoing: deque = deque()
        self._mode: Optional[str] = None
        self._path = ""
        self._state = "idle"
        self._buffer = bytearray()
        self._expected = 0

    @property
    def packet_size(self) -> int:
        return self.peer.packet_size

    def open_exec(self, command: str) -> bool:
        self.command = command
        self.peer.commands.append(command)
        if self.peer.refuse_exec:
            return False

        _, self._mode, self._path = shlex.split(command)
        if self._mode == "-t":
            # Receiver announces it is ready
            self._outgoing.append(self.peer.initial_status)
            self._state = "header"
        else:
            self._state = "ready"
        return True

    def send(self, data: bytes) -> None:
        self.sent.append(bytes(data))
        if self._mode == "-t":
            self._sink_input(data)
        else:
            self._source_input(data)

    def receive(self) -> Optional[bytes]:
        if self._outgoing:
            return self._outgoing.popleft()
        return None

    def close(self) -> None:
        self.close_count += 1

    # -------------------------------------------------------------------------
    # scp -t (remote receives)
    # -------------------------------------------------------------------------

    def _sink_input(self, data: bytes) -> None:
        if self._state == "header":
            self._buffer += data
            if b"\n" not in self._buffer:
                return
            line = bytes(self._buffer).split(b"\n", 1)[0].decode()
            self._buffer.clear()
            self.peer.headers.append(line)

            if self._path in self.peer.deny:
                self._outgoing.append(
                    f"\x02scp: {self._path}: Permission denied\n".encode()
                )
                self._state = "done"
                return

            self._expected = int(line.split(" ")[1])
            self._outgoing.append(b"\x00")
            self._state = "data"
            if self._expected == 0:
                self._commit()

        elif self._state == "data":
            self._buffer += data
            if len(self._buffer) >= self._expected:
                self._commit()

    def _commit(self) -> None:
        self.peer.files[self._path] = bytes(self._buffer[:self._expected])
        self._state = "done"

    # -------------------------------------------------------------------------
    # scp -f (remote sends)
    # -------------------------------------------------------------------------

    def _source_input(self, data: bytes) -> None:
        if data != b"\x00":
            return

        if self._state == "ready":
            if self._path not in self.peer.files:
                self._outgoing.append(
                    f"\x02scp: {self._path}: No such file or directory\n".encode()
                )
                self._state = "done"
                return
            content = self.peer.files[self._path]
            name = self._path.rstrip("/").rsplit("/", 1)[-1]
            self._outgoing.append(f"C0644 {len(content)} {name}\n".encode())
            self._state = "header_sent"

        elif self._state == "header_sent":
            content = self.peer.files[self._path]
            frames = [
                content[i:i + self.peer.frame_size]
                for i in range(0, len(content), self.peer.frame_size)
            ]
            if frames and self.peer.status_with_payload:
                frames[-1] = frames[-1] + b"\x00"
            else:
                frames.append(b"\x00")
            self._outgoing.extend(frames)
            self._state = "done"


class SimulatedPeer:
    """
    Channel factory for a simulated remote host.

    Attributes:
        files: Remote filesystem, path -> content
        packet_size: Reported maximum packet size of every channel
        frame_size: Payload bytes per frame sent by the remote on get
        status_with_payload: Append the trailing status byte to the last
            payload frame instead of sending it alone
        deny: Paths the remote refuses to write
        refuse_exec: Make open_exec() return False
        initial_status: First frame sent by `scp -t`
    """

    def __init__(self, packet_size: int = 36, frame_size: int = 16):
        self.files: dict[str, bytes] = {}
        self.packet_size = packet_size
        self.frame_size = frame_size
        self.status_with_payload = False
        self.deny: set[str] = set()
        self.refuse_exec = False
        self.initial_status = b"\x00"
        self.channels: list[PeerChannel] = []
        self.commands: list[str] = []
        self.headers: list[str] = []

    def __call__(self) -> PeerChannel:
        channel = PeerChannel(self)
        self.channels.append(channel)
        return channel


# =============================================================================
# Scripted Channel
# =============================================================================

class ScriptedChannel:
    """
    Channel that replays canned frames.

    Args:
        frames: Frames returned by receive(), in order. None entries (or
            running out of frames) mean EOF.
        packet_size: Reported maximum packet size
        open_result: Value returned by open_exec()
    """

    def __init__(
        self,
        frames: Optional[list] = None,
        packet_size: int = 36,
        open_result: bool = True,
    ):
        self.frames = deque(frames or [])
        self._packet_size = packet_size
        self.open_result = open_result
        self.commands: list[str] = []
        self.sent: list[bytes] = []
        self.close_count = 0
        self.close_error: Optional[Exception] = None

    @property
    def packet_size(self) -> int:
        return self._packet_size

    def open_exec(self, command: str) -> bool:
        self.commands.append(command)
        return self.open_result

    def send(self, data: bytes) -> None:
        self.sent.append(bytes(data))

    def receive(self) -> Optional[bytes]:
        if not self.frames:
            return None
        return self.frames.popleft()

    def close(self) -> None:
        self.close_count += 1
        if self.close_error is not None:
            raise self.close_error


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def peer() -> SimulatedPeer:
    """A simulated remote host with 32-byte upload chunks."""
    return SimulatedPeer()


@pytest.fixture
def scripted():
    """Factory for ScriptedChannel instances."""
    return ScriptedChannel
