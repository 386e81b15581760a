"""
Local Byte Sources and Sinks
============================

Adapters between the SCP engine and local storage. The engine only
needs to know how many bytes a source holds and to read them in order;
on download it only needs somewhere to write the payload.

Sources (put)
-------------
- SourceMode.STRING with bytes, bytearray, memoryview or str (UTF-8)
- SourceMode.STRING with a readable binary file object
- SourceMode.STRING with a text file object, read and encoded as UTF-8
- SourceMode.LOCAL_FILE with a path to a regular file

The size must be known before the header is sent. Byte strings know
their length; local files use fstat; seekable file objects are measured
with seek/tell from their current position; anything else is read fully
into memory first.

Sinks (get)
-----------
- None: payload is collected in memory and returned as bytes
- A path: opened for writing after the header is acknowledged
- A writable binary file object: written to, left open for the caller

Ownership
---------
Handles opened here (LOCAL_FILE sources, path sinks) are closed by
`close()`. File objects supplied by the caller are never closed.
"""

import io
import logging
import os
from enum import Enum
from typing import BinaryIO, Optional, Union

from scplink.errors import ArgumentError, ProtocolError

# Configure module logger
logger = logging.getLogger(__name__)

PathType = Union[str, os.PathLike]


# =============================================================================
# Source Mode
# =============================================================================

class SourceMode(Enum):
    """How the `source` argument of a put is interpreted."""

    STRING = "string"          # bytes-like, str, or readable file object
    LOCAL_FILE = "local_file"  # path to a local regular file


# =============================================================================
# Sources
# =============================================================================

class ByteSource:
    """
    Base class for payload sources.

    Attributes:
        size: Total number of bytes the source will deliver
    """

    size: int = 0

    def read(self, count: int) -> bytes:
        raise NotImplementedError

    def close(self) -> None:
        pass


class BytesSource(ByteSource):
    """Source over an in-memory buffer."""

    def __init__(self, data: bytes):
        self._view = memoryview(data)
        self._offset = 0
        self.size = len(self._view)

    def read(self, count: int) -> bytes:
        chunk = self._view[self._offset:self._offset + count].tobytes()
        self._offset += len(chunk)
        return chunk

    def close(self) -> None:
        self._view.release()


class StreamSource(ByteSource):
    """
    Source over a binary file object.

    Args:
        stream: Readable binary file object
        size: Number of bytes to deliver from the current position
        owned: Close the stream in close() if True
    """

    def __init__(self, stream: BinaryIO, size: int, owned: bool = False):
        self._stream = stream
        self._owned = owned
        self.size = size

    def read(self, count: int) -> bytes:
        return self._stream.read(count) or b""

    def close(self) -> None:
        if self._owned:
            self._stream.close()


def _is_readable(source: object) -> bool:
    return callable(getattr(source, "read", None))


def _stream_size(stream: BinaryIO) -> Optional[int]:
    """Return the bytes remaining in a seekable stream, or None."""
    try:
        if not stream.seekable():
            return None
        position = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(position, io.SEEK_SET)
    except (AttributeError, OSError, ValueError):
        return None
    return max(end - position, 0)


def open_source(source: object, mode: SourceMode) -> ByteSource:
    """
    Wrap the `source` argument of a put in a ByteSource.

    Args:
        source: Payload, file object or local path depending on mode.
        mode: SourceMode value.

    Returns:
        A ByteSource with its size resolved.

    Raises:
        ArgumentError: If mode is not a SourceMode, or the source type
            does not fit the mode.
        FileNotFoundError: If mode is LOCAL_FILE and the path is not a
            regular file.
    """
    if not isinstance(mode, SourceMode):
        raise ArgumentError(f"Invalid source mode: {mode!r}")

    if mode is SourceMode.LOCAL_FILE:
        if not isinstance(source, (str, os.PathLike)):
            raise ArgumentError(
                f"LOCAL_FILE source must be a path, got {type(source).__name__}"
            )
        if not os.path.isfile(source):
            raise FileNotFoundError(f"{os.fspath(source)} is not a valid file")
        handle = open(source, "rb")
        size = os.fstat(handle.fileno()).st_size
        logger.debug("Opened local source %s (%d bytes)", os.fspath(source), size)
        return StreamSource(handle, size, owned=True)

    if isinstance(source, str):
        return BytesSource(source.encode("utf-8"))
    if isinstance(source, (bytes, bytearray, memoryview)):
        return BytesSource(bytes(source) if isinstance(source, memoryview) else source)

    if isinstance(source, io.TextIOBase):
        # seek/tell count characters, so measure the encoded text instead
        data = source.read().encode("utf-8")
        logger.debug("Buffered text source (%d bytes)", len(data))
        return BytesSource(data)

    if _is_readable(source):
        size = _stream_size(source)
        if size is not None:
            return StreamSource(source, size)
        # Unknown length, buffer everything
        data = source.read()
        if isinstance(data, str):
            data = data.encode("utf-8")
        logger.debug("Buffered unseekable source (%d bytes)", len(data))
        return BytesSource(data or b"")

    raise ArgumentError(
        f"Unsupported STRING source type: {type(source).__name__}"
    )


# =============================================================================
# Sinks
# =============================================================================

class ByteSink:
    """
    Base class for payload sinks.

    `open()` is called once the header has been acknowledged and before
    the first payload byte arrives. `result()` gives the value returned
    by a successful get.
    """

    def open(self) -> None:
        pass

    def write(self, data: bytes) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def result(self) -> Union[bytes, bool]:
        return True


class MemorySink(ByteSink):
    """Collect the payload in memory."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def write(self, data: bytes) -> None:
        self._buffer += data

    def result(self) -> bytes:
        return bytes(self._buffer)


class PathSink(ByteSink):
    """Write the payload to a local path, opened and closed here."""

    def __init__(self, path: PathType):
        self.path = path
        self._handle: Optional[BinaryIO] = None

    def open(self) -> None:
        self._handle = open(self.path, "wb")
        logger.debug("Opened local sink %s", os.fspath(self.path))

    def write(self, data: bytes) -> None:
        if self._handle is None:
            raise ProtocolError("Payload received before the sink was opened")
        self._handle.write(data)

    def close(self) -> None:
        if self._handle is not None:
            handle, self._handle = self._handle, None
            handle.close()


class StreamSink(ByteSink):
    """Write the payload to a caller-owned file object."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream

    def write(self, data: bytes) -> None:
        self._stream.write(data)


def open_sink(sink: object) -> ByteSink:
    """
    Wrap the `sink` argument of a get in a ByteSink.

    Raises:
        ArgumentError: If the sink is neither None, a path, nor an
            object with a write() method.
    """
    if sink is None:
        return MemorySink()
    if isinstance(sink, (str, os.PathLike)):
        return PathSink(sink)
    if callable(getattr(sink, "write", None)):
        return StreamSink(sink)
    raise ArgumentError(f"Unsupported sink type: {type(sink).__name__}")
