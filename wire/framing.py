from __future__ import annotations

import asyncio
from typing import Optional, Tuple

from .constants import LENGTH_BYTEORDER, LENGTH_PREFIX_SIZE
from .errors import ConnectionClosed, FrameTooLargeError, FramingError, ShortReadError


def encode_frame(payload: bytes) -> bytes:
    """Encode a frame: 4 bytes little-endian length + payload."""
    if len(payload) >= 1 << (8 * LENGTH_PREFIX_SIZE):
        raise FramingError(f"Payload of {len(payload)} bytes does not fit the length prefix")
    return len(payload).to_bytes(LENGTH_PREFIX_SIZE, LENGTH_BYTEORDER) + payload


def decode_frame(data: bytes) -> Tuple[bytes, bytes]:
    """Split one frame off the front of ``data``, returning (payload, rest)."""
    if len(data) < LENGTH_PREFIX_SIZE:
        raise ShortReadError("Incomplete frame header")
    length = int.from_bytes(data[:LENGTH_PREFIX_SIZE], LENGTH_BYTEORDER)
    end = LENGTH_PREFIX_SIZE + length
    payload = data[LENGTH_PREFIX_SIZE:end]
    if len(payload) != length:
        raise ShortReadError(f"Frame payload truncated: expected {length} bytes, got {len(payload)}")
    return payload, data[end:]


async def read_frame(reader: asyncio.StreamReader, max_size: Optional[int] = None) -> bytes:
    """Read a single frame from the stream.

    EOF before any header byte raises ``ConnectionClosed``; EOF anywhere
    else raises ``ShortReadError``. ``max_size`` is opt-in, no cap otherwise.
    """
    try:
        header = await reader.readexactly(LENGTH_PREFIX_SIZE)
    except asyncio.IncompleteReadError as exc:
        if not exc.partial:
            raise ConnectionClosed("Stream closed") from exc
        raise ShortReadError(f"Read length failed after {len(exc.partial)} bytes") from exc
    except (ConnectionError, OSError) as exc:
        raise FramingError(f"Read length failed: {exc}") from exc

    length = int.from_bytes(header, LENGTH_BYTEORDER)
    if max_size is not None and length > max_size:
        raise FrameTooLargeError(f"Frame of {length} bytes exceeds limit of {max_size}")

    try:
        return await reader.readexactly(length)
    except asyncio.IncompleteReadError as exc:
        raise ShortReadError(f"Read data failed: expected {length} bytes, got {len(exc.partial)}") from exc
    except (ConnectionError, OSError) as exc:
        raise FramingError(f"Read data failed: {exc}") from exc


async def write_frame(writer: asyncio.StreamWriter, payload: bytes) -> None:
    """Write one frame and wait until it is flushed to the transport."""
    frame = encode_frame(payload)
    try:
        writer.write(frame)
        await writer.drain()
    except (ConnectionError, OSError) as exc:
        raise FramingError(f"Write failed: {exc}") from exc


__all__ = ["encode_frame", "decode_frame", "read_frame", "write_frame"]
