#!/usr/bin/env python3
"""
Netstring framing and connection handshake for peer links.

Every frame on a peer connection is a netstring: the content length in ASCII
decimal, a colon, the content bytes, then a comma. "5:hello," carries the
five bytes "hello". Length-prefixed frames let sync messages of any size
share one TCP stream without escaping.

Every peer connection starts with a handshake: the dialing node sends a
hello frame carrying its node id and the shared secret (if any), and the
listening node answers with a welcome frame or closes the connection. Only
after the welcome do both sides exchange sync message frames. The empty
netstring is reserved as a goodbye frame sent before an intentional
disconnect.
"""
import asyncio
import hmac
import json
from typing import Any

# Default ceiling for a single frame (200 MB plus headroom), used when a
# caller does not derive one from the configured payload limit.
DEFAULT_FRAME_LIMIT: int = 200 * 1024 * 1024 + 65536

# Ceiling for handshake frames, which only carry a node id and a secret.
HANDSHAKE_FRAME_LIMIT: int = 4096

# Empty netstring announcing that the sender is leaving on purpose.
GOODBYE_MESSAGE: bytes = b"0:,"

# Seconds to wait for the goodbye to flush; the peer may already be gone.
GOODBYE_DRAIN_TIMEOUT: float = 2.0


class ProtocolError(Exception):
    """
    A peer broke the framing or handshake rules.

    Covers malformed or oversized netstrings, streams that end mid-frame,
    and handshake frames that are not what the other side expects.
    """

    pass


class AuthenticationError(ProtocolError):
    """
    Exception raised when the remote side refuses the handshake.

    The listening node closes the connection without a welcome frame when
    the presented secret does not match, so the dialer only sees the
    connection end before the welcome arrives.
    """

    pass


def encode_netstring(data: bytes) -> bytes:
    """
    Encode raw bytes as a netstring.

    Args:
        data: Raw frame content bytes to encode.

    Returns:
        Netstring-encoded bytes in format "<length>:<content>,".
    """
    length = len(data)
    return f"{length}:".encode("ascii") + data + b","


def frame_limit(max_payload_bytes: int) -> int:
    """
    Derive the largest frame accepted on a connection.

    Payloads travel base64-encoded inside a JSON frame, which inflates them
    by a third. The limit leaves enough room that a payload slightly above
    the configured ceiling still arrives intact and is rejected by the size
    gate with a log line, while absurd frames break the connection.

    Args:
        max_payload_bytes: Configured maximum clipboard payload in bytes.

    Returns:
        Maximum frame content length in bytes.
    """
    return max_payload_bytes * 2 + 65536


async def read_netstring(
    reader: asyncio.StreamReader, max_size: int = DEFAULT_FRAME_LIMIT
) -> bytes:
    """
    Read and decode a netstring from an async stream.

    Args:
        reader: asyncio StreamReader to read from.
        max_size: Largest content length accepted.

    Returns:
        Decoded content bytes.

    Raises:
        ProtocolError: On invalid format, size violation, or connection closed.
    """
    max_digits = len(str(max_size))
    length_bytes = b""
    while len(length_bytes) < max_digits + 1:
        byte = await reader.read(1)
        if not byte:
            raise ProtocolError("Connection closed while reading length field")
        if byte == b":":
            break
        if not byte.isdigit():
            raise ProtocolError(f"Invalid character in length field: {byte!r}")
        length_bytes += byte
    else:
        raise ProtocolError("Length field exceeds maximum digits")
    if not length_bytes:
        raise ProtocolError("Empty length field")
    length = int(length_bytes.decode("ascii"))
    if length > max_size:
        raise ProtocolError(f"Content size {length} exceeds limit {max_size}")
    try:
        content = await reader.readexactly(length)
    except asyncio.IncompleteReadError as e:
        raise ProtocolError(f"Connection closed after {len(e.partial)} bytes") from e
    comma = await reader.read(1)
    if comma != b",":
        raise ProtocolError(f"Expected comma terminator, got {comma!r}")
    return content


async def send_goodbye(writer: asyncio.StreamWriter) -> None:
    """
    Tell the remote this side is leaving on purpose.

    Writes the empty netstring so the remote can tell a deliberate leave
    from a dropped link. Failures are ignored because the stream may
    already be broken at this point.

    Args:
        writer: Stream to write the goodbye frame to.
    """
    try:
        writer.write(GOODBYE_MESSAGE)
        await asyncio.wait_for(writer.drain(), timeout=GOODBYE_DRAIN_TIMEOUT)
    except (OSError, asyncio.TimeoutError):
        pass


def is_goodbye(content: bytes) -> bool:
    """Return True for the empty frame content that marks a goodbye."""
    return content == b""


def encode_hello(source: str, key: str | None) -> bytes:
    """
    Build the hello frame a dialing node sends first.

    Args:
        source: Node id of the dialing node.
        key: Shared secret to present, or None.

    Returns:
        Netstring-encoded hello frame.
    """
    body = {"hello": 1, "source": source, "auth": key}
    return encode_netstring(json.dumps(body).encode("utf-8"))


def encode_welcome(source: str) -> bytes:
    """
    Build the welcome frame that accepts an inbound connection.

    Args:
        source: Node id of the listening node.

    Returns:
        Netstring-encoded welcome frame.
    """
    body = {"welcome": 1, "source": source}
    return encode_netstring(json.dumps(body).encode("utf-8"))


def _decode_control(content: bytes, field: str) -> dict[str, Any]:
    try:
        body = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ProtocolError(f"Malformed {field} frame: {e}") from e
    if not isinstance(body, dict) or body.get(field) != 1:
        raise ProtocolError(f"Expected {field} frame")
    return body


def parse_hello(content: bytes) -> dict[str, Any]:
    """
    Decode a hello frame.

    Args:
        content: Decoded netstring content.

    Returns:
        The hello fields (source, auth).

    Raises:
        ProtocolError: If content is not a hello frame.
    """
    return _decode_control(content, "hello")


def parse_welcome(content: bytes) -> dict[str, Any]:
    """
    Decode a welcome frame.

    Args:
        content: Decoded netstring content.

    Returns:
        The welcome fields (source).

    Raises:
        ProtocolError: If content is not a welcome frame.
    """
    return _decode_control(content, "welcome")


def check_secret(expected: str | None, presented: object) -> bool:
    """
    Check a presented secret against the configured one.

    With no configured secret every connection is accepted. Otherwise the
    presented value must be a string equal to the secret; the comparison is
    constant-time.

    Args:
        expected: Configured shared secret, or None.
        presented: The auth field from the hello frame.

    Returns:
        True if the connection may proceed.
    """
    if not expected:
        return True
    if not isinstance(presented, str):
        return False
    return hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8"))
