"""
Stdio message framing.

Inbound bytes may arrive in any chunking. Two framings are accepted:

- ``Content-Length: N`` headers, a blank line, then exactly N body bytes
- one JSON document per line

Outbound messages are always Content-Length framed.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger("Inkwell.mcp.framing")

_HEADER_FIELD = re.compile(rb"^[A-Za-z][A-Za-z0-9-]*:")
_CONTENT_LENGTH = re.compile(rb"^content-length:\s*(\d+)\s*$", re.IGNORECASE)

_WAIT = object()
_NOT_HEADER = object()


class StdioFramer:
    """Owns the session's accumulation buffer. Not thread-safe: one consumer only."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def __len__(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> List[bytes]:
        """Append ``chunk`` and return every message body that is now complete."""
        if chunk:
            self._buffer.extend(chunk)

        bodies: List[bytes] = []
        while self._buffer:
            if _HEADER_FIELD.match(self._buffer):
                outcome = self._extract_framed()
                if outcome is _WAIT:
                    break
                if outcome is not _NOT_HEADER:
                    if outcome is not None:
                        bodies.append(outcome)
                    continue

            nl = self._buffer.find(b"\n")
            if nl == -1:
                break
            line = bytes(self._buffer[:nl]).strip()
            del self._buffer[: nl + 1]
            if line:
                bodies.append(line)
        return bodies

    def _scan_headers(self) -> Tuple[Optional[int], List[bytes], object]:
        pos = 0
        headers: List[bytes] = []
        while True:
            nl = self._buffer.find(b"\n", pos)
            if nl == -1:
                return None, headers, _WAIT
            line = bytes(self._buffer[pos:nl]).rstrip(b"\r")
            pos = nl + 1
            if not line:
                return pos, headers, None
            if not _HEADER_FIELD.match(line):
                return None, headers, _NOT_HEADER
            headers.append(line)

    def _extract_framed(self):
        body_start, headers, state = self._scan_headers()
        if body_start is None:
            return state

        length = None
        for header in headers:
            match = _CONTENT_LENGTH.match(header)
            if match:
                length = int(match.group(1))
                break

        if length is None:
            logger.debug("Dropping header block without Content-Length: %r", headers)
            del self._buffer[:body_start]
            return None

        if len(self._buffer) - body_start < length:
            return _WAIT

        body = bytes(self._buffer[body_start : body_start + length])
        del self._buffer[: body_start + length]
        return body


def decode_message(body: bytes) -> Optional[Dict[str, Any]]:
    """Parse a message body; malformed or non-object payloads yield None."""
    try:
        msg = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug("Dropping malformed message: %s", e)
        return None
    if not isinstance(msg, dict):
        logger.debug("Dropping non-object message: %r", msg)
        return None
    return msg


def encode_frame(message: Dict[str, Any]) -> bytes:
    payload = json.dumps(message, ensure_ascii=False).encode("utf-8")
    return b"Content-Length: " + str(len(payload)).encode("ascii") + b"\r\n\r\n" + payload
