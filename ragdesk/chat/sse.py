"""Incremental server-sent-event decoding for the chat stream.

The body arrives in arbitrary byte chunks. Frames are separated by a blank
line; the last, possibly incomplete, segment of every read is kept and
prefixed to the next one so a frame is only parsed once it is whole.
"""

import codecs
import json
import logging
from collections.abc import Iterator

from pydantic import ValidationError

from ragdesk.chat.errors import StreamParseError
from ragdesk.models.schemas import StreamEvent, StreamEventType, stream_event_adapter

logger = logging.getLogger(__name__)

FRAME_DELIMITER = "\n\n"
DATA_PREFIX = "data:"

_KNOWN_TYPES = frozenset(t.value for t in StreamEventType)


class SSEDecoder:
    """Turns a byte stream into complete SSE frames.

    UTF-8 is decoded incrementally, so a multi-byte character split across
    two reads is reassembled before it reaches the frame buffer.
    """

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text received after the last complete frame."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Add a chunk and return the frames it completed."""
        text = self._decoder.decode(chunk)
        # Normalising the whole buffer also catches a CRLF split across reads
        self._buffer = (self._buffer + text).replace("\r\n", "\n")
        *frames, self._buffer = self._buffer.split(FRAME_DELIMITER)
        return [frame for frame in frames if frame.strip()]

    def flush(self) -> list[str]:
        """Return whatever is left once the stream has ended."""
        tail = (self._buffer + self._decoder.decode(b"", final=True)).replace("\r\n", "\n")
        self._buffer = ""
        return [tail] if tail.strip() else []


def iter_data(frame: str) -> Iterator[str]:
    """Yield the payload of every ``data:`` line in a frame.

    Comment lines and other SSE fields (``event:``, ``id:``) are skipped.
    """
    for line in frame.split("\n"):
        line = line.strip()
        if not line.startswith(DATA_PREFIX):
            continue
        yield line[len(DATA_PREFIX):].lstrip(" ")


def parse_event(data: str) -> StreamEvent | None:
    """Parse one ``data:`` payload.

    Args:
        data: JSON text following the ``data:`` prefix.

    Returns:
        The typed event, or None for a well-formed payload whose ``type`` is
        not one this client handles.

    Raises:
        StreamParseError: If the payload is not a JSON object or does not
            match the schema of its declared type.
    """
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as e:
        raise StreamParseError(f"Invalid JSON in stream frame: {e}") from e

    if not isinstance(payload, dict):
        raise StreamParseError(f"Stream frame is not an object: {data[:80]!r}")

    event_type = payload.get("type")
    if event_type not in _KNOWN_TYPES:
        logger.warning(f"Ignoring stream event with unknown type: {event_type!r}")
        return None

    try:
        return stream_event_adapter.validate_python(payload)
    except ValidationError as e:
        raise StreamParseError(f"Invalid {event_type} event: {e}") from e
