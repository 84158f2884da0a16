"""Streaming chat over the RAG backend's server-sent-event endpoint.

Responsibilities:
    - Incremental SSE decoding that tolerates arbitrary chunk boundaries
    - Paced application of answer tokens to the open assistant message
    - Attaching cited sources and thinking time as soon as they arrive
    - User-initiated cancellation with guaranteed cleanup

Contains no UI code; pages subscribe through the ``on_change`` callback.
"""

from ragdesk.chat.answers import is_no_answer_found
from ragdesk.chat.client import StreamingChatClient
from ragdesk.chat.errors import (
    ApiError,
    CancellationError,
    PreconditionError,
    RagDeskError,
    ServerSignaledError,
    StreamParseError,
    TransportError,
)
from ragdesk.chat.session import ERROR_PREFIX, STOPPED_MARKER, SessionState, StreamSession
from ragdesk.chat.store import MessageStore

__all__ = [
    "ERROR_PREFIX",
    "STOPPED_MARKER",
    "ApiError",
    "CancellationError",
    "MessageStore",
    "PreconditionError",
    "RagDeskError",
    "ServerSignaledError",
    "SessionState",
    "StreamParseError",
    "StreamSession",
    "StreamingChatClient",
    "TransportError",
    "is_no_answer_found",
]
