"""Per-request streaming state.

A StreamSession owns everything that changes while one answer streams in:
the response handle, the reading task, the pending token queue and the
pacing task. Nothing is shared between sessions, so a superseded session can
only ever touch its own assistant message, and not even that once detached.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from enum import Enum

import httpx

from ragdesk.chat.errors import CancellationError
from ragdesk.models.schemas import ChatMessage, SourceDocument

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error: "
STOPPED_MARKER = "[stopped]"


class SessionState(str, Enum):
    """Lifecycle of one streaming request."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"
    CANCELLED = "cancelled"


TERMINAL_STATES = frozenset({SessionState.COMPLETED, SessionState.ERRORED, SessionState.CANCELLED})


class StreamSession:
    """Mutable state of one outstanding chat request.

    Token fragments are queued and applied one at a time by a pacing task
    that sleeps ``token_delay`` seconds before each application. ``sources``
    and ``done`` metadata bypass the queue.

    Args:
        message: The assistant message this session writes into.
        token_delay: Seconds between paced token applications. Zero applies
            tokens as they arrive.
        max_pending_tokens: Queue depth at which the queue is flushed at once.
        on_change: Called after every visible mutation of the message.
    """

    def __init__(
        self,
        message: ChatMessage,
        token_delay: float = 0.5,
        max_pending_tokens: int = 200,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.message = message
        self.state = SessionState.IDLE
        self.pending: deque[str] = deque()
        self.response: httpx.Response | None = None
        self.task: asyncio.Task[None] | None = None
        self.stop_requested = False
        self.error: Exception | None = None

        self._token_delay = token_delay
        self._max_pending_tokens = max_pending_tokens
        self._on_change = on_change
        self._pacer: asyncio.Task[None] | None = None
        self._closed = False
        self._detached = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_pacing(self) -> bool:
        return self._pacer is not None and not self._pacer.done()

    @property
    def _writable(self) -> bool:
        return not self._closed and not self._detached

    def transition(self, state: SessionState) -> None:
        if self.state in TERMINAL_STATES:
            logger.debug(f"Ignoring transition {self.state.value} -> {state.value}")
            return
        logger.debug(f"Stream session {self.state.value} -> {state.value}")
        self.state = state

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # -- token queue ------------------------------------------------------

    def enqueue(self, fragment: str) -> None:
        """Queue a token fragment for paced application."""
        if not self._writable or not fragment:
            return
        self.pending.append(fragment)

        if self._token_delay <= 0 or len(self.pending) >= self._max_pending_tokens:
            # Pacing cannot keep up (or is disabled); catch up in one step
            self.drain()
            return

        if not self.is_pacing:
            self._pacer = asyncio.get_running_loop().create_task(self._pace())

    async def _pace(self) -> None:
        while self.pending and self._writable:
            await asyncio.sleep(self._token_delay)
            if self.pending and self._writable:
                self.message.content += self.pending.popleft()
                self._changed()

    def drain(self) -> None:
        """Apply every queued fragment immediately."""
        if not self.pending:
            return
        if self._writable:
            self.message.content += "".join(self.pending)
            self._changed()
        self.pending.clear()

    # -- metadata ---------------------------------------------------------

    def set_sources(self, documents: list[SourceDocument]) -> None:
        """Replace the message's sources. An empty list leaves them unset."""
        if not self._writable or not documents:
            return
        self.message.sources = list(documents)
        self._changed()

    def set_thinking_time(self, seconds: float | None) -> None:
        if not self._writable or seconds is None or self.message.thinking_time is not None:
            return
        self.message.thinking_time = seconds
        self._changed()

    # -- outcomes ---------------------------------------------------------

    def complete(self) -> None:
        self.drain()
        self.transition(SessionState.COMPLETED)

    def fail(self, error: Exception) -> None:
        """Replace the message content with the error text."""
        self.drain()
        self.error = error
        if self._writable:
            self.message.content = f"{ERROR_PREFIX}{error}"
            self._changed()
        self.transition(SessionState.ERRORED)

    def cancel(self) -> None:
        """Finalize after a user stop. Partial content is kept."""
        self.drain()
        self.error = CancellationError("Stopped by user")
        if self._writable and not self.message.content:
            self.message.content = STOPPED_MARKER
            self._changed()
        self.transition(SessionState.CANCELLED)

    def detach(self) -> None:
        """Stop this session from mutating its message ever again."""
        self._detached = True
        self.pending.clear()

    # -- resources --------------------------------------------------------

    async def release_response(self) -> None:
        """Close the response body. Safe to call any number of times."""
        response, self.response = self.response, None
        if response is not None:
            await response.aclose()

    async def close(self) -> None:
        """Flush, stop pacing and release the response.

        Idempotent; every exit path of a request ends here.
        """
        if self._closed:
            return
        self.drain()
        self._closed = True
        if self._pacer is not None and not self._pacer.done():
            self._pacer.cancel()
        self._pacer = None
        self.pending.clear()
        await self.release_response()
