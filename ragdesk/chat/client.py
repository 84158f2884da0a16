"""Streaming chat client for the RAG backend.

Sends one question to POST /rag/chat and turns the server-sent-event body
into an assistant message: tokens are paced into the message text, cited
sources and thinking time are attached as soon as they arrive, and the user
can stop the answer at any point.

Every request gets its own StreamSession. The client only holds a pointer to
the current one; all queue, timer and response state lives on the session.
"""

import asyncio
import logging
from collections.abc import Callable

import httpx

from ragdesk.chat.errors import PreconditionError, ServerSignaledError, StreamParseError, TransportError
from ragdesk.chat.session import SessionState, StreamSession
from ragdesk.chat.sse import SSEDecoder, iter_data, parse_event
from ragdesk.chat.store import MessageStore
from ragdesk.config import ClientConfig, get_client_config
from ragdesk.models.schemas import (
    ChatMessage,
    ChatRequest,
    DoneEvent,
    ErrorEvent,
    Role,
    SearchCompleteEvent,
    SourcesEvent,
    StreamEvent,
    TokenEvent,
)

logger = logging.getLogger(__name__)

CHAT_PATH = "/rag/chat"


class StreamingChatClient:
    """Issues chat questions and streams answers into a MessageStore.

    Args:
        store: Conversation history the client appends to.
        config: Client configuration. Loads from environment if not provided.
        http_client: Optional shared AsyncClient whose ``base_url`` points at
            the backend. A short-lived client is created per request otherwise.
        on_change: Called after every visible change to the conversation.
    """

    def __init__(
        self,
        store: MessageStore | None = None,
        config: ClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.store = store if store is not None else MessageStore()
        self._config = config or get_client_config()
        self._http_client = http_client
        self._on_change = on_change
        self._session: StreamSession | None = None

    @property
    def session(self) -> StreamSession | None:
        return self._session

    @property
    def is_loading(self) -> bool:
        return self._session is not None and not self._session.closed

    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self._config.request_timeout, read=self._config.stream_idle_timeout)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    async def send(
        self,
        query: str,
        knowledge_base_id: int | None,
        top_k: int | None = None,
    ) -> ChatMessage:
        """Ask a question and stream the answer.

        Returns once the stream has completed, failed or been stopped.
        Transport failures and stops are reported through the assistant
        message's content, never raised.

        Args:
            query: The user's question.
            knowledge_base_id: Knowledge base to answer from.
            top_k: Documents to retrieve. Defaults to the configured value.

        Returns:
            The assistant message that received the answer.

        Raises:
            PreconditionError: Empty question, no knowledge base selected, or
                another answer still streaming. Nothing is sent.
        """
        text = query.strip() if query else ""
        if not text:
            raise PreconditionError("Please enter a question")
        if knowledge_base_id is None:
            raise PreconditionError("Please select a knowledge base")
        if self.is_loading:
            raise PreconditionError("An answer is still streaming")

        request = ChatRequest(
            knowledge_base_id=knowledge_base_id,
            query=text,
            k=top_k or self._config.chat_top_k,
        )

        self.store.append(Role.USER, text)
        message = self.store.append(Role.ASSISTANT)

        session = StreamSession(
            message,
            token_delay=self._config.token_delay,
            max_pending_tokens=self._config.max_pending_tokens,
            on_change=self._on_change,
        )
        self._session = session
        session.transition(SessionState.SENDING)
        self._notify()

        session.task = asyncio.get_running_loop().create_task(self._stream(session, request))
        try:
            await session.task
            session.complete()
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if not session.stop_requested or (current is not None and current.cancelling()):
                raise
            logger.info("Chat stream stopped by user")
            session.cancel()
        except TransportError as e:
            logger.warning(f"Chat stream failed: {e}")
            session.fail(e)
        finally:
            await session.close()
            if self._session is session:
                self._session = None
            self._notify()

        return message

    def stop(self) -> bool:
        """Abort the in-flight answer.

        Returns:
            True if a streaming answer was stopped, False if none was active.
        """
        session = self._session
        if session is None or session.closed:
            return False
        session.stop_requested = True
        if session.task is not None and not session.task.done():
            session.task.cancel()
        return True

    def reset(self) -> None:
        """Stop any active answer and start a new conversation.

        The stopped session is detached so none of its late callbacks can
        write into the cleared history.
        """
        session = self._session
        if session is not None:
            self.stop()
            session.detach()
            self._session = None
        self.store.clear()
        self._notify()

    async def _stream(self, session: StreamSession, request: ChatRequest) -> None:
        if self._http_client is not None:
            await self._read(self._http_client, session, request)
            return
        async with httpx.AsyncClient(
            base_url=self._config.api_base_url, timeout=self._timeout()
        ) as client:
            await self._read(client, session, request)

    async def _read(
        self,
        client: httpx.AsyncClient,
        session: StreamSession,
        request: ChatRequest,
    ) -> None:
        http_request = client.build_request(
            "POST",
            CHAT_PATH,
            json=request.model_dump(),
            headers={"Accept": "text/event-stream"},
        )
        try:
            session.response = await client.send(http_request, stream=True)
        except httpx.HTTPError as e:
            raise TransportError(f"Connection failed: {e}") from e

        try:
            response = session.response
            if not response.is_success:
                raise TransportError(
                    f"Request failed: {response.status_code} {response.reason_phrase}"
                )

            session.transition(SessionState.STREAMING)
            decoder = SSEDecoder()
            try:
                async for chunk in response.aiter_bytes():
                    for frame in decoder.feed(chunk):
                        self._handle_frame(session, frame)
            except httpx.HTTPError as e:
                raise TransportError(f"Stream interrupted: {e}") from e

            for frame in decoder.flush():
                self._handle_frame(session, frame)
        finally:
            await session.release_response()

    def _handle_frame(self, session: StreamSession, frame: str) -> None:
        for data in iter_data(frame):
            try:
                event = parse_event(data)
            except StreamParseError as e:
                logger.warning(f"Skipping malformed stream frame: {e}")
                continue
            if event is not None:
                self._apply_event(session, event)

    def _apply_event(self, session: StreamSession, event: StreamEvent) -> None:
        if isinstance(event, TokenEvent):
            session.enqueue(event.content)
        elif isinstance(event, SourcesEvent):
            logger.debug(f"Answer cites {len(event.documents)} documents")
            session.set_sources(event.documents)
        elif isinstance(event, DoneEvent):
            logger.debug("Chat stream signalled completion")
            session.set_thinking_time(event.thinking_time)
        elif isinstance(event, SearchCompleteEvent):
            logger.info(f"Retrieval complete: {event.doc_count} documents found")
        elif isinstance(event, ErrorEvent):
            raise ServerSignaledError(event.error or "Unknown server error")
