"""Integration tests for the streaming chat client.

Drives StreamingChatClient against a fake backend served through
httpx.MockTransport, so chunk boundaries, stalls and failures are
reproducible without a live RAG service.
"""

import asyncio
import json

import httpx
import pytest
import pytest_check as check

from ragdesk.chat.client import CHAT_PATH, StreamingChatClient
from ragdesk.chat.errors import PreconditionError
from ragdesk.chat.session import STOPPED_MARKER, SessionState, StreamSession
from ragdesk.chat.store import MessageStore
from ragdesk.config import ClientConfig
from ragdesk.models.schemas import Role
from tests.helpers import mock_http_client, sse, split_every, stream_chunks, streaming_backend, wait_until

HELLO_WORLD = sse(
    {"type": "token", "content": "Hel"},
    {"type": "token", "content": "lo, "},
    {"type": "token", "content": "world"},
)


def make_client(
    store: MessageStore,
    config: ClientConfig,
    handler,
    on_change=None,
) -> StreamingChatClient:
    return StreamingChatClient(
        store=store,
        config=config,
        http_client=mock_http_client(handler),
        on_change=on_change,
    )


def is_streaming(chat: StreamingChatClient) -> bool:
    return chat.session is not None and chat.session.state == SessionState.STREAMING


def answer_text(store: MessageStore) -> str:
    return store[-1].content if len(store) else ""


def capture_sessions(chat: StreamingChatClient) -> list[StreamSession]:
    """Record every session the client reports a change for."""
    sessions: list[StreamSession] = []

    def on_change() -> None:
        if chat.session is not None and chat.session not in sessions:
            sessions.append(chat.session)

    chat._on_change = on_change
    return sessions


class TestSendRequest:
    """Tests for what send() does before the first byte arrives."""

    async def test_appends_user_and_assistant_before_response(
        self, store: MessageStore, config: ClientConfig
    ) -> None:
        """Both messages exist by the time the backend sees the request."""
        snapshots: list[list[tuple[Role, str]]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            snapshots.append([(m.role, m.content) for m in store])
            return httpx.Response(200, content=stream_chunks([HELLO_WORLD]))

        chat = make_client(store, config, handler)
        await chat.send("What is scope 2?", knowledge_base_id=7)

        assert snapshots == [[(Role.USER, "What is scope 2?"), (Role.ASSISTANT, "")]]

    async def test_request_body_and_headers(self, store: MessageStore, config: ClientConfig) -> None:
        """The question is posted as JSON with an event-stream Accept header."""
        seen: list[httpx.Request] = []
        chat = make_client(store, config, streaming_backend([HELLO_WORLD], seen=seen))

        await chat.send("  What is scope 2?  ", knowledge_base_id=7, top_k=3)

        assert len(seen) == 1
        request = seen[0]
        check.equal(request.method, "POST")
        check.is_true(request.url.path.endswith(CHAT_PATH))
        check.equal(request.headers["accept"], "text/event-stream")
        check.equal(
            json.loads(request.content),
            {"knowledge_base_id": 7, "query": "What is scope 2?", "k": 3},
        )

    async def test_top_k_defaults_to_config(self, store: MessageStore, config: ClientConfig) -> None:
        """Without top_k the configured value is sent."""
        seen: list[httpx.Request] = []
        chat = make_client(store, config, streaming_backend([HELLO_WORLD], seen=seen))

        await chat.send("hi", knowledge_base_id=1)

        assert json.loads(seen[0].content)["k"] == config.chat_top_k

    async def test_user_message_is_trimmed(self, store: MessageStore, config: ClientConfig) -> None:
        """The stored user message carries the trimmed question."""
        chat = make_client(store, config, streaming_backend([HELLO_WORLD]))

        await chat.send("\n hello \t", knowledge_base_id=1)

        assert store[0].content == "hello"

    def test_read_timeout_is_stream_idle_timeout(self, store: MessageStore, config: ClientConfig) -> None:
        """Reads wait stream_idle_timeout; everything else waits request_timeout."""
        tuned = config.model_copy(update={"request_timeout": 7.0, "stream_idle_timeout": 3.0})
        chat = StreamingChatClient(store=store, config=tuned)

        timeout = chat._timeout()

        check.equal(timeout.read, 3.0)
        check.equal(timeout.connect, 7.0)
        check.equal(timeout.write, 7.0)
        check.equal(timeout.pool, 7.0)

    async def test_owned_client_gets_stream_timeout(
        self, store: MessageStore, config: ClientConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The per-request client is built with the stream timeout."""
        tuned = config.model_copy(update={"request_timeout": 7.0, "stream_idle_timeout": 3.0})
        created: list[httpx.AsyncClient] = []
        real_client = httpx.AsyncClient

        def client_factory(**kwargs) -> httpx.AsyncClient:
            transport = httpx.MockTransport(streaming_backend([HELLO_WORLD]))
            client = real_client(transport=transport, **kwargs)
            created.append(client)
            return client

        monkeypatch.setattr(httpx, "AsyncClient", client_factory)
        chat = StreamingChatClient(store=store, config=tuned)

        message = await chat.send("q", knowledge_base_id=1)

        check.equal(message.content, "Hello, world")
        check.equal(len(created), 1)
        check.equal(created[0].timeout.read, 3.0)
        check.equal(created[0].timeout.connect, 7.0)
        check.is_true(created[0].is_closed)


class TestPreconditions:
    """Tests for rejected sends."""

    @pytest.mark.parametrize("query", ["", "   ", "\n\t"])
    async def test_empty_query_rejected(
        self, store: MessageStore, config: ClientConfig, query: str
    ) -> None:
        """Blank questions are rejected without touching the history."""
        seen: list[httpx.Request] = []
        chat = make_client(store, config, streaming_backend([HELLO_WORLD], seen=seen))

        with pytest.raises(PreconditionError):
            await chat.send(query, knowledge_base_id=1)

        check.equal(len(store), 0)
        check.equal(seen, [])

    async def test_missing_knowledge_base_rejected(
        self, store: MessageStore, config: ClientConfig
    ) -> None:
        """A question without a knowledge base is not sent."""
        seen: list[httpx.Request] = []
        chat = make_client(store, config, streaming_backend([HELLO_WORLD], seen=seen))

        with pytest.raises(PreconditionError, match="knowledge base"):
            await chat.send("hello", knowledge_base_id=None)

        check.equal(len(store), 0)
        check.equal(seen, [])

    async def test_concurrent_send_rejected(self, store: MessageStore, config: ClientConfig) -> None:
        """A second send while an answer streams is rejected."""
        hold = asyncio.Event()
        seen: list[httpx.Request] = []
        chat = make_client(store, config, streaming_backend([HELLO_WORLD], hold=hold, seen=seen))

        first = asyncio.create_task(chat.send("first", knowledge_base_id=1))
        await wait_until(lambda: is_streaming(chat))

        with pytest.raises(PreconditionError):
            await chat.send("second", knowledge_base_id=1)

        hold.set()
        await first

        check.equal(len(seen), 1)
        check.equal(len(store), 2)
        check.is_false(chat.is_loading)


class TestTokenAssembly:
    """Tests for turning token frames into message content."""

    @pytest.mark.parametrize("size", [1, 3, 7, 64, len(HELLO_WORLD)])
    async def test_tokens_reassembled_across_chunk_sizes(
        self, store: MessageStore, config: ClientConfig, size: int
    ) -> None:
        """Content is identical however the body is split into reads."""
        chat = make_client(store, config, streaming_backend(split_every(HELLO_WORLD, size)))

        message = await chat.send("greet", knowledge_base_id=1)

        assert message.content == "Hello, world"

    async def test_multibyte_character_split_across_reads(
        self, store: MessageStore, config: ClientConfig
    ) -> None:
        """UTF-8 sequences cut between two reads are decoded intact."""
        body = sse({"type": "token", "content": "碳排放"}, {"type": "token", "content": " ok"})
        cut = body.index("碳".encode()) + 1
        chat = make_client(store, config, streaming_backend([body[:cut], body[cut:]]))

        message = await chat.send("q", knowledge_base_id=1)

        assert message.content == "碳排放 ok"

    async def test_crlf_delimited_frames(self, store: MessageStore, config: ClientConfig) -> None:
        """Frames separated by CRLF blank lines are parsed."""
        body = HELLO_WORLD.replace(b"\n", b"\r\n")
        chat = make_client(store, config, streaming_backend(split_every(body, 5)))

        message = await chat.send("q", knowledge_base_id=1)

        assert message.content == "Hello, world"

    async def test_trailing_frame_without_delimiter(
        self, store: MessageStore, config: ClientConfig
    ) -> None:
        """A last frame that is not followed by a blank line still counts."""
        body = HELLO_WORLD + b'data: {"type": "token", "content": "!"}'
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("q", knowledge_base_id=1)

        assert message.content == "Hello, world!"


class TestMetadataEvents:
    """Tests for sources, done and search_complete frames."""

    async def test_full_round_trip(self, store: MessageStore, config: ClientConfig) -> None:
        """Tokens, sources and thinking time all land on the message."""
        body = sse(
            {"type": "search_complete", "doc_count": 2},
            {"type": "token", "content": "Scope 2 covers "},
            {"type": "token", "content": "purchased energy."},
            {"type": "sources", "documents": [{"id": 1, "name": "ghg.pdf"}, {"id": 2, "name": "iso.pdf"}]},
            {"type": "done", "thinking_time": 1.25},
        )
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("What is scope 2?", knowledge_base_id=3)

        check.equal(message.content, "Scope 2 covers purchased energy.")
        check.equal([(d.id, d.name) for d in message.sources], [(1, "ghg.pdf"), (2, "iso.pdf")])
        check.equal(message.thinking_time, 1.25)
        check.is_true(message.has_sources)
        check.is_false(chat.is_loading)

    @pytest.mark.parametrize("documents", [[], None])
    async def test_empty_sources_leave_message_without_sources(
        self, store: MessageStore, config: ClientConfig, documents
    ) -> None:
        """An empty source list is treated as no sources at all."""
        body = HELLO_WORLD + sse({"type": "sources", "documents": documents})
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("q", knowledge_base_id=1)

        check.is_none(message.sources)
        check.is_false(message.has_sources)

    async def test_single_source(self, store: MessageStore, config: ClientConfig) -> None:
        """One cited document is kept as a one-element list."""
        body = sse({"type": "sources", "documents": [{"id": 9, "name": "report.docx"}]})
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("q", knowledge_base_id=1)

        assert [d.id for d in message.sources] == [9]

    async def test_later_sources_replace_earlier(self, store: MessageStore, config: ClientConfig) -> None:
        """A second sources frame overwrites the first."""
        body = sse(
            {"type": "sources", "documents": [{"id": 1, "name": "a.pdf"}]},
            {"type": "sources", "documents": [{"id": 2, "name": "b.pdf"}, {"id": 3, "name": "c.pdf"}]},
        )
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("q", knowledge_base_id=1)

        assert [d.id for d in message.sources] == [2, 3]

    async def test_first_thinking_time_wins(self, store: MessageStore, config: ClientConfig) -> None:
        """A repeated done frame does not overwrite the recorded thinking time."""
        body = HELLO_WORLD + sse(
            {"type": "done", "thinking_time": 4.2},
            {"type": "done", "thinking_time": 9},
        )
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("q", knowledge_base_id=1)

        assert message.thinking_time == 4.2

    async def test_done_without_thinking_time(self, store: MessageStore, config: ClientConfig) -> None:
        """A bare done frame leaves thinking_time unset."""
        body = HELLO_WORLD + sse({"type": "done"})
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("q", knowledge_base_id=1)

        check.equal(message.content, "Hello, world")
        check.is_none(message.thinking_time)


class TestStreamErrors:
    """Tests for malformed frames and transport failures."""

    async def test_malformed_frame_is_skipped(self, store: MessageStore, config: ClientConfig) -> None:
        """Invalid JSON in one frame does not end the stream."""
        body = (
            sse({"type": "token", "content": "a"})
            + b"data: {not json\n\n"
            + sse('"just a string"', {"type": "token", "content": "b"})
        )
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("q", knowledge_base_id=1)

        assert message.content == "ab"

    async def test_unknown_event_type_is_ignored(self, store: MessageStore, config: ClientConfig) -> None:
        """Frames of an unknown type are dropped silently."""
        body = sse(
            {"type": "token", "content": "a"},
            {"type": "progress", "percent": 40},
            {"type": "token", "content": "b"},
        )
        chat = make_client(store, config, streaming_backend([body]))

        message = await chat.send("q", knowledge_base_id=1)

        assert message.content == "ab"

    async def test_error_event_replaces_content(self, store: MessageStore, config: ClientConfig) -> None:
        """A server error frame ends the stream with an error message."""
        body = sse(
            {"type": "token", "content": "partial"},
            {"type": "error", "error": "model overloaded"},
            {"type": "token", "content": "never shown"},
        )
        chat = make_client(store, config, streaming_backend([body]))
        sessions = capture_sessions(chat)

        message = await chat.send("q", knowledge_base_id=1)

        check.equal(message.content, "Error: model overloaded")
        check.equal(sessions[-1].state, SessionState.ERRORED)
        check.is_false(chat.is_loading)

    async def test_http_error_status(self, store: MessageStore, config: ClientConfig) -> None:
        """A non-2xx response is reported in the assistant message."""
        chat = make_client(store, config, streaming_backend([b"boom"], status_code=500))

        message = await chat.send("q", knowledge_base_id=1)

        check.is_true(message.content.startswith("Error: "))
        check.is_in("500", message.content)
        check.is_false(chat.is_loading)

    async def test_redirect_status_is_error(self, store: MessageStore, config: ClientConfig) -> None:
        """A 3xx response is not streamed as an answer."""
        chat = make_client(
            store, config, lambda request: httpx.Response(302, headers={"Location": "/elsewhere"})
        )

        message = await chat.send("q", knowledge_base_id=1)

        check.is_true(message.content.startswith("Error: "))
        check.is_in("302", message.content)
        check.is_false(chat.is_loading)

    async def test_read_timeout_mid_body(self, store: MessageStore, config: ClientConfig) -> None:
        """A backend that goes silent mid-answer ends in an error message."""

        async def stalled_body():
            yield sse({"type": "token", "content": "partial"})
            raise httpx.ReadTimeout("idle")

        chat = make_client(store, config, lambda request: httpx.Response(200, content=stalled_body()))
        sessions = capture_sessions(chat)

        message = await chat.send("q", knowledge_base_id=1)

        check.equal(message.content, "Error: Stream interrupted: idle")
        check.equal(sessions[-1].state, SessionState.ERRORED)
        check.is_none(sessions[-1].response)
        check.is_false(chat.is_loading)

    async def test_connection_error(self, store: MessageStore, config: ClientConfig) -> None:
        """A network failure is reported, not raised."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        chat = make_client(store, config, handler)

        message = await chat.send("q", knowledge_base_id=1)

        check.is_true(message.content.startswith("Error: "))
        check.is_in("connection refused", message.content)
        check.equal(len(store), 2)

    async def test_send_allowed_after_error(self, store: MessageStore, config: ClientConfig) -> None:
        """A failed answer does not block the next question."""
        responses = iter([
            httpx.Response(500),
            httpx.Response(200, content=stream_chunks([HELLO_WORLD])),
        ])
        chat = make_client(store, config, lambda request: next(responses))

        await chat.send("first", knowledge_base_id=1)
        message = await chat.send("second", knowledge_base_id=1)

        check.equal(message.content, "Hello, world")
        check.equal(len(store), 4)


class TestStop:
    """Tests for user-initiated stops."""

    async def test_stop_before_any_token(self, store: MessageStore, config: ClientConfig) -> None:
        """Stopping an answer with no content marks it as stopped."""
        hold = asyncio.Event()
        chat = make_client(store, config, streaming_backend([], hold=hold))

        task = asyncio.create_task(chat.send("q", knowledge_base_id=1))
        await wait_until(lambda: is_streaming(chat))
        session = chat.session

        assert chat.stop() is True
        message = await task

        check.equal(message.content, STOPPED_MARKER)
        check.equal(session.state, SessionState.CANCELLED)
        check.is_false(chat.is_loading)

    async def test_stop_keeps_partial_content(self, store: MessageStore, config: ClientConfig) -> None:
        """Content received before the stop is preserved."""
        hold = asyncio.Event()
        chat = make_client(
            store, config, streaming_backend([sse({"type": "token", "content": "partial"})], hold=hold)
        )

        task = asyncio.create_task(chat.send("q", knowledge_base_id=1))
        await wait_until(lambda: answer_text(store) == "partial")
        chat.stop()
        message = await task

        assert message.content == "partial"

    async def test_stop_flushes_pending_tokens(self, store: MessageStore, config: ClientConfig) -> None:
        """Tokens still queued for pacing appear at once on stop."""
        slow = config.model_copy(update={"token_delay": 10.0})
        hold = asyncio.Event()
        body = sse({"type": "token", "content": "a"}, {"type": "token", "content": "b"})
        chat = make_client(store, slow, streaming_backend([body], hold=hold))

        task = asyncio.create_task(chat.send("q", knowledge_base_id=1))
        await wait_until(lambda: chat.session is not None and len(chat.session.pending) == 2)
        check.equal(store[-1].content, "")

        chat.stop()
        message = await task

        check.equal(message.content, "ab")

    async def test_stop_without_active_stream(self, store: MessageStore, config: ClientConfig) -> None:
        """stop() is a no-op when nothing is streaming."""
        chat = make_client(store, config, streaming_backend([HELLO_WORLD]))

        check.is_false(chat.stop())
        await chat.send("q", knowledge_base_id=1)
        check.is_false(chat.stop())

    async def test_external_cancellation_propagates(
        self, store: MessageStore, config: ClientConfig
    ) -> None:
        """Cancelling the caller's task is not swallowed as a user stop."""
        hold = asyncio.Event()
        chat = make_client(store, config, streaming_backend([], hold=hold))

        task = asyncio.create_task(chat.send("q", knowledge_base_id=1))
        await wait_until(lambda: is_streaming(chat))
        session = chat.session
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        check.is_true(session.closed)
        check.is_none(session.response)
        check.is_false(chat.is_loading)


class TestPacing:
    """Tests for paced token application."""

    async def test_tokens_paced_while_stream_open(self, store: MessageStore, config: ClientConfig) -> None:
        """With a delay, tokens appear one by one before the stream ends."""
        paced = config.model_copy(update={"token_delay": 0.01})
        hold = asyncio.Event()
        chat = make_client(store, paced, streaming_backend([HELLO_WORLD], hold=hold))
        observed: list[str] = []
        chat._on_change = lambda: observed.append(answer_text(store))

        task = asyncio.create_task(chat.send("q", knowledge_base_id=1))
        await wait_until(lambda: answer_text(store) == "Hello, world")

        check.is_true(is_streaming(chat))
        check.is_in("Hel", observed)
        check.is_in("Hello, ", observed)

        hold.set()
        await task

    async def test_queue_flushed_at_max_pending(self, store: MessageStore, config: ClientConfig) -> None:
        """Reaching the pending limit applies the whole queue at once."""
        capped = config.model_copy(update={"token_delay": 10.0, "max_pending_tokens": 3})
        hold = asyncio.Event()
        chat = make_client(store, capped, streaming_backend([HELLO_WORLD], hold=hold))

        task = asyncio.create_task(chat.send("q", knowledge_base_id=1))
        await wait_until(lambda: answer_text(store) == "Hello, world")

        check.equal(len(chat.session.pending), 0)

        hold.set()
        await task

    async def test_completion_flushes_queue(self, store: MessageStore, config: ClientConfig) -> None:
        """Tokens still queued when the stream ends are applied on completion."""
        slow = config.model_copy(update={"token_delay": 10.0})
        chat = make_client(store, slow, streaming_backend([HELLO_WORLD]))

        message = await chat.send("q", knowledge_base_id=1)

        assert message.content == "Hello, world"

    async def test_no_state_left_after_termination(
        self, store: MessageStore, config: ClientConfig
    ) -> None:
        """A finished session holds no queue, pacer or response."""
        slow = config.model_copy(update={"token_delay": 10.0})
        chat = make_client(store, slow, streaming_backend([HELLO_WORLD]))
        sessions = capture_sessions(chat)
        await chat.send("q", knowledge_base_id=1)

        assert len(sessions) == 1
        session = sessions[0]
        check.equal(len(session.pending), 0)
        check.is_false(session.is_pacing)
        check.is_none(session.response)
        check.is_true(session.closed)
        check.equal(session.state, SessionState.COMPLETED)
        check.is_none(chat.session)


class TestReset:
    """Tests for starting a new conversation."""

    async def test_reset_during_stream(self, store: MessageStore, config: ClientConfig) -> None:
        """Resetting mid-answer clears history and the old answer stays gone."""
        hold = asyncio.Event()
        chat = make_client(
            store, config, streaming_backend([sse({"type": "token", "content": "old"})], hold=hold)
        )

        task = asyncio.create_task(chat.send("q", knowledge_base_id=1))
        await wait_until(lambda: answer_text(store) == "old")
        chat.reset()
        await task

        check.equal(len(store), 0)
        check.is_false(chat.is_loading)

    async def test_reset_then_new_question(self, store: MessageStore, config: ClientConfig) -> None:
        """After a reset the next answer starts from an empty history."""
        chat = make_client(store, config, streaming_backend([HELLO_WORLD]))

        await chat.send("one", knowledge_base_id=1)
        chat.reset()
        message = await chat.send("two", knowledge_base_id=1)

        check.equal([m.content for m in store], ["two", "Hello, world"])
        check.is_true(message is store[-1])

    async def test_send_right_after_reset(self, store: MessageStore, config: ClientConfig) -> None:
        """A reset frees the client at once, before the old task unwinds."""
        hold = asyncio.Event()
        responses = iter([
            httpx.Response(200, content=stream_chunks([sse({"type": "token", "content": "old"})], hold)),
            httpx.Response(200, content=stream_chunks([HELLO_WORLD])),
        ])
        chat = make_client(store, config, lambda request: next(responses))

        old = asyncio.create_task(chat.send("q", knowledge_base_id=1))
        await wait_until(lambda: answer_text(store) == "old")
        chat.reset()

        check.is_false(chat.is_loading)
        message = await chat.send("new", knowledge_base_id=1)
        await old

        check.equal([m.content for m in store], ["new", "Hello, world"])
        check.is_true(message is store[-1])
        check.is_false(chat.is_loading)
