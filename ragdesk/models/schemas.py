from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Generic, Literal, TypeVar

from pydantic import BaseModel, Field, TypeAdapter, field_validator

T = TypeVar("T")


class Role(str, Enum):
    """Speaker of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class SourceDocument(BaseModel):
    """A document the backend cites for an answer."""

    id: int
    name: str = ""


class ChatMessage(BaseModel):
    """A single message in the conversation.

    Assistant messages are mutated in place while their answer streams in.

    Attributes:
        role: Who wrote the message.
        content: Message text, appended incrementally for assistant messages.
        sources: Cited documents. None means "no sources"; never an empty list.
        thinking_time: Seconds the backend spent on the answer.
        created_at: Display timestamp.
    """

    role: Role
    content: str = ""
    sources: list[SourceDocument] | None = None
    thinking_time: float | None = None
    created_at: str = Field(default_factory=lambda: datetime.now().strftime("%I:%M %p"))

    @property
    def has_sources(self) -> bool:
        return bool(self.sources)


class ChatRequest(BaseModel):
    """Request body for POST /rag/chat."""

    knowledge_base_id: int
    query: str = Field(..., min_length=1)
    k: int = Field(default=5, ge=1)

    @field_validator("query", mode="before")
    @classmethod
    def strip_query(cls, v: str) -> str:
        """Strip whitespace from the query before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class StreamEventType(str, Enum):
    """Values of the ``type`` discriminator in chat stream frames."""

    TOKEN = "token"
    SOURCES = "sources"
    DONE = "done"
    ERROR = "error"
    SEARCH_COMPLETE = "search_complete"


class TokenEvent(BaseModel):
    type: Literal["token"]
    content: str = ""


class SourcesEvent(BaseModel):
    type: Literal["sources"]
    documents: list[SourceDocument] = Field(default_factory=list)

    @field_validator("documents", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class DoneEvent(BaseModel):
    type: Literal["done"]
    thinking_time: float | None = None


class ErrorEvent(BaseModel):
    type: Literal["error"]
    error: str | None = None


class SearchCompleteEvent(BaseModel):
    type: Literal["search_complete"]
    doc_count: int | None = None


StreamEvent = Annotated[
    TokenEvent | SourcesEvent | DoneEvent | ErrorEvent | SearchCompleteEvent,
    Field(discriminator="type"),
]

stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


class ApiEnvelope(BaseModel, Generic[T]):
    """JSON envelope returned by every non-binary backend endpoint.

    Attributes:
        code: 200 on success, anything else is a failure.
        msg: Human readable message, mostly set on failure.
        data: Payload.
    """

    code: int
    msg: str | None = None
    data: T | None = None

    @property
    def ok(self) -> bool:
        return self.code == 200


class DocumentStatus(str, Enum):
    """Parse status of an uploaded document."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_DOCUMENT_STATUSES = frozenset({DocumentStatus.COMPLETED, DocumentStatus.FAILED})


class KnowledgeBase(BaseModel):
    """A named collection of documents used as retrieval context."""

    id: int
    name: str
    description: str | None = ""
    status: str | None = None
    doc_count: int = 0
    created_at: str | None = None


class Document(BaseModel):
    """A document uploaded to a knowledge base.

    ``status`` stays a plain string so unknown backend states still display.
    """

    id: int
    name: str
    file_type: str | None = None
    file_size: int = 0
    status: str = DocumentStatus.PENDING.value
    chunk_count: int = 0
    created_at: str | None = None

    @property
    def is_parsed(self) -> bool:
        return self.status in {s.value for s in TERMINAL_DOCUMENT_STATUSES}


class DownloadedFile(BaseModel):
    """Binary payload of a download endpoint."""

    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)
