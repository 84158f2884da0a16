"""Client configuration with environment variable loading.

Pydantic-based settings for talking to the remote RAG backend.
Values come from the environment (or a .env file) unless passed explicitly.
"""

import json
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()


class ClientConfig(BaseModel):
    """Configuration for the RAG API and streaming chat clients.

    Attributes:
        api_base_url: Base URL of the backend, e.g. http://localhost:18080/b/ibot.
        chat_top_k: Number of documents the backend retrieves per question.
        token_delay: Seconds between two paced token applications.
        max_pending_tokens: Queue depth at which pacing is abandoned and the
            queue is flushed at once.
        request_timeout: Connect/write/pool timeout in seconds.
        stream_idle_timeout: Maximum silence between two body chunks.
        parse_poll_interval: Seconds between document status polls.
        parse_timeout: Give up waiting for a document parse after this long.
        emission_k: Plume model constant K used when generating sample
            daily measurements.
        emission_c_sector: Sector coefficient per industry for the same
            model. Read from RAG_EMISSION_C_SECTOR as a JSON object.
        default_c_sector: Coefficient for industries missing from
            ``emission_c_sector``.
        user_id: Submitter id sent with carbon data imports, if any.
    """

    api_base_url: str = Field(
        default_factory=lambda: os.getenv("RAG_API_BASE_URL", "http://localhost:18080/b/ibot"),
        description="Base URL of the RAG backend",
    )
    chat_top_k: int = Field(
        default_factory=lambda: int(os.getenv("RAG_CHAT_TOP_K", "5")),
        ge=1,
        le=50,
        description="Documents retrieved per chat question",
    )
    token_delay: float = Field(
        default_factory=lambda: float(os.getenv("RAG_TOKEN_DELAY", "0.5")),
        ge=0.0,
        le=10.0,
        description="Delay between paced token applications",
    )
    max_pending_tokens: int = Field(
        default_factory=lambda: int(os.getenv("RAG_MAX_PENDING_TOKENS", "200")),
        ge=1,
        description="Pending token count that triggers an immediate flush",
    )
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("RAG_REQUEST_TIMEOUT", "60")),
        gt=0.0,
        description="HTTP request timeout in seconds",
    )
    stream_idle_timeout: float = Field(
        default_factory=lambda: float(os.getenv("RAG_STREAM_IDLE_TIMEOUT", "120")),
        gt=0.0,
        description="Maximum seconds without a chunk before the stream is abandoned",
    )
    parse_poll_interval: float = Field(
        default_factory=lambda: float(os.getenv("RAG_PARSE_POLL_INTERVAL", "2.0")),
        gt=0.0,
        description="Seconds between document parse status polls",
    )
    parse_timeout: float = Field(
        default=600.0,
        gt=0.0,
        description="Maximum seconds to wait for a document parse",
    )
    emission_k: float = Field(
        default_factory=lambda: float(os.getenv("RAG_EMISSION_K", "1.0")),
        gt=0.0,
        description="Plume model constant K",
    )
    emission_c_sector: dict[str, float] = Field(
        default_factory=lambda: os.getenv("RAG_EMISSION_C_SECTOR", "{}"),
        validate_default=True,
        description="Sector coefficient per industry",
    )
    default_c_sector: float = Field(
        default_factory=lambda: float(os.getenv("RAG_DEFAULT_C_SECTOR", "1.0")),
        gt=0.0,
        description="Sector coefficient for industries without an entry",
    )
    user_id: str | None = Field(
        default_factory=lambda: os.getenv("RAG_USER_ID") or None,
        description="Submitter id sent with carbon data imports",
    )

    @field_validator("api_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an http(s) URL and drop trailing slashes."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                "RAG_API_BASE_URL must start with http:// or https://"
            )
        return v.rstrip("/")

    @field_validator("emission_c_sector", mode="before")
    @classmethod
    def parse_c_sector(cls, v: object) -> object:
        """Accept the JSON object string read from the environment."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"RAG_EMISSION_C_SECTOR must be a JSON object: {e}") from e
        return v

    @model_validator(mode="after")
    def validate_poll_window(self) -> "ClientConfig":
        """The poll interval must fit inside the parse timeout."""
        if self.parse_poll_interval > self.parse_timeout:
            raise ValueError("parse_poll_interval cannot exceed parse_timeout")
        return self

    def c_sector_for(self, industry: str) -> float:
        return self.emission_c_sector.get(industry, self.default_c_sector)


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.

    Raises:
        ValidationError: If an environment value is out of range.
    """
    return ClientConfig()
