"""Error taxonomy for the chat and API clients."""


class RagDeskError(Exception):
    """Base class for all client errors."""

    pass


class PreconditionError(RagDeskError):
    """Raised when caller input is rejected before any request is sent."""

    pass


class TransportError(RagDeskError):
    """Raised on a non-2xx status, a missing body, or a network failure."""

    pass


class StreamParseError(RagDeskError):
    """Raised for a malformed SSE frame. Always recovered by the read loop."""

    pass


class CancellationError(RagDeskError):
    """Records that the user stopped a streaming response."""

    pass


class ServerSignaledError(TransportError):
    """Raised when the server sends an explicit error event."""

    pass


class ApiError(RagDeskError):
    """Raised when a JSON envelope carries a non-success code."""

    def __init__(self, code: int, msg: str | None = None) -> None:
        self.code = code
        self.msg = msg or f"Request failed with code {code}"
        super().__init__(self.msg)
