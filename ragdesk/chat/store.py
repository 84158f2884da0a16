"""Append-only conversation history shared by the chat client and the UI."""

from collections.abc import Iterator

from ragdesk.models.schemas import ChatMessage, Role


class MessageStore:
    """Ordered list of chat messages.

    The open assistant message is always found by scanning from the end, so
    messages must only ever be appended.
    """

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> ChatMessage:
        return self._messages[index]

    @property
    def messages(self) -> list[ChatMessage]:
        """A snapshot copy of the history."""
        return list(self._messages)

    def append(self, role: Role, content: str = "") -> ChatMessage:
        message = ChatMessage(role=role, content=content)
        self._messages.append(message)
        return message

    def last_assistant(self) -> ChatMessage | None:
        """Return the most recent assistant message, if any."""
        for message in reversed(self._messages):
            if message.role == Role.ASSISTANT:
                return message
        return None

    def clear(self) -> None:
        self._messages.clear()
