"""Model provider adapters for chatrelay."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Protocol


@dataclass
class ChatMessage:
    role: str
    content: str
    image: Optional[bytes] = None
    audio: Optional[bytes] = None

    @property
    def is_assistant(self) -> bool:
        return self.role == "assistant"


@dataclass
class ChatRequest:
    model: str
    authorization: str
    messages: List[ChatMessage] = field(default_factory=list)


class AdapterError(RuntimeError):
    """Raised when a provider interaction fails."""


class MessageFormatError(ValueError):
    """Raised when an incoming conversation payload is malformed."""


class Adapter(Protocol):
    """Common protocol for provider adapters."""

    def generate(self, request: ChatRequest) -> str:
        ...
