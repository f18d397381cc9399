"""Message models for context window management"""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Message:
    """A single chat message.

    ``token_count`` is a memoized annotation filled in by the token accountant,
    not authoritative input. ``is_summary`` marks messages produced by the
    summarizer and is never set on caller-supplied messages.
    """
    role: str
    content: str
    is_summary: bool = False
    token_count: int | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for LLM APIs and persistence"""
        result: dict[str, Any] = {
            "role": self.role,
            "content": self.content,
        }
        if self.is_summary:
            result["is_summary"] = True
        if self.token_count is not None:
            result["token_count"] = self.token_count
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        """Create from dictionary"""
        return cls(
            role=data["role"],
            content=data.get("content") or "",
            is_summary=bool(data.get("is_summary", False)),
            token_count=data.get("token_count"),
        )


@dataclass
class PreparedMessages:
    """Result of preparing a conversation for a model.

    ``total_tokens`` is ``-1`` exactly when the manager fell back to the
    minimal safe message set and the real count is unknown.
    """
    messages: list[Message] = field(default_factory=list)
    was_summarized: bool = False
    total_tokens: int = 0

    @property
    def degraded(self) -> bool:
        return self.total_tokens == -1

    def to_dict(self) -> dict:
        return {
            "messages": [m.to_dict() for m in self.messages],
            "was_summarized": self.was_summarized,
            "total_tokens": self.total_tokens,
        }
