"""Pydantic schemas for the remote chat endpoint."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

SUCCESS_STATUS = "success"


class ContextMessage(BaseModel):
    """One prior message sent as conversation context."""

    role: Literal["user", "assistant"]
    content: str


class ExchangeRequest(BaseModel):
    """Request body for the chat endpoint."""

    message: str = Field(..., min_length=1, description="Trimmed user text")
    conversation_history: List[ContextMessage] = Field(default_factory=list)


class ExchangeReplyData(BaseModel):
    """Payload nested under ``data`` in a reply."""

    response: Optional[str] = None


class ExchangeResponse(BaseModel):
    """Response body returned by the chat endpoint."""

    status: Optional[str] = None
    data: Optional[ExchangeReplyData] = None

    @property
    def reply_text(self) -> Optional[str]:
        """Reply text when the response reports success with non-empty text."""
        if self.status != SUCCESS_STATUS or self.data is None:
            return None
        return self.data.response or None
