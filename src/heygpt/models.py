# heygpt: Pydantic v2 records for chat turns, the outgoing request envelope and the two response envelopes
# (batch and streamed delta). Outgoing models forbid unknown fields; incoming ones ignore them so provider
# additions never break decoding.

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CustomBaseModel(BaseModel):
    """Pydantic base model configured to forbid unknown fields for strict validation."""
    model_config = ConfigDict(extra="forbid")


class ResponseBaseModel(BaseModel):
    """Base for API replies; unknown keys are accepted and dropped."""
    model_config = ConfigDict(extra="ignore")


class Message(ResponseBaseModel):
    """One conversation turn."""

    role: str = Field(default="", description="system, user, assistant or whatever the API sends")
    content: str = Field(default="", description="UTF-8 text of the turn")

    @field_validator("role", "content", mode="before")
    @classmethod
    def _null_as_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class DeltaMessage(ResponseBaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class ChatRequest(CustomBaseModel):
    model: str = Field(..., description="Model id")
    messages: List[Message] = Field(..., description="Full conversation, replayed on every request")
    stream: bool = Field(..., description="Ask for a server-sent event stream")
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the request. Unset sampling fields are left out rather than sent as null."""
        return self.model_dump(exclude_none=True)


class ResponseUsage(ResponseBaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ResponseChoice(ResponseBaseModel):
    message: Message
    index: int = 0
    finish_reason: Optional[str] = None


class ResponseMessage(ResponseBaseModel):
    """Batch (non-streaming) reply."""

    choices: List[ResponseChoice] = Field(..., min_length=1)
    usage: Optional[ResponseUsage] = None
    id: Optional[str] = None
    model: Optional[str] = None
    created: Optional[int] = None
    object: Optional[str] = None


class ResponseDeltaChoice(ResponseBaseModel):
    delta: DeltaMessage = Field(default_factory=DeltaMessage)
    index: int = 0
    finish_reason: Optional[str] = None


class ResponseStreamMessage(ResponseBaseModel):
    """Payload of one streamed event. Some providers send chunks with an empty choices list."""

    choices: List[ResponseDeltaChoice] = Field(...)
    id: Optional[str] = None
    model: Optional[str] = None
    created: Optional[int] = None
    object: Optional[str] = None


class ApiError(ResponseBaseModel):
    message: str
    type: str
    param: Optional[Any] = None
    code: Optional[Any] = None


class WrappedApiError(ResponseBaseModel):
    """The API nests its error object under the "error" key."""
    error: ApiError


class ServerEvent(CustomBaseModel):
    """One record delivered by the SSE transport: the open notification or a message with its data field."""

    kind: Literal["open", "message"] = "message"
    data: str = ""
