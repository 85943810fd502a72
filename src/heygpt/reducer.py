# heygpt: Turn API replies into a single assistant Message. StreamReducer folds server-sent deltas as they
# arrive; decode_batch handles a complete JSON body. Both apply the same leading-newline normalization.

import json
from typing import Callable, Iterable, Optional

import requests
from pydantic import ValidationError

from .context import Context
from .errors import MalformedResponse, RemoteApiError, StreamTransportError
from .models import Message, ResponseMessage, ResponseStreamMessage, ServerEvent, WrappedApiError

DONE_SENTINEL = "[DONE]"
DEFAULT_ROLE = "assistant"


def strip_leading_newline(text: str) -> str:
    """Drop a single newline at the very start of text. Providers sometimes open a reply with one."""
    if text.startswith("\n"):
        return text[1:]
    return text


def _truncate(text: str, limit: int = 500) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def _close(events: Iterable[ServerEvent]) -> None:
    close = getattr(events, "close", None)
    if close is not None:
        close()


class StreamReducer:
    """
    Accumulate the deltas of one streamed reply into a Message.

    Each non-empty content fragment is passed to sink as soon as it is folded in,
    in arrival order. `completed` tells whether the [DONE] sentinel was seen.
    """

    def __init__(self, sink: Callable[[str], None]) -> None:
        self.message = Message(role="", content="")
        self.completed = False
        self._sink = sink

    def feed(self, event: ServerEvent) -> bool:
        """Fold one event in. Returns True when the stream signalled its end."""
        if event.kind == "open":
            return False
        if event.data.strip() == DONE_SENTINEL:
            self.completed = True
            return True

        try:
            chunk = ResponseStreamMessage.model_validate_json(event.data)
        except ValidationError as e:
            try:
                wrapped = WrappedApiError.model_validate_json(event.data)
            except ValidationError:
                wrapped = None
            if wrapped is not None:
                raise RemoteApiError(wrapped.error.type, wrapped.error.message) from e
            raise MalformedResponse(f"stream event does not match the expected shape: {_truncate(event.data)}") from e

        if not chunk.choices:
            return False
        delta = chunk.choices[0].delta

        if delta.role is not None:
            self.message.role += delta.role

        if delta.content is not None:
            text = delta.content
            if not self.message.content and text.startswith("\n"):
                text = text[1:]
            if text:
                self.message.content += text
                self._sink(text)
        return False

    def consume(self, events: Iterable[ServerEvent]) -> Message:
        """
        Feed every event until [DONE] or the end of the stream and return the result.

        A transport failure closes the stream and raises StreamTransportError. Bytes that are
        not valid UTF-8 close it and raise MalformedResponse. Nothing accumulated so far is returned.
        """
        try:
            for event in events:
                if self.feed(event):
                    break
        except requests.exceptions.RequestException as e:
            _close(events)
            raise StreamTransportError(e) from e
        except UnicodeDecodeError as e:
            _close(events)
            raise MalformedResponse(f"stream is not valid UTF-8: {e}") from e
        return self.result()

    def result(self) -> Message:
        role = self.message.role or DEFAULT_ROLE
        return Message(role=role, content=self.message.content)


def decode_api_error(status_code: int, body: str) -> RemoteApiError:
    """Build the error for a non-2xx reply, from the error envelope when there is one."""
    try:
        wrapped = WrappedApiError.model_validate_json(body)
    except ValidationError:
        return RemoteApiError("http_error", f"HTTP {status_code}: {_truncate(body.strip()) or '<empty body>'}", status_code)
    return RemoteApiError(wrapped.error.type, wrapped.error.message, status_code)


def _log_usage(ctx: Context, resp: ResponseMessage) -> None:
    if resp.usage is None:
        return
    ctx.log(
        f"OpenAI usage: prompt_tokens={resp.usage.prompt_tokens}, "
        f"completion_tokens={resp.usage.completion_tokens}, total_tokens={resp.usage.total_tokens}"
    )


def decode_batch(status_code: int, body: str, ctx: Optional[Context] = None) -> Message:
    """
    Extract choices[0].message from a complete reply body.

    Raises RemoteApiError for non-2xx statuses and MalformedResponse when a 2xx body
    is not a chat completion.
    """
    if not 200 <= status_code < 300:
        raise decode_api_error(status_code, body)
    try:
        resp = ResponseMessage.model_validate_json(body)
    except ValidationError as e:
        try:
            json.loads(body)
        except ValueError:
            raise MalformedResponse(f"reply is not JSON: {_truncate(body)}") from e
        raise MalformedResponse(f"reply does not match the chat completion shape: {e.errors()[0]['msg']}") from e

    if ctx is not None:
        _log_usage(ctx, resp)

    message = resp.choices[0].message
    return Message(role=message.role or DEFAULT_ROLE, content=strip_leading_newline(message.content))
