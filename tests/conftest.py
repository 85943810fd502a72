"""Shared fakes and fixtures.

HTTP is never touched: FakeSession stands in for requests.Session and hands out
scripted FakeResponse objects (or raises scripted exceptions) in order.
"""

import io
import json
from typing import Any, Dict, List, Optional, Union

import pytest
from requests.structures import CaseInsensitiveDict

from heygpt.client import ChatCompletionsClient
from heygpt.config import Config
from heygpt.context import Context
from heygpt.session import Session

SSE_HEADERS = {"Content-Type": "text/event-stream; charset=utf-8"}
JSON_HEADERS = {"Content-Type": "application/json"}


class FakeResponse:
    """Just enough of requests.Response: status, headers, text, byte iteration, close()."""

    def __init__(
        self,
        status_code: int = 200,
        body: Union[str, bytes] = b"",
        chunks: Optional[List[bytes]] = None,
        headers: Optional[Dict[str, str]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.status_code = status_code
        self.reason = "OK" if status_code < 400 else "Error"
        self.headers = CaseInsensitiveDict(headers or {})
        self._body = body.encode("utf-8") if isinstance(body, str) else body
        self._chunks = chunks
        self._error = error
        self.closed = False

    @property
    def text(self) -> str:
        return self._body.decode("utf-8")

    def __iter__(self):
        for chunk in self._chunks if self._chunks is not None else [self._body]:
            yield chunk
        if self._error is not None:
            raise self._error

    def close(self) -> None:
        self.closed = True


class FakeSession:
    def __init__(self, responses: List[Any]) -> None:
        self.headers: Dict[str, str] = {}
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def post(self, url, json=None, stream=False, timeout=None):
        self.calls.append({"url": url, "json": json, "stream": stream, "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def chunk(content: Optional[str] = None, role: Optional[str] = None) -> str:
    """JSON payload of one streamed chat.completion.chunk."""
    delta: Dict[str, str] = {}
    if role is not None:
        delta["role"] = role
    if content is not None:
        delta["content"] = content
    return json.dumps(
        {
            "id": "chatcmpl-1",
            "object": "chat.completion.chunk",
            "created": 1700000000,
            "model": "gpt-3.5-turbo",
            "choices": [{"delta": delta, "index": 0, "finish_reason": None}],
        }
    )


def sse(*payloads: str) -> bytes:
    return b"".join(f"data: {p}\n\n".encode("utf-8") for p in payloads)


def stream_response(*payloads: str, error: Optional[BaseException] = None) -> FakeResponse:
    return FakeResponse(200, chunks=[sse(p) for p in payloads], headers=SSE_HEADERS, error=error)


def completion_body(content: str, role: str = "assistant", usage: bool = True) -> str:
    body: Dict[str, Any] = {
        "id": "chatcmpl-2",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-3.5-turbo",
        "choices": [{"message": {"role": role, "content": content}, "index": 0, "finish_reason": "stop"}],
    }
    if usage:
        body["usage"] = {"prompt_tokens": 9, "completion_tokens": 3, "total_tokens": 12}
    return json.dumps(body)


def batch_response(content: str) -> FakeResponse:
    return FakeResponse(200, body=completion_body(content), headers=JSON_HEADERS)


def error_response(status: int, message: str, kind: str) -> FakeResponse:
    body = json.dumps({"error": {"message": message, "type": kind, "param": None, "code": None}})
    return FakeResponse(status, body=body, headers=JSON_HEADERS)


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def err():
    return io.StringIO()


@pytest.fixture
def ctx(out, err):
    return Context(out=out, err=err, verbose=True)


@pytest.fixture
def make_config():
    def _make(**overrides) -> Config:
        values = {"api_key": "sk-test", "max_retries": 0}
        values.update(overrides)
        return Config(**values)

    return _make


@pytest.fixture
def make_session(ctx, make_config):
    """Build (session, fake_session) for a list of scripted responses."""

    def _make(responses: List[Any], assistant_label: str = "", **config_overrides):
        fake = FakeSession(responses)
        config = make_config(**config_overrides)
        client = ChatCompletionsClient(config, ctx, session=fake)
        return Session(config, client, ctx, assistant_label=assistant_label), fake

    return _make


@pytest.fixture(autouse=True)
def no_backoff_sleep(monkeypatch):
    monkeypatch.setattr("heygpt.client.time.sleep", lambda _s: None)
