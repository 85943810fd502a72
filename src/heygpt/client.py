# heygpt: HTTP transport for the chat completions endpoint: a requests.Session with the bearer header, a
# bounded retry loop for transient failures, optional .http request dumps, and SSE framing via sseclient-py.

import json
import pathlib
import random
import time
from typing import Any, Dict, Iterator, Optional, Tuple

import requests
import sseclient

from .config import Config
from .context import Context
from .errors import StreamTransportError, TransportError
from .models import ChatRequest, ServerEvent
from .reducer import decode_api_error


def dumpHttpFile(ctx: Context, file: pathlib.Path, url: str, method: str, headers: Dict[str, str], obj: Any) -> bool:
    """
    Write a human-readable HTTP request dump to disk for debugging.

    Best-effort: serialization and I/O errors are reported through ctx and False is
    returned instead of raising.
    """
    try:
        json_str = json.dumps(obj, indent=2, ensure_ascii=False)
        file.parent.mkdir(parents=True, exist_ok=True)
        with open(file, "w", encoding="utf-8") as f:
            f.write(f"{method.upper()} {url}\n")
            for key, value in headers.items():
                f.write(f"{key}: {value}\n")
            f.write("\n")
            f.write(json_str)
        ctx.log(f"HTTP request dumped to {file}")
        return True
    except TypeError as e:
        ctx.error_message(f"The object could not be serialized to JSON. Details: {e}")
    except OSError as e:
        ctx.error_message(f"Could not write to file {file}. Details: {e}")
    return False


def _backoff_delay(attempt: int) -> float:
    base_delay = [1.0, 2.0, 4.0][min(attempt - 1, 2)]
    return base_delay * random.uniform(0.5, 1.5)


class EventStream:
    """
    Server-sent events of one streaming reply, as ServerEvent records.

    Yields an "open" event first, then one "message" event per SSE record. The
    underlying response is closed on close() or when leaving the with-block.
    """

    def __init__(self, response: requests.Response) -> None:
        self._response = response
        self.closed = False

    def __iter__(self) -> Iterator[ServerEvent]:
        yield ServerEvent(kind="open")
        for event in sseclient.SSEClient(self._response).events():
            yield ServerEvent(kind="message", data=event.data)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._response.close()

    def __enter__(self) -> "EventStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class ChatCompletionsClient:
    def __init__(self, config: Config, ctx: Context, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.ctx = ctx
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            }
        )

    def chat_url(self) -> str:
        return self.config.chat_url

    def _dump_request(self, payload: Dict[str, Any]) -> Optional[pathlib.Path]:
        if self.config.httpcalls_dir is None:
            return None
        ts_ms = int(time.time() * 1000)
        http_file = self.config.httpcalls_dir / f"call-{ts_ms}.http"
        headers_for_log = dict(self.session.headers)
        if "Authorization" in headers_for_log:
            headers_for_log["Authorization"] = "Bearer {{OPENAI_API_KEY}}"
        if dumpHttpFile(self.ctx, http_file, self.chat_url(), "POST", headers_for_log, payload):
            return http_file
        return None

    def _dump_response(self, http_file: Optional[pathlib.Path], r: requests.Response, elapsed_ms: int, body: Optional[str]) -> None:
        if http_file is None:
            return
        try:
            with open(http_file, "a", encoding="utf-8") as f:
                f.write(f"\n\n### Response - elapsed_ms: {elapsed_ms}\n")
                f.write(f"HTTP/1.1 {r.status_code} {getattr(r, 'reason', '')}\n")
                for hk, hv in r.headers.items():
                    f.write(f"{hk}: {hv}\n")
                f.write("\n")
                f.write(body if body is not None else "<event stream>\n")
        except OSError as e:
            self.ctx.error_message(f"Could not append response to {http_file}. Details: {e}")

    def send(self, request: ChatRequest) -> Tuple[requests.Response, Optional[pathlib.Path], int]:
        """
        POST the request, retrying timeouts, connection errors and HTTP 5xx.

        4xx replies are returned as-is for the caller to decode. Returns the response,
        the .http dump file (if dumping is on) and the elapsed milliseconds.
        """
        payload = request.to_payload()
        http_file = self._dump_request(payload)
        self.ctx.log(f"POST {self.chat_url()} (model={request.model}, messages={len(request.messages)}, stream={request.stream})")

        max_retries = self.config.max_retries
        attempt = 0
        while True:
            attempt += 1
            t0 = time.time()
            try:
                r = self.session.post(self.chat_url(), json=payload, stream=request.stream, timeout=self.config.timeout)
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                if attempt <= max_retries:
                    delay = _backoff_delay(attempt)
                    self.ctx.log(f"Attempt {attempt} failed ({type(e).__name__}); retrying in {delay:.2f}s...")
                    time.sleep(delay)
                    continue
                raise TransportError(e, f"Request failed after {attempt} attempt(s): {e}") from e
            except requests.exceptions.RequestException as e:
                raise TransportError(e) from e

            elapsed_ms = int((time.time() - t0) * 1000)
            if r.status_code >= 500 and attempt <= max_retries:
                r.close()
                delay = _backoff_delay(attempt)
                self.ctx.log(f"Attempt {attempt} received {r.status_code}; retrying in {delay:.2f}s...")
                time.sleep(delay)
                continue
            return r, http_file, elapsed_ms

    def fetch(self, request: ChatRequest) -> Tuple[int, str]:
        """Send a non-streaming request and return (status code, body text)."""
        r, http_file, elapsed_ms = self.send(request)
        try:
            body = r.text
        except requests.exceptions.RequestException as e:
            raise TransportError(e) from e
        finally:
            r.close()
        self._dump_response(http_file, r, elapsed_ms, body)
        return r.status_code, body

    def open_stream(self, request: ChatRequest) -> EventStream:
        """
        Send a streaming request and return its event stream.

        Non-2xx replies are decoded like batch errors and raised as RemoteApiError. A 2xx
        reply that is not an event stream raises StreamTransportError.
        """
        r, http_file, elapsed_ms = self.send(request)
        if not 200 <= r.status_code < 300:
            try:
                body = r.text
            except requests.exceptions.RequestException as e:
                raise TransportError(e) from e
            finally:
                r.close()
            self._dump_response(http_file, r, elapsed_ms, body)
            raise decode_api_error(r.status_code, body)

        self._dump_response(http_file, r, elapsed_ms, None)
        content_type = r.headers.get("Content-Type", "")
        if content_type and not content_type.startswith("text/event-stream"):
            r.close()
            raise StreamTransportError(ValueError(f"unexpected Content-Type {content_type!r}"))
        return EventStream(r)
