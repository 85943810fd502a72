# heygpt: Exception taxonomy shared by the session engine, the transport and the CLI.

from typing import Optional


class HeyGptError(RuntimeError):
    """Base class for every error the client reports to the user."""


class MissingPrompt(HeyGptError):
    def __init__(self) -> None:
        super().__init__("No prompt given. Pass it as arguments or pipe it on stdin.")


class MissingCredential(HeyGptError):
    def __init__(self) -> None:
        super().__init__("No API key. Use --api-key, set OPENAI_API_KEY, or add api.api_key to settings.yaml.")


class NoMessageToRetract(HeyGptError):
    def __init__(self) -> None:
        super().__init__("No message to retract.")


class TransportError(HeyGptError):
    """The request could not be delivered or no response arrived."""

    def __init__(self, cause: BaseException, message: Optional[str] = None) -> None:
        self.cause = cause
        super().__init__(message or f"Request failed: {cause}")


class StreamTransportError(TransportError):
    """The event stream broke after it was opened."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(cause, f"EventSource stream error: {cause}")


class RemoteApiError(HeyGptError):
    """A non-2xx reply from the API, carrying the error envelope's type and message."""

    def __init__(self, kind: str, message: str, status: Optional[int] = None) -> None:
        self.kind = kind
        self.message = message
        self.status = status
        super().__init__(f"{kind}: {message}")


class MalformedResponse(HeyGptError):
    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Malformed response: {detail}")
