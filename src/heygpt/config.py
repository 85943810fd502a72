# heygpt: Configuration defaults and the Config record built once at start-up. Values are resolved with
# precedence: command-line flags > settings.yaml > environment > defaults. Core modules receive the Config
# and never read the environment themselves.

from __future__ import annotations

import os
import pathlib
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import MissingCredential
from .settings import section

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-3.5-turbo"

# Request timeout in seconds (connect and read); long generations can be slow to start.
DEFAULT_TIMEOUT = 600.0
# Retries for timeouts, connection errors and HTTP 5xx before any reply is read.
DEFAULT_MAX_RETRIES = 3

# Settings directory; also the default root for .http request dumps.
HEYGPT_HOME = pathlib.Path(os.environ.get("HEYGPT_HOME", "~/.heygpt")).expanduser()

# Line-editing history for interactive mode.
READLINE_HISTORY = pathlib.Path.home() / ".heygpt_history"


class Config(BaseModel):
    """Everything the session engine needs to know, resolved once."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_key: str = Field(..., min_length=1)
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    stream: bool = True
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    system_prompt: Optional[str] = None
    # --system: ask for the system prompt interactively before the first turn.
    ask_system: bool = False
    prompt_args: List[str] = Field(default_factory=list)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    verbose: bool = False
    httpcalls_dir: Optional[pathlib.Path] = None

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


def _first(*values: Any) -> Any:
    for v in values:
        if v is not None:
            return v
    return None


def _httpcalls_dir(settings: Dict[str, Any], home: pathlib.Path) -> Optional[pathlib.Path]:
    log_cfg = section(settings, "logging", "httpcalls")
    if log_cfg.get("enabled") is not True:
        return None
    custom_dir = log_cfg.get("dir")
    if not custom_dir:
        return home / "httpcalls"
    cpath = pathlib.Path(str(custom_dir)).expanduser()
    return cpath if cpath.is_absolute() else home / cpath


def resolve_config(
    overrides: Dict[str, Any],
    settings: Dict[str, Any],
    environ: Mapping[str, str],
    home: pathlib.Path = HEYGPT_HOME,
) -> Config:
    """
    Build the Config from command-line overrides, settings.yaml contents and the environment.

    `overrides` holds command-line values; None means "not given". Raises MissingCredential
    when no API key is found anywhere, and pydantic.ValidationError for out-of-range values.
    """
    api_cfg = section(settings, "api")
    log_cfg = section(settings, "logging")

    api_key = _first(overrides.get("api_key"), api_cfg.get("api_key"), environ.get("OPENAI_API_KEY"))
    if not api_key:
        raise MissingCredential()

    ask_system = bool(overrides.get("system"))
    system_prompt = None if ask_system else _first(overrides.get("system_prompt"), settings.get("system"))

    stream = False if overrides.get("no_stream") else _first(settings.get("stream"), True)

    return Config(
        api_key=str(api_key),
        base_url=str(_first(overrides.get("base_url"), api_cfg.get("base_url"), environ.get("OPENAI_BASE_URL"), DEFAULT_BASE_URL)),
        model=str(_first(overrides.get("model"), api_cfg.get("model"), environ.get("HEYGPT_MODEL"), DEFAULT_MODEL)),
        stream=bool(stream),
        temperature=_first(overrides.get("temperature"), settings.get("temperature")),
        top_p=_first(overrides.get("top_p"), settings.get("top_p")),
        system_prompt=system_prompt,
        ask_system=ask_system,
        prompt_args=list(overrides.get("prompt") or []),
        timeout=_first(api_cfg.get("timeout"), DEFAULT_TIMEOUT),
        max_retries=_first(api_cfg.get("max_retries"), DEFAULT_MAX_RETRIES),
        verbose=bool(overrides.get("verbose") or log_cfg.get("verbose")),
        httpcalls_dir=_httpcalls_dir(settings, home),
    )
