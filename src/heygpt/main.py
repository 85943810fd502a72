# heygpt: CLI entrypoint. Parses flags, resolves the Config once, then runs a one-shot question or the
# interactive loop.

import argparse
import os
import sys
from typing import List, Optional

from pydantic import ValidationError

from .client import ChatCompletionsClient
from .config import DEFAULT_MODEL, HEYGPT_HOME, READLINE_HISTORY, resolve_config
from .context import Context
from .errors import HeyGptError, MissingCredential, MissingPrompt
from .repl import Repl, role_label
from .session import Session
from .settings import load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="heygpt",
        description="Ask an OpenAI-compatible chat model from the terminal. Leave the prompt empty for interactive mode.",
        epilog="Environment: OPENAI_API_KEY, OPENAI_BASE_URL, HEYGPT_MODEL, HEYGPT_HOME (settings.yaml location).",
    )
    parser.add_argument("--api-key", help="OpenAI API key (default: $OPENAI_API_KEY)")
    parser.add_argument("--base-url", help="API base URL (default: https://api.openai.com/v1)")
    parser.add_argument("--model", help=f"The model to query (default: {DEFAULT_MODEL})")
    parser.add_argument("--no-stream", action="store_true", default=None, help="Do not use the streaming API")
    parser.add_argument(
        "-s", "--system", action="store_true", default=None,
        help="Ask for a 'system' message at the beginning (interactive mode only)",
    )
    parser.add_argument("--system-prompt", metavar="TEXT", help="Use TEXT as the 'system' message")
    parser.add_argument(
        "--temperature", type=float,
        help="Sampling temperature between 0 and 2. Higher values like 0.8 make the output more random, "
        "lower values like 0.2 make it more focused and deterministic. Alter this or --top-p, not both.",
    )
    parser.add_argument(
        "--top-p", type=float,
        help="Nucleus sampling: only tokens within the top_p probability mass are considered, "
        "so 0.1 means the top 10%%. Alter this or --temperature, not both.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=None, help="Log requests, retries and token usage to stderr")
    parser.add_argument("prompt", nargs=argparse.REMAINDER, help="The prompt to ask")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings(HEYGPT_HOME)

    try:
        config = resolve_config(vars(args), settings, os.environ)
    except MissingCredential as e:
        Context().error_message(str(e))
        return 2
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(part) for part in err["loc"]) or "config"
        Context().error_message(f"Invalid configuration: {field}: {err['msg']}")
        return 2

    ctx = Context(verbose=config.verbose)
    client = ChatCompletionsClient(config, ctx)
    prompt = " ".join(config.prompt_args)
    interactive = not prompt and sys.stdin.isatty()

    try:
        if not interactive:
            if config.ask_system:
                ctx.error_message("--system is only supported in interactive mode; use --system-prompt TEXT instead.")
                return 2
            session = Session(config, client, ctx)
            try:
                session.one_shot(prompt, None if prompt else sys.stdin)
            except MissingPrompt as e:
                ctx.error_message(str(e))
                return 2
            except HeyGptError as e:
                ctx.error_message(str(e))
                return 1
            return 0

        session = Session(config, client, ctx, assistant_label=role_label("assistant", ctx.is_tty))
        return Repl(session, ctx, history_file=READLINE_HISTORY).run(ask_system=config.ask_system)
    except KeyboardInterrupt:
        ctx.send_to_user("")
        return 130


if __name__ == "__main__":
    sys.exit(main())
