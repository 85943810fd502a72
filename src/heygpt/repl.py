# heygpt: Interactive read loop with line editing, persistent line history, coloured role prompts, and routing
# of each input line to the command dispatcher or the session.

import pathlib
import re
from typing import Callable, Optional

try:
    import readline
except ImportError:  # platform without readline: no line editing or history
    readline = None

from .commands import Command, CommandDispatcher, parse_input
from .context import Context
from .session import Session

ROLE_COLORS = {
    "system": "37",
    "user": "36",
    "assistant": "32",
}

# ANSI CSI escape sequences, e.g. "\033[1;36m".
_ANSI_PATTERN = re.compile(r"\033\[[0-9;]*[A-Za-z]")


def role_label(role: str, color: bool) -> str:
    """Return "<role> => ", with the role in bold colour when color is on."""
    if not color:
        return f"{role} => "
    code = ROLE_COLORS.get(role, "37")
    return f"\033[1;{code}m{role}\033[0m => "


def readline_safe_prompt(prompt: str) -> str:
    """Wrap ANSI escapes in \\001/\\002 so readline measures the prompt width correctly."""
    if "\033[" not in prompt:
        return prompt
    return _ANSI_PATTERN.sub(lambda m: f"\001{m.group(0)}\002", prompt)


class Repl:
    """
    Interactive loop around a Session.

    Ctrl-C or Ctrl-D at a prompt ends the loop normally. Lines starting with the
    command prefix go to the CommandDispatcher; blank lines are ignored.
    """

    def __init__(
        self,
        session: Session,
        ctx: Context,
        history_file: Optional[pathlib.Path] = None,
        input_fn: Optional[Callable[[str], str]] = None,
    ) -> None:
        self.session = session
        self.ctx = ctx
        self.history_file = history_file
        self.dispatcher = CommandDispatcher(session.conversation, ctx)
        self._input = input_fn if input_fn is not None else input
        self._color = ctx.is_tty
        self._history_start = 0

    def _load_history(self) -> None:
        if readline is None or self.history_file is None:
            return
        try:
            if self.history_file.exists():
                readline.read_history_file(str(self.history_file))
        except OSError as e:
            self.ctx.log(f"Could not read history file {self.history_file}: {e}")
        self._history_start = readline.get_current_history_length()

    def _save_history(self) -> None:
        if readline is None or self.history_file is None:
            return
        new_entries = readline.get_current_history_length() - self._history_start
        try:
            if not self.history_file.exists():
                readline.write_history_file(str(self.history_file))
            elif new_entries > 0:
                readline.append_history_file(new_entries, str(self.history_file))
        except OSError as e:
            self.ctx.log(f"Could not write history file {self.history_file}: {e}")

    def read_line(self, role: str) -> Optional[str]:
        """Prompt for one line. Returns None when input ended (Ctrl-C or Ctrl-D)."""
        prompt = readline_safe_prompt(role_label(role, self._color))
        try:
            return self._input(prompt)
        except KeyboardInterrupt:
            self.ctx.send_to_user("CTRL-C")
        except EOFError:
            self.ctx.send_to_user("CTRL-D")
        return None

    def run(self, ask_system: bool = False) -> int:
        """Run until input ends or a quit command. Always returns exit status 0."""
        self._load_history()
        try:
            if ask_system:
                text = self.read_line("system")
                if text is None:
                    return 0
                if text.strip():
                    self.session.set_system(text)

            while True:
                self.session.await_input()
                line = self.read_line("user")
                if line is None:
                    break
                parsed = parse_input(line)
                if parsed is None:
                    continue
                if isinstance(parsed, Command):
                    if not self.dispatcher.dispatch(parsed):
                        break
                    continue
                self.session.turn(parsed.text)
        finally:
            self._save_history()
        return 0
