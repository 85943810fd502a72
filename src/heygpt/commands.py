# heygpt: REPL input classification and in-band commands. Commands are intercepted here and never become
# user turns; plain prompts go to the session.

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from .context import Context
from .conversation import Conversation
from .errors import NoMessageToRetract

COMMAND_PREFIX = "\\"


class PlainPrompt(BaseModel):
    model_config = ConfigDict(frozen=True)
    text: str


class Command(BaseModel):
    model_config = ConfigDict(frozen=True)
    name: str


def parse_input(line: str) -> Optional[Union[PlainPrompt, Command]]:
    """Classify one line of input. Blank lines give None."""
    if not line.strip():
        return None
    stripped = line.strip()
    if stripped.startswith(COMMAND_PREFIX):
        parts = stripped[len(COMMAND_PREFIX):].split()
        if not parts:
            return Command(name="")
        return Command(name=parts[0].lower())
    return PlainPrompt(text=line)


class CommandDispatcher:
    def __init__(self, conversation: Conversation, ctx: Context) -> None:
        self.conversation = conversation
        self.ctx = ctx

    def cmd_help(self) -> None:
        """Print a list of supported commands and brief descriptions."""
        ctx = self.ctx
        ctx.send_to_user("Commands:")
        ctx.send_to_user(f"{COMMAND_PREFIX}help, {COMMAND_PREFIX}?        - Show this help")
        ctx.send_to_user(f"{COMMAND_PREFIX}back, {COMMAND_PREFIX}retract  - Remove your last message and the reply to it")
        ctx.send_to_user(f"{COMMAND_PREFIX}history           - Show the conversation so far")
        ctx.send_to_user(f"{COMMAND_PREFIX}quit, {COMMAND_PREFIX}exit     - Exit (Ctrl-D works too)")

    def cmd_retract(self) -> None:
        try:
            removed = self.conversation.retract()
        except NoMessageToRetract as e:
            self.ctx.error_message(str(e))
            return
        self.ctx.send_to_user(f"Retracted the last exchange ({removed} message(s)).")

    def cmd_history(self) -> None:
        rows = self.conversation.render()
        if not rows:
            self.ctx.send_to_user("Conversation is empty.")
            return
        for idx, role, content in rows:
            self.ctx.send_to_user(f"[{idx}] {role} => {content}")

    def dispatch(self, command: Command) -> bool:
        """Run a command. Returns False when the interactive loop should stop."""
        name = command.name
        if name in ("help", "?"):
            self.cmd_help()
        elif name in ("back", "retract"):
            self.cmd_retract()
        elif name == "history":
            self.cmd_history()
        elif name in ("quit", "exit"):
            return False
        else:
            self.ctx.error_message(f"Unknown command: {COMMAND_PREFIX}{name}. Type {COMMAND_PREFIX}help for help.")
        return True
