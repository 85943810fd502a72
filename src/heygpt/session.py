# heygpt: Session orchestrator. Drives one turn at a time: append the user turn, build the request from the
# conversation, route the reply to the streaming reducer or the batch decoder, then commit or roll back.

from enum import Enum
from typing import Optional, TextIO

from .client import ChatCompletionsClient
from .config import Config
from .context import Context
from .conversation import Conversation
from .errors import HeyGptError, MissingPrompt
from .models import ChatRequest, Message
from .reducer import StreamReducer, decode_batch
from .spinner import Spinner


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    FAILED = "failed"


class Session:
    """
    One conversation with the API.

    Only Session (and the REPL command dispatcher) mutate the conversation. A failed
    interactive turn leaves the conversation exactly as it was before the turn.
    """

    def __init__(
        self,
        config: Config,
        client: ChatCompletionsClient,
        ctx: Context,
        conversation: Optional[Conversation] = None,
        assistant_label: str = "",
    ) -> None:
        self.config = config
        self.client = client
        self.ctx = ctx
        self.conversation = conversation if conversation is not None else Conversation(config.system_prompt)
        self.assistant_label = assistant_label
        self.state = SessionState.IDLE
        self._line_open = False

    def set_system(self, text: str) -> None:
        """Seed the system turn. Only valid before anything else was added."""
        if len(self.conversation):
            raise ValueError("the system prompt must be the first message of the conversation")
        self.conversation.append(Message(role="system", content=text))

    def await_input(self) -> None:
        self.state = SessionState.AWAITING_INPUT

    def build_request(self) -> ChatRequest:
        return ChatRequest(
            model=self.config.model,
            messages=self.conversation.snapshot(),
            stream=self.config.stream,
            temperature=self.config.temperature,
            top_p=self.config.top_p,
        )

    def _write(self, text: str) -> None:
        if text:
            self.ctx.write(text)
            self._line_open = True

    def _end_line(self) -> None:
        if self._line_open:
            self.ctx.write("\n")
            self._line_open = False

    def dispatch(self) -> Message:
        """
        Send the current conversation and return the assistant reply, echoing it as it arrives.

        The spinner runs from here until the first output and is stopped on every exit
        path; the network response is closed on every exit path too.
        """
        self.state = SessionState.DISPATCHED
        request = self.build_request()
        self._write(self.assistant_label)

        with Spinner(self.ctx.out, prefix=self.assistant_label, enabled=self.ctx.is_tty) as spinner:

            def sink(text: str) -> None:
                spinner.stop()
                self._write(text)

            if request.stream:
                reducer = StreamReducer(sink)
                with self.client.open_stream(request) as events:
                    message = reducer.consume(events)
                if not reducer.completed:
                    self.ctx.log("Event stream ended without [DONE]; keeping the text received so far.")
            else:
                status, body = self.client.fetch(request)
                message = decode_batch(status, body, self.ctx)
                sink(message.content)

        self._line_open = True
        self._end_line()
        return message

    def turn(self, prompt_text: str) -> Optional[Message]:
        """
        Run one interactive turn.

        On success the reply is appended and returned. On failure the user turn is
        retracted, the error is reported once, and None is returned.
        """
        self.conversation.append(Message(role="user", content=prompt_text))
        try:
            reply = self.dispatch()
        except HeyGptError as e:
            self._end_line()
            self.conversation.retract()
            self.state = SessionState.FAILED
            self.ctx.error_message(str(e))
            return None
        self.conversation.append(reply)
        self.state = SessionState.COMPLETED
        return reply

    def one_shot(self, prompt_text: Optional[str], piped_input: Optional[TextIO] = None) -> Message:
        """
        Ask a single question and return the reply.

        Without prompt text the whole of piped_input is used. Raises MissingPrompt when
        neither has any text; request errors propagate to the caller.
        """
        if not prompt_text or not prompt_text.strip():
            prompt_text = piped_input.read() if piped_input is not None else ""
        if not prompt_text.strip():
            raise MissingPrompt()

        self.conversation.append(Message(role="user", content=prompt_text))
        try:
            reply = self.dispatch()
        except HeyGptError:
            self._end_line()
            self.state = SessionState.FAILED
            raise
        self.conversation.append(reply)
        self.state = SessionState.COMPLETED
        return reply
