# heygpt: In-memory conversation log. Order is significant: the whole log is replayed to the API on every request.

from typing import List, Optional, Tuple

from .errors import NoMessageToRetract
from .models import Message


class Conversation:
    """
    Ordered, append-only log of turns with undo of the last exchange.

    A system turn, when present, sits at index 0 and there is only one. append()
    does not re-check this; the system turn is added once, before any other turn.
    """

    def __init__(self, system_prompt: Optional[str] = None) -> None:
        self._messages: List[Message] = []
        if system_prompt:
            self.append(Message(role="system", content=system_prompt))

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def system(self) -> Optional[Message]:
        if self._messages and self._messages[0].role == "system":
            return self._messages[0]
        return None

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def retract(self) -> int:
        """
        Remove the most recent user turn and everything after it.

        Returns the number of removed turns. Raises NoMessageToRetract, leaving the
        log untouched, when there is no user turn to remove.
        """
        for idx in range(len(self._messages) - 1, -1, -1):
            if self._messages[idx].role == "user":
                removed = len(self._messages) - idx
                del self._messages[idx:]
                return removed
        raise NoMessageToRetract()

    def snapshot(self) -> List[Message]:
        """Independent copies of every turn, in conversation order."""
        return [m.model_copy() for m in self._messages]

    def render(self) -> List[Tuple[int, str, str]]:
        return [(i, m.role, m.content) for i, m in enumerate(self._messages)]
