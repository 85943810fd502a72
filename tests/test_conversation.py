"""Tests for the in-memory conversation log."""

import pytest

from heygpt.conversation import Conversation
from heygpt.errors import NoMessageToRetract
from heygpt.models import Message


def user(text):
    return Message(role="user", content=text)


def assistant(text):
    return Message(role="assistant", content=text)


class TestConversation:
    def test_system_prompt_seeds_index_zero(self):
        conv = Conversation("Be terse")

        assert len(conv) == 1
        assert conv.system == Message(role="system", content="Be terse")

    def test_no_system_prompt(self):
        conv = Conversation()
        assert len(conv) == 0
        assert conv.system is None

    @pytest.mark.parametrize("system_prompt", [None, "Be terse"])
    def test_retract_with_nothing_to_retract_leaves_state_unchanged(self, system_prompt):
        conv = Conversation(system_prompt)
        before = conv.snapshot()

        with pytest.raises(NoMessageToRetract):
            conv.retract()
        with pytest.raises(NoMessageToRetract):
            conv.retract()

        assert conv.snapshot() == before

    def test_retract_removes_last_exchange(self):
        conv = Conversation("sys")
        conv.append(user("first"))
        conv.append(assistant("one"))
        before = conv.snapshot()
        conv.append(user("second"))
        conv.append(assistant("two"))

        removed = conv.retract()

        assert removed == 2
        assert conv.snapshot() == before

    def test_retract_unanswered_user_turn(self):
        conv = Conversation()
        conv.append(user("a"))
        conv.append(assistant("b"))
        conv.append(user("c"))

        assert conv.retract() == 1
        assert [m.content for m in conv.snapshot()] == ["a", "b"]

    def test_repeated_retract_walks_back_to_the_system_turn(self):
        conv = Conversation("sys")
        for i in range(3):
            conv.append(user(f"q{i}"))
            conv.append(assistant(f"a{i}"))

        conv.retract()
        conv.retract()
        conv.retract()

        assert conv.render() == [(0, "system", "sys")]

    def test_snapshot_is_independent_copy(self):
        conv = Conversation()
        conv.append(user("hello"))

        snap = conv.snapshot()
        snap[0].content += " world"
        snap.append(assistant("x"))

        assert conv.render() == [(0, "user", "hello")]

    def test_render_rows(self):
        conv = Conversation("sys")
        conv.append(user("2+2"))
        conv.append(assistant("4"))

        assert conv.render() == [(0, "system", "sys"), (1, "user", "2+2"), (2, "assistant", "4")]
