"""Tests for ConversationMemory: ordering, compaction atomicity and context building."""

import pytest

from orchestra.agents.memory import SUMMARY_HEADER, SUMMARY_INSTRUCTION, ConversationMemory, format_transcript
from orchestra.errors import CompactionError, ProviderError
from orchestra.models.agent import MemoryStatus
from orchestra.models.message import Message, ToolCallPart, ToolCallRequest, ToolResult

from tests.conftest import FakeCompletionModel


def _fill(memory, pairs):
    for i in range(pairs):
        memory.add_user_message(f"question {i}")
        memory.add_assistant_message(f"answer {i}")


class TestHistory:
    def test_round_trip_preserves_order_and_content(self):
        memory = ConversationMemory(max_messages=10)
        sent = [Message.user("hi"), Message.assistant("hello"), Message.user("bye")]
        for m in sent:
            memory.add_message(m)

        got = memory.get_messages()
        assert got == tuple(sent)
        assert [m.role for m in got] == ["user", "assistant", "user"]

    def test_get_messages_is_a_copy(self):
        memory = ConversationMemory()
        memory.add_user_message("hi")
        snapshot = memory.get_messages()
        memory.add_assistant_message("hello")
        assert len(snapshot) == 1
        assert len(memory) == 2

    def test_needs_compaction_only_above_cap(self):
        memory = ConversationMemory(max_messages=4)
        _fill(memory, 2)
        assert not memory.needs_compaction
        memory.add_user_message("one more")
        assert memory.needs_compaction

    def test_reset_clears_summary(self):
        memory = ConversationMemory(max_messages=2, summarizer=FakeCompletionModel(["summary"]))
        _fill(memory, 2)
        memory.compact()
        memory.reset()
        assert memory.summary is None
        assert len(memory) == 0
        assert memory.max_messages == 2


class TestCompaction:
    def test_ten_messages_compact_to_summary(self):
        model = FakeCompletionModel(["The user asked five questions."])
        memory = ConversationMemory(max_messages=4, summarizer=model)
        _fill(memory, 5)

        assert memory.compact() is True
        assert len(memory.get_messages()) == 0
        assert memory.summary == "The user asked five questions."
        assert memory.status is MemoryStatus.IDLE

    def test_summarization_prompt_contains_transcript(self):
        model = FakeCompletionModel(["summary"])
        memory = ConversationMemory(max_messages=1, summarizer=model)
        _fill(memory, 1)
        memory.compact()

        prompt = model.requests[0].messages[0].text
        assert prompt.startswith(SUMMARY_INSTRUCTION)
        assert "User: question 0\nAssistant: answer 0" in prompt
        assert model.requests[0].tools == []

    def test_no_op_under_cap(self):
        model = FakeCompletionModel()
        memory = ConversationMemory(max_messages=4, summarizer=model)
        _fill(memory, 2)
        assert memory.compact() is False
        assert model.calls == 0
        assert len(memory) == 4

    def test_failure_leaves_state_untouched(self):
        model = FakeCompletionModel(["first summary", ProviderError("rate limited")])
        memory = ConversationMemory(max_messages=2, summarizer=model)
        _fill(memory, 2)
        memory.compact()
        _fill(memory, 2)
        before = memory.get_messages()

        with pytest.raises(CompactionError) as excinfo:
            memory.compact()

        assert isinstance(excinfo.value.__cause__, ProviderError)
        assert memory.get_messages() == before
        assert memory.summary == "first summary"
        assert memory.status is MemoryStatus.ACTIVE

    def test_empty_summary_is_a_failure(self):
        memory = ConversationMemory(max_messages=1, summarizer=FakeCompletionModel(["   "]))
        _fill(memory, 1)
        with pytest.raises(CompactionError):
            memory.compact()
        assert len(memory) == 2
        assert memory.summary is None

    def test_retry_after_failure_succeeds(self):
        model = FakeCompletionModel([ProviderError("down"), "recovered"])
        memory = ConversationMemory(max_messages=1, summarizer=model)
        _fill(memory, 1)
        with pytest.raises(CompactionError):
            memory.compact()
        assert memory.compact() is True
        assert memory.summary == "recovered"

    def test_without_summarizer_raises(self):
        memory = ConversationMemory(max_messages=1)
        _fill(memory, 1)
        with pytest.raises(CompactionError):
            memory.compact()
        assert len(memory) == 2

    def test_explicit_model_overrides_summarizer(self):
        memory = ConversationMemory(max_messages=1)
        _fill(memory, 1)
        assert memory.compact(FakeCompletionModel(["from explicit model"])) is True
        assert memory.summary == "from explicit model"

    def test_maybe_compact_falls_back_to_given_model(self):
        memory = ConversationMemory(max_messages=1)
        _fill(memory, 1)
        assert memory.maybe_compact(FakeCompletionModel(["fallback summary"])) is True
        assert memory.summary == "fallback summary"
        assert len(memory) == 0

    def test_maybe_compact_prefers_configured_summarizer(self):
        memory = ConversationMemory(max_messages=1, summarizer=FakeCompletionModel(["configured"]))
        _fill(memory, 1)
        fallback = FakeCompletionModel(["fallback"])
        memory.maybe_compact(fallback)
        assert memory.summary == "configured"
        assert fallback.calls == 0

    def test_maybe_compact_swallows_failure(self):
        memory = ConversationMemory(max_messages=1, summarizer=FakeCompletionModel([ProviderError("down")]))
        _fill(memory, 1)
        assert memory.maybe_compact() is False
        assert len(memory) == 2

    def test_previous_summary_is_resummarized(self):
        model = FakeCompletionModel(["first", "second"])
        memory = ConversationMemory(max_messages=1, summarizer=model)
        _fill(memory, 1)
        memory.compact()
        _fill(memory, 1)
        memory.compact()

        prompt = model.requests[1].messages[0].text
        assert f"{SUMMARY_HEADER}\nfirst" in prompt
        assert memory.summary == "second"

    def test_long_summary_is_shortened_then_truncated(self):
        model = FakeCompletionModel(["x" * 50, "y" * 30])
        memory = ConversationMemory(max_messages=1, summarizer=model, max_summary_chars=20)
        _fill(memory, 1)
        memory.compact()

        assert model.calls == 2
        assert "at most 20 characters" in model.requests[1].messages[0].text
        assert memory.summary == "y" * 20

    def test_idle_becomes_active_on_append(self):
        memory = ConversationMemory(max_messages=1, summarizer=FakeCompletionModel(["s"]))
        _fill(memory, 1)
        memory.compact()
        memory.add_user_message("again")
        assert memory.status is MemoryStatus.ACTIVE


class TestBuildContext:
    def test_without_summary_returns_base(self):
        assert ConversationMemory().build_context("You are helpful.") == "You are helpful."

    def test_with_summary(self):
        memory = ConversationMemory(max_messages=1, summarizer=FakeCompletionModel(["Talked about crabs."]))
        _fill(memory, 1)
        memory.compact()
        assert memory.build_context("You are helpful.") == (
            "You are helpful.\n\nPrevious conversation summary:\nTalked about crabs."
        )
        assert memory.build_context("") == "Previous conversation summary:\nTalked about crabs."

    def test_is_pure(self):
        memory = ConversationMemory()
        memory.add_user_message("hi")
        memory.build_context("base")
        assert len(memory) == 1
        assert memory.summary is None


def test_transcript_renders_tool_parts():
    call = ToolCallRequest(id="c1", name="add", arguments={"x": 1, "y": 2})
    messages = [
        Message.user("add 1 and 2"),
        Message(role="assistant", content=(ToolCallPart(call=call),)),
        Message.tool_results([ToolResult(call_id="c1", name="add", output=3)]),
        Message.assistant("3"),
    ]
    transcript = format_transcript(messages)
    assert transcript.splitlines() == [
        "User: add 1 and 2",
        "Assistant: [tool call add({'x': 1, 'y': 2})]",
        "User: [tool result add: 3]",
        "Assistant: 3",
    ]
