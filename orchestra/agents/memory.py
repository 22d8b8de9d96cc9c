"""Bounded conversation memory with summary-based compaction."""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from ..config import MAX_MESSAGES, MAX_SUMMARY_CHARS
from ..errors import CompactionError
from ..llm_io import CompletionModel, complete_text
from ..models.agent import ConversationState, MemoryStatus
from ..models.message import Message, TextPart, ToolCallPart, ToolResultPart

logger = logging.getLogger(__name__)

SUMMARY_INSTRUCTION = (
    "Please provide a concise summary of the following conversation, "
    "capturing key points, decisions, and context:\n\n"
)

SHORTEN_INSTRUCTION = (
    "The following conversation summary is too long. Rewrite it in at most "
    "{limit} characters, keeping the key points, decisions, and context:\n\n"
)

SUMMARY_HEADER = "Previous conversation summary:"


class ConversationMemory:
    """Manages conversation history with a message cap and rolling summary.

    - Keeps up to ``max_messages`` messages verbatim
    - Once the cap is exceeded, ``compact()`` replaces the history with an
      LLM-generated summary (atomically: all or nothing)
    - ``build_context()`` merges the summary into the agent preamble

    States: ACTIVE (accumulating) -> COMPACTING -> IDLE (cleared) -> ACTIVE.
    """

    def __init__(
        self,
        *,
        max_messages: int = MAX_MESSAGES,
        summarizer: Optional[CompletionModel] = None,
        max_summary_chars: Optional[int] = MAX_SUMMARY_CHARS,
    ):
        self.summarizer = summarizer
        self.max_summary_chars = max_summary_chars
        self.state = ConversationState(max_messages=max_messages)

    # -- accessors ----------------------------------------------------------

    @property
    def max_messages(self) -> int:
        return self.state.max_messages

    @property
    def summary(self) -> Optional[str]:
        return self.state.summary

    @property
    def status(self) -> MemoryStatus:
        return self.state.status

    @property
    def needs_compaction(self) -> bool:
        return len(self.state.messages) > self.state.max_messages

    def get_messages(self) -> Tuple[Message, ...]:
        """Return the current history in append order."""
        return tuple(self.state.messages)

    def __len__(self) -> int:
        return len(self.state.messages)

    # -- mutation -----------------------------------------------------------

    def add_message(self, message: Message) -> None:
        """Append a message. The cap may be exceeded until the next compaction."""
        self.state.messages.append(message)
        self.state.status = MemoryStatus.ACTIVE

    def add_user_message(self, text: str) -> None:
        self.add_message(Message.user(text))

    def add_assistant_message(self, text: str) -> None:
        self.add_message(Message.assistant(text))

    def clear(self) -> None:
        """Drop messages, keep the summary."""
        self.state.messages.clear()

    def reset(self) -> None:
        """Clear all memory."""
        self.state = ConversationState(max_messages=self.state.max_messages)

    # -- context ------------------------------------------------------------

    def build_context(self, base_preamble: str = "") -> str:
        """Return the preamble with the rolling summary appended, if any."""
        if not self.state.summary:
            return base_preamble
        block = f"{SUMMARY_HEADER}\n{self.state.summary}"
        if not base_preamble:
            return block
        return f"{base_preamble}\n\n{block}"

    # -- compaction ---------------------------------------------------------

    def compact(self, model: Optional[CompletionModel] = None) -> bool:
        """Replace the history with a summary if the cap is exceeded.

        Returns:
            True if a compaction happened, False if none was needed.

        Raises:
            CompactionError: Summary generation failed. History and summary are
                left exactly as they were.
        """
        if not self.needs_compaction:
            return False

        summarizer = model or self.summarizer
        if summarizer is None:
            raise CompactionError("No summarizer model configured for compaction")

        snapshot: List[Message] = list(self.state.messages)
        previous_summary = self.state.summary
        self.state.status = MemoryStatus.COMPACTING
        logger.info(
            "memory.compact.start messages=%d",
            len(snapshot),
            extra={"messages": len(snapshot)},
        )

        try:
            new_summary = self._summarize(summarizer, snapshot, previous_summary)
        except Exception as e:
            self.state.messages = snapshot
            self.state.summary = previous_summary
            self.state.status = MemoryStatus.ACTIVE
            logger.warning("memory.compact failed, history kept: %s", e)
            raise CompactionError(f"Summary generation failed: {e}") from e

        self.state.summary = new_summary
        self.state.messages = []
        self.state.status = MemoryStatus.IDLE
        logger.info("memory.compact.end summary_chars=%d", len(new_summary))
        return True

    def maybe_compact(self, model: Optional[CompletionModel] = None) -> bool:
        """Compact if needed. Failures are logged, not raised.

        Args:
            model: Used when no summarizer is configured on this memory.
        """
        summarizer = self.summarizer or model
        if summarizer is None or not self.needs_compaction:
            return False
        try:
            return self.compact(summarizer)
        except CompactionError:
            return False

    def _summarize(
        self,
        model: CompletionModel,
        messages: List[Message],
        previous_summary: Optional[str],
    ) -> str:
        transcript = format_transcript(messages)
        if previous_summary:
            transcript = f"{SUMMARY_HEADER}\n{previous_summary}\n\n{transcript}"

        summary = complete_text(model, SUMMARY_INSTRUCTION + transcript).strip()
        if not summary:
            raise ValueError("Model returned an empty summary")

        limit = self.max_summary_chars
        if limit and len(summary) > limit:
            shorter = complete_text(model, SHORTEN_INSTRUCTION.format(limit=limit) + summary).strip()
            if shorter:
                summary = shorter
            if len(summary) > limit:
                summary = summary[:limit]
        return summary


def format_transcript(messages: List[Message]) -> str:
    """Flatten messages into ``Role: text`` lines for summarization."""
    lines: List[str] = []
    for msg in messages:
        speaker = "User" if msg.role == "user" else "Assistant"
        chunks: List[str] = []
        for part in msg.content:
            if isinstance(part, TextPart):
                chunks.append(part.text)
            elif isinstance(part, ToolCallPart):
                chunks.append(f"[tool call {part.call.name}({part.call.arguments})]")
            elif isinstance(part, ToolResultPart):
                chunks.append(f"[tool result {part.result.name}: {part.result.content_text()}]")
        lines.append(f"{speaker}: " + "\n".join(chunks))
    return "\n".join(lines)
