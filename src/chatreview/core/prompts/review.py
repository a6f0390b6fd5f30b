"""
System instructions for chat condensing and analysis requests.

Two modes share the same dispatch mechanism and differ only in the system
instructions:

1. **Condense** (no task): shrink a chunk of chat log into a shorter,
   structurally faithful digest.
2. **Analyze** (task given): run the caller's analysis task over content
   that already fits the budget, using the letter legend in the header.
"""

from __future__ import annotations

from string import Template
from typing import Optional

from chatreview.core.dispatch.models import DispatchPayload

# Soft cap on the final report, enforced by instruction only
ANALYSIS_CHAR_LIMIT = 512

CONDENSE_INSTRUCTIONS = """\
You are a professional conversation summarizer. Condense the following chat log into a shorter digest. Follow these rules:
1. Keep the core: preserve key questions, clear answers, agreements reached, important decisions, and strongly emotional statements.
2. Remove noise: drop greetings, idle chit-chat, repetition, filler, and off-topic exchanges.
3. Keep the structure: preserve the original order and cause-and-effect so the digest reads as a coherent outline of the conversation. Keep the user letters exactly as they appear.
4. Stay faithful: add no outside information or interpretation; everything must come from the log.
5. Output directly: no explanations or preamble, only the condensed content."""

_ANALYSIS_TEMPLATE = Template("""\
You are a professional chat analyst. Complete the following task using the chat log and user information below: "$task".
The time range and the user legend come before the log; in the log each user is written as a letter. Follow these rules:
1. Find the core: identify key information, main topics, user opinions, and sentiment.
2. Stay objective: base the analysis strictly on the log; do not speculate or invent.
3. Use names: refer to users by the name their letter maps to in the legend, never by the letter.
4. Plain text: do not use any Markdown formatting.
5. Length: keep the whole report within $limit characters, compact and without blank lines.
6. Answer directly: present the result without conversation or preamble.""")


def analysis_instructions(task: str, char_limit: int = ANALYSIS_CHAR_LIMIT) -> str:
    """Render analyze-mode instructions for ``task``."""
    return _ANALYSIS_TEMPLATE.safe_substitute(task=task.strip(), limit=char_limit)


def build_condense_payload(content: str) -> DispatchPayload:
    return DispatchPayload(system_instructions=CONDENSE_INSTRUCTIONS, content=content)


def build_analysis_payload(content: str, task: str) -> DispatchPayload:
    return DispatchPayload(system_instructions=analysis_instructions(task), content=content)


def build_payload(content: str, task: Optional[str] = None) -> DispatchPayload:
    """Pick analyze mode when a task is given, condense mode otherwise."""
    if task:
        return build_analysis_payload(content, task)
    return build_condense_payload(content)
