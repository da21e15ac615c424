"""Enhancement kinds and their text-generation instructions."""

from dataclasses import dataclass
from enum import Enum


class EnhancementKind(str, Enum):
    CLEANUP = "cleanup"
    SUMMARY = "summary"


# Order in which enhancements are requested, run and emailed
ENHANCEMENT_ORDER = (EnhancementKind.CLEANUP, EnhancementKind.SUMMARY)

ENHANCEMENT_LABELS = {
    EnhancementKind.CLEANUP: "Cleaned",
    EnhancementKind.SUMMARY: "Summary",
}


@dataclass(frozen=True)
class EnhancementPrompt:
    system: str
    temperature: float
    max_tokens: int
    word_budget: int | None = None  # results longer than this are truncated


CLEANUP_SYSTEM_PROMPT = """You clean up voice note transcripts.

TASK
----
Rewrite the raw transcript between <TRANSCRIPT> and </TRANSCRIPT> so it reads well:
- Fix only obvious speech-recognition mistakes and misheard words.
- Fix punctuation and capitalization.
- Remove filler words ("um", "uh", "like") that carry no meaning.
- Break the text into paragraphs at natural pauses.
- Keep the speaker's own words and tone. Never paraphrase and never add content.

OUTPUT
------
Reply with the cleaned transcript only. No tags, no introduction, no code fences.

CHECK
-----
Before replying, re-read every sentence. Remove or revise any word that does not
appear in the original transcript."""

SUMMARY_SYSTEM_PROMPT = """You summarize voice notes.

TASK
----
Read the transcript between <TRANSCRIPT> and </TRANSCRIPT> and reply with a short
Markdown summary that uses only the sections that apply:

### Main Topic
One sentence. Always include this section.

### Key Points
Bullets in the order they were mentioned. Only if there are two or more ideas.

### Action Items
Task, context and timeline if given. Only if concrete tasks are stated.

### Important Details
Names, dates, numbers and decisions, quoted exactly. Only if any appear.

RULES
-----
- 150 words at most.
- Leave out any section that would be empty, heading included.
- Do not add anything the transcript does not say.

OUTPUT
------
Reply with the Markdown summary only. No tags, no preamble."""


PROMPTS: dict[EnhancementKind, EnhancementPrompt] = {
    EnhancementKind.CLEANUP: EnhancementPrompt(
        system=CLEANUP_SYSTEM_PROMPT,
        temperature=0.15,
        max_tokens=8000,
    ),
    EnhancementKind.SUMMARY: EnhancementPrompt(
        system=SUMMARY_SYSTEM_PROMPT,
        temperature=0.3,
        max_tokens=512,
        word_budget=160,
    ),
}


def wrap_transcript(transcript: str) -> str:
    return f"<TRANSCRIPT>\n{transcript}\n</TRANSCRIPT>"


def enforce_word_budget(text: str, budget: int | None) -> str:
    """Truncate to ``budget`` words and append an ellipsis when over."""
    if budget is None:
        return text
    words = text.split()
    if len(words) <= budget:
        return text
    return " ".join(words[:budget]) + "..."
