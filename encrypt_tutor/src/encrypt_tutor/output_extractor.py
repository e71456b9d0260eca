"""
Output Extraction

Turns a raw completion result into what the session and presentation need:
- The display text, verbatim
- Diagram sources from fenced blocks tagged as mermaid, in order
- A mentor status signal, when the side-channel call is well formed
- Inline [[Term]] markers that presentation turns into glossary triggers

Extraction never raises on a bad side-channel payload: the accompanying text
must always come through.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from encrypt_tutor.completion_client import CompletionResult, ToolCall
from encrypt_tutor.instructions import MENTOR_STATUS_TOOL_NAME
from encrypt_tutor.mentor_state import MentorStatus


logger = logging.getLogger(__name__)


TERM_MARKER_PATTERN = re.compile(r"\[\[(.+?)\]\]")

# Diagram keywords and connectors that mark a block as structurally a diagram
STRUCTURAL_MARKERS = (
    "graph", "flowchart", "sequencediagram", "classdiagram", "statediagram",
    "erdiagram", "gantt", "pie", "mindmap", "journey", "timeline",
    "-->", "---", "->>", "==>", "-.->",
)


@dataclass(frozen=True)
class DiagramPolicy:
    """
    Which fenced blocks count as diagrams.

    By default a block tagged as diagram syntax is accepted even when it has
    no structural marker: a false inclusion only yields an odd-looking card.
    """
    tags: Tuple[str, ...] = ("mermaid",)
    require_structural_markers: bool = False

    def pattern(self):
        tags = "|".join(re.escape(tag) for tag in self.tags)
        return re.compile(r"```(?:%s)(?=[^\S\n]|\n|```)[^\S\n]*\n?(.*?)```" % tags, re.IGNORECASE | re.DOTALL)

    def accepts(self, source: str) -> bool:
        if not self.require_structural_markers:
            return True
        lowered = source.lower()
        return any(marker in lowered for marker in STRUCTURAL_MARKERS)


DEFAULT_DIAGRAM_POLICY = DiagramPolicy()


class SignalKind(Enum):
    """Shape of the side-channel payload."""
    PRESENT = "present"
    MALFORMED = "malformed"
    ABSENT = "absent"


@dataclass(frozen=True)
class MentorSignal:
    kind: SignalKind
    status: Optional[MentorStatus] = None
    reason: Optional[str] = None


@dataclass
class Extraction:
    display_text: str
    diagrams: List[str] = field(default_factory=list)
    mentor_signal: Optional[MentorStatus] = None
    signal: MentorSignal = field(default_factory=lambda: MentorSignal(SignalKind.ABSENT))


def extract_diagrams(text: str, policy: DiagramPolicy = DEFAULT_DIAGRAM_POLICY) -> List[str]:
    """All accepted diagram sources in order of appearance, trimmed."""
    if not text:
        return []
    diagrams = []
    for match in policy.pattern().finditer(text):
        source = match.group(1).strip()
        if not source:
            continue
        if policy.accepts(source):
            diagrams.append(source)
        else:
            logger.debug("🔍 [Extractor] Skipping diagram block without structural markers")
    return diagrams


def _status_from_args(args: Any) -> Optional[MentorStatus]:
    if not isinstance(args, dict):
        return None
    value = args.get("status")
    if not isinstance(value, str):
        return None
    try:
        return MentorStatus(value.strip().lower())
    except ValueError:
        return None


def classify_signal(tool_call: Optional[ToolCall]) -> MentorSignal:
    """
    Classify a side-channel payload as present, malformed or absent.

    A call naming another capability counts as malformed for the mentor
    channel: something was sent, but not a usable status.
    """
    if tool_call is None:
        return MentorSignal(SignalKind.ABSENT)
    if tool_call.name != MENTOR_STATUS_TOOL_NAME:
        return MentorSignal(SignalKind.MALFORMED, reason=f"unexpected tool {tool_call.name!r}")
    status = _status_from_args(tool_call.args)
    if status is None:
        return MentorSignal(SignalKind.MALFORMED, reason=f"unusable arguments {tool_call.args!r}")
    return MentorSignal(SignalKind.PRESENT, status=status)


def extract(result: CompletionResult, policy: DiagramPolicy = DEFAULT_DIAGRAM_POLICY) -> Extraction:
    """Split a completion result into display text, diagrams and a mentor signal."""
    text = result.text or ""
    signal = classify_signal(result.tool_call)

    if signal.kind is SignalKind.MALFORMED:
        logger.debug(f"🔍 [Extractor] Ignoring malformed mentor signal: {signal.reason}")

    return Extraction(
        display_text=text,
        diagrams=extract_diagrams(text, policy),
        mentor_signal=signal.status if signal.kind is SignalKind.PRESENT else None,
        signal=signal,
    )


def find_term_markers(text: str) -> List[str]:
    """[[Term]] markers in order of first appearance, without duplicates."""
    terms: List[str] = []
    for match in TERM_MARKER_PATTERN.finditer(text or ""):
        term = match.group(1).strip()
        if term and term not in terms:
            terms.append(term)
    return terms
