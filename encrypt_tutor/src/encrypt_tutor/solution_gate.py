"""
Direct Solution Gate

Cheap local filter that intercepts "give me the answer" requests before any
network call. It is a lexical heuristic, not a classifier:
- Blocks when an action word (give/write/show) co-occurs with a target word
  (code/answer/solution/full)
- Never blocks when the input also asks for the logic or an explanation

False negatives are acceptable. A false positive only costs the learner a
rephrase, since blocked input never touches history or the network.
"""

import re
from typing import Pattern, Protocol


DEFAULT_BLOCK_NOTICE = "Encrypt focuses on logic architecture. Direct solutions are restricted."


class SendPolicy(Protocol):
    """Anything the tutor can consult before sending."""
    notice: str

    def should_block(self, raw_input: str) -> bool:
        ...


class SolutionRequestGate:
    """Blocks direct solution requests that carry no explanation qualifier."""

    ACTION_PATTERN = r"\b(give|write|show)\b"
    TARGET_PATTERN = r"\b(code|answer|solution|full)\b"
    QUALIFIER_PATTERN = r"\b(logic|explain)"

    def __init__(self, notice: str = DEFAULT_BLOCK_NOTICE):
        self.notice = notice
        self._action: Pattern[str] = re.compile(self.ACTION_PATTERN, re.IGNORECASE)
        self._target: Pattern[str] = re.compile(self.TARGET_PATTERN, re.IGNORECASE)
        self._qualifier: Pattern[str] = re.compile(self.QUALIFIER_PATTERN, re.IGNORECASE)

    def is_solution_request(self, raw_input: str) -> bool:
        """Check the action+target combination only."""
        return bool(self._action.search(raw_input) and self._target.search(raw_input))

    def has_explanation_qualifier(self, raw_input: str) -> bool:
        return bool(self._qualifier.search(raw_input))

    def should_block(self, raw_input: str) -> bool:
        if not raw_input:
            return False
        if not self.is_solution_request(raw_input):
            return False
        return not self.has_explanation_qualifier(raw_input)
