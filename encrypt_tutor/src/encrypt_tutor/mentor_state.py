"""
Mentor Status Tracking

Two-state flag recording whether the learner has reached the logic on their
own. Only an explicit signal extracted from a model response moves it, and
neither state is terminal: the tutor may re-open a topic.
"""

import logging
from enum import Enum
from typing import Optional


logger = logging.getLogger(__name__)


class MentorStatus(str, Enum):
    """Mentor status values, as declared to the model."""
    SEARCHING = "searching"
    SATISFIED = "satisfied"


class MentorStatusTracker:
    """Symmetric two-state machine driven by extracted signals."""

    def __init__(self, initial: MentorStatus = MentorStatus.SEARCHING):
        self.status = initial
        self.transition_count = 0

    @property
    def is_satisfied(self) -> bool:
        return self.status == MentorStatus.SATISFIED

    def receive(self, signal: Optional[MentorStatus]) -> bool:
        """
        Apply a signal from one response cycle.

        Args:
            signal: Extracted status, or None when the response carried none

        Returns:
            True if the status changed
        """
        if signal is None:
            return False

        previous = self.status
        self.status = MentorStatus(signal)
        if self.status == previous:
            return False

        self.transition_count += 1
        logger.info(f"🎯 [MentorStatus] {previous.value} → {self.status.value}")
        return True
