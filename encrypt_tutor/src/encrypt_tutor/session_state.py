"""
Session State Data Model

Defines the SessionState dataclass holding everything one tutoring session
owns in memory.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from encrypt_tutor.glossary import GlossaryEntry
from encrypt_tutor.history_buffer import HistoryBuffer, TurnRole
from encrypt_tutor.instructions import DEFAULT_KNOWLEDGE_LEVEL, KnowledgeLevel
from encrypt_tutor.mentor_state import MentorStatusTracker


WELCOME_MESSAGE = (
    "Greetings. I am **Encrypt**. \n\n"
    "I architect logic streams to help you understand systems deeply. \n\n"
    "Keywords in [[Blue]] are interactive, providing instant context. "
    "What shall we explore today?"
)


@dataclass(frozen=True)
class VisualArtifact:
    """A diagram extracted from a model response."""
    source_text: str
    kind: str = "diagram"
    created_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind,
            "source_text": self.source_text,
            "created_at": self.created_at.isoformat(),
        }


def _seeded_history() -> HistoryBuffer:
    history = HistoryBuffer()
    history.add(TurnRole.MODEL, WELCOME_MESSAGE)
    return history


@dataclass
class SessionState:
    """In-memory state for one tutoring session."""
    session_id: str
    knowledge_level: KnowledgeLevel = DEFAULT_KNOWLEDGE_LEVEL
    history: HistoryBuffer = field(default_factory=_seeded_history)
    mentor: MentorStatusTracker = field(default_factory=MentorStatusTracker)
    visual_artifacts: List[VisualArtifact] = field(default_factory=list)
    # Active glossary slot; a newer lookup replaces it
    glossary: Optional[GlossaryEntry] = None
    glossary_generation: int = 0
    # Set while a primary send is awaiting the model
    is_sending: bool = False
    interaction_count: int = 0
    created_at: datetime = field(default_factory=datetime.now)
    last_updated: datetime = field(default_factory=datetime.now)
