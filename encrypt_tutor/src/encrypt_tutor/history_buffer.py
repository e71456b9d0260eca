"""
Conversation History

Append-only log of conversation turns. It is the ground truth for what the
model has seen: turns are never edited, removed or reordered.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple


class TurnRole(str, Enum):
    """Author of a turn."""
    USER = "user"
    MODEL = "model"


def _new_turn_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Turn:
    """One immutable message in the conversation."""
    role: TurnRole
    text: str
    created_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=_new_turn_id)

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "created_at": self.created_at.isoformat(),
        }


class HistoryBuffer:
    """Ordered, append-only sequence of turns with strictly increasing timestamps."""

    # Minimum gap kept between consecutive turns
    TIMESTAMP_STEP = timedelta(microseconds=1)

    def __init__(self, turns: Optional[List[Turn]] = None):
        self._turns: List[Turn] = []
        for turn in turns or []:
            self.append(turn)

    def append(self, turn: Turn) -> Turn:
        """
        Append a turn.

        A turn whose timestamp does not come after the last one is re-stamped
        one step later so ordering by time always matches insertion order.
        """
        if not isinstance(turn, Turn):
            raise TypeError(f"Expected Turn, got {type(turn).__name__}")
        if any(existing.id == turn.id for existing in self._turns):
            raise ValueError(f"Turn {turn.id} is already in history")

        last = self.last()
        if last is not None and turn.created_at <= last.created_at:
            turn = Turn(
                role=turn.role,
                text=turn.text,
                created_at=last.created_at + self.TIMESTAMP_STEP,
                id=turn.id,
            )
        self._turns.append(turn)
        return turn

    def add(self, role: TurnRole, text: str) -> Turn:
        """Create a turn stamped now and append it."""
        return self.append(Turn(role=TurnRole(role), text=text))

    def snapshot(self) -> Tuple[Turn, ...]:
        """Read-only projection of all turns in order."""
        return tuple(self._turns)

    def last(self) -> Optional[Turn]:
        return self._turns[-1] if self._turns else None

    def count(self, role: TurnRole) -> int:
        return sum(1 for turn in self._turns if turn.role == role)

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))
