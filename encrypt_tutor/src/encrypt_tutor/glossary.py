"""
Glossary Lookup

On-demand definitions for inline [[Term]] markers. Each lookup is an
independent single-shot request with a fixed instruction; it never reads or
writes conversation history.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from encrypt_tutor.completion_client import CompletionClient
from encrypt_tutor.config import DEFAULT_GLOSSARY_MAX_TOKENS


logger = logging.getLogger(__name__)


GLOSSARY_PROMPT = 'Briefly explain the concept of "{term}" in a Socratic, educational tone. Max 25 words. No code.'
UNREACHABLE_DEFINITION = "Definition unreachable."


@dataclass(frozen=True)
class GlossaryEntry:
    """
    The single active glossary slot of a session.

    definition is None while the lookup is pending.
    """
    term: str
    definition: Optional[str] = None
    generation: int = 0

    @property
    def is_pending(self) -> bool:
        return self.definition is None

    def to_dict(self):
        return {
            "term": self.term,
            "definition": self.definition,
            "pending": self.is_pending,
        }


class GlossaryLookup:
    """Fetches short definitions through the completion client."""

    def __init__(self, client: CompletionClient, max_tokens: int = DEFAULT_GLOSSARY_MAX_TOKENS, temperature: float = 0.3):
        self.client = client
        self.max_tokens = max_tokens
        self.temperature = temperature

    def build_prompt(self, term: str) -> str:
        return GLOSSARY_PROMPT.format(term=term)

    async def define(self, term: str) -> str:
        """
        Define one term.

        Raises:
            ValueError: if term is blank
            CompletionError: on transport failure
        """
        term = (term or "").strip()
        if not term:
            raise ValueError("term must not be empty")

        logger.debug(f"📚 [Glossary] Looking up '{term}'")
        definition = await self.client.complete_prompt(
            self.build_prompt(term),
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return definition or UNREACHABLE_DEFINITION
