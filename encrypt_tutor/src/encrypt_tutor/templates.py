"""
Logic Template Synthesis

Asks the model for a structured fill-in template on a topic (a recursion
skeleton, a letter layout, a route handler outline...) returned as JSON.
"""

import json
import logging
import time
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict

from encrypt_tutor.completion_client import CompletionClient


logger = logging.getLogger(__name__)


class TemplateCategory(str, Enum):
    CODE = "code"
    WRITING = "writing"
    SYSTEMS = "systems"
    GENERAL = "general"


REQUIRED_FIELDS = ("title", "description", "content", "category")

SYNTHESIS_PROMPT = """Create a structured LOGIC TEMPLATE for the topic: "{query}".

The template is a skeleton the student fills in themselves: use placeholders and numbered steps, never a finished solution.

Return ONLY a JSON object with exactly these keys:
{{"title": "...", "description": "one sentence", "content": "the template body", "category": one of {categories}}}"""


class TemplateError(Exception):
    """The service answered, but not with a usable template."""


@dataclass(frozen=True)
class LogicTemplate:
    id: str
    title: str
    description: str
    content: str
    category: TemplateCategory = TemplateCategory.GENERAL
    is_synthesized: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        return data


def _parse_category(value: Any) -> TemplateCategory:
    if isinstance(value, str):
        normalized = value.strip().lower()
        for category in TemplateCategory:
            if category.value == normalized:
                return category
    return TemplateCategory.GENERAL


class TemplateSynthesizer:
    """Generates logic templates via JSON-mode completions."""

    def __init__(self, client: CompletionClient, max_tokens: int = 600):
        self.client = client
        self.max_tokens = max_tokens

    def build_prompt(self, query: str) -> str:
        categories = ", ".join(f'"{category.value}"' for category in TemplateCategory)
        return SYNTHESIS_PROMPT.format(query=query, categories=categories)

    async def synthesize(self, query: str) -> LogicTemplate:
        """
        Synthesize one template.

        Raises:
            ValueError: if query is blank
            CompletionError: on transport failure
            TemplateError: if the payload is not a complete template object
        """
        query = (query or "").strip()
        if not query:
            raise ValueError("query must not be empty")

        raw = await self.client.complete_prompt(
            self.build_prompt(query),
            max_tokens=self.max_tokens,
            response_format={"type": "json_object"},
        )
        try:
            data = json.loads(raw or "{}")
        except json.JSONDecodeError as e:
            raise TemplateError(f"Template payload is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise TemplateError("Template payload is not a JSON object")
        missing = [key for key in REQUIRED_FIELDS if not data.get(key)]
        if missing:
            raise TemplateError(f"Template payload is missing: {', '.join(missing)}")

        template = LogicTemplate(
            id=f"syn-{int(time.time() * 1000)}",
            title=str(data["title"]).strip(),
            description=str(data["description"]).strip(),
            content=str(data["content"]),
            category=_parse_category(data["category"]),
            is_synthesized=True,
        )
        logger.info(f"✅ [Templates] Synthesized '{template.title}' ({template.category.value})")
        return template
