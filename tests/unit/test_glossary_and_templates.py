"""
Unit Tests for Glossary Lookup and Template Synthesis

Both are single-shot requests outside the conversation history.
"""

import json
import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "encrypt_tutor", "src"))

from encrypt_tutor.completion_client import CompletionError
from encrypt_tutor.config import DEFAULT_GLOSSARY_MAX_TOKENS
from encrypt_tutor.glossary import GlossaryEntry, GlossaryLookup, UNREACHABLE_DEFINITION
from encrypt_tutor.logic_tutor import LogicTutor
from encrypt_tutor.templates import TemplateCategory, TemplateError, TemplateSynthesizer
from fake_openai import connection_error, make_response


class TestGlossaryLookup:
    """Test suite for GlossaryLookup."""

    @pytest.fixture
    def glossary(self, completion_client):
        return GlossaryLookup(completion_client, max_tokens=50)

    @pytest.mark.asyncio
    async def test_define_uses_fixed_prompt(self, glossary, fake_llm):
        fake_llm.queue(make_response(content="A function that calls itself. What stops it?"))

        definition = await glossary.define("Recursion")

        request = fake_llm.calls[0]
        prompt = request["messages"][0]["content"]
        assert definition == "A function that calls itself. What stops it?"
        assert '"Recursion"' in prompt
        assert "Max 25 words" in prompt
        assert "No code" in prompt
        assert request["max_tokens"] == 50
        assert len(request["messages"]) == 1

    @pytest.mark.asyncio
    async def test_empty_answer_falls_back(self, glossary, fake_llm):
        fake_llm.queue(make_response(content=""))
        assert await glossary.define("Heap") == UNREACHABLE_DEFINITION

    @pytest.mark.asyncio
    async def test_blank_term_rejected(self, glossary, fake_llm):
        with pytest.raises(ValueError):
            await glossary.define("  ")
        assert fake_llm.calls == []

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self, glossary, fake_llm):
        fake_llm.queue(connection_error())
        with pytest.raises(CompletionError):
            await glossary.define("Heap")

    def test_default_token_budget_comes_from_config(self, completion_client):
        """Test the glossary budget has one source when no settings are given."""
        assert GlossaryLookup(completion_client).max_tokens == DEFAULT_GLOSSARY_MAX_TOKENS
        tutor = LogicTutor(client=completion_client)
        assert tutor.glossary.max_tokens == DEFAULT_GLOSSARY_MAX_TOKENS

    def test_entry_pending_state(self):
        pending = GlossaryEntry(term="Heap")
        ready = GlossaryEntry(term="Heap", definition="A tree-shaped priority structure.")
        assert pending.is_pending == True
        assert ready.is_pending == False
        assert pending.to_dict() == {"term": "Heap", "definition": None, "pending": True}


class TestTemplateSynthesizer:
    """Test suite for TemplateSynthesizer."""

    @pytest.fixture
    def synthesizer(self, completion_client):
        return TemplateSynthesizer(completion_client)

    @pytest.mark.asyncio
    async def test_synthesizes_template(self, synthesizer, fake_llm):
        payload = {
            "title": "Binary Search Model",
            "description": "Skeleton for halving a sorted range.",
            "content": "1. LOW/HIGH bounds\n2. MID = ?\n3. Compare and discard half",
            "category": "code",
        }
        fake_llm.queue(make_response(content=json.dumps(payload)))

        template = await synthesizer.synthesize("binary search")

        request = fake_llm.calls[0]
        assert request["response_format"] == {"type": "json_object"}
        assert "binary search" in request["messages"][0]["content"]
        assert template.title == "Binary Search Model"
        assert template.category == TemplateCategory.CODE
        assert template.is_synthesized == True
        assert template.id.startswith("syn-")
        assert template.to_dict()["category"] == "code"

    @pytest.mark.asyncio
    async def test_unknown_category_maps_to_general(self, synthesizer, fake_llm):
        payload = {"title": "T", "description": "D", "content": "C", "category": "poetry"}
        fake_llm.queue(make_response(content=json.dumps(payload)))

        template = await synthesizer.synthesize("sonnets")

        assert template.category == TemplateCategory.GENERAL

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [
        "not json at all",
        json.dumps(["a", "list"]),
        json.dumps({"title": "Only a title"}),
        "",
    ])
    async def test_unusable_payloads_raise(self, synthesizer, fake_llm, content):
        fake_llm.queue(make_response(content=content))
        with pytest.raises(TemplateError):
            await synthesizer.synthesize("anything")

    @pytest.mark.asyncio
    async def test_blank_query_rejected(self, synthesizer):
        with pytest.raises(ValueError):
            await synthesizer.synthesize("")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
