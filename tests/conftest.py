"""Shared fixtures: a scripted LLM client and a tutor wired to it."""

import os
import sys

import pytest

# Add project paths
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(project_root, "encrypt_tutor", "src"))
sys.path.insert(0, os.path.join(project_root, "tests"))

from encrypt_tutor.completion_client import CompletionClient
from encrypt_tutor.logic_tutor import LogicTutor
from fake_openai import FakeLLMClient


@pytest.fixture
def fake_llm():
    """Scripted stand-in for AsyncOpenAI."""
    return FakeLLMClient()


@pytest.fixture
def completion_client(fake_llm):
    """CompletionClient talking to the fake."""
    return CompletionClient(llm_client=fake_llm, model="test-model", temperature=0.2)


@pytest.fixture
def tutor(completion_client):
    """LogicTutor with no real network access."""
    return LogicTutor(client=completion_client)
