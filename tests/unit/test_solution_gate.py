"""
Unit Tests for the Direct Solution Gate

Documents the heuristic's blocking behaviour, including its known misses.
"""

import pytest
import sys
import os

# Add project root to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "encrypt_tutor", "src"))

from encrypt_tutor.solution_gate import DEFAULT_BLOCK_NOTICE, SolutionRequestGate


class TestSolutionRequestGate:
    """Test suite for SolutionRequestGate."""

    @pytest.fixture
    def gate(self):
        return SolutionRequestGate()

    @pytest.mark.parametrize("text", [
        "give me the code",
        "write the full solution",
        "Show me the answer please",
        "WRITE THE CODE",
        "just give me the full thing",
    ])
    def test_blocks_direct_solution_requests(self, gate, text):
        """Test action + target combinations are blocked."""
        assert gate.should_block(text) == True

    @pytest.mark.parametrize("text", [
        "can you explain the logic behind recursion",
        "write the full solution, explain the logic",
        "show me the code but explain each step",
        "give me the logic for the answer",
    ])
    def test_qualifier_overrides_block(self, gate, text):
        """Test explanation-seeking input passes even with blocked words."""
        assert gate.should_block(text) == False

    @pytest.mark.parametrize("text", [
        "what is a linked list?",
        "my code crashes on line 4",
        "the answer I got was 42",
        "",
    ])
    def test_passes_ordinary_input(self, gate, text):
        """Test input without an action+target pair passes."""
        assert gate.should_block(text) == False

    def test_known_false_negative(self, gate):
        """Test paraphrased cheat requests slip through (accepted heuristic limit)."""
        assert gate.should_block("just do my homework for me") == False

    def test_matches_whole_words_only(self, gate):
        """Test substrings like 'shows' or 'codec' do not trigger the gate."""
        assert gate.should_block("this shows a codec") == False

    def test_notice(self, gate):
        assert gate.notice == DEFAULT_BLOCK_NOTICE
        assert SolutionRequestGate(notice="custom").notice == "custom"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
