# tests/test_analyzer.py

"""
Tests for single-chunk analysis: JSON retries and response coercion.
"""

import asyncio
import json

import pytest

from src.classroom_ai.analyzer import (
    SUMMARY_PLACEHOLDER,
    ChunkAnalyzer,
    coerce_analysis,
)
from src.classroom_ai.errors import MalformedResponseError, ProviderError
from src.classroom_ai.models import TextChunk


class ScriptedProvider:
    """
    Fake provider that returns (or raises) scripted replies in order and
    records every prompt it receives.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts = []

    async def complete(self, prompt, *, system, temperature=0.3, max_tokens=3000, json_mode=True):
        self.prompts.append(prompt)
        if not self.replies:
            raise AssertionError("No more fake replies configured")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


VALID_REPLY = json.dumps({
    "summary": "Cells are the basic unit of life.",
    "key_points": ["Cell: smallest living unit", "Nucleus: holds DNA"],
    "quiz": [
        {
            "question": "What holds DNA?",
            "options": ["Nucleus", "Membrane", "Ribosome", "Vacuole"],
            "answer": "Nucleus",
        }
    ],
})

CHUNK = TextChunk(index=0, content="Cells are the basic unit of life. The nucleus holds DNA.")


def test_analyze_chunk_valid_response():
    provider = ScriptedProvider([VALID_REPLY])
    result = asyncio.run(ChunkAnalyzer(provider).analyze_chunk(CHUNK))

    assert result.summary == "Cells are the basic unit of life."
    assert result.key_points == ["Cell: smallest living unit", "Nucleus: holds DNA"]
    assert result.quiz[0].answer == "Nucleus"
    assert provider.prompts == [f"Content to expand: \n\n{CHUNK.content}"]


def test_analyze_chunk_retries_unparseable_response_once():
    provider = ScriptedProvider(["Sorry, I cannot do that.", VALID_REPLY])
    result = asyncio.run(ChunkAnalyzer(provider, json_retries=1).analyze_chunk(CHUNK))

    assert len(provider.prompts) == 2
    assert result.summary.startswith("Cells")


def test_analyze_chunk_raises_after_retries_exhausted():
    provider = ScriptedProvider(["nope", "still nope"])

    with pytest.raises(MalformedResponseError):
        asyncio.run(ChunkAnalyzer(provider, json_retries=1).analyze_chunk(CHUNK))
    assert len(provider.prompts) == 2


def test_analyze_chunk_explicit_retry_budget_overrides_default():
    provider = ScriptedProvider(["bad"])

    with pytest.raises(MalformedResponseError):
        asyncio.run(ChunkAnalyzer(provider, json_retries=3).analyze_chunk(CHUNK, retries_remaining=0))
    assert len(provider.prompts) == 1


def test_analyze_chunk_empty_response_is_malformed():
    provider = ScriptedProvider(["", ""])

    with pytest.raises(MalformedResponseError):
        asyncio.run(ChunkAnalyzer(provider).analyze_chunk(CHUNK))


def test_analyze_chunk_provider_error_is_not_retried():
    provider = ScriptedProvider([ProviderError("timeout"), VALID_REPLY])

    with pytest.raises(ProviderError):
        asyncio.run(ChunkAnalyzer(provider).analyze_chunk(CHUNK))
    assert len(provider.prompts) == 1


def test_negative_json_retries_rejected():
    with pytest.raises(ValueError):
        ChunkAnalyzer(ScriptedProvider([]), json_retries=-1)


def test_coerce_analysis_fills_missing_fields():
    result = coerce_analysis({})

    assert result.summary == SUMMARY_PLACEHOLDER
    assert result.key_points == []
    assert result.quiz == []


def test_coerce_analysis_drops_non_string_key_points():
    result = coerce_analysis({"summary": "s", "key_points": ["ok", 3, None, "  ", " trimmed "]})
    assert result.key_points == ["ok", "trimmed"]


def test_coerce_analysis_drops_invalid_quiz_items():
    result = coerce_analysis({
        "summary": "s",
        "quiz": [
            {"question": "Three options?", "options": ["A", "B", "C"], "answer": "A"},
            {"question": "Answer missing?", "options": ["A", "B", "C", "D"], "answer": "E"},
            "not a dict",
            {"question": "Good?", "options": ["A", "B", "C", "D"], "answer": "B"},
        ],
    })

    assert [q.question for q in result.quiz] == ["Good?"]


def test_coerce_analysis_fixes_answer_case():
    result = coerce_analysis({
        "summary": "s",
        "quiz": [{
            "question": "Powerhouse of the cell?",
            "options": ["Mitochondria", "Nucleus", "Golgi body", "Ribosome"],
            "answer": "mitochondria",
        }],
    })

    assert result.quiz[0].answer == "Mitochondria"
