# tests/test_merger.py

"""
Tests for merging per-chunk results into one study guide.
"""

from src.classroom_ai.merger import merge_results
from src.classroom_ai.models import ChunkAnalysisResult, QuizItem


def make_quiz_item(n: int) -> QuizItem:
    return QuizItem(
        question=f"Question {n}?",
        options=["A", "B", "C", "D"],
        answer="A",
    )


def make_result(summary, key_points, quiz_ids=()):
    return ChunkAnalysisResult(
        summary=summary,
        key_points=list(key_points),
        quiz=[make_quiz_item(n) for n in quiz_ids],
    )


def test_merge_empty_input_yields_empty_analysis():
    merged = merge_results([])

    assert merged.summary == ""
    assert merged.key_points == []
    assert merged.quiz == []
    assert merged.is_partial is False


def test_merge_joins_summaries_and_skips_blank_ones():
    merged = merge_results([
        make_result("First part.", []),
        make_result("   ", []),
        make_result("Second part.", []),
    ])

    assert merged.summary == "First part.\n\nSecond part."


def test_merge_dedups_key_points_keeping_first_occurrence():
    merged = merge_results([
        make_result("s1", ["Osmosis: water moves", "Diffusion: particles spread"]),
        make_result("s2", ["Diffusion: particles spread", "ATP: energy currency"]),
    ])

    assert merged.key_points == [
        "Osmosis: water moves",
        "Diffusion: particles spread",
        "ATP: energy currency",
    ]


def test_merge_concatenates_quiz_items_in_order():
    merged = merge_results([
        make_result("s1", [], quiz_ids=[1, 2]),
        make_result("s2", [], quiz_ids=[1]),
    ])

    assert [q.question for q in merged.quiz] == ["Question 1?", "Question 2?", "Question 1?"]


def test_merge_key_point_dedup_is_associative():
    a = make_result("a", ["p1", "p2"])
    b = make_result("b", ["p2", "p3"])
    c = make_result("c", ["p3", "p1", "p4"])

    left = merge_results([merge_results([a, b]), c])
    right = merge_results([a, merge_results([b, c])])
    flat = merge_results([a, b, c])

    assert left.key_points == right.key_points == flat.key_points
