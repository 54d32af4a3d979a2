"""Combine per-chunk analysis results into one document-level study guide."""

from typing import Iterable, List

from .models import ChunkAnalysisResult, MergedAnalysis, QuizItem

SUMMARY_SEPARATOR = "\n\n"


def merge_results(results: Iterable[ChunkAnalysisResult]) -> MergedAnalysis:
    """
    Merge chunk results in input order.

    - summaries are joined with a blank line; a blank or whitespace-only
      summary is skipped rather than joined verbatim, so the result never
      holds empty paragraphs
    - key points are flattened, keeping the first occurrence of each
      exact duplicate
    - quiz items are concatenated as-is; repeats across chunks are kept

    Never fails; an empty input yields an empty analysis.
    """
    summaries: List[str] = []
    key_points: List[str] = []
    seen_points: set[str] = set()
    quiz: List[QuizItem] = []

    for result in results:
        if result.summary and result.summary.strip():
            summaries.append(result.summary)

        for point in result.key_points:
            if point in seen_points:
                continue
            seen_points.add(point)
            key_points.append(point)

        quiz.extend(result.quiz)

    return MergedAnalysis(
        summary=SUMMARY_SEPARATOR.join(summaries),
        key_points=key_points,
        quiz=quiz,
    )
