"""Chunk Analysis Module

Turns one chunk of document text into study-guide material (summary, key
points, quiz) with a single LLM request per attempt.

The model is asked for a strict JSON object. Responses that cannot be
parsed as JSON are retried up to ``json_retries`` times; once a response
parses, missing or malformed optional fields are coerced instead of
failing the chunk.
"""

import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from .errors import MalformedResponseError, ParseError
from .json_extract import extract_json_object
from .llm_client import LLMProvider
from .models import ChunkAnalysisResult, QuizItem, TextChunk

logger = logging.getLogger(__name__)

SUMMARY_PLACEHOLDER = "No summary generated."

STUDY_GUIDE_SYSTEM_PROMPT = """You are a Professional Senior Professor.
Your goal is to transform the provided text into a high-quality, in-depth Study Guide.

STUDY GUIDE CONTENT REQUIREMENTS:
1. COMPREHENSIVE LECTURE NOTES (Summary):
   - Provide a detailed academic summary (approx 200 words).
   - Explain the "How" and "Why" behind the concepts.
   - Expand on core concepts if the text is short.

2. KEY LEARNING POINTS:
   - Provide 7 to 10 important concepts.
   - For EACH point, provide a HEADING and 1-2 sentences of explanation.
   - Format: "Heading: Detailed explanation text"

3. KNOWLEDGE CHECK (Quiz):
   - Generate exactly 5 multiple-choice questions.
   - Each question has exactly 4 options.
   - 'answer' must be the FULL TEXT of the correct option.

JSON RESPONSE FORMAT (Strict):
{
  "summary": "Full detailed multi-paragraph overview...",
  "key_points": [
      "Heading: Long detailed explanation 1...",
      "Heading: Long detailed explanation 2..."
  ],
  "quiz": [
    { "question": "Q1?", "options": ["A", "B", "C", "D"], "answer": "Answer Text" }
  ]
}

RULES:
- Return ONLY the JSON object. No conversational text.
- No markdown formatting."""

ANALYSIS_TEMPERATURE = 0.3
ANALYSIS_MAX_TOKENS = 3000


class ChunkAnalyzer:
    """Analyze chunks one at a time against an injected provider."""

    def __init__(self, provider: LLMProvider, json_retries: int = 1):
        if json_retries < 0:
            raise ValueError("json_retries must be non-negative")
        self.provider = provider
        self.json_retries = json_retries

    async def analyze_chunk(
        self,
        chunk: TextChunk,
        retries_remaining: Optional[int] = None,
    ) -> ChunkAnalysisResult:
        """
        Analyze a single chunk.

        Args:
            chunk: The chunk to analyze
            retries_remaining: Retry budget for unparseable responses
                (default: the analyzer's ``json_retries``)

        Returns:
            A validated ChunkAnalysisResult

        Raises:
            MalformedResponseError: If no attempt produced parseable JSON
            ProviderError: If the provider call itself fails (not retried here)
        """
        if retries_remaining is None:
            retries_remaining = self.json_retries

        prompt = f"Content to expand: \n\n{chunk.content}"
        attempts = retries_remaining + 1
        last_error: Optional[ParseError] = None

        for attempt in range(1, attempts + 1):
            logger.debug(
                "Chunk %d: requesting analysis (attempt %d/%d, %d chars)",
                chunk.index,
                attempt,
                attempts,
                chunk.length,
            )
            raw = await self.provider.complete(
                prompt,
                system=STUDY_GUIDE_SYSTEM_PROMPT,
                temperature=ANALYSIS_TEMPERATURE,
                max_tokens=ANALYSIS_MAX_TOKENS,
            )
            try:
                parsed = extract_json_object(raw)
            except ParseError as e:
                last_error = e
                logger.warning(
                    "Chunk %d: unparseable JSON on attempt %d/%d: %s",
                    chunk.index,
                    attempt,
                    attempts,
                    e,
                )
                continue

            result = coerce_analysis(parsed)
            logger.info(
                "✓ Chunk %d analyzed (key_points=%d, quiz=%d)",
                chunk.index,
                len(result.key_points),
                len(result.quiz),
            )
            return result

        raise MalformedResponseError(
            f"AI returned invalid format for chunk {chunk.index} "
            f"after {attempts} attempt(s)"
        ) from last_error


def coerce_analysis(parsed: dict) -> ChunkAnalysisResult:
    """Build a ChunkAnalysisResult from a parsed response, tolerating bad fields."""
    summary = parsed.get("summary")
    if not isinstance(summary, str) or not summary.strip():
        summary = SUMMARY_PLACEHOLDER

    raw_points = parsed.get("key_points")
    key_points: List[str] = []
    if isinstance(raw_points, list):
        key_points = [p.strip() for p in raw_points if isinstance(p, str) and p.strip()]

    raw_quiz = parsed.get("quiz")
    quiz: List[QuizItem] = []
    if isinstance(raw_quiz, list):
        for position, item in enumerate(raw_quiz):
            quiz_item = _coerce_quiz_item(item)
            if quiz_item is None:
                logger.debug("Dropping malformed quiz item #%d: %r", position, item)
                continue
            quiz.append(quiz_item)

    return ChunkAnalysisResult(summary=summary, key_points=key_points, quiz=quiz)


def _coerce_quiz_item(item: Any) -> Optional[QuizItem]:
    if not isinstance(item, dict):
        return None

    question = item.get("question")
    options = item.get("options")
    answer = item.get("answer")
    if not isinstance(question, str) or not isinstance(options, list) or not isinstance(answer, str):
        return None

    options = [str(o).strip() for o in options]
    answer = answer.strip()
    # Models occasionally change the case of the answer text
    if answer not in options:
        matches = [o for o in options if o.lower() == answer.lower()]
        if len(matches) == 1:
            answer = matches[0]

    try:
        return QuizItem(question=question.strip(), options=options, answer=answer)
    except ValidationError:
        return None
