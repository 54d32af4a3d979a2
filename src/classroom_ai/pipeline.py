"""
PDF Analysis Pipeline for Classroom AI

Turns an uploaded PDF into a study guide (summary, key points and quiz)
by extracting its text, bounding it, and analyzing it chunk by chunk with
the LLM provider.

Features:
- Text extraction with OCR fallback, then normalization
- Two independent bounds: a character ceiling (truncation) and a chunk cap
- Sequential chunk analysis; a failing chunk is skipped, not fatal
- Result merging with key-point deduplication
- Guaranteed cleanup of the uploaded file on every outcome
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

from .analyzer import ChunkAnalyzer
from .chunking import split_into_chunks
from .config import PipelineSettings, ProviderConfig
from .errors import (
    AnalysisCancelledError,
    EmptyDocumentError,
    ExtractionError,
    MalformedResponseError,
    NoInsightsError,
    ProviderError,
)
from .extraction import extract_text
from .llm_client import LLMProvider
from .merger import merge_results
from .models import ChunkAnalysisResult, MergedAnalysis
from .text_cleaning import normalize_text

logger = logging.getLogger(__name__)

PARTIAL_RESULT_NOTICE = "\n\n(Note: Summary based on first part of large document.)"

EMPTY_DOCUMENT_MESSAGE = (
    "This PDF seems to be empty or unreadable. "
    "Please make sure it contains clear text or images."
)
NO_INSIGHTS_MESSAGE = "AI was unable to generate any insights. Try a different file."

Extractor = Callable[[Path], str]
CancelCheck = Callable[[], Awaitable[bool]]


def truncate_for_analysis(text: str, max_chars: int) -> tuple[str, bool]:
    """
    Bound the text sent to the model.

    Returns:
        (text, truncated) where text is at most ``max_chars`` characters
    """
    if len(text) <= max_chars:
        return text, False
    # simple head-only truncation
    return text[:max_chars], True


class AnalysisPipeline:
    """Orchestrates one PDF analysis per ``analyze`` call.

    The pipeline holds no per-run state; results accumulate in locals owned
    by the running call.
    """

    def __init__(
        self,
        analyzer: ChunkAnalyzer,
        settings: Optional[PipelineSettings] = None,
        extractor: Extractor = extract_text,
    ):
        self.analyzer = analyzer
        self.settings = settings or PipelineSettings()
        self.extractor = extractor

    async def analyze(
        self,
        document: Path | str,
        is_cancelled: Optional[CancelCheck] = None,
    ) -> MergedAnalysis:
        """
        Run the full analysis on one uploaded document.

        Pipeline Steps:
        1. Extract text (OCR fallback lives in the extractor)
        2. Normalize and reject empty documents
        3. Truncate to the analysis budget
        4. Chunk and cap the number of chunks
        5. Analyze chunks sequentially, skipping failures
        6. Merge results

        The document is deleted afterwards whatever the outcome.

        Args:
            document: Path of the uploaded file; owned by this call
            is_cancelled: Optional coroutine function returning True once the
                caller has gone away; checked before each chunk

        Returns:
            MergedAnalysis with ``is_partial`` set when the text was truncated

        Raises:
            ExtractionError: The document could not be read
            EmptyDocumentError: Too little text after normalization
            NoInsightsError: No chunk produced a result
            AnalysisCancelledError: The caller aborted mid-analysis
        """
        document = Path(document)
        job_start = time.time()
        settings = self.settings

        try:
            # ========== STEP 1: EXTRACT ==========
            t0 = time.time()
            logger.info("STEP 1/6: Extracting text from %s", document.name)
            try:
                text = await asyncio.to_thread(self.extractor, document)
            except ExtractionError:
                logger.exception("Extraction failed for %s", document.name)
                raise
            except Exception as e:
                logger.exception("Extraction failed for %s", document.name)
                raise ExtractionError(f"Text extraction failed: {e}") from e
            logger.info(
                "✓ Extracted %d characters in %.2fs", len(text or ""), time.time() - t0
            )

            # ========== STEP 2: NORMALIZE ==========
            logger.info("STEP 2/6: Cleaning text")
            text = normalize_text(text or "")
            if len(text) < settings.min_document_chars:
                logger.error(
                    "Document empty after cleaning (%d chars < %d)",
                    len(text),
                    settings.min_document_chars,
                )
                raise EmptyDocumentError(EMPTY_DOCUMENT_MESSAGE)
            logger.info("✓ Normalized text: %d characters", len(text))

            # ========== STEP 3: BOUND ==========
            original_len = len(text)
            text, is_partial = truncate_for_analysis(text, settings.max_analysis_chars)
            if is_partial:
                logger.warning(
                    "STEP 3/6: Truncating text (%d -> %d chars)",
                    original_len,
                    settings.max_analysis_chars,
                )
            else:
                logger.info("STEP 3/6: Text within budget (%d chars)", original_len)

            # ========== STEP 4: CHUNK ==========
            logger.info("STEP 4/6: Chunking text (chunk_size=%d)", settings.chunk_size)
            chunks = split_into_chunks(text, settings.chunk_size)
            chunks_to_process = chunks[:settings.max_chunks]
            if len(chunks) > len(chunks_to_process):
                logger.info(
                    "Chunk cap reached: analyzing %d of %d chunks",
                    len(chunks_to_process),
                    len(chunks),
                )
            logger.info("✓ Prepared %d chunks", len(chunks_to_process))

            # ========== STEP 5: ANALYZE SEQUENTIALLY ==========
            t5 = time.time()
            logger.info("STEP 5/6: Analyzing %d chunks", len(chunks_to_process))

            results: List[ChunkAnalysisResult] = []
            attempted = 0
            failed = 0
            last_error: Optional[Exception] = None

            for chunk in chunks_to_process:
                if is_cancelled is not None and await is_cancelled():
                    logger.warning(
                        "Analysis cancelled by caller after %d/%d chunks",
                        attempted,
                        len(chunks_to_process),
                    )
                    raise AnalysisCancelledError("Analysis cancelled by the client.")

                attempted += 1
                logger.info("Analyzing chunk %d/%d", attempted, len(chunks_to_process))
                try:
                    result = await self.analyzer.analyze_chunk(chunk)
                except (MalformedResponseError, ProviderError) as e:
                    failed += 1
                    last_error = e
                    logger.error("Chunk %d failed: %s", attempted, e)
                    continue

                results.append(result)

            logger.info(
                "✓ Chunk analysis completed in %.2fs (success=%d, failed=%d)",
                time.time() - t5,
                len(results),
                failed,
            )

            if not results:
                # provider detail stays in the server log and the exception chain
                logger.error(
                    "No chunk produced a result (%d failed); last error: %s",
                    failed,
                    last_error,
                )
                raise NoInsightsError(NO_INSIGHTS_MESSAGE) from last_error

            # ========== STEP 6: MERGE ==========
            logger.info("STEP 6/6: Merging %d chunk results", len(results))
            merged = merge_results(results)
            summary = merged.summary + PARTIAL_RESULT_NOTICE if is_partial else merged.summary
            merged = merged.model_copy(update={"summary": summary, "is_partial": is_partial})

            logger.debug(
                "Analysis completed in %.2fs: %d chunks -> %d key points, %d quiz items",
                time.time() - job_start,
                len(results),
                len(merged.key_points),
                len(merged.quiz),
            )
            return merged
        finally:
            release_document(document)


def release_document(document: Path) -> None:
    """Delete the uploaded file. Failures are logged, never raised."""
    try:
        if document.exists():
            document.unlink()
            logger.info("Final cleanup: temp file %s deleted", document.name)
    except OSError:
        logger.warning("Final cleanup failed for %s (non-fatal)", document, exc_info=True)


def build_pipeline(
    provider_config: Optional[ProviderConfig] = None,
    settings: Optional[PipelineSettings] = None,
) -> AnalysisPipeline:
    """Wire a pipeline from configuration (environment when not given)."""
    settings = settings or PipelineSettings.from_env()
    provider = LLMProvider(provider_config or ProviderConfig.from_env())
    analyzer = ChunkAnalyzer(provider, json_retries=settings.json_retries)
    return AnalysisPipeline(analyzer, settings)
