"""Split normalized document text into bounded, ordered chunks."""

import logging
import re
from typing import List, Optional

from .models import TextChunk

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 7000

# Sentence end: terminal punctuation followed by whitespace, or a line break
SENTENCE_BREAK = re.compile(r"[.!?](?=\s)|\n")
WHITESPACE = re.compile(r"\s")


def split_into_chunks(
    text: str,
    target_size: int = DEFAULT_CHUNK_SIZE,
    tolerance: Optional[int] = None,
) -> List[TextChunk]:
    """
    Greedy fixed-size split that avoids cutting words in half.

    For every window of ``target_size`` characters we look back at most
    ``tolerance`` characters for a sentence boundary, then for any
    whitespace, and only hard-cut at ``target_size`` when neither exists.
    Whitespace at cut points is trimmed.

    Args:
        text: Normalized document text
        target_size: Maximum chunk length in characters
        tolerance: Look-back window for a boundary (default: 10% of target_size)

    Returns:
        Chunks in document order, each at most ``target_size`` characters

    Raises:
        ValueError: If target_size or tolerance is out of range
    """
    if target_size <= 0:
        raise ValueError(f"target_size must be positive, got {target_size}")
    if tolerance is None:
        tolerance = max(1, target_size // 10)
    if tolerance < 0:
        raise ValueError(f"tolerance must be non-negative, got {tolerance}")

    chunks: List[TextChunk] = []
    start = 0
    n = len(text)

    while start < n:
        # skip whitespace left over from the previous cut
        while start < n and text[start].isspace():
            start += 1
        if start >= n:
            break

        end = min(start + target_size, n)
        if end < n:
            end = _find_cut(text, start, end, tolerance)

        content = text[start:end].rstrip()
        if content:
            chunks.append(TextChunk(index=len(chunks), content=content))
        start = end

    logger.debug(
        "Split %d chars into %d chunks (target_size=%d, tolerance=%d)",
        n,
        len(chunks),
        target_size,
        tolerance,
    )
    return chunks


def _find_cut(text: str, start: int, end: int, tolerance: int) -> int:
    """Return the cut position for the window text[start:end]."""
    window_start = max(start + 1, end - tolerance)
    window = text[window_start:end]

    # Prefer the last sentence boundary, cutting right after the punctuation
    last_sentence = None
    for match in SENTENCE_BREAK.finditer(window):
        last_sentence = match
    if last_sentence is not None:
        return window_start + last_sentence.end()

    # The character right at `end` may itself be whitespace: a clean cut
    if text[end].isspace():
        return end

    last_space = None
    for match in WHITESPACE.finditer(window):
        last_space = match
    if last_space is not None:
        return window_start + last_space.start()

    return end
