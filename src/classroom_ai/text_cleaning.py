"""Text Normalization Module

Cleans raw text coming out of PDF extraction and OCR before it is chunked
and sent to the model.

Key responsibilities:
  - Unify line breaks and page breaks
  - Remove PDF encoding artifacts (CID glyphs, private-use symbols)
  - Remove control and zero-width characters
  - Drop OCR failure markers left by the extraction step
  - Collapse excess whitespace while keeping paragraph structure
"""

import re

# Placeholder written by the extractor for a page OCR could not read
OCR_FAILURE_MARKER = "[[OCR_FAILED page={page}]]"
OCR_FAILURE_MARKER_RE = re.compile(r"\[\[OCR_FAILED page=\d+\]\]")

# Regex patterns (define at module level for performance)
LINE_BREAKS = re.compile(r"\r\n?|\f|\v|\u2028|\u2029")
CID_ARTIFACT = re.compile(r"\(cid:\d+\)")
PRIVATE_USE = re.compile(r"[\uE000-\uF8FF]")
# Control chars except \t and \n, plus zero-width characters and BOM
CONTROL_CHARS = re.compile(r"[\u0000-\u0008\u000B-\u001F\u007F-\u009F\u200B-\u200D\u2060\uFEFF]")
ODD_SPACES = re.compile(r"[\u00A0\u2000-\u200A\u202F\u205F\u3000]")
HYPHEN_BREAK = re.compile(r"(\w)-\n(\w)")
MULTIPLE_SPACES = re.compile(r"[ \t]{2,}")
TRAILING_SPACES = re.compile(r"[ \t]+\n")
LEADING_SPACES = re.compile(r"\n[ \t]+")
MULTIPLE_NEWLINES = re.compile(r"\n{3,}")  # 3+ newlines


def normalize_text(text: str) -> str:
    """
    Normalize extracted document text.

    Steps:
    1. Unify line breaks (\\r\\n, \\r, form feeds) to \\n
    2. Remove OCR failure markers, CID artifacts and private-use glyphs
    3. Remove control and zero-width characters
    4. Rejoin words hyphenated across a line break
    5. Normalize whitespace (max one blank line between paragraphs)

    Args:
        text: Raw text from the extraction step

    Returns:
        Cleaned text; empty string if nothing readable remains
    """
    if not text:
        return ""

    text = LINE_BREAKS.sub("\n", text)

    text = OCR_FAILURE_MARKER_RE.sub("", text)
    text = CID_ARTIFACT.sub("", text)
    text = PRIVATE_USE.sub("", text)
    text = CONTROL_CHARS.sub("", text)

    text = ODD_SPACES.sub(" ", text)
    text = text.replace("\t", " ")
    text = HYPHEN_BREAK.sub(r"\1\2", text)

    text = MULTIPLE_SPACES.sub(" ", text)
    text = TRAILING_SPACES.sub("\n", text)
    text = LEADING_SPACES.sub("\n", text)
    text = MULTIPLE_NEWLINES.sub("\n\n", text)

    return text.strip()
