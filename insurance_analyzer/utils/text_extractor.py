"""
PDF text extraction for uploaded policies.

Policies are PDF only. Page text is joined, running headers/footers and
page numbers are dropped, and whitespace is normalised before the text is
handed to the LLM.
"""
import io
import logging
import math
import re
from collections import Counter
from typing import List, Set, Union

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

logger = logging.getLogger(__name__)

_RE_PAGE_NUMBER_LINE = re.compile(r"^\s*[-–]?\s*(?:page\s+)?\d{1,4}(?:\s+of\s+\d{1,4})?\s*[-–]?\s*$", re.IGNORECASE)
_RE_MULTI_SPACE = re.compile(r"[ \t]+")

# A top or bottom line repeated on this share of pages is a running header/footer.
_REPEAT_RATIO = 0.6
_MIN_PAGES = 3
_EDGE_LINES = 2
_MAX_HEADER_LEN = 140


class TextExtractionError(Exception):
    """Raised when text extraction fails."""
    pass


def _page_texts(reader: PdfReader) -> List[str]:
    texts = []
    for page_num, page in enumerate(reader.pages, start=1):
        try:
            page_text = page.extract_text()
        except Exception as e:
            logger.warning(f"Failed to extract text from page {page_num}: {e}")
            continue
        if page_text:
            texts.append(page_text)
    return texts


def extract_text_from_pdf(file_content: Union[bytes, io.BytesIO]) -> str:
    """
    Extract and clean the text of a policy PDF.

    Args:
        file_content: PDF bytes or a BytesIO over them.

    Returns:
        The cleaned document text.

    Raises:
        TextExtractionError: If the PDF cannot be read or holds no text.
    """
    if isinstance(file_content, bytes):
        file_content = io.BytesIO(file_content)

    try:
        reader = PdfReader(file_content)
        texts = _page_texts(reader)
    except (PdfReadError, ValueError, OSError) as e:
        raise TextExtractionError(f"Failed to extract text from PDF: {e}") from e

    raw_text = "\n\n".join(texts)
    if not raw_text.strip():
        raise TextExtractionError("No text could be extracted from PDF")

    text = clean_text(_strip_running_lines(texts))
    if not text:
        raise TextExtractionError("No text could be extracted from PDF")

    logger.info(f"Extracted {len(text)} chars from {len(reader.pages)} PDF page(s)")
    return text


def _normalise_line(line: str) -> str:
    return " ".join(line.split())


def _edge_indexes(lines: List[str]) -> Set[int]:
    """Indexes of the first and last few non-blank lines of a page."""
    filled = [i for i, line in enumerate(lines) if line.strip()]
    return set(filled[:_EDGE_LINES] + filled[-_EDGE_LINES:])


def _strip_running_lines(pages: List[str]) -> str:
    """
    Join page texts, dropping running headers/footers and bare page numbers.

    Only the top and bottom lines of a page are candidates. A line counts
    once per page, and must appear verbatim on at least ``_REPEAT_RATIO`` of
    the pages (and never fewer than ``_MIN_PAGES``) to be removed. Body text
    is never touched.
    """
    page_lines = [page.split("\n") for page in pages]
    edges = [_edge_indexes(lines) for lines in page_lines]

    repeated: Set[str] = set()
    if len(pages) >= _MIN_PAGES:
        counts = Counter()
        for lines, idx in zip(page_lines, edges):
            counts.update({_normalise_line(lines[i]) for i in idx})
        threshold = max(_MIN_PAGES, math.ceil(len(pages) * _REPEAT_RATIO))
        repeated = {norm for norm, n in counts.items() if n >= threshold and len(norm) < _MAX_HEADER_LEN}

    kept_pages = []
    for lines, idx in zip(page_lines, edges):
        kept = [
            line for i, line in enumerate(lines)
            if i not in idx or not (_normalise_line(line) in repeated or _RE_PAGE_NUMBER_LINE.match(line))
        ]
        kept_pages.append("\n".join(kept))
    return "\n\n".join(kept_pages)


def clean_text(raw_text: str) -> str:
    """Trim each line, drop blank lines and collapse runs of spaces."""
    lines = (_RE_MULTI_SPACE.sub(" ", line).strip() for line in raw_text.split("\n"))
    return "\n".join(line for line in lines if line)
