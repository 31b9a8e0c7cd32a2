"""Paragraph-based chunking of page text.

Chunking is a pure function of a page's text: paragraphs are extracted,
short neighbours are folded into merged groups, and oversized groups are
re-split at sentence boundaries. No state is shared between pages, so pages
can be chunked independently and in parallel.
"""
import re
from typing import List, Sequence

from study_assistant.models.document import Chunk
from study_assistant.utils.text_cleaner import collapse_whitespace

# A paragraph or trailing fragment must be longer than this to be kept
MIN_CHUNK_CHARS = 30
# Keep merging while the group is shorter than this...
MERGE_TARGET_CHARS = 500
# ...and the next paragraph is shorter than this
MERGE_MAX_PARAGRAPH_CHARS = 300
# Merged groups longer than this are re-split at sentence boundaries
MAX_CHUNK_CHARS = 2000
RESPLIT_TARGET_CHARS = 1500
RESPLIT_MIN_CHARS = 200

PARAGRAPH_SEPARATOR = "\n\n"

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SENTENCE = re.compile(r"[^.!?]+[.!?]+")


def split_paragraphs(text: str) -> List[str]:
    """
    Split page text on blank lines and keep paragraphs above the noise floor.

    Args:
        text: Raw page text

    Returns:
        Whitespace-collapsed paragraphs longer than MIN_CHUNK_CHARS
    """
    paragraphs = (collapse_whitespace(part) for part in _PARAGRAPH_BREAK.split(text))
    return [paragraph for paragraph in paragraphs if len(paragraph) > MIN_CHUNK_CHARS]


def merge_paragraphs(paragraphs: Sequence[str]) -> List[str]:
    """
    Fold short neighbouring paragraphs into merged groups.

    A paragraph joins the open group while the group is shorter than
    MERGE_TARGET_CHARS and the paragraph itself is shorter than
    MERGE_MAX_PARAGRAPH_CHARS; otherwise it opens a new group.

    Args:
        paragraphs: Paragraphs in page order

    Returns:
        Merged groups in page order
    """
    groups: List[str] = []
    for paragraph in paragraphs:
        if (
            groups
            and len(groups[-1]) < MERGE_TARGET_CHARS
            and len(paragraph) < MERGE_MAX_PARAGRAPH_CHARS
        ):
            groups[-1] = groups[-1] + PARAGRAPH_SEPARATOR + paragraph
        else:
            groups.append(paragraph)
    return groups


def split_sentences(text: str) -> List[str]:
    """Split text into sentences ending in '.', '!' or '?'.

    Text without any terminator is returned as a single sentence.
    """
    return _SENTENCE.findall(text) or [text]


def split_oversized(text: str) -> List[str]:
    """
    Re-split an oversized group at sentence boundaries.

    Sentences accumulate into a piece until the next sentence would push it
    past RESPLIT_TARGET_CHARS while the piece already exceeds
    RESPLIT_MIN_CHARS. The trailing piece is kept only if it is longer than
    MIN_CHUNK_CHARS.

    Args:
        text: Merged group longer than MAX_CHUNK_CHARS

    Returns:
        Trimmed pieces in order
    """
    pieces: List[str] = []
    current = ""
    for sentence in split_sentences(text):
        if (
            len(current) + len(sentence) > RESPLIT_TARGET_CHARS
            and len(current) > RESPLIT_MIN_CHARS
        ):
            pieces.append(current.strip())
            current = sentence
        else:
            current += sentence

    trailing = current.strip()
    if len(trailing) > MIN_CHUNK_CHARS:
        pieces.append(trailing)
    return pieces


def chunk_page_text(text: str) -> List[str]:
    """
    Convert one page's text into ordered chunk texts.

    Args:
        text: Raw page text

    Returns:
        Chunk texts in emission order (possibly empty)
    """
    chunks: List[str] = []
    for group in merge_paragraphs(split_paragraphs(text)):
        if len(group) > MAX_CHUNK_CHARS:
            chunks.extend(split_oversized(group))
            continue

        trimmed = group.strip()
        if len(trimmed) > MIN_CHUNK_CHARS:
            chunks.append(trimmed)
    return chunks


def chunk_page(document_id: str, page_number: int, text: str) -> List[Chunk]:
    """
    Chunk a page and assign per-page indices starting at 0.

    Args:
        document_id: Owning document identifier
        page_number: 1-based page number
        text: Raw page text

    Returns:
        List of Chunk objects with contiguous chunk indices
    """
    return [
        Chunk(
            text=chunk_text,
            page_number=page_number,
            chunk_index=chunk_index,
            document_id=document_id,
        )
        for chunk_index, chunk_text in enumerate(chunk_page_text(text))
    ]
