"""Keyword frequency scoring of chunks against a free-text query."""
from dataclasses import dataclass
from typing import List, Sequence

from study_assistant.models.document import Chunk

# Query tokens must be longer than this to count as keywords
MIN_KEYWORD_LENGTH = 3


@dataclass(frozen=True)
class ScoredChunk:
    """A chunk paired with its keyword score."""

    chunk: Chunk
    score: int


def extract_keywords(query: str) -> List[str]:
    """
    Extract keywords from a query.

    Repeated keywords are kept and weigh their matches more than once.

    Args:
        query: Free-text query

    Returns:
        Lower-cased whitespace tokens longer than MIN_KEYWORD_LENGTH
    """
    return [token for token in query.lower().split() if len(token) > MIN_KEYWORD_LENGTH]


def score_text(keywords: Sequence[str], text: str) -> int:
    """Sum the non-overlapping substring occurrences of each keyword in text."""
    lowered = text.lower()
    return sum(lowered.count(keyword) for keyword in keywords)


def score_chunk(query: str, text: str) -> int:
    """
    Score a chunk's text against a query.

    Keywords match as plain case-insensitive substrings, so "cat" also
    matches inside "category".

    Args:
        query: Free-text query
        text: Chunk text

    Returns:
        Non-negative relevance score (0 when nothing matches)
    """
    return score_text(extract_keywords(query), text)


def rank_chunks(query: str, chunks: Sequence[Chunk]) -> List[ScoredChunk]:
    """
    Score every chunk and sort by descending score.

    The sort is stable, so chunks with equal scores keep their input order.

    Args:
        query: Free-text query
        chunks: Candidate chunks in document order

    Returns:
        Scored chunks, best first
    """
    keywords = extract_keywords(query)
    scored = [ScoredChunk(chunk=chunk, score=score_text(keywords, chunk.text)) for chunk in chunks]
    return sorted(scored, key=lambda item: item.score, reverse=True)
