"""Representative sampling of chunks for whole-document summaries."""
import math
from typing import List, Sequence, TypeVar

DEFAULT_SUMMARY_MAX_CHUNKS = 60

T = TypeVar("T")


def select_representative_chunks(
    chunks: Sequence[T], max_count: int = DEFAULT_SUMMARY_MAX_CHUNKS
) -> List[T]:
    """
    Select an evenly spread, deterministic subset of chunks.

    Position ``i`` of the sample takes ``chunks[floor(i * step)]`` with
    ``step = len(chunks) / max_count``; every index is computed from ``i``
    directly rather than accumulated.

    Args:
        chunks: Chunks in document order
        max_count: Maximum number of chunks to return

    Returns:
        The input unchanged when it fits the budget, otherwise exactly
        ``max_count`` chunks in document order

    Raises:
        ValueError: If max_count is not positive
    """
    if max_count <= 0:
        raise ValueError(f"max_count must be positive, got {max_count}")

    if len(chunks) <= max_count:
        return list(chunks)

    step = len(chunks) / max_count
    return [chunks[math.floor(i * step)] for i in range(max_count)]
