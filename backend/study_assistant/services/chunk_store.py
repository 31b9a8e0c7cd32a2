"""Append-only, in-process chunk store."""
import threading
from typing import Dict, Iterable, List, Sequence

from study_assistant.exceptions import StorageError
from study_assistant.models.document import Chunk
from study_assistant.utils.logger import logger


class ChunkStore:
    """Ordered chunk collection per document.

    Chunks can only be appended; reads always return them ordered by
    (page_number, chunk_index) regardless of the order batches arrived in.
    """

    def __init__(self, max_batch_size: int = 500):
        """
        Initialize chunk store.

        Args:
            max_batch_size: Largest batch accepted by a single append call
        """
        self.max_batch_size = max_batch_size
        self._chunks_by_document: Dict[str, List[Chunk]] = {}
        self._chunks_by_id: Dict[str, Chunk] = {}
        self._lock = threading.Lock()
        logger.info(f"Chunk store initialized with max batch size {max_batch_size}")

    def append_batch(self, chunks: Sequence[Chunk]) -> int:
        """
        Append a batch of chunks.

        Args:
            chunks: Chunks to append (may span documents)

        Returns:
            Number of chunks appended

        Raises:
            StorageError: If the batch is too large or repeats a chunk id
        """
        if len(chunks) > self.max_batch_size:
            raise StorageError(
                f"Batch of {len(chunks)} chunks exceeds the maximum of {self.max_batch_size}"
            )

        with self._lock:
            for chunk in chunks:
                if chunk.chunk_id in self._chunks_by_id:
                    raise StorageError(f"Chunk {chunk.chunk_id} already stored")

            for chunk in chunks:
                self._chunks_by_id[chunk.chunk_id] = chunk
                self._chunks_by_document.setdefault(chunk.document_id, []).append(chunk)

        return len(chunks)

    def get_document_chunks(self, document_id: str) -> List[Chunk]:
        """Return all chunks of a document ordered by page number then chunk index."""
        with self._lock:
            chunks = list(self._chunks_by_document.get(document_id, ()))
        return sorted(chunks, key=lambda chunk: chunk.sort_key)

    def get_chunks_by_ids(self, chunk_ids: Iterable[str]) -> List[Chunk]:
        """
        Fetch chunks by id, ordered by page number then chunk index.

        Unknown ids are ignored.
        """
        with self._lock:
            chunks = {
                chunk_id: self._chunks_by_id[chunk_id]
                for chunk_id in chunk_ids
                if chunk_id in self._chunks_by_id
            }
        return sorted(chunks.values(), key=lambda chunk: chunk.sort_key)

    def count(self, document_id: str) -> int:
        """Return the number of stored chunks for a document."""
        with self._lock:
            return len(self._chunks_by_document.get(document_id, ()))
