"""Prometheus metrics for ingestion, retrieval and generation."""
from prometheus_client import Counter, Histogram

DOCUMENTS_INGESTED = Counter(
    "study_assistant_documents_ingested_total",
    "Documents submitted for ingestion",
    ["outcome"],
)

CHUNKS_CREATED = Counter(
    "study_assistant_chunks_created_total",
    "Chunks created during ingestion",
)

INGESTION_SECONDS = Histogram(
    "study_assistant_ingestion_seconds",
    "Time spent chunking and storing a document",
)

RETRIEVALS = Counter(
    "study_assistant_retrievals_total",
    "Retrieval requests by mode and outcome",
    ["mode", "outcome"],
)

GENERATOR_ERRORS = Counter(
    "study_assistant_generator_errors_total",
    "Generator failures by kind",
    ["kind"],
)
