"""Custom exception classes for ingestion, retrieval and generation."""


class DocumentProcessingError(Exception):
    """Base exception for study assistant errors."""
    pass


class ValidationError(DocumentProcessingError):
    """Raised when an ingestion payload fails validation."""
    pass


class InvalidInputError(ValidationError):
    """Raised when the ingestion payload is missing or not page-shaped."""
    pass


class PageLimitExceededError(ValidationError):
    """Raised when a document exceeds the maximum page limit."""
    pass


class DocumentEmptyError(ValidationError):
    """Raised when a document has no extractable chunks to work with."""
    pass


class StorageError(DocumentProcessingError):
    """Raised when appending or reading chunks fails."""
    pass


class DocumentNotFoundError(DocumentProcessingError):
    """Raised when a document id is unknown."""
    pass


class DocumentNotReadyError(DocumentProcessingError):
    """Raised when a document's ingestion failed or never completed."""
    pass


class QuestionNotFoundError(DocumentProcessingError):
    """Raised when a question id is unknown for the given document."""
    pass


class GeneratorError(DocumentProcessingError):
    """Raised when the upstream text generator fails."""
    pass


class GeneratorRateLimitError(GeneratorError):
    """Raised when the generator rejects a request for rate limiting (retryable)."""
    pass


class GeneratorCreditsExhaustedError(GeneratorError):
    """Raised when the generator account has no credits left (billing-blocked)."""
    pass


class ServiceUnavailableError(DocumentProcessingError):
    """Raised when required services are not available."""
    pass
