"""Mapping of service exceptions to HTTP responses."""
from fastapi import HTTPException

from study_assistant.exceptions import (
    DocumentEmptyError,
    DocumentNotFoundError,
    DocumentNotReadyError,
    DocumentProcessingError,
    GeneratorCreditsExhaustedError,
    GeneratorError,
    GeneratorRateLimitError,
    QuestionNotFoundError,
    ServiceUnavailableError,
    StorageError,
    ValidationError,
)


def to_http_exception(e: DocumentProcessingError) -> HTTPException:
    """Convert a service error into an HTTPException with a user-displayable detail."""
    if isinstance(e, (DocumentNotFoundError, QuestionNotFoundError, DocumentEmptyError)):
        return HTTPException(status_code=404, detail=str(e))
    elif isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=str(e))
    elif isinstance(e, DocumentNotReadyError):
        return HTTPException(status_code=409, detail=str(e))
    elif isinstance(e, GeneratorRateLimitError):
        return HTTPException(status_code=429, detail=str(e))
    elif isinstance(e, GeneratorCreditsExhaustedError):
        return HTTPException(status_code=402, detail=str(e))
    elif isinstance(e, GeneratorError):
        return HTTPException(status_code=502, detail=str(e))
    elif isinstance(e, StorageError):
        return HTTPException(status_code=500, detail=str(e))
    elif isinstance(e, ServiceUnavailableError):
        return HTTPException(status_code=503, detail=str(e))
    else:
        return HTTPException(status_code=500, detail=f"Request failed: {str(e)}")
