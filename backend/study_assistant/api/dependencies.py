"""FastAPI dependency providers for the services initialised in main."""
from fastapi import Depends, HTTPException

from study_assistant.services.ingestion_service import IngestionService
from study_assistant.services.llm_service import LLMService
from study_assistant.services.question_service import QuestionService
from study_assistant.services.retrieval_service import RetrievalService
from study_assistant.services.study_service import StudyService


def get_app_settings():
    """Get application settings from main app."""
    from study_assistant.main import settings
    if settings is None:
        raise HTTPException(status_code=503, detail="Settings not initialized")
    return settings


def get_ingestion_service() -> IngestionService:
    """Get ingestion service from main app."""
    from study_assistant.main import ingestion_service
    if ingestion_service is None:
        raise HTTPException(status_code=503, detail="Ingestion service not initialized")
    return ingestion_service


def get_retrieval_service() -> RetrievalService:
    """Get retrieval service from main app."""
    from study_assistant.main import retrieval_service
    if retrieval_service is None:
        raise HTTPException(status_code=503, detail="Retrieval service not initialized")
    return retrieval_service


def get_llm_service() -> LLMService:
    """Get generator service from main app."""
    from study_assistant.main import llm_service
    if llm_service is None:
        raise HTTPException(status_code=503, detail="LLM_API_KEY is not configured")
    return llm_service


def get_study_service(
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
    llm_service: LLMService = Depends(get_llm_service),
    app_settings=Depends(get_app_settings),
) -> StudyService:
    """Get study service with dependencies."""
    return StudyService(
        retrieval_service=retrieval_service,
        llm_service=llm_service,
        chat_history_limit=app_settings.chat_history_limit,
    )


def get_question_service(
    retrieval_service: RetrievalService = Depends(get_retrieval_service),
    llm_service: LLMService = Depends(get_llm_service),
    app_settings=Depends(get_app_settings),
) -> QuestionService:
    """Get question service with dependencies."""
    return QuestionService(
        retrieval_service=retrieval_service,
        llm_service=llm_service,
        batch_size=app_settings.questions_batch_size,
        rate_limit_backoff_seconds=app_settings.rate_limit_backoff_seconds,
    )
