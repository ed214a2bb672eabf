"""
FastAPI Dependencies

Collaborators for the processing function. The function runs with the
service-role key, so it needs no user session; tests swap these out with
``app.dependency_overrides``.
"""

from functools import lru_cache

from studyaid.clients.postgrest import PostgrestClient
from studyaid.config import settings
from studyaid.middleware.error_handling import ServiceError
from studyaid.services.llm import get_llm_client
from studyaid.services.processing import DocumentProcessor


@lru_cache()
def get_service_data_client() -> PostgrestClient:
    """
    Data client authorized with the service-role key.

    Raises:
        ServiceError: 503 when no service-role key is configured
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise ServiceError(
            "Document processing is not configured",
            status_code=503,
            error_code="not_configured",
            details={"missing": "SUPABASE_SERVICE_ROLE_KEY"},
        )
    return PostgrestClient(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def get_document_processor() -> DocumentProcessor:
    return DocumentProcessor(get_service_data_client(), get_llm_client())
