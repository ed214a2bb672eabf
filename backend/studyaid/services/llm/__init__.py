"""LLM access for the processing pipeline."""

from studyaid.services.llm.client import (
    LLMClient,
    get_llm_client,
    is_transient_error,
    to_processing_error,
)

__all__ = ["LLMClient", "get_llm_client", "is_transient_error", "to_processing_error"]
