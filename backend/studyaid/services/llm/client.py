"""
LLM client for the document processing pipeline, via LiteLLM.

Model identifiers use the LiteLLM "provider/model-name" format, so the
pipeline is not tied to one vendor. Transient provider failures (busy,
rate limited, 5xx, connection problems) are retried with exponential
backoff (2s, 4s, ...); everything else fails fast. Final failures are
raised as ProcessingError carrying a user-facing message and an
AIErrorCode.

See: https://docs.litellm.ai/

Usage:
    from studyaid.services.llm import get_llm_client

    client = get_llm_client()
    text = await client.complete(prompt, max_tokens=800)
"""

import logging
import os
from functools import lru_cache
from typing import Optional

import litellm
from litellm import acompletion
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from studyaid.config import settings
from studyaid.enums.processing import AIErrorCode
from studyaid.middleware.error_handling import ProcessingError

logger = logging.getLogger(__name__)

# Configure LiteLLM
litellm.drop_params = True  # Drop unsupported params instead of erroring
if settings.DEBUG:
    os.environ["LITELLM_LOG"] = "DEBUG"

RETRYABLE_STATUS_CODES = {429, 500, 503}

USER_MESSAGES: dict[AIErrorCode, str] = {
    AIErrorCode.AI_BUSY: (
        "Our AI service is currently experiencing high demand. "
        "Please wait a moment and try again."
    ),
    AIErrorCode.AI_RATE_LIMIT: (
        "You've made too many requests. Please wait a few minutes before trying again."
    ),
    AIErrorCode.AI_INVALID_REQUEST: (
        "The document could not be processed. "
        "It may be too long or contain unsupported content."
    ),
    AIErrorCode.AI_AUTH_ERROR: (
        "There's a configuration issue with our AI service. Please contact support."
    ),
    AIErrorCode.AI_SAFETY: (
        "The document was flagged by our content safety filter. "
        "Please review the content and try again."
    ),
    AIErrorCode.AI_EMPTY: "The AI returned an empty response. Please try again.",
    AIErrorCode.AI_NETWORK: (
        "Could not reach the AI service. Please check your connection and try again."
    ),
    AIErrorCode.AI_ERROR: "Something went wrong with the AI service. Please try again later.",
}


def _status_code(error: BaseException) -> Optional[int]:
    status = getattr(error, "status_code", None)
    return status if isinstance(status, int) else None


def is_transient_error(error: BaseException) -> bool:
    """Busy, rate-limited, server or connection failures are worth retrying."""
    if isinstance(error, ProcessingError):
        return False
    if isinstance(error, (litellm.APIConnectionError, litellm.Timeout)):
        return True
    return _status_code(error) in RETRYABLE_STATUS_CODES


def to_processing_error(error: BaseException) -> ProcessingError:
    """Map a provider exception onto an AIErrorCode with a user-facing message."""
    if isinstance(error, ProcessingError):
        return error

    status = _status_code(error)
    if isinstance(error, litellm.ContentPolicyViolationError):
        code = AIErrorCode.AI_SAFETY
    elif status == 503:
        code = AIErrorCode.AI_BUSY
    elif status == 429:
        code = AIErrorCode.AI_RATE_LIMIT
    elif status == 400:
        code = AIErrorCode.AI_INVALID_REQUEST
    elif status in (401, 403):
        code = AIErrorCode.AI_AUTH_ERROR
    elif isinstance(error, (litellm.APIConnectionError, litellm.Timeout)):
        code = AIErrorCode.AI_NETWORK
    else:
        code = AIErrorCode.AI_ERROR

    message = USER_MESSAGES[code]
    if code == AIErrorCode.AI_ERROR and status:
        message = f"{message} (Error: {status})"

    return ProcessingError(
        message,
        error_code=code.value,
        details={"technical_details": f"{type(error).__name__}: {error}"},
    )


class LLMClient:
    """
    Text completion client with JSON output mode and retries.

    Args:
        model: LiteLLM model id (defaults to settings.TEXT_MODEL)
        temperature: Sampling temperature
        max_attempts: Total attempts for transient failures
        wait: tenacity wait strategy between attempts
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: float = settings.LLM_TEMPERATURE,
        max_attempts: int = settings.LLM_MAX_RETRIES,
        wait: Optional[wait_base] = None,
        api_key: Optional[str] = None,
    ) -> None:
        self.model = model or settings.TEXT_MODEL
        self.temperature = temperature
        self.max_attempts = max_attempts
        self.wait = wait or wait_exponential(multiplier=2, min=2, max=30)
        self.api_key = api_key or settings.GEMINI_API_KEY or None

        if not (self.api_key or os.getenv("GEMINI_API_KEY")):
            logger.warning("No GEMINI_API_KEY configured; LLM calls will fail")

    async def complete(self, prompt: str, max_tokens: int, json_mode: bool = True) -> str:
        """
        Run one completion and return the raw response text.

        Raises:
            ProcessingError: After retries are exhausted, or immediately for
                non-transient failures and empty responses
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            retry=retry_if_exception(is_transient_error),
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._call(prompt, max_tokens, json_mode)
        except ProcessingError as e:
            logger.error(f"LLM completion failed [{e.error_code}]: {e.technical_details}")
            raise
        except Exception as e:
            error = to_processing_error(e)
            logger.error(f"LLM completion failed [{error.error_code}]: {error.technical_details}")
            raise error from e

    async def _call(self, prompt: str, max_tokens: int, json_mode: bool) -> str:
        kwargs = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if self.api_key:
            kwargs["api_key"] = self.api_key

        response = await acompletion(**kwargs)
        choice = response.choices[0]
        content = choice.message.content

        if not content:
            if getattr(choice, "finish_reason", None) in ("content_filter", "safety"):
                code = AIErrorCode.AI_SAFETY
            else:
                code = AIErrorCode.AI_EMPTY
            raise ProcessingError(
                USER_MESSAGES[code],
                error_code=code.value,
                details={"technical_details": f"finish_reason={choice.finish_reason}"},
            )
        return content

    @staticmethod
    def _log_retry(retry_state) -> None:
        error = retry_state.outcome.exception()
        logger.warning(
            f"LLM call failed (attempt {retry_state.attempt_number}), retrying: "
            f"{type(error).__name__}: {error}"
        )


@lru_cache()
def get_llm_client() -> LLMClient:
    """Get the shared LLM client."""
    return LLMClient()
