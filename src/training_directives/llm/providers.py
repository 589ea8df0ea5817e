"""
Text-generation providers.

This module provides the provider seam the orchestrator depends on, plus an
OpenAI-backed implementation with:
- Lazy client creation (an unconfigured provider is a normal state)
- Optional transport retry with exponential backoff
- Rate limit handling
- Custom exceptions for every failure mode
- Request metrics
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
import asyncio
import logging
import os
import threading
import time

from openai import AsyncOpenAI, APIError, RateLimitError, APIConnectionError

from ..config import get_settings
from ..exceptions import (
    LLMServiceUnavailableError,
    LLMRateLimitError,
    LLMTimeoutError,
    LLMResponseInvalidError,
    LLMError,
)


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class GenerationRequest:
    """One text-generation call."""

    system_instruction: str
    user_prompt: str
    temperature: float = 0.4
    max_output_tokens: int = 600


class TextGenerationProvider(ABC):
    """
    Capability the orchestrator needs from a model backend.

    `generate` returns raw text; parsing and validation happen upstream.
    Implementations raise LLMError subclasses on failure.
    """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider is configured and can be called."""

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> str:
        """Generate raw text for a request."""


class ModelType(Enum):
    """Model types for different task complexities."""

    FAST = "fast"
    SMART = "smart"


class RetryConfig:
    """Configuration for transport retry behavior."""

    def __init__(
        self,
        max_retries: int = 0,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        retryable_status_codes: Optional[set[int]] = None,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.retryable_status_codes = retryable_status_codes or {429, 500, 502, 503, 504}

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for a given attempt number."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


class LLMMetrics:
    """Track LLM usage metrics."""

    def __init__(self) -> None:
        self.total_requests = 0
        self.successful_requests = 0
        self.failed_requests = 0
        self.retried_requests = 0
        self.total_tokens_input = 0
        self.total_tokens_output = 0
        self._last_request_time: Optional[float] = None
        self._request_times: list[float] = []

    def record_request(
        self,
        success: bool,
        retried: bool = False,
        input_tokens: int = 0,
        output_tokens: int = 0,
        duration_ms: Optional[float] = None,
    ) -> None:
        """Record a request."""
        self.total_requests += 1
        if success:
            self.successful_requests += 1
        else:
            self.failed_requests += 1
        if retried:
            self.retried_requests += 1
        self.total_tokens_input += input_tokens
        self.total_tokens_output += output_tokens
        self._last_request_time = time.time()
        if duration_ms is not None:
            self._request_times.append(duration_ms)
            # Keep only last 100 request times
            if len(self._request_times) > 100:
                self._request_times = self._request_times[-100:]

    @property
    def avg_request_time_ms(self) -> float:
        """Average request time in milliseconds."""
        if not self._request_times:
            return 0.0
        return sum(self._request_times) / len(self._request_times)

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "retried_requests": self.retried_requests,
            "total_tokens_input": self.total_tokens_input,
            "total_tokens_output": self.total_tokens_output,
            "avg_request_time_ms": round(self.avg_request_time_ms, 2),
        }


class LLMClient(TextGenerationProvider):
    """
    OpenAI chat-completions provider.

    Construction never fails: without an API key the client reports itself
    unavailable and callers fall back to templates.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        model: ModelType = ModelType.FAST,
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        """
        Initialize the LLM client.

        Args:
            api_key: OpenAI API key (defaults to settings or env var)
            retry_config: Transport retry behavior (defaults to settings)
            model: Model type used by `generate`
            client: Pre-built AsyncOpenAI client
        """
        settings = get_settings()
        self.api_key = api_key or settings.openai_api_key or os.environ.get("OPENAI_API_KEY") or ""
        self.model_map = {
            ModelType.FAST: settings.llm_model_fast,
            ModelType.SMART: settings.llm_model_smart,
        }
        self.model = model
        self.timeout = settings.llm_timeout_seconds
        self.retry_config = retry_config or RetryConfig(max_retries=settings.llm_max_retries)
        self.metrics = LLMMetrics()
        self._client = client
        self._logger = logger

    def is_available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise LLMServiceUnavailableError(
                    message="OPENAI_API_KEY not configured",
                    details={"configuration_missing": "openai_api_key"},
                )
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    def _get_model(self, model_type: ModelType) -> str:
        """Get the model ID for a model type."""
        return self.model_map.get(model_type, self.model_map[ModelType.FAST])

    def get_model_name(self, model_type: Optional[ModelType] = None) -> str:
        return self._get_model(model_type or self.model)

    async def _execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        operation_name: str = "LLM request",
    ) -> T:
        """
        Execute an operation with retry logic.

        Args:
            operation: Async callable to execute
            operation_name: Name for logging

        Returns:
            The operation result

        Raises:
            LLMError: On unrecoverable failure
        """
        last_exception: Optional[Exception] = None
        retried = False

        for attempt in range(self.retry_config.max_retries + 1):
            start_time = time.time()

            try:
                result = await operation()
                duration_ms = (time.time() - start_time) * 1000
                self.metrics.record_request(
                    success=True,
                    retried=retried,
                    duration_ms=duration_ms,
                )
                return result

            except RateLimitError as e:
                last_exception = e
                retried = True
                retry_after = getattr(e, "retry_after", None)

                if attempt < self.retry_config.max_retries:
                    delay = retry_after if retry_after else self.retry_config.get_delay(attempt)
                    self._logger.warning(
                        f"{operation_name} rate limited. "
                        f"Retry {attempt + 1}/{self.retry_config.max_retries} "
                        f"in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                else:
                    self.metrics.record_request(success=False, retried=True)
                    raise LLMRateLimitError(
                        retry_after=int(retry_after) if retry_after else None,
                    )

            except APIConnectionError as e:
                last_exception = e
                retried = True

                if attempt < self.retry_config.max_retries:
                    delay = self.retry_config.get_delay(attempt)
                    self._logger.warning(
                        f"{operation_name} connection error. "
                        f"Retry {attempt + 1}/{self.retry_config.max_retries} "
                        f"in {delay:.1f}s: {e}"
                    )
                    await asyncio.sleep(delay)
                else:
                    self.metrics.record_request(success=False, retried=True)
                    raise LLMServiceUnavailableError(
                        message=f"Connection to LLM service failed: {e}",
                    )

            except APIError as e:
                last_exception = e
                status = getattr(e, "status_code", 500)

                if status in self.retry_config.retryable_status_codes:
                    retried = True
                    if attempt < self.retry_config.max_retries:
                        delay = self.retry_config.get_delay(attempt)
                        self._logger.warning(
                            f"{operation_name} API error (status {status}). "
                            f"Retry {attempt + 1}/{self.retry_config.max_retries} "
                            f"in {delay:.1f}s"
                        )
                        await asyncio.sleep(delay)
                    else:
                        self.metrics.record_request(success=False, retried=True)
                        raise LLMServiceUnavailableError(
                            message=f"LLM API error after retries: {e}",
                            details={"status_code": status},
                        )
                else:
                    self.metrics.record_request(success=False, retried=retried)
                    raise LLMError(
                        message=f"LLM API error: {e}",
                        details={"status_code": status},
                    )

            except asyncio.TimeoutError:
                self.metrics.record_request(success=False, retried=retried)
                raise LLMTimeoutError(timeout_seconds=self.timeout)

            except LLMError:
                self.metrics.record_request(success=False, retried=retried)
                raise

            except Exception as e:
                self.metrics.record_request(success=False, retried=retried)
                self._logger.error(f"Unexpected error in {operation_name}: {e}")
                raise LLMError(message=f"Unexpected LLM error: {e}")

        self.metrics.record_request(success=False, retried=True)
        raise LLMError(message=f"Operation failed after all retries: {last_exception}")

    async def completion(
        self,
        system: str,
        user: str,
        model: Optional[ModelType] = None,
        max_tokens: int = 600,
        temperature: float = 0.4,
        timeout: Optional[float] = None,
        json_mode: bool = True,
    ) -> str:
        """
        Get a completion from the LLM.

        Args:
            system: System prompt
            user: User message
            model: Model type to use (defaults to the client's model)
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature
            timeout: Request timeout in seconds (defaults to settings)
            json_mode: Ask the API for a JSON object response

        Returns:
            The assistant's response text

        Raises:
            LLMServiceUnavailableError: If no API key is configured
            LLMError: On any other failure
        """
        client = self.client
        timeout = timeout if timeout is not None else self.timeout
        extra: Dict[str, Any] = {"response_format": {"type": "json_object"}} if json_mode else {}

        async def _make_request() -> str:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.get_model_name(model),
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    max_tokens=max_tokens,
                    temperature=temperature,
                    **extra,
                ),
                timeout=timeout,
            )
            content = response.choices[0].message.content
            if content is None:
                raise LLMResponseInvalidError(message="Empty response from LLM")
            return content

        return await self._execute_with_retry(_make_request, "completion")

    async def generate(self, request: GenerationRequest) -> str:
        return await self.completion(
            system=request.system_instruction,
            user=request.user_prompt,
            max_tokens=request.max_output_tokens,
            temperature=request.temperature,
        )

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics."""
        return self.metrics.to_dict()


# Singleton instance with thread-safe locking
_llm_client: Optional[LLMClient] = None
_llm_client_lock = threading.Lock()


def get_llm_client() -> LLMClient:
    """
    Get the LLM client singleton (thread-safe).

    Returns:
        The LLM client instance, which may report itself unavailable
    """
    global _llm_client
    if _llm_client is None:
        with _llm_client_lock:
            if _llm_client is None:
                _llm_client = LLMClient()
    return _llm_client


def reset_llm_client() -> None:
    """Reset the LLM client singleton (for testing)."""
    global _llm_client
    with _llm_client_lock:
        _llm_client = None
