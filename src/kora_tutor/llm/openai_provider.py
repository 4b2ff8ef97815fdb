"""
OpenAI-compatible LLM provider.

This provider works with any OpenAI-compatible chat completions API, including:
- OpenAI API (text and vision models such as gpt-4o)
- LM Studio (local)
- Ollama (with OpenAI compatibility endpoint)
- vLLM
- Any other OpenAI-compatible server
"""

import logging
from typing import Any, Optional

import httpx

from kora_tutor.llm.base import LLMProvider, LLMResponse
from kora_tutor.llm.config import LLMConfig, Message
from kora_tutor.llm.exceptions import FailureReason, LLMError

logger = logging.getLogger(__name__)

CONTENT_POLICY_CODES = ("content_policy_violation", "content_filter")


class OpenAIProvider(LLMProvider):
    """
    OpenAI-compatible LLM provider.

    Example:
        ```python
        config = LLMConfig(
            provider=ProviderType.OPENAI,
            model="gpt-4o",
            api_key="sk-...",
        )
        async with OpenAIProvider(config) as provider:
            response = await provider.complete("What is a derivative?")
            print(response.content)
        ```
    """

    def __init__(
        self,
        config: LLMConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the OpenAI-compatible provider.

        Args:
            config: LLM configuration with base_url, model, etc.
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(config)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._build_headers(),
                transport=self._transport,
            )
        return self._client

    def _build_headers(self) -> dict[str, str]:
        """Build request headers."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        api_key = self.config.get_api_key()
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"

        return headers

    def _error(self, message: str, reason: FailureReason, **kwargs: Any) -> LLMError:
        return LLMError(
            message,
            reason=reason,
            provider=self.provider_name,
            model=self.model_name,
            **kwargs,
        )

    def _error_from_response(self, response: httpx.Response) -> LLMError:
        """Classify an HTTP error response."""
        status_code = response.status_code

        try:
            error = response.json().get("error", {})
            if isinstance(error, str):
                detail, error_code = error, None
            else:
                detail = error.get("message") or f"HTTP {status_code}"
                error_code = error.get("code") or error.get("type")
        except (ValueError, AttributeError):
            detail = response.text or f"HTTP {status_code}"
            error_code = None

        if status_code == 401:
            reason = FailureReason.AUTHENTICATION
        elif status_code == 404:
            reason = FailureReason.MODEL_NOT_FOUND
            detail = f"Model '{self.config.model}' not found: {detail}"
        elif status_code == 429:
            retry_after = response.headers.get("Retry-After")
            return self._error(
                detail,
                FailureReason.RATE_LIMIT,
                status_code=status_code,
                retry_after=float(retry_after) if retry_after else None,
            )
        elif error_code in CONTENT_POLICY_CODES:
            reason = FailureReason.CONTENT_POLICY
        elif error_code == "context_length_exceeded" or "context length" in detail.lower():
            reason = FailureReason.CONTEXT_LENGTH
        else:
            reason = FailureReason.BAD_RESPONSE

        return self._error(detail, reason, status_code=status_code)

    async def complete(
        self,
        prompt: str | list[Message],
        *,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Generate a complete response from the LLM.

        Args:
            prompt: The input prompt (string or list of messages)
            system_prompt: Optional system prompt to override config default
            **kwargs: Additional generation parameters

        Returns:
            LLMResponse with the generated text

        Raises:
            LLMError: With ``reason`` set to the kind of failure
        """
        client = await self._get_client()
        messages = self._prepare_messages(prompt, system_prompt)
        params = self._merge_generation_params(**kwargs)

        request_body = {
            "messages": messages,
            "stream": False,
            **params,
        }

        logger.debug(f"Sending completion request to {self.config.base_url}/chat/completions")

        try:
            response = await client.post(
                "/chat/completions",
                json=request_body,
            )
        except httpx.TimeoutException as e:
            raise self._error(
                f"Request timed out after {self.config.timeout}s: {e}",
                FailureReason.TIMEOUT,
            )
        except httpx.HTTPError as e:
            raise self._error(
                f"Failed to reach {self.config.base_url}: {e}",
                FailureReason.CONNECTION,
            )

        if not response.is_success:
            raise self._error_from_response(response)

        try:
            data = response.json()
            choice = data["choices"][0]
            finish_reason = choice.get("finish_reason")
            content = choice["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
            raise self._error(
                f"Malformed completion response: {e}",
                FailureReason.BAD_RESPONSE,
                status_code=response.status_code,
            )

        if finish_reason == "content_filter":
            raise self._error(
                "Completion was stopped by the content filter",
                FailureReason.CONTENT_POLICY,
            )

        return LLMResponse(
            content=content,
            model=data.get("model", self.config.model),
            finish_reason=finish_reason,
            usage=data.get("usage"),
            raw_response=data,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
