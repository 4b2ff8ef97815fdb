"""
Dummy LLM provider for testing.

This provider returns static/configurable responses without making any
actual API calls. Useful for testing, development, and demonstrations.
"""

import asyncio
from typing import Any, Optional

from kora_tutor.llm.base import LLMProvider, LLMResponse
from kora_tutor.llm.config import DummyProviderConfig, LLMConfig, Message
from kora_tutor.llm.exceptions import FailureReason, LLMError

_FAILURES: dict[str, FailureReason] = {
    "connection": FailureReason.CONNECTION,
    "timeout": FailureReason.TIMEOUT,
    "content_filter": FailureReason.CONTENT_POLICY,
    "generic": FailureReason.UNKNOWN,
}


class DummyProvider(LLMProvider):
    """
    A dummy LLM provider for testing purposes.

    Returns queued responses first, then the static ``response_text``.
    Every call is recorded so tests can inspect what was sent.

    Example:
        ```python
        config = LLMConfig(provider=ProviderType.DUMMY)
        provider = DummyProvider(config, DummyProviderConfig(response_text="Hi!"))

        response = await provider.complete("Any prompt")
        print(response.content)  # "Hi!"
        ```
    """

    def __init__(
        self,
        config: LLMConfig,
        dummy_config: Optional[DummyProviderConfig] = None,
    ):
        """
        Initialize the dummy provider.

        Args:
            config: Base LLM configuration
            dummy_config: Dummy-specific configuration (uses defaults if not provided)
        """
        super().__init__(config)
        self.dummy_config = dummy_config or DummyProviderConfig()
        self._queue: list[str] = list(self.dummy_config.responses)
        self._call_count = 0
        self._last_prompt: Optional[str | list[Message]] = None
        self._last_kwargs: dict[str, Any] = {}
        self.calls: list[dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        """Get the number of times complete() was called."""
        return self._call_count

    @property
    def last_prompt(self) -> Optional[str | list[Message]]:
        """Get the last prompt that was passed to complete()."""
        return self._last_prompt

    @property
    def last_kwargs(self) -> dict[str, Any]:
        """Get the last kwargs that were passed to complete()."""
        return self._last_kwargs

    def reset_tracking(self) -> None:
        """Reset call tracking (useful between test cases)."""
        self._call_count = 0
        self._last_prompt = None
        self._last_kwargs = {}
        self.calls = []

    async def complete(
        self,
        prompt: str | list[Message],
        *,
        system_prompt: Optional[str] = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Return the next queued response or the static response.

        Raises:
            LLMError: If dummy_config.should_fail is True (reason chosen
                by dummy_config.failure)
        """
        self._call_count += 1
        self._last_prompt = prompt
        self._last_kwargs = {"system_prompt": system_prompt, **kwargs}
        self.calls.append({"prompt": prompt, **self._last_kwargs})

        if self.dummy_config.delay_seconds > 0:
            await asyncio.sleep(self.dummy_config.delay_seconds)

        if self.dummy_config.should_fail:
            raise LLMError(
                self.dummy_config.error_message,
                reason=_FAILURES.get(self.dummy_config.failure, FailureReason.UNKNOWN),
                provider=self.provider_name,
                model=self.model_name,
            )

        text = self._queue.pop(0) if self._queue else self.dummy_config.response_text

        return LLMResponse(
            content=text,
            model=self.config.model,
            finish_reason="stop",
            usage={
                "prompt_tokens": self._estimate_tokens(prompt),
                "completion_tokens": len(text.split()),
                "total_tokens": self._estimate_tokens(prompt) + len(text.split()),
            },
        )

    def _estimate_tokens(self, prompt: str | list[Message]) -> int:
        """Rough token estimation (words / 0.75)."""
        if isinstance(prompt, str):
            text = prompt
        else:
            text = " ".join(msg.content for msg in prompt)
        return int(len(text.split()) / 0.75)

    def set_response(self, text: str) -> None:
        """Change the static response text."""
        self.dummy_config.response_text = text

    def queue_responses(self, *texts: str) -> None:
        """Queue responses to be returned in order by the next calls."""
        self._queue.extend(texts)

    def set_should_fail(
        self,
        should_fail: bool,
        error_message: Optional[str] = None,
        failure: Optional[str] = None,
    ) -> None:
        """
        Configure whether the provider should fail.

        Args:
            should_fail: If True, all calls will raise an error
            error_message: Optional custom error message
            failure: Optional failure kind (connection, timeout, content_filter, generic)
        """
        self.dummy_config.should_fail = should_fail
        if error_message:
            self.dummy_config.error_message = error_message
        if failure:
            self.dummy_config.failure = failure
