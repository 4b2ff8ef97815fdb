"""
Provider failures.

A provider call either returns an LLMResponse or raises LLMError. The
``reason`` says why the call produced nothing usable; the tutor only
distinguishes a content-policy refusal (``rejected``) from everything else.
"""

from enum import Enum
from typing import Optional


class FailureReason(str, Enum):
    """Why a provider call failed."""

    CONNECTION = "connection"
    TIMEOUT = "timeout"
    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    MODEL_NOT_FOUND = "model_not_found"
    CONTEXT_LENGTH = "context_length"
    BAD_RESPONSE = "bad_response"
    CONTENT_POLICY = "content_policy"
    UNKNOWN = "unknown"


class LLMError(Exception):
    """A provider call that produced no usable completion."""

    def __init__(
        self,
        message: str,
        *,
        reason: FailureReason = FailureReason.UNKNOWN,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        super().__init__(message)
        self.message = message
        self.reason = reason
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.retry_after = retry_after

    @property
    def rejected(self) -> bool:
        """True when the provider refused the content rather than failing."""
        return self.reason == FailureReason.CONTENT_POLICY

    def __str__(self) -> str:
        parts = [self.message, f"reason={self.reason.value}"]
        if self.provider:
            parts.append(f"provider={self.provider}")
        if self.model:
            parts.append(f"model={self.model}")
        return " ".join(parts)
