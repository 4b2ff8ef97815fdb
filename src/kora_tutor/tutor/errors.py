"""
Tutor-level exceptions.

Provider faults are recovered inside the controller; context errors are
surfaced to the caller; classification problems never leave the classifier.
"""

from typing import Any, Optional


class TutorError(Exception):
    """Base exception for tutoring errors."""

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ProviderError(TutorError):
    """Base class for completion provider faults."""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.cause = cause


class ProviderUnavailable(ProviderError):
    """The completion provider could not be reached or failed to answer."""

    pass


class ProviderRejected(ProviderError):
    """The completion provider refused the request on content-policy grounds."""

    pass


class ProviderResponseInvalid(ProviderError):
    """A structured completion could not be parsed into the expected shape."""

    pass


class MissingContextError(TutorError):
    """
    A reexplain/challenge/image request has nothing to act on.

    This is a caller bug, not a transient fault; it is never retried.
    """

    pass


class NoActiveChallenge(TutorError):
    """A hint was requested but no challenge has been issued."""

    pass


class ClassificationDegraded(TutorError):
    """Classification failed; safe defaults are used instead."""

    pass


class UsageLimitExceeded(TutorError):
    """The client identity has no remaining usage."""

    def __init__(self, message: str, *, identity: str, limit: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.identity = identity
        self.limit = limit
