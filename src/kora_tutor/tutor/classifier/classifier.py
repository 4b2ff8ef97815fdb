"""
Content classifier for student submissions.

Text is classified with the declarative rule tables in ``rules``.
Image submissions additionally get one constrained vision query through
the completion adapter. Classification never fails outwards: any problem
resolves to safe defaults with ``degraded=True``.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, field_validator

from kora_tutor.tutor.classifier.rules import (
    declared_domain,
    fold_text,
    is_direct_problem,
    match_domain,
)
from kora_tutor.tutor.config import ClassifierConfig
from kora_tutor.tutor.errors import ClassificationDegraded, ProviderError
from kora_tutor.tutor.prompts.templates import IMAGE_CLASSIFICATION_PROMPT
from kora_tutor.tutor.types import (
    Classification,
    ImageContentType,
    ProviderInput,
    Submission,
    SubmissionKind,
    SubjectDomain,
)

if TYPE_CHECKING:
    from kora_tutor.tutor.completion import CompletionAdapter

logger = logging.getLogger(__name__)


class ImageClassificationResult(BaseModel):
    """Structured answer of the vision classification query."""

    subject_domain: SubjectDomain = SubjectDomain.GENERAL
    content_type: ImageContentType = ImageContentType.UNKNOWN

    @field_validator("subject_domain", mode="before")
    @classmethod
    def coerce_domain(cls, v: Any) -> Any:
        value = str(v or "").strip().lower()
        if value in {d.value for d in SubjectDomain}:
            return value
        return SubjectDomain.GENERAL

    @field_validator("content_type", mode="before")
    @classmethod
    def coerce_content_type(cls, v: Any) -> Any:
        value = str(v or "").strip().lower()
        if value in {t.value for t in ImageContentType}:
            return value
        return ImageContentType.UNKNOWN


class ContentClassifier:
    """
    Classifies submissions by subject domain and problem-request shape.

    Usage:
        classifier = ContentClassifier(adapter=adapter)
        classification = await classifier.classify(submission)
        if classification.is_direct_problem_request:
            ...
    """

    def __init__(
        self,
        adapter: Optional["CompletionAdapter"] = None,
        config: Optional[ClassifierConfig] = None,
    ) -> None:
        """
        Initialize the classifier.

        Args:
            adapter: Completion adapter used for image classification.
                Without one, images are classified from their query text only.
            config: Classifier configuration (uses defaults if not provided)
        """
        self.adapter = adapter
        self.config = config or ClassifierConfig()

    def classify_text(self, text: str) -> Classification:
        """Classify plain text. Pure function of ``text``."""
        folded = fold_text(text or "")
        return Classification(
            subject_domain=match_domain(folded),
            is_direct_problem_request=is_direct_problem(folded),
        )

    async def classify(
        self,
        submission: Submission,
        subject_text: Optional[str] = None,
    ) -> Classification:
        """
        Classify a submission.

        Args:
            submission: The student submission
            subject_text: Text to classify instead of the payload text
                (the original question for reexplain/challenge)

        Returns:
            Classification (never raises)
        """
        if submission.kind == SubmissionKind.IMAGE:
            return await self._classify_image(submission)

        text = subject_text if subject_text is not None else submission.payload.text
        return self.classify_text(text)

    async def _classify_image(self, submission: Submission) -> Classification:
        payload = submission.payload
        query = payload.text or ""
        from_text = self.classify_text(query)

        content_type = ImageContentType.UNKNOWN
        domain = from_text.subject_domain
        degraded = False

        if self.adapter is not None and self.config.vision_enabled and payload.image_ref:
            try:
                result = await self._query_vision(submission)
                content_type = result.content_type
                if result.subject_domain != SubjectDomain.GENERAL:
                    domain = result.subject_domain
            except ClassificationDegraded as e:
                logger.warning(f"Image classification degraded: {e}")
                domain = SubjectDomain.GENERAL
                content_type = ImageContentType.UNKNOWN
                degraded = True

        declared = declared_domain(payload.subject)
        if declared is not None:
            domain = declared

        return Classification(
            subject_domain=domain,
            is_direct_problem_request=(
                content_type == ImageContentType.PROBLEM or from_text.is_direct_problem_request
            ),
            image_content_type=content_type,
            degraded=degraded,
        )

    async def _query_vision(self, submission: Submission) -> ImageClassificationResult:
        """
        Run the constrained vision query.

        Raises:
            ClassificationDegraded: If the provider fails or answers out of shape
        """
        payload = submission.payload
        prompt = IMAGE_CLASSIFICATION_PROMPT.format(query=payload.text or "(none)")
        try:
            return await self.adapter.complete_structured(
                prompt,
                ProviderInput(text="Classify this image.", image_ref=payload.image_ref),
                ImageClassificationResult,
                max_tokens=self.config.vision_max_tokens,
            )
        except ProviderError as e:
            raise ClassificationDegraded(str(e), details={"error_type": type(e).__name__})
