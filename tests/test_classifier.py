"""Tests for the content classifier."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from kora_tutor.tutor import (
    ClassifierConfig,
    ContentClassifier,
    ImageContentType,
    ImageRef,
    ProviderResponseInvalid,
    ProviderUnavailable,
    Submission,
    SubjectDomain,
)
from kora_tutor.tutor.classifier import ImageClassificationResult, fold_text
from kora_tutor.tutor.classifier.rules import declared_domain, match_domain


class TestFoldText:
    """Tests for accent folding."""

    def test_strips_accents_and_case(self):
        assert fold_text("Résoudre l'Équation") == "resoudre l'equation"

    def test_plain_text_unchanged(self):
        assert fold_text("solve") == "solve"


class TestTextClassification:
    """Rule-based text classification."""

    @pytest.fixture
    def classifier(self):
        return ContentClassifier()

    @pytest.mark.parametrize(
        "text,domain",
        [
            ("Résoudre 3x + 8 = 9", SubjectDomain.MATH),
            ("How do I compute the derivative of x^2?", SubjectDomain.MATH),
            ("Explique le théorème de Pythagore", SubjectDomain.MATH),
            ("What is photosynthesis?", SubjectDomain.SCIENCE),
            ("Comment fonctionne une cellule ?", SubjectDomain.SCIENCE),
            ("How do I conjugate verbs in the passé composé?", SubjectDomain.LANGUAGE),
            ("Quelles sont les causes de la Révolution française ?", SubjectDomain.HISTORY),
            ("Explain the causes of the First World War", SubjectDomain.HISTORY),
            ("Hello, how are you?", SubjectDomain.GENERAL),
        ],
    )
    def test_subject_domain(self, classifier, text, domain):
        assert classifier.classify_text(text).subject_domain == domain

    def test_word_boundaries(self, classifier):
        """Stems do not match inside unrelated words."""
        assert classifier.classify_text("Je révise l'anglais").subject_domain == SubjectDomain.GENERAL
        assert classifier.classify_text("Tell me about software").subject_domain == SubjectDomain.GENERAL

    @pytest.mark.parametrize(
        "text",
        [
            "Résoudre 3x + 8 = 9",
            "Solve 2x - 5 = 11",
            "Calculate the area of a circle of radius 4",
            "Peux-tu trouver la valeur de x ?",
            "Can you do my homework on fractions?",
            "J'ai un exercice sur les vecteurs",
        ],
    )
    def test_direct_problem(self, classifier, text):
        assert classifier.classify_text(text).is_direct_problem_request is True

    @pytest.mark.parametrize(
        "text",
        [
            "What is photosynthesis?",
            "Why does the method for solving equations work?",
            "Explain what a derivative is",
        ],
    )
    def test_concept_question(self, classifier, text):
        assert classifier.classify_text(text).is_direct_problem_request is False

    def test_idempotent(self, classifier):
        """Classifying the same text twice gives the same result."""
        text = "Résoudre 3x + 8 = 9"
        first = classifier.classify_text(text)
        second = classifier.classify_text(text)
        assert first.subject_domain == second.subject_domain
        assert first.is_direct_problem_request == second.is_direct_problem_request

    def test_empty_text(self, classifier):
        result = classifier.classify_text("")
        assert result.subject_domain == SubjectDomain.GENERAL
        assert result.is_direct_problem_request is False

    @pytest.mark.asyncio
    async def test_subject_text_overrides_payload(self, classifier):
        """Follow-up submissions are classified on the original question."""
        result = await classifier.classify(Submission.reexplain(), subject_text="Solve 2x = 8")
        assert result.subject_domain == SubjectDomain.MATH
        assert result.is_direct_problem_request is True


class TestRuleTables:
    """Tests for the rule helpers."""

    def test_first_rule_wins(self):
        # Equation shape is checked before the science vocabulary
        assert match_domain(fold_text("force: 3x + 2 = 11")) == SubjectDomain.MATH

    @pytest.mark.parametrize(
        "subject,domain",
        [
            ("Maths", SubjectDomain.MATH),
            ("Physique", SubjectDomain.SCIENCE),
            ("Français", SubjectDomain.LANGUAGE),
            ("histoire", SubjectDomain.HISTORY),
        ],
    )
    def test_declared_domain(self, subject, domain):
        assert declared_domain(subject) == domain

    @pytest.mark.parametrize("subject", [None, "", "general", "music"])
    def test_declared_domain_unknown(self, subject):
        assert declared_domain(subject) is None


class TestImageClassificationResult:
    """Tests for the structured vision answer."""

    def test_known_values(self):
        result = ImageClassificationResult.model_validate(
            {"subject_domain": "Science", "content_type": "diagram"}
        )
        assert result.subject_domain == SubjectDomain.SCIENCE
        assert result.content_type == ImageContentType.DIAGRAM

    def test_unknown_values_coerced(self):
        result = ImageClassificationResult.model_validate(
            {"subject_domain": "astrology", "content_type": None}
        )
        assert result.subject_domain == SubjectDomain.GENERAL
        assert result.content_type == ImageContentType.UNKNOWN


class TestImageClassification:
    """Image submissions with a mocked vision query."""

    @pytest.fixture
    def image(self):
        return ImageRef.from_bytes(b"fake image", "image/jpeg")

    def make_adapter(self, **kwargs):
        adapter = MagicMock()
        adapter.complete_structured = AsyncMock(**kwargs)
        return adapter

    @pytest.mark.asyncio
    async def test_vision_result_used(self, image):
        adapter = self.make_adapter(
            return_value=ImageClassificationResult(subject_domain="science", content_type="diagram")
        )
        classifier = ContentClassifier(adapter)

        result = await classifier.classify(Submission.image(image, query="What does this show?"))

        assert result.subject_domain == SubjectDomain.SCIENCE
        assert result.image_content_type == ImageContentType.DIAGRAM
        assert result.is_direct_problem_request is False
        assert not result.degraded
        adapter.complete_structured.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_general_vision_keeps_text_domain(self, image):
        adapter = self.make_adapter(
            return_value=ImageClassificationResult(subject_domain="general", content_type="text")
        )
        classifier = ContentClassifier(adapter)

        result = await classifier.classify(Submission.image(image, query="Explain this poem"))

        assert result.subject_domain == SubjectDomain.LANGUAGE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [ProviderUnavailable("down"), ProviderResponseInvalid("not json")],
    )
    async def test_vision_failure_degrades(self, image, error):
        """Provider problems resolve to safe defaults."""
        classifier = ContentClassifier(self.make_adapter(side_effect=error))

        result = await classifier.classify(Submission.image(image, query="Explain this poem"))

        assert result.degraded
        assert result.subject_domain == SubjectDomain.GENERAL
        assert result.image_content_type == ImageContentType.UNKNOWN

    @pytest.mark.asyncio
    async def test_declared_subject_wins(self, image):
        adapter = self.make_adapter(
            return_value=ImageClassificationResult(subject_domain="math", content_type="problem")
        )
        classifier = ContentClassifier(adapter)

        result = await classifier.classify(Submission.image(image, subject="chimie"))

        assert result.subject_domain == SubjectDomain.SCIENCE
        assert result.is_direct_problem_request is True

    @pytest.mark.asyncio
    async def test_vision_disabled(self, image):
        adapter = self.make_adapter()
        classifier = ContentClassifier(adapter, ClassifierConfig(vision_enabled=False))

        result = await classifier.classify(Submission.image(image, query="Solve this"))

        assert result.image_content_type == ImageContentType.UNKNOWN
        assert result.is_direct_problem_request is True
        adapter.complete_structured.assert_not_called()
