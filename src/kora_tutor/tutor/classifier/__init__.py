"""
Content classification for the tutor.

Determines the subject domain of a submission and whether it asks for a
specific problem to be solved.
"""

from kora_tutor.tutor.classifier.classifier import ContentClassifier, ImageClassificationResult
from kora_tutor.tutor.classifier.rules import (
    DIRECT_PROBLEM_RULES,
    DOMAIN_RULES,
    DomainRule,
    fold_text,
)

__all__ = [
    "ContentClassifier",
    "ImageClassificationResult",
    "DomainRule",
    "DOMAIN_RULES",
    "DIRECT_PROBLEM_RULES",
    "fold_text",
]
