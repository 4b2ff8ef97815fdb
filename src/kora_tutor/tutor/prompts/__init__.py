"""
Prompt templates for the tutor.

Templates use Python string formatting with named placeholders:
- {tutor_name}: Name of the tutor
- {personality_prompt}: Rendered personality prompt
- {language}: Reply language
- {grade_level}: Assumed student level
- {challenge_content}: Active challenge text (hint mode)
- {subject} / {content_type}: Image classification (image mode)
- {query}: Student note attached to an image
"""

from kora_tutor.tutor.prompts.templates import (
    BASE_SYSTEM_PROMPT,
    CHALLENGE_SHAPE_DIRECTIVE,
    FOLLOW_UP_INPUTS,
    IMAGE_ANALYSIS_PROMPTS,
    IMAGE_CLASSIFICATION_PROMPT,
    MODE_PROMPTS,
    NON_SOLVING_DIRECTIVE,
    PERSONALITY_PROMPTS,
    SINGLE_HINT_DIRECTIVE,
)

__all__ = [
    "BASE_SYSTEM_PROMPT",
    "CHALLENGE_SHAPE_DIRECTIVE",
    "FOLLOW_UP_INPUTS",
    "IMAGE_ANALYSIS_PROMPTS",
    "IMAGE_CLASSIFICATION_PROMPT",
    "MODE_PROMPTS",
    "NON_SOLVING_DIRECTIVE",
    "PERSONALITY_PROMPTS",
    "SINGLE_HINT_DIRECTIVE",
]
