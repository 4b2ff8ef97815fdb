"""
Configuration for the tutoring controller.

This module defines all configuration options for the tutor,
including personality, context window, per-mode settings, usage limits,
upload limits and the fixed messages used for degraded replies.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from kora_tutor.tutor.types import SubmissionKind


class PersonalityTone(str, Enum):
    """Predefined personality tones for the tutor."""

    ENCOURAGING = "encouraging"
    FRIENDLY_PROFESSIONAL = "friendly_professional"
    CASUAL = "casual"


class PersonalityConfig(BaseModel):
    """
    Personality configuration for the tutor.

    Defines how the tutor presents itself and communicates.
    """

    name: str = Field(
        default="Kora",
        description="Display name of the tutor",
    )
    tone: PersonalityTone = Field(
        default=PersonalityTone.ENCOURAGING,
        description="Communication tone",
    )
    language: str = Field(
        default="the student's language",
        description="Language to answer in (e.g. 'French'); default mirrors the student",
    )
    grade_level: str = Field(
        default="high school",
        description="Assumed level when the student does not state one",
    )
    custom_system_prompt_suffix: Optional[str] = Field(
        default=None,
        description="Custom text appended to all system prompts",
    )


class ContextConfig(BaseModel):
    """Configuration for context-window construction."""

    max_history_turns: int = Field(
        default=10,
        ge=0,
        le=50,
        description="Most recent turns sent to the provider as history",
    )


class ModeConfig(BaseModel):
    """
    Configuration for an individual response mode.

    Each mode can be enabled/disabled and tuned separately.
    """

    enabled: bool = Field(
        default=True,
        description="Enable this mode",
    )
    max_response_tokens: int = Field(
        default=1000,
        ge=50,
        description="Maximum tokens in the provider response",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Sampling temperature for this mode",
    )


class ModesConfig(BaseModel):
    """Configuration for all modes."""

    ask: ModeConfig = Field(
        default_factory=ModeConfig,
        description="Fresh questions",
    )
    reexplain: ModeConfig = Field(
        default_factory=lambda: ModeConfig(temperature=0.8),
        description="Alternative explanations",
    )
    challenge: ModeConfig = Field(
        default_factory=lambda: ModeConfig(temperature=0.8, max_response_tokens=600),
        description="Practice problem generation",
    )
    hint: ModeConfig = Field(
        default_factory=lambda: ModeConfig(temperature=0.5, max_response_tokens=200),
        description="Single-clue hints for the active challenge",
    )
    image: ModeConfig = Field(
        default_factory=lambda: ModeConfig(max_response_tokens=1500),
        description="Image-grounded explanations",
    )

    def for_kind(self, kind: SubmissionKind) -> ModeConfig:
        """Get the configuration for a submission kind."""
        return getattr(self, kind.value)


class ClassifierConfig(BaseModel):
    """Configuration for the content classifier."""

    vision_enabled: bool = Field(
        default=True,
        description="Ask the vision model to classify uploaded images",
    )
    vision_max_tokens: int = Field(
        default=200,
        ge=50,
        description="Token budget of the image classification query",
    )


class UsageConfig(BaseModel):
    """Usage limits applied by the usage ledger."""

    anonymous_limit: int = Field(
        default=3,
        ge=0,
        description="Requests allowed per anonymous identity",
    )
    authenticated_limit: Optional[int] = Field(
        default=None,
        ge=0,
        description="Requests allowed per authenticated identity (None = unlimited)",
    )


class UploadConfig(BaseModel):
    """Limits for uploaded images and audio."""

    max_image_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Maximum accepted image size in bytes",
    )
    max_audio_bytes: int = Field(
        default=25 * 1024 * 1024,
        gt=0,
        description="Maximum accepted audio size in bytes",
    )
    allowed_image_prefix: str = Field(
        default="image/",
        description="Accepted image MIME type prefix",
    )


class MessagesConfig(BaseModel):
    """Fixed texts used when the tutor cannot produce a generated reply."""

    apology: str = Field(
        default=(
            "I'm sorry, I ran into a problem while preparing my explanation. "
            "Could you rephrase your question or try again in a moment?"
        ),
        description="Reply used when the provider fails",
    )
    clarifying_prompt: str = Field(
        default="Is this explanation clear, or would you like more detail on a specific part?",
        description="Appended to direct-problem replies that do not end with a question",
    )
    canned_hints: list[str] = Field(
        default_factory=lambda: [
            "Start by writing down what the problem gives you and what it asks you to find.",
            "Look back at the example from the explanation: which step there matches where you are stuck?",
            "Try the method on a simpler version of the problem first, then come back to the full one.",
            "Check which rule or formula connects the quantities you know to the one you are looking for.",
        ],
        min_length=1,
        description="Generic hints used when no specific hint can be generated",
    )
    missing_context: str = Field(
        default=(
            "I couldn't find the question you want me to work on. "
            "Could you ask it again so I can help?"
        ),
        description="Reply text for requests without a prior question",
    )
    welcome: str = Field(
        default="Hello! I'm Kora, your learning assistant. How can I help you today?",
        description="Greeting sent when a live session opens",
    )
    transcription_failed: str = Field(
        default="Sorry, I could not transcribe your recording. Could you try again or type your question?",
        description="Reply used when speech-to-text fails",
    )
    usage_exhausted: str = Field(
        default="You have used all your free questions for now. Sign in to keep learning!",
        description="Reply used when the usage gate rejects a request",
    )


class TutorConfig(BaseModel):
    """
    Complete configuration for the tutor.

    Example YAML configuration file:
        ```yaml
        personality:
          name: "Kora"
          tone: "encouraging"
          language: "French"

        context:
          max_history_turns: 10

        modes:
          reexplain:
            temperature: 0.8
          hint:
            max_response_tokens: 150

        usage:
          anonymous_limit: 5

        messages:
          clarifying_prompt: "Est-ce clair, ou veux-tu plus de détails sur une partie ?"
        ```
    """

    personality: PersonalityConfig = Field(
        default_factory=PersonalityConfig,
        description="Personality and communication settings",
    )
    context: ContextConfig = Field(
        default_factory=ContextConfig,
        description="Context window settings",
    )
    modes: ModesConfig = Field(
        default_factory=ModesConfig,
        description="Mode-specific settings",
    )
    classifier: ClassifierConfig = Field(
        default_factory=ClassifierConfig,
        description="Content classifier settings",
    )
    usage: UsageConfig = Field(
        default_factory=UsageConfig,
        description="Usage limit settings",
    )
    upload: UploadConfig = Field(
        default_factory=UploadConfig,
        description="Upload limit settings",
    )
    messages: MessagesConfig = Field(
        default_factory=MessagesConfig,
        description="Fixed reply texts",
    )

    @field_validator("personality", mode="before")
    @classmethod
    def allow_empty_personality(cls, v):
        """Treat an empty YAML section as defaults."""
        return v if v is not None else {}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TutorConfig":
        """
        Load configuration from a YAML or JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        return cls.model_validate(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "TutorConfig":
        """Create configuration from a dictionary."""
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        """Export configuration to a dictionary."""
        return self.model_dump(mode="json")

    def save(self, path: Union[str, Path], format: str = "yaml") -> None:
        """
        Save configuration to a file.

        Args:
            path: Output file path
            format: Output format ('yaml' or 'json')
        """
        path = Path(path).expanduser().resolve()
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self.to_dict()

        if format == "yaml":
            content = yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)
        else:
            content = json.dumps(data, indent=2, ensure_ascii=False)

        path.write_text(content, encoding="utf-8")
