"""
Kora application settings.

This module provides deployment settings for the Kora server and CLI:
LLM provider, speech-to-text, HTTP server and file locations. Settings are
read from a YAML/JSON file and from ``KORA_``-prefixed environment variables
(nested fields use ``__``, e.g. ``KORA_LLM__MODEL=gpt-4o-mini``).

Tutoring behavior (personality, modes, limits) lives in TutorConfig and is
loaded from ``tutor_config_path``.
"""

import json
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kora_tutor.llm import LLMConfig, ProviderType
from kora_tutor.tutor.config import TutorConfig


class LLMSettings(BaseModel):
    """
    LLM provider settings.

    SECURITY: API keys are protected and will not be exposed in
    string representations, logging, or serialization by default.

    Example:
        ```python
        settings = LLMSettings(
            provider="lmstudio",
            model="qwen2.5-vl-7b",
            base_url="http://localhost:1234/v1",
        )
        ```
    """

    model_config = {"extra": "forbid"}

    provider: ProviderType = Field(
        default=ProviderType.OPENAI,
        description="LLM provider type (openai, ollama, lmstudio, dummy)",
    )
    model: str = Field(
        default="gpt-4o",
        description="Model name to use (must accept images for image analysis)",
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL for API (for local providers)",
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key (if required)",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )

    def get_api_key(self) -> Optional[str]:
        """Get the API key as a plain string. Internal use only."""
        if self.api_key:
            return self.api_key.get_secret_value()
        return None

    def to_llm_config(self) -> LLMConfig:
        """Build the provider configuration."""
        data = {
            "provider": self.provider,
            "model": self.model,
            "api_key": self.api_key,
            "timeout": self.timeout,
        }
        if self.base_url:
            data["base_url"] = self.base_url
        return LLMConfig(**data)

    def __repr__(self) -> str:
        """Safe representation that hides API key."""
        api_key_str = "'***'" if self.api_key else "None"
        return (
            f"LLMSettings(provider={self.provider.value!r}, model={self.model!r}, "
            f"api_key={api_key_str})"
        )


class SpeechSettings(BaseModel):
    """
    Speech-to-text settings.

    Uses the OpenAI-compatible ``/audio/transcriptions`` endpoint. When
    ``base_url`` or ``api_key`` are not set, the LLM settings are reused.
    """

    model_config = {"extra": "forbid"}

    enabled: bool = Field(
        default=True,
        description="Expose the transcription endpoint",
    )
    model: str = Field(
        default="whisper-1",
        description="Transcription model",
    )
    language: str = Field(
        default="fr",
        description="Default spoken language (ISO-639-1)",
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the transcription API",
    )
    api_key: Optional[SecretStr] = Field(
        default=None,
        description="API key for the transcription API",
    )
    timeout: float = Field(
        default=60.0,
        gt=0,
        description="Request timeout in seconds",
    )

    def __repr__(self) -> str:
        api_key_str = "'***'" if self.api_key else "None"
        return f"SpeechSettings(model={self.model!r}, language={self.language!r}, api_key={api_key_str})"


class ServerSettings(BaseModel):
    """HTTP server settings."""

    model_config = {"extra": "forbid"}

    host: str = Field(
        default="127.0.0.1",
        description="Bind address",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Bind port",
    )
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins (empty = CORS disabled)",
    )


class KoraSettings(BaseSettings):
    """
    Complete Kora deployment settings.

    SECURITY: String representations mask all secrets.

    Example:
        ```python
        # Environment only
        settings = KoraSettings()

        # File, with environment overrides for missing values
        settings = KoraSettings.from_file("~/.kora/settings.yaml")

        provider = get_provider(settings.llm.to_llm_config())
        tutor_config = settings.load_tutor_config()
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix="KORA_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    llm: LLMSettings = Field(
        default_factory=LLMSettings,
        description="LLM provider settings",
    )
    speech: SpeechSettings = Field(
        default_factory=SpeechSettings,
        description="Speech-to-text settings",
    )
    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="HTTP server settings",
    )
    tutor_config_path: Optional[Path] = Field(
        default=None,
        description="Path to the tutor configuration file (YAML/JSON)",
    )
    interaction_log_path: Optional[Path] = Field(
        default=None,
        description="JSON-lines file for recorded interactions (None = in memory)",
    )

    @field_validator("tutor_config_path", "interaction_log_path")
    @classmethod
    def expand_path(cls, v: Optional[Path]) -> Optional[Path]:
        return Path(v).expanduser() if v else None

    def load_tutor_config(self) -> TutorConfig:
        """Load the tutor configuration, or defaults if no path is set."""
        if self.tutor_config_path is None:
            return TutorConfig()
        return TutorConfig.from_file(self.tutor_config_path)

    def __repr__(self) -> str:
        """Safe representation that hides all credentials."""
        return (
            f"KoraSettings(llm={self.llm!r}, speech={self.speech!r}, "
            f"server={self.server.host}:{self.server.port})"
        )

    def __str__(self) -> str:
        return repr(self)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "KoraSettings":
        """
        Load settings from a YAML or JSON file.

        File format (YAML):
            ```yaml
            llm:
              provider: openai
              model: gpt-4o
              api_key: sk-...

            speech:
              language: fr

            server:
              host: 0.0.0.0
              port: 8000

            tutor_config_path: ~/.kora/tutor.yaml
            interaction_log_path: ~/.kora/interactions.jsonl
            ```

        Raises:
            FileNotFoundError: If the settings file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        return cls(**(data or {}))
