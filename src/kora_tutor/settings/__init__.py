"""
Settings for the Kora server and CLI.

Example:
    ```python
    from kora_tutor.settings import KoraSettings

    settings = KoraSettings.from_file("~/.kora/settings.yaml")
    print(settings.llm.model)
    ```
"""

from kora_tutor.settings.config import (
    KoraSettings,
    LLMSettings,
    ServerSettings,
    SpeechSettings,
)

__all__ = [
    "KoraSettings",
    "LLMSettings",
    "ServerSettings",
    "SpeechSettings",
]
