"""
Completion adapter for the tutoring controller.

Wraps an LLM provider behind the two calls the tutor needs:

- complete(system_directives, history, new_input) -> str
- complete_structured(system_directives, new_input, model) -> model instance

All provider exceptions are translated into ProviderUnavailable or
ProviderRejected here, so no other module has to know about the LLM layer.
"""

import json
import logging
from typing import Iterable, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from kora_tutor.llm import LLMError, LLMProvider, Message
from kora_tutor.tutor.errors import (
    ProviderRejected,
    ProviderResponseInvalid,
    ProviderUnavailable,
)
from kora_tutor.tutor.types import ConversationTurn, InstructionContract, ProviderInput, TurnRole

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


def extract_json_object(text: str) -> str:
    """Extract the outermost JSON object from text that may contain other content."""
    start = text.find("{")
    end = text.rfind("}") + 1

    if start == -1 or end == 0:
        raise ValueError("No JSON object found in response")

    return text[start:end]


class CompletionAdapter:
    """
    Adapts an LLMProvider to the interface expected by the tutor.

    The tutor works with conversation turns and plain strings, while
    LLMProvider works with Message lists and LLMResponse objects.
    """

    def __init__(self, provider: LLMProvider) -> None:
        """
        Initialize the adapter.

        Args:
            provider: LLMProvider instance (text and, for images, vision capable)
        """
        self._provider = provider

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    def build_messages(
        self,
        history: Iterable[ConversationTurn],
        new_input: ProviderInput,
    ) -> list[Message]:
        """Convert turns plus the new input into provider messages."""
        messages: list[Message] = []
        for turn in history:
            if turn.role == TurnRole.STUDENT:
                messages.append(Message.user(turn.text))
            else:
                messages.append(Message.assistant(turn.text))

        images = [new_input.image_ref.uri] if new_input.image_ref else None
        messages.append(Message.user(new_input.text, images=images))
        return messages

    async def complete(
        self,
        system_directives: str,
        history: Iterable[ConversationTurn],
        new_input: ProviderInput,
        *,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Generate a completion and return just the content string.

        Raises:
            ProviderUnavailable: On transport errors or empty completions
            ProviderRejected: On content-policy rejection
        """
        messages = self.build_messages(history, new_input)

        try:
            response = await self._provider.complete(
                messages,
                system_prompt=system_directives,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except LLMError as e:
            details = {"reason": e.reason.value}
            if e.rejected:
                raise ProviderRejected(str(e), cause=e, details=details)
            raise ProviderUnavailable(str(e), cause=e, details=details)

        content = (response.content or "").strip()
        if not content:
            raise ProviderUnavailable(
                "Provider returned an empty completion",
                details={"finish_reason": response.finish_reason},
            )
        return content

    async def complete_contract(self, contract: InstructionContract) -> str:
        """Run a completion for a fully built instruction contract."""
        return await self.complete(
            contract.system_directives,
            contract.history,
            contract.new_input,
            max_tokens=contract.max_tokens,
            temperature=contract.temperature,
        )

    async def complete_structured(
        self,
        system_directives: str,
        new_input: ProviderInput,
        model: type[T],
        *,
        max_tokens: int = 300,
    ) -> T:
        """
        Generate a completion and parse it into ``model``.

        The response may wrap the JSON object in prose or code fences.

        Raises:
            ProviderUnavailable / ProviderRejected: As for complete()
            ProviderResponseInvalid: If the response cannot be parsed
        """
        text = await self.complete(
            system_directives,
            (),
            new_input,
            max_tokens=max_tokens,
            temperature=0.0,
        )

        try:
            data = json.loads(extract_json_object(text))
            return model.model_validate(data)
        except (json.JSONDecodeError, ValidationError, ValueError) as e:
            logger.debug(f"Unparsable structured response: {text[:200]!r}")
            raise ProviderResponseInvalid(
                f"Failed to parse {model.__name__}: {e}",
                cause=e,
            )

    async def close(self) -> None:
        """Close the underlying LLM provider."""
        await self._provider.close()
