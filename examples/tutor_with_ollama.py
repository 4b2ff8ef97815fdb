"""
Example: A short tutoring session with Ollama (Local LLM)

Asks a direct problem, then requests a re-explanation, a practice
problem and a hint for it. Any OpenAI-compatible server works; for
image questions use a vision model such as llava.

    ollama pull llama3.2
    python examples/tutor_with_ollama.py
"""

import asyncio

from kora_tutor.llm import LLMConfig, ProviderType, get_provider
from kora_tutor.tutor import (
    CompletionAdapter,
    Conversation,
    InMemoryInteractionLog,
    Submission,
    TutorConfig,
    TutoringController,
)


async def main(model: str = "llama3.2"):
    config = LLMConfig(
        provider=ProviderType.OLLAMA,
        model=model,
        base_url="http://localhost:11434/v1",
    )
    interaction_log = InMemoryInteractionLog()
    controller = TutoringController(
        config=TutorConfig.from_dict({"personality": {"language": "French"}}),
        adapter=CompletionAdapter(get_provider(config)),
        interaction_log=interaction_log,
    )

    conversation = Conversation()
    steps = [
        Submission.ask("Résoudre 3x + 8 = 9"),
        Submission.reexplain(),
        Submission.challenge(),
        Submission.hint(),
    ]

    try:
        for submission in steps:
            reply = await controller.intake(conversation, submission)
            print(f"\n=== {submission.kind.value} ===")
            print(reply.content)
            if reply.degraded:
                print("(fallback reply: is Ollama running?)")
            if reply.violation is not None:
                print(f"(reply reuses {', '.join(reply.violation.reused_literals)} from the question)")
    finally:
        await controller.close()

    print(f"\nRecorded {len(interaction_log)} interactions, {len(conversation)} turns.")


if __name__ == "__main__":
    asyncio.run(main())
