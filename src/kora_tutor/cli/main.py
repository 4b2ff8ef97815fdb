"""
CLI for kora-tutor.

Run the API server, or talk to the tutor directly from the terminal.
"""

import asyncio
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from kora_tutor import __version__
from kora_tutor.llm import ProviderType, get_provider, list_providers
from kora_tutor.settings import KoraSettings
from kora_tutor.speech import TranscriptionError, WhisperTranscriber
from kora_tutor.tutor import (
    CompletionAdapter,
    ContentClassifier,
    Conversation,
    InMemoryInteractionLog,
    JsonlInteractionLog,
    MissingContextError,
    Submission,
    TutorConfig,
    TutoringController,
    TutorReply,
)
from kora_tutor.tutor.types import ImageAnalysisMode, ImageRef, TurnRole

# Load environment variables
load_dotenv()

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Setup rich logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    # Reduce noise from httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_default_base_url(provider: str) -> str:
    """Get default base URL for a provider."""
    defaults = {
        "lmstudio": "http://localhost:1234/v1",
        "ollama": "http://localhost:11434/v1",
        "openai": "https://api.openai.com/v1",
        "dummy": "",
    }
    return defaults.get(provider, "https://api.openai.com/v1")


def load_settings(
    settings_path: Optional[str],
    provider: Optional[str] = None,
    model: Optional[str] = None,
    base_url: Optional[str] = None,
) -> KoraSettings:
    """Load settings from file or environment and apply command-line overrides."""
    settings = KoraSettings.from_file(settings_path) if settings_path else KoraSettings()

    overrides = {}
    if provider:
        overrides["provider"] = ProviderType(provider)
        if base_url is None and provider != "openai":
            overrides["base_url"] = get_default_base_url(provider)
    if model:
        overrides["model"] = model
    if base_url:
        overrides["base_url"] = base_url

    if overrides:
        settings.llm = settings.llm.model_copy(update=overrides)
    return settings


def build_controller(settings: KoraSettings) -> TutoringController:
    """Build a controller for terminal use."""
    adapter = CompletionAdapter(get_provider(settings.llm.to_llm_config()))
    if settings.interaction_log_path:
        interaction_log = JsonlInteractionLog(settings.interaction_log_path)
    else:
        interaction_log = InMemoryInteractionLog()
    return TutoringController(
        config=settings.load_tutor_config(),
        adapter=adapter,
        interaction_log=interaction_log,
    )


def print_reply(reply: TutorReply, name: str = "Kora") -> None:
    style = "yellow" if reply.degraded else "green"
    console.print(f"\n[bold {style}]{name}[/bold {style}]")
    console.print(Markdown(reply.content))

    details = [reply.classification.subject_domain.value]
    if reply.classification.is_direct_problem_request:
        details.append("problem")
    if reply.challenge_id:
        details.append(reply.challenge_id)
    if reply.violation is not None:
        details.append(f"reused: {', '.join(reply.violation.reused_literals)}")
    console.print(f"[dim]{reply.mode.value} · {' · '.join(details)}[/dim]")


def llm_options(func):
    """Common LLM/settings options."""
    func = click.option(
        "--base-url", "-u", default=None, help="API base URL (defaults based on provider)"
    )(func)
    func = click.option("--model", "-m", default=None, help="Model name/identifier")(func)
    func = click.option(
        "--provider", "-p", type=click.Choice(list_providers()), default=None, help="LLM provider to use"
    )(func)
    func = click.option(
        "--settings",
        "-c",
        "settings_path",
        type=click.Path(exists=True),
        default=None,
        help="Path to settings file (YAML/JSON)",
    )(func)
    return func


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Kora Tutor CLI - a Socratic AI tutor."""
    setup_logging(verbose)


@cli.command()
@llm_options
@click.option("--host", default=None, help="Bind address")
@click.option("--port", type=int, default=None, help="Bind port")
def serve(
    settings_path: Optional[str],
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
    host: Optional[str],
    port: Optional[int],
):
    """
    Run the HTTP/WebSocket API server.

    Examples:

        kora-tutor serve

        kora-tutor serve -c ~/.kora/settings.yaml --port 9000

        kora-tutor serve -p lmstudio -m qwen2.5-vl-7b
    """
    import uvicorn

    from kora_tutor.api import create_app_from_settings

    try:
        settings = load_settings(settings_path, provider, model, base_url)
        app = create_app_from_settings(settings)
    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    console.print(
        Panel(
            f"[bold cyan]Kora Tutor API[/bold cyan]\n\n"
            f"Provider: [green]{settings.llm.provider.value}[/green]\n"
            f"Model: [green]{settings.llm.model}[/green]\n"
            f"Listening: [green]{host or settings.server.host}:{port or settings.server.port}[/green]",
            title="Server",
        )
    )

    uvicorn.run(
        app,
        host=host or settings.server.host,
        port=port or settings.server.port,
        log_config=None,
    )


@cli.command()
@click.argument("question")
@llm_options
def ask(
    question: str,
    settings_path: Optional[str],
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
):
    """
    Ask a single question.

    Examples:

        kora-tutor ask "Résoudre 3x + 8 = 9"

        kora-tutor ask -p ollama -m llama3.2 "What is photosynthesis?"
    """
    settings = load_settings(settings_path, provider, model, base_url)
    asyncio.run(_single_question(settings, question))


async def _single_question(settings: KoraSettings, question: str):
    controller = build_controller(settings)
    try:
        reply = await controller.intake(Conversation(), Submission.ask(question))
        print_reply(reply, controller.config.personality.name)
    except MissingContextError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)
    finally:
        await controller.close()


@cli.command()
@llm_options
def session(
    settings_path: Optional[str],
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
):
    """
    Interactive tutoring session.

    Type a question, or use /reexplain, /challenge, /hint, /image <path> [question],
    /history. Type 'exit' or 'quit' to end the session.
    """
    settings = load_settings(settings_path, provider, model, base_url)
    controller = build_controller(settings)

    console.print(
        Panel(
            f"[bold cyan]{controller.config.messages.welcome}[/bold cyan]\n\n"
            f"Provider: [green]{settings.llm.provider.value}[/green]\n"
            f"Model: [green]{settings.llm.model}[/green]\n\n"
            f"Type [yellow]/help[/yellow] for commands, [yellow]exit[/yellow] to quit.",
            title=controller.config.personality.name,
        )
    )

    asyncio.run(_session_loop(controller))


async def _session_loop(controller: TutoringController):
    """Main session loop."""
    conversation = Conversation()
    name = controller.config.personality.name

    try:
        while True:
            try:
                user_input = Prompt.ask("\n[bold blue]You[/bold blue]").strip()

                if not user_input:
                    continue

                command, _, argument = user_input.partition(" ")
                command = command.lower()

                if command in ("exit", "quit", "/exit", "/quit"):
                    console.print("[yellow]Goodbye![/yellow]")
                    break

                if command in ("/help", "help"):
                    _show_help()
                    continue

                if command == "/history":
                    _show_history(conversation)
                    continue

                submission = _parse_submission(command, argument, user_input)
                if submission is None:
                    continue

                with console.status(f"{name} is thinking..."):
                    reply = await controller.intake(conversation, submission)
                print_reply(reply, name)

            except MissingContextError:
                console.print(f"[yellow]{controller.config.messages.missing_context}[/yellow]")
            except KeyboardInterrupt:
                console.print("\n[yellow]Interrupted. Type 'exit' to quit.[/yellow]")
                continue
    finally:
        await controller.close()


def _parse_submission(command: str, argument: str, raw: str) -> Optional[Submission]:
    if command == "/reexplain":
        return Submission.reexplain()
    if command == "/challenge":
        return Submission.challenge()
    if command == "/hint":
        return Submission.hint(text=argument.strip())
    if command == "/image":
        path_str, _, query = argument.strip().partition(" ")
        path = Path(path_str).expanduser()
        if not path_str or not path.is_file():
            console.print(f"[bold red]Error:[/bold red] Image not found: {path_str or '(none)'}")
            return None
        media_type = mimetypes.guess_type(path.name)[0] or "image/png"
        return Submission.image(
            ImageRef.from_bytes(path.read_bytes(), media_type),
            query=query.strip(),
            analysis_mode=ImageAnalysisMode.STANDARD,
        )
    if command.startswith("/"):
        console.print(f"[yellow]Unknown command {command}. Type /help.[/yellow]")
        return None
    return Submission.ask(raw)


def _show_history(conversation: Conversation):
    if not conversation.turns:
        console.print("[dim]No messages yet.[/dim]")
        return
    for turn in conversation.turns:
        who = "[bold blue]You[/bold blue]" if turn.role == TurnRole.STUDENT else "[bold green]Kora[/bold green]"
        preview = turn.text if len(turn.text) <= 120 else turn.text[:117] + "..."
        console.print(f"{who}: {preview}")


def _show_help():
    """Show help text."""
    help_text = """
[bold]Commands:[/bold]
  [yellow]/reexplain[/yellow]              Explain the last answer differently
  [yellow]/challenge[/yellow]              Get a harder practice problem
  [yellow]/hint[/yellow] [text]            Get a hint for the current challenge
  [yellow]/image[/yellow] <path> [text]    Ask about an image
  [yellow]/history[/yellow]                Show the conversation
  [yellow]/help[/yellow]                   Show this help
  [yellow]exit[/yellow], [yellow]quit[/yellow]              End session
"""
    console.print(Panel(help_text, title="Help"))


@cli.command()
@click.argument("text")
def classify(text: str):
    """
    Classify a question without calling the model.

    Example:

        kora-tutor classify "Résoudre 3x + 8 = 9"
    """
    classification = ContentClassifier().classify_text(text)

    table = Table(show_header=False)
    table.add_row("Subject", f"[green]{classification.subject_domain.value}[/green]")
    table.add_row("Direct problem", "[yellow]yes[/yellow]" if classification.is_direct_problem_request else "no")
    console.print(table)


@cli.command()
@click.argument("audio_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--language", "-l", default=None, help="Spoken language (default from settings: fr)")
@click.option(
    "--settings", "-c", "settings_path", type=click.Path(exists=True), default=None,
    help="Path to settings file (YAML/JSON)",
)
def transcribe(audio_file: str, language: Optional[str], settings_path: Optional[str]):
    """Transcribe a recorded question."""
    settings = load_settings(settings_path)
    asyncio.run(_transcribe(settings, Path(audio_file), language))


async def _transcribe(settings: KoraSettings, path: Path, language: Optional[str]):
    speech = settings.speech
    llm_config = settings.llm.to_llm_config()
    transcriber = WhisperTranscriber(
        base_url=speech.base_url or llm_config.base_url,
        api_key=speech.api_key.get_secret_value() if speech.api_key else settings.llm.get_api_key(),
        model=speech.model,
        default_language=speech.language,
        timeout=speech.timeout,
    )
    async with transcriber:
        try:
            result = await transcriber.transcribe(
                path.read_bytes(),
                language,
                filename=path.name,
                content_type=mimetypes.guess_type(path.name)[0] or "audio/webm",
            )
        except TranscriptionError as e:
            console.print(f"[bold red]Transcription failed:[/bold red] {e}")
            sys.exit(1)

    console.print(f"[dim]({result.language})[/dim] {result.text}")


@cli.command("init-config")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--format", "fmt", type=click.Choice(["yaml", "json"]), default="yaml", help="Output format")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init_config(path: str, fmt: str, force: bool):
    """Write the default tutor configuration to PATH."""
    target = Path(path).expanduser()
    if target.exists() and not force:
        console.print(f"[bold red]Error:[/bold red] {target} exists (use --force to overwrite)")
        sys.exit(1)

    TutorConfig().save(target, format=fmt)
    console.print(f"[green]Wrote default tutor configuration to {target}[/green]")


@cli.command()
def providers():
    """List available LLM providers."""
    console.print("[bold]Available Providers:[/bold]")
    for p in list_providers():
        default_url = get_default_base_url(p)
        console.print(f"  • [green]{p}[/green] - {default_url}")


def main():
    """Entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
