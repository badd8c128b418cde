"""Typer CLI definition for narrate."""

import asyncio
import logging
import sys
from pathlib import Path

import typer

from .config import load_config
from .core import clear_cache, generate_audio, get_quota_status, reset_quota
from .tts.errors import (
    ArtifactNotProducedError,
    CredentialMissingError,
    ProviderError,
    TTSAuthError,
)
from .tts.timing import duration_to_frames, generate_word_timings, split_words

app = typer.Typer(help="Generate narration audio with ElevenLabs and an edge-tts fallback")


def process_text_input(text: str | None) -> str:
    """Process text input and return the text to synthesize.

    Args:
        text: Optional text input from CLI argument

    Returns:
        The text to synthesize

    Raises:
        ValueError: If no text is provided
    """
    if text is None:
        raise ValueError("No text provided")

    return text


def _configure_logging(debug: bool) -> None:
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        )


def _fail(debug: bool, summary: str, error: Exception) -> typer.Exit:
    if debug:
        typer.echo(f"Debug - {summary}: {error!r}", err=True)
    else:
        typer.echo(f"Error: {error}", err=True)
    return typer.Exit(1)


@app.command()
def generate(
    text: str | None = typer.Argument(None, help="Text to convert to speech"),
    file: Path | None = typer.Option(None, "-f", "--file", help="Read text from file"),
    output: str | None = typer.Option(
        None, "-o", "--output", help="Artifact file name inside the cache directory"
    ),
    force_regenerate: bool = typer.Option(
        False, "--force-regenerate", help="Ignore cached audio for this text"
    ),
    force_fallback: bool = typer.Option(
        False, "--force-fallback", help="Use edge-tts only, never ElevenLabs"
    ),
    no_cache: bool = typer.Option(False, "--no-cache", help="Disable the audio cache"),
    no_fallback: bool = typer.Option(
        False, "--no-fallback", help="Fail instead of falling back to edge-tts"
    ),
    timings: bool = typer.Option(
        False, "--timings", help="Print per-word subtitle frames (30 fps)"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="Alternate config file"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Show verbose error messages and provider activity"
    ),
) -> None:
    """Convert text to an audio file."""
    _configure_logging(debug)

    # Get text from argument, file, or stdin (in priority order)
    if text is None:
        if file:
            try:
                text = file.read_text()
            except FileNotFoundError as e:
                if debug:
                    typer.echo(f"Debug - File not found: {file} ({e!r})", err=True)
                else:
                    typer.echo(f"Error: File not found: {file}", err=True)
                raise typer.Exit(1) from None
            except (PermissionError, UnicodeDecodeError) as e:
                if debug:
                    typer.echo(f"Debug - Cannot read {file} ({e!r})", err=True)
                else:
                    typer.echo(f"Error: Unable to read file as text: {file}", err=True)
                raise typer.Exit(1) from None
        elif not sys.stdin.isatty():
            text = sys.stdin.read().strip()

    try:
        input_text = process_text_input(text)
    except ValueError as e:
        raise _fail(debug, "Text processing error", e) from None

    config = load_config(config_path)

    try:
        result = asyncio.run(
            generate_audio(
                input_text,
                output_name=output,
                force_regenerate=force_regenerate,
                force_fallback=force_fallback,
                cache=False if no_cache else None,
                fallback=False if no_fallback else None,
                config=config,
            )
        )
    except CredentialMissingError as e:
        raise _fail(debug, "Missing credentials", e) from None
    except TTSAuthError as e:
        raise _fail(debug, "Authentication error", e) from None
    except ProviderError as e:
        raise _fail(debug, "Provider error", e) from None
    except ArtifactNotProducedError as e:
        raise _fail(debug, "Missing artifact", e) from None
    except ValueError as e:
        raise _fail(debug, "Text processing error", e) from None
    except OSError as e:
        if debug:
            typer.echo(f"Debug - File system error: {e!r}", err=True)
        else:
            typer.echo(f"Error: Failed to write cache or quota file: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"Audio: {result.audio_path}")
    typer.echo(f"Duration: {result.duration_seconds:.2f}s")
    typer.echo(f"Provider: {result.provider} ({result.role.value})")
    typer.echo(f"From cache: {'yes' if result.from_cache else 'no'}")
    typer.echo(f"Characters used: {result.characters_used}")

    if timings:
        total_frames = duration_to_frames(result.duration_seconds)
        for timing in generate_word_timings(split_words(input_text), total_frames):
            typer.echo(f"{timing.start_frame:>6} {timing.end_frame:>6}  {timing.word}")


@app.command()
def quota(
    reset: bool = typer.Option(False, "--reset", help="Zero this month's usage"),
    config_path: Path | None = typer.Option(
        None, "--config", help="Alternate config file"
    ),
    debug: bool = typer.Option(False, "--debug", help="Show verbose messages"),
) -> None:
    """Show or reset the monthly ElevenLabs character quota."""
    _configure_logging(debug)
    config = load_config(config_path)

    try:
        if reset:
            reset_quota(config)
        status = get_quota_status(config)
    except OSError as e:
        raise _fail(debug, "File system error", e) from None

    if reset:
        typer.echo("Quota reset")

    typer.echo("=== Quota Status ===")
    typer.echo(f"Used: {status.used}/{status.limit} ({status.percent_used:.1f}%)")
    typer.echo(f"Remaining: {status.remaining}")
    typer.echo(f"Last reset: {status.last_reset.isoformat(timespec='seconds')}")
    if status.exceeded:
        typer.echo("✗ Quota exceeded - requests use the fallback provider")
    elif status.near_limit:
        typer.echo("! Near the monthly limit")


@app.command("clear-cache")
def clear_cache_command(
    config_path: Path | None = typer.Option(
        None, "--config", help="Alternate config file"
    ),
    debug: bool = typer.Option(False, "--debug", help="Show verbose messages"),
) -> None:
    """Delete all cached audio and empty the cache index."""
    _configure_logging(debug)
    config = load_config(config_path)

    try:
        removed = clear_cache(config)
    except OSError as e:
        raise _fail(debug, "File system error", e) from None

    typer.echo(f"Removed {removed} cached entries")
