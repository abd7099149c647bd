"""CLI interface for transcription tool."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn

from . import __version__
from .audio import discover_audio_files, check_ffmpeg, SUPPORTED_EXTENSIONS
from .backends.mlx_audio import checkpoint_repo, is_mlx_audio_available
from .backends.registry import DEFAULT_MODEL, list_models, resolve_model
from .config import DEFAULT_SEED, TEMPERATURES, DecodingOptions
from .errors import WhisperSeekError
from .formatters import FORMATTERS, EXTENSIONS, format_txt
from .log import setup_logging
from .reporting import ConsoleReporter, NullReporter
from .transcriber import Transcriber
from .types import Task, TranscriptionResult

app = typer.Typer(
    name="whisper-seek",
    help="Transcribe audio files with Whisper using greedy decoding and temperature fallback.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def parse_formats(format_str: str) -> list[str]:
    """Parse comma-separated format string into list of formats."""
    formats = []
    for part in format_str.split(","):
        fmt = part.strip().lower()
        if fmt == "all":
            return list(FORMATTERS.keys())
        if fmt and fmt in FORMATTERS:
            formats.append(fmt)
        elif fmt:
            err_console.print(f"[yellow]Warning: Unknown format '{fmt}', ignoring[/yellow]")
    return formats or ["txt"]


def version_callback(value: bool) -> None:
    if value:
        console.print(f"whisper-seek {__version__}")
        raise typer.Exit()


def list_models_callback(value: bool) -> None:
    """Print curated models and exit."""
    if value:
        console.print("[bold]Available Models:[/bold]\n")
        for model in list_models():
            multilingual = "[green]✓[/green]" if model.multilingual else "[red]✗[/red]"
            console.print(f"  [cyan]{model.name}[/cyan]")
            console.print(f"    Repository: {model.model_id}")
            if model.quantized_model_id:
                console.print(f"    Quantized: {model.quantized_model_id}")
            console.print(f"    Multilingual: {multilingual}")
            if model.aliases:
                console.print(f"    Aliases: {', '.join(model.aliases)}")
            console.print(f"    {model.description}")
            console.print()

        if not is_mlx_audio_available():
            console.print("[dim]Transcription requires mlx-audio.[/dim]")
            console.print("[dim]Install with: pip install 'whisper-seek\\[mlx-audio]'[/dim]\n")

        raise typer.Exit()


def _validate_model_options(model: str, quantized: bool, language: str | None) -> None:
    """Check registry-known constraints before loading weights.

    Raises:
        typer.BadParameter: If the model has no quantized build or no language tokens.
    """
    try:
        info = resolve_model(model)
    except ValueError:
        # Unknown model - let it pass, the loader will handle it
        return

    if quantized:
        try:
            checkpoint_repo(model, quantized=True)
        except ValueError:
            quantizable = [m.name for m in list_models() if m.quantized_model_id]
            raise typer.BadParameter(
                f"Model '{model}' has no quantized weights. "
                f"Quantized models: {', '.join(quantizable)}",
                param_hint="--quantized",
            )

    if language and not info.multilingual:
        raise typer.BadParameter(
            f"Model '{model}' is English-only and does not accept --language.",
            param_hint="--language",
        )


def _write_outputs(
    result: TranscriptionResult,
    audio_path: Path,
    formats: list[str],
    output: Path | None,
    timestamps: bool,
    verbose: bool,
) -> None:
    """Write transcription results to files in all requested formats."""
    out_dir = output or audio_path.parent

    for fmt in formats:
        out_file = out_dir / (audio_path.stem + EXTENSIONS[fmt])

        if fmt == "txt":
            content = format_txt(result, timestamps=timestamps)
        else:
            content = FORMATTERS[fmt](result)

        out_file.write_text(content, encoding="utf-8")

        if verbose:
            console.print(f"  [green]✓[/green] {out_file}")


def _show_dry_run(audio_files: list[Path], formats: list[str], output: Path | None) -> None:
    """Show what files would be processed in dry run mode."""
    console.print(f"[bold]Would process {len(audio_files)} file(s):[/bold]")
    for audio_path in audio_files:
        out_dir = output or audio_path.parent
        for fmt in formats:
            out_file = out_dir / (audio_path.stem + EXTENSIONS[fmt])
            console.print(f"  {audio_path} → {out_file}")


def _process_file(
    audio_path: Path,
    transcriber: Transcriber,
    formats: list[str],
    output: Path | None,
    timestamps: bool,
    verbose: bool,
) -> bool:
    """Process a single audio file. Returns True on success, False on error."""
    try:
        result = transcriber.transcribe(audio_path)
        _write_outputs(result, audio_path, formats, output, timestamps, verbose)
        return True
    except (WhisperSeekError, OSError, ValueError) as e:
        err_console.print(f"[red]Error processing {audio_path}: {e}[/red]")
        return False


def _process_files(
    audio_files: list[Path],
    transcriber: Transcriber,
    formats: list[str],
    output: Path | None,
    timestamps: bool,
    verbose: bool,
    fail_fast: bool,
) -> tuple[int, int]:
    """Process all audio files. Returns (success_count, error_count)."""
    success_count = 0
    error_count = 0

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        disable=verbose or len(audio_files) == 1,
    ) as progress:
        task = progress.add_task("Transcribing...", total=len(audio_files))

        for audio_path in audio_files:
            progress.update(task, description=f"[cyan]{audio_path.name}[/cyan]")

            if _process_file(audio_path, transcriber, formats, output, timestamps, verbose):
                success_count += 1
            else:
                error_count += 1
                if fail_fast:
                    raise typer.Exit(1)

            progress.advance(task)

    return success_count, error_count


@app.command()
def main(
    inputs: Annotated[
        list[Path],
        typer.Argument(
            help="Audio files or directories to transcribe",
            exists=True,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output directory (default: same as input file)"),
    ] = None,
    format: Annotated[
        str,
        typer.Option(
            "--format", "-f",
            help="Output format(s): txt, srt, vtt, json, or 'all'. Comma-separated.",
        ),
    ] = "txt",
    recursive: Annotated[
        bool,
        typer.Option("--recursive", "-r", help="Search directories recursively"),
    ] = False,
    model: Annotated[
        str,
        typer.Option("--model", "-m", help="Model name, alias or HuggingFace repository"),
    ] = DEFAULT_MODEL,
    quantized: Annotated[
        bool,
        typer.Option("--quantized", "-q", help="Use quantized weights"),
    ] = False,
    language: Annotated[
        str | None,
        typer.Option("--language", "-l", help="Language code to force (multilingual models)"),
    ] = None,
    task: Annotated[
        Task,
        typer.Option("--task", help="transcribe or translate (to English)"),
    ] = Task.TRANSCRIBE,
    timestamps: Annotated[
        bool,
        typer.Option("--timestamps", "-t", help="Decode timestamp tokens and emit timed spans"),
    ] = False,
    temperature: Annotated[
        list[float] | None,
        typer.Option(
            "--temperature",
            help="Fallback temperature; repeat to build a ladder (default 0.0 ... 1.0)",
        ),
    ] = None,
    seed: Annotated[
        int,
        typer.Option("--seed", help="Seed for sampling at non-zero temperatures"),
    ] = DEFAULT_SEED,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be processed without transcribing"),
    ] = False,
    fail_fast: Annotated[
        bool,
        typer.Option(
            "--fail-fast/--continue-on-error",
            help="Stop on first error vs continue processing",
        ),
    ] = False,
    list_models_flag: Annotated[
        bool | None,
        typer.Option(
            "--list-models",
            callback=list_models_callback,
            is_eager=True,
            help="List curated models and exit",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Print segments as they are decoded"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version", "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """Transcribe audio files to text, SRT, VTT, or JSON."""
    setup_logging("INFO" if verbose else None)

    try:
        options = DecodingOptions(
            temperatures=tuple(temperature) if temperature else TEMPERATURES,
            seed=seed,
            task=task,
            language=language,
            timestamps=timestamps,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--temperature")

    formats = parse_formats(format)
    _validate_model_options(model, quantized, language)

    audio_files = discover_audio_files(inputs, recursive=recursive)
    if not audio_files:
        err_console.print("[red]No audio files found.[/red]")
        err_console.print(f"Supported formats: {', '.join(sorted(SUPPORTED_EXTENSIONS))}")
        raise typer.Exit(1)

    if output:
        output.mkdir(parents=True, exist_ok=True)

    if dry_run:
        _show_dry_run(audio_files, formats, output)
        raise typer.Exit(0)

    if not is_mlx_audio_available():
        err_console.print("[red]mlx-audio is not installed.[/red]")
        err_console.print("Install with: pip install 'whisper-seek\\[mlx-audio]'")
        raise typer.Exit(1)

    if not check_ffmpeg():
        err_console.print(
            "[yellow]Warning: ffmpeg not found. Audio files cannot be decoded.[/yellow]"
        )

    if verbose:
        console.print(f"[dim]Loading model: {model}...[/dim]")

    reporter = ConsoleReporter(err_console, timestamps=timestamps) if verbose else NullReporter()
    transcriber = Transcriber(
        model_id=model,
        quantized=quantized,
        options=options,
        reporter=reporter,
    )

    success_count, error_count = _process_files(
        audio_files, transcriber, formats, output, timestamps, verbose, fail_fast
    )

    if len(audio_files) > 1 or verbose:
        console.print()
        console.print(
            f"[bold green]✓ {success_count} file(s) transcribed[/bold green]"
            + (f", [bold red]{error_count} error(s)[/bold red]" if error_count else "")
        )

    if error_count:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
