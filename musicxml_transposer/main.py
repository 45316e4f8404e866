"""
Command-line interface for MusicXML Transposer.

Provides commands for:
- transpose: Transpose a file by one interval
- all-keys: Generate a file in all twelve keys
- batch: Transpose or generate all keys for many files
- intervals: List the interval choices
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from musicxml_transposer.config import Config, get_config
from musicxml_transposer.core.all_keys import AllKeysOrchestrator
from musicxml_transposer.core.batch_processor import BatchJobStatus, BatchProcessor
from musicxml_transposer.core.errors import TransposeError
from musicxml_transposer.core.intervals import describe_interval, get_interval_options, parse_interval
from musicxml_transposer.core.rewriter import StreamingRewriter
from musicxml_transposer.export import (
    MidiExporter,
    MidiExportOptions,
    MusicXMLExporter,
    MusicXMLExportOptions,
    default_output_path,
    load_document,
)

app = typer.Typer(
    name="musicxml-transpose",
    help="Transpose MusicXML scores and generate all-keys practice copies",
    rich_markup_mode="markdown",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")
    raise typer.Exit(1)


def _read_input(input_file: Path) -> str:
    if not input_file.exists():
        _fail(f"File not found: {input_file}")
    return load_document(input_file)


def _musicxml_exporter(config: Config) -> MusicXMLExporter:
    return MusicXMLExporter(
        MusicXMLExportOptions(
            extension=config.output.extension,
            overwrite=config.output.overwrite,
        )
    )


def _export_midi(config: Config, text: str, musicxml_path: Path) -> Path:
    exporter = MidiExporter(MidiExportOptions.from_config(config.midi))
    return exporter.export(text, musicxml_path.with_suffix(".mid"))


@app.command(context_settings={"ignore_unknown_options": True})
def transpose(
    input_file: Path = typer.Argument(..., help="Input MusicXML file (.musicxml or .xml)"),
    interval: str = typer.Argument(..., help="Semitones, e.g. +5, -3 or 7"),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output file (default: <name>_transposed.<ext>)"
    ),
    midi: bool = typer.Option(
        False, "--midi", help="Also write a MIDI file beside the output"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Transpose a MusicXML file by a number of semitones.

    **Examples:**

        musicxml-transpose transpose song.musicxml +5

        musicxml-transpose transpose song.musicxml -o lower.musicxml -- -3
    """
    _setup_logging(verbose)
    config = get_config()

    try:
        semitones = parse_interval(interval)
        text = _read_input(input_file)

        rewriter = StreamingRewriter(semitones)
        result = rewriter.rewrite(text)

        if output is None:
            output = default_output_path(input_file, config.output.suffix)
        path = _musicxml_exporter(config).export(result, output)
        console.print(f"[green]Transposed {describe_interval(semitones)}:[/green] {path}")

        if midi or config.midi.enabled:
            midi_path = _export_midi(config, result, path)
            console.print(f"[green]MIDI:[/green] {midi_path}")

        config.add_recent_file(input_file.resolve())

    except (TransposeError, OSError) as e:
        _fail(str(e))


@app.command("all-keys")
def all_keys(
    input_file: Path = typer.Argument(..., help="Input MusicXML file (.musicxml or .xml)"),
    order: Optional[str] = typer.Option(
        None, "--order", help="Key order: chromatic or circleOfFourths"
    ),
    combined: Optional[bool] = typer.Option(
        None, "--combined/--separate", help="One score with all keys, or twelve files"
    ),
    output: Optional[Path] = typer.Option(
        None, "-o", "--output", help="Output directory (separate) or file (combined)"
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", help="Parallel rewrites (1 = sequential)"
    ),
    midi: bool = typer.Option(
        False, "--midi", help="Also write MIDI files"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Generate a MusicXML file in all twelve keys.

    **Examples:**

        musicxml-transpose all-keys melody.musicxml

        musicxml-transpose all-keys melody.musicxml --order circleOfFourths --combined
    """
    _setup_logging(verbose)
    config = get_config()

    order = order or config.transpose.key_order
    combined = config.transpose.combined_score if combined is None else combined
    workers = workers or config.transpose.max_workers

    try:
        orchestrator = AllKeysOrchestrator(order, workers)
        text = _read_input(input_file)
        exporter = _musicxml_exporter(config)
        stem = input_file.stem

        if combined:
            document = orchestrator.generate_combined(text)
            if output is None:
                output = input_file.with_name(f"{stem}_all_keys{input_file.suffix}")
            path = exporter.export(document, output)
            console.print(f"[green]Combined score ({orchestrator.key_order.value}):[/green] {path}")
            if midi or config.midi.enabled:
                console.print(f"[green]MIDI:[/green] {_export_midi(config, document, path)}")

        else:
            results = orchestrator.generate(text)
            if output is None:
                output = input_file.with_name(f"{stem}_all_keys")
            paths = exporter.export_all_keys(results, output, stem)

            table = Table(title=f"All Keys ({orchestrator.key_order.value})")
            table.add_column("Key", style="cyan")
            table.add_column("Semitones", style="green")
            table.add_column("File", style="yellow")

            for result, path in zip(results, paths):
                table.add_row(result.label, f"{result.semitones:+d}", path.name)
                if midi or config.midi.enabled:
                    _export_midi(config, result.document, path)

            console.print(table)
            console.print(f"[green]Wrote {len(paths)} files to:[/green] {output}")

        config.add_recent_file(input_file.resolve())

    except (TransposeError, OSError) as e:
        _fail(str(e))


@app.command()
def batch(
    input_files: List[Path] = typer.Argument(..., help="Input MusicXML files"),
    output: Path = typer.Option(
        ..., "-o", "--output", help="Output directory"
    ),
    interval: Optional[str] = typer.Option(
        None, "--interval", "-i", help="Transpose every file by this many semitones"
    ),
    all_keys: bool = typer.Option(
        False, "--all-keys", help="Generate every file in all twelve keys"
    ),
    order: Optional[str] = typer.Option(
        None, "--order", help="Key order for --all-keys"
    ),
    combined: Optional[bool] = typer.Option(
        None, "--combined/--separate", help="Combined score per file for --all-keys"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Transpose many files at once.

    **Examples:**

        musicxml-transpose batch a.musicxml b.musicxml --interval 2 -o out

        musicxml-transpose batch *.musicxml --all-keys --combined -o out
    """
    _setup_logging(verbose)
    config = get_config()

    if (interval is None) == (not all_keys):
        _fail("Choose exactly one of --interval or --all-keys")

    processor = BatchProcessor(output, config.transpose.max_workers)
    processor.add_files(input_files)
    processor.set_callbacks(
        on_item_completed=lambda i, item: console.print(
            f"  [{i + 1}/{len(input_files)}] {escape(item.input_path.name)}: {item.status.value}"
        ),
    )

    try:
        if all_keys:
            processor.process_all_keys(
                order or config.transpose.key_order,
                config.transpose.combined_score if combined is None else combined,
            )
        else:
            processor.process_transpose(parse_interval(interval))
    except TransposeError as e:
        _fail(str(e))

    result = processor.wait()

    table = Table(title="Batch Results")
    table.add_column("File", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Output", style="yellow")

    for item in result.items:
        if item.status == BatchJobStatus.FAILED:
            detail = f"[red]{escape(item.error_message)}[/red]"
        else:
            detail = ", ".join(path.name for path in item.output_paths)
        table.add_row(escape(item.input_path.name), item.status.value, detail)

    console.print(table)
    console.print(
        f"[bold]{result.completed}/{result.total_items} completed "
        f"in {result.total_time:.2f}s[/bold]"
    )

    if result.failed:
        raise typer.Exit(1)


@app.command()
def intervals():
    """List the interval choices."""
    table = Table(title="Intervals")
    table.add_column("Interval", style="cyan")
    table.add_column("Description", style="green")

    for code, label in get_interval_options():
        table.add_row(code, label)

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
