"""Command line interface for the b64kit project."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from rich.console import Console
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TimeRemainingColumn
from rich.syntax import Syntax
from rich.table import Table

from b64kit.codec import EncodingProgress
from b64kit.config import B64KitConfig, ConfigError, ConfigManager
from b64kit.conversion import (
    INVALID_BASE64_MESSAGE,
    UNSUPPORTED_MESSAGE,
    ConversionPipeline,
    FileExporter,
)
from b64kit.detection import ContentKind, MetadataExtractor
from b64kit.errors import B64KitError, EncodingCancelled, InvalidBase64, NoContent
from b64kit.history import HistoryError, RecentFilesStore
from b64kit.logging_config import configure_logging

LOGGER = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: BaseException | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool) -> None:
    """Print CLI output unless quiet mode suppresses it.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
    """

    if quiet and mode != "error":
        return
    console.print(message)


def _emit_notes(notes: list[str], *, quiet: bool, target: Console = console) -> None:
    if quiet:
        return
    for note in notes:
        target.print(f"[yellow]{note}[/yellow]")


def _format_size(size_bytes: int) -> str:
    """Return a short human-readable size such as ``1.5 MB``."""

    value = float(size_bytes)
    for unit in ("bytes", "KB", "MB", "GB"):
        if value < 1000 or unit == "GB":
            if unit == "bytes":
                return f"{int(value)} bytes"
            return f"{value:.1f} {unit}"
        value /= 1000
    return f"{size_bytes} bytes"  # pragma: no cover - loop always returns


def _load_config(ctx: click.Context, cli_overrides: dict[str, Any] | None = None) -> B64KitConfig:
    """Load configuration and configure logging for a conversion command.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """

    manager = ConfigManager()
    try:
        config = manager.load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(ctx.obj.get("verbose")) if ctx.obj else False
    configure_logging(config.logging, console=err_console, verbose=verbose)
    return config


def _history_store(
    config: B64KitConfig, *, reset_on_error: bool = False
) -> Optional[RecentFilesStore]:
    """Return the configured recent-files store, or None when history is disabled.

    Raises:
        HistoryError: If the stored history cannot be read and ``reset_on_error``
            is False.
    """

    if not config.history.enabled:
        return None
    return RecentFilesStore(
        Path(config.history.path),
        max_entries=config.history.max_entries,
        reset_on_error=reset_on_error,
    )


def _conversion_history(config: B64KitConfig) -> tuple[Optional[RecentFilesStore], list[str]]:
    """Return the history store for a conversion, degrading to None when unreadable.

    Conversions never fail because of the history file; the returned notes
    explain why nothing will be recorded.
    """

    try:
        return _history_store(config), []
    except HistoryError as exc:
        LOGGER.warning("Recent files unavailable: %s", exc)
        return None, [f"Recent files not updated ({exc}). Run `b64kit recent --clear` to reset."]


def _without_timestamp(lines: list[str]) -> list[str]:
    return [line for line in lines if not line.startswith("# Last updated:")]


def _read_input(text: Optional[str], input_file: Optional[Path]) -> str:
    """Return the base64 input from TEXT, --file, or stdin, stripped of whitespace.

    Raises:
        click.UsageError: If both TEXT and --file are supplied.
        click.ClickException: If the input file cannot be read.
    """

    if text is not None and input_file is not None:
        raise click.UsageError("Provide TEXT or --file, not both.")
    if input_file is not None:
        try:
            return input_file.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            raise click.ClickException(f"Unable to read {input_file}: {exc}") from exc
    if text is None or text == "-":
        return click.get_text_stream("stdin").read().strip()
    return text.strip()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="b64kit")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """b64kit encodes files to base64 and decodes base64 back into typed content.

    Returns:
        None: This function is invoked for its side effects.
    """

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the base64 text to this file instead of stdout.",
)
@click.option("--chunk-size", type=click.IntRange(min=1), help="Chunk size in bytes.")
@click.option("--no-progress", is_flag=True, help="Do not render a progress bar.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the result.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def encode(
    ctx: click.Context,
    path: Path,
    output: Optional[Path],
    chunk_size: Optional[int],
    no_progress: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """Encode the file at PATH to base64.

    Raises:
        click.ClickException: If the file cannot be encoded or written.
    """

    overrides = {"encoder.chunk_size_bytes": chunk_size} if chunk_size else None
    config = _load_config(ctx, overrides)
    quiet = quiet or config.cli.quiet_default
    history, history_notes = _conversion_history(config)
    pipeline = ConversionPipeline.from_config(config, history=history)

    show_progress = config.cli.show_progress and not (no_progress or quiet or json_output)
    try:
        if show_progress:
            with Progress(
                TextColumn("[cyan]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TimeRemainingColumn(),
                console=err_console,
                transient=True,
            ) as progress_bar:
                task_id = progress_bar.add_task(path.name, total=None)

                def _update(update: EncodingProgress) -> None:
                    progress_bar.update(
                        task_id,
                        completed=update.bytes_processed,
                        total=update.total_bytes,
                    )

                result = pipeline.encode_file(path, progress=_update)
        else:
            result = pipeline.encode_file(path)
    except (KeyboardInterrupt, EncodingCancelled) as exc:
        _handle_cli_error(
            "Encoding cancelled.", code="encode_cancelled", json_output=json_output, original=exc
        )
        return
    except B64KitError as exc:
        _handle_cli_error(str(exc), code="encode_failed", json_output=json_output, original=exc)
        return

    notes = history_notes + result.notes

    if output is not None:
        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(result.text, encoding="ascii")
        except OSError as exc:
            _handle_cli_error(
                f"Unable to write {output}: {exc}",
                code="write_failed",
                json_output=json_output,
                original=exc,
            )

    if json_output:
        payload: dict[str, Any] = {
            "source": str(path),
            "size_bytes": result.descriptor.size_bytes,
            "category": result.descriptor.category.value,
            "length": len(result.text),
            "notes": notes,
        }
        if output is not None:
            payload["output"] = str(output)
        else:
            payload["base64"] = result.text
        console.print_json(data=payload)
        return

    if output is None:
        click.echo(result.text)
    else:
        _emit_message(
            f"[green]Encoded {path.name} ({_format_size(result.descriptor.size_bytes)}) "
            f"to {output}.[/green]",
            mode="summary",
            quiet=quiet,
        )
    _emit_notes(notes, quiet=quiet, target=err_console if output is None else console)


@cli.command()
@click.argument("text", required=False)
@click.option(
    "-f",
    "--file",
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the base64 input from this file.",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for the decoded file.",
)
@click.option("--name", type=str, help="File name without extension.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the result.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def decode(
    ctx: click.Context,
    text: Optional[str],
    input_file: Optional[Path],
    output_dir: Optional[Path],
    name: Optional[str],
    json_output: bool,
    quiet: bool,
) -> None:
    """Decode base64 TEXT (or a data URL) into a file with a resolved extension.

    TEXT defaults to --file, then stdin.
    """

    config = _load_config(ctx)
    quiet = quiet or config.cli.quiet_default
    raw = _read_input(text, input_file)
    history, history_notes = _conversion_history(config)
    exporter = FileExporter.from_options(config.export, directory=output_dir, history=history)

    try:
        result = exporter.export(raw, name=name)
    except InvalidBase64 as exc:
        _handle_cli_error(
            INVALID_BASE64_MESSAGE, code="invalid_base64", json_output=json_output, original=exc
        )
        return
    except NoContent as exc:
        _handle_cli_error(str(exc), code="no_content", json_output=json_output, original=exc)
        return
    except B64KitError as exc:
        _handle_cli_error(str(exc), code="export_failed", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(
            data={
                "path": str(result.path),
                "extension": result.extension,
                "size_bytes": result.descriptor.size_bytes,
                "category": result.descriptor.category.value,
                "conflict_applied": result.conflict_applied,
                "notes": history_notes + result.notes,
            }
        )
        return

    _emit_message(
        f"[green]Decoded {_format_size(result.descriptor.size_bytes)} to {result.path}.[/green]",
        mode="summary",
        quiet=quiet,
    )
    _emit_notes(history_notes + result.notes, quiet=quiet)


@cli.command()
@click.argument("text", required=False)
@click.option(
    "-f",
    "--file",
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Read the base64 input from this file.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the content.")
@click.pass_context
def inspect(
    ctx: click.Context,
    text: Optional[str],
    input_file: Optional[Path],
    json_output: bool,
) -> None:
    """Identify the content encoded in base64 TEXT and show a preview."""

    config = _load_config(ctx)
    raw = _read_input(text, input_file)
    outcome = ConversionPipeline.from_config(config).decode(raw)

    if outcome.is_empty:
        if json_output:
            console.print_json(data={"status": "empty"})
        else:
            console.print("[yellow]No content to inspect.[/yellow]")
        return

    if isinstance(outcome.error, InvalidBase64):
        _handle_cli_error(
            INVALID_BASE64_MESSAGE,
            code="invalid_base64",
            json_output=json_output,
            original=outcome.error,
        )
        return
    if outcome.content is None:
        _handle_cli_error(
            UNSUPPORTED_MESSAGE,
            code="unsupported_content",
            json_output=json_output,
            details={"extension": outcome.extension, "size_bytes": len(outcome.data)},
            original=outcome.error,
        )
        return

    extractor = MetadataExtractor()
    content = outcome.content
    metadata = extractor.extract(content)
    preview = extractor.preview(content)

    if json_output:
        console.print_json(
            data={
                "status": "ok",
                "kind": content.kind.value,
                "declared_mime": outcome.payload.declared_mime,
                "extension": outcome.extension,
                "metadata": metadata,
                "preview": preview,
            }
        )
        return

    table = Table(title="Decoded content", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Kind", content.kind.label)
    table.add_row("Declared MIME", outcome.payload.declared_mime or "-")
    table.add_row("Extension", outcome.extension)
    for key, value in metadata.items():
        if key == "kind":
            continue
        table.add_row(key.replace("_", " ").capitalize(), value)
    console.print(table)

    if preview:
        lexer = "json" if content.kind is ContentKind.JSON else "text"
        console.print(Syntax(preview, lexer, word_wrap=True))


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit recent files as JSON.")
@click.option("--clear", is_flag=True, help="Remove all entries from the history.")
@click.pass_context
def recent(ctx: click.Context, json_output: bool, clear: bool) -> None:
    """List recently encoded and decoded files, most recent first."""

    config = _load_config(ctx)
    try:
        store = _history_store(config, reset_on_error=clear)
    except HistoryError as exc:
        raise click.ClickException(
            f"{exc}. Run `b64kit recent --clear` to reset the history."
        ) from exc
    if store is None:
        console.print("[yellow]Recent files history is disabled.[/yellow]")
        return

    if clear:
        try:
            store.clear()
        except HistoryError as exc:
            raise click.ClickException(str(exc)) from exc
        console.print("[green]Recent files cleared.[/green]")
        return

    entries = store.list()
    if json_output:
        console.print_json(data={"files": [entry.model_dump(mode="json") for entry in entries]})
        return

    if not entries:
        console.print("[yellow]No recent files.[/yellow]")
        return

    table = Table(title="Recent files")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Created")
    for entry in entries:
        table.add_row(
            entry.name,
            entry.category.value,
            _format_size(entry.size_bytes),
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@cli.group()
def config() -> None:
    """Manage b64kit configuration files and overrides.

    Returns:
        None: This function is invoked for its side effects.
    """


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    before = manager.read_text().splitlines()

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    after = manager.read_text().splitlines()
    diff = list(
        difflib.unified_diff(
            _without_timestamp(before),
            _without_timestamp(after),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )

    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key.strip()}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()
    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes applied.[/yellow]")
        return

    try:
        manager.save_text(edited)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point.

    Returns:
        None: This function is invoked for its side effects.
    """
    cli()


if __name__ == "__main__":
    main()
