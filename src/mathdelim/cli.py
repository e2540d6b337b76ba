import logging
import sys
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)

from mathdelim.clipboard import get_clipboard, set_clipboard
from mathdelim.converter.logger import ConversionLogger
from mathdelim.converter.pipeline import ConversionPipeline
from mathdelim.host import ConsoleNotifier, DirectoryStore, convert_all_files
from mathdelim.rules.config import (
    USER_CONFIG_FILE,
    Config,
    ConfigError,
    ConversionOptions,
    build_config,
    deep_merge,
    load_config,
    load_defaults,
    load_user_config,
    normalize_option_keys,
    save_user_config,
)
from mathdelim.validator.engine import ValidationEngine

app = typer.Typer(
    name="mathdelim",
    help="mathdelim - convert LaTeX math delimiters to dollar form",
    add_completion=False,
    no_args_is_help=True,
)
config_app = typer.Typer(help="Manage configuration")
app.add_typer(config_app, name="config")

console = Console()

CONFIG_FILE = USER_CONFIG_FILE

PARENS = typer.Option(None, "--parens/--no-parens", help="Treat plain (..) as inline math")
BRACKETS = typer.Option(None, "--brackets/--no-brackets", help="Treat plain [..] as inline math")
BARE_LATEX = typer.Option(
    None, "--bare-latex/--no-bare-latex", help="Wrap bare \\frac, \\sqrt, x_1 and degrees"
)
BARE_LINES = typer.Option(
    None, "--bare-lines/--no-bare-lines", help="Promote lone formula lines to display math"
)
WRAP_ENVS = typer.Option(
    None, "--wrap-envs/--no-wrap-envs", help="Wrap matrix/align environments in $$"
)


def _load_config() -> Config:
    try:
        return load_config(CONFIG_FILE)
    except (ConfigError, yaml.YAMLError) as e:
        console.print(
            f"[bold red]Error:[/bold red] invalid configuration in {CONFIG_FILE}\n{escape(str(e))}"
        )
        raise typer.Exit(code=1)


def _resolve_options(
    config: Config,
    parens: Optional[bool],
    brackets: Optional[bool],
    bare_latex: Optional[bool],
    bare_lines: Optional[bool],
    wrap_envs: Optional[bool],
) -> ConversionOptions:
    """Apply command-line flags over the configured options."""
    overrides = {
        "plain_parens_as_delimiters": parens,
        "plain_brackets_as_delimiters": brackets,
        "convert_bare_inline_latex": bare_latex,
        "wrap_bare_math_single_lines": bare_lines,
        "wrap_matrix_envs_in_display_math": wrap_envs,
    }
    update = {k: v for k, v in overrides.items() if v is not None}
    return config.conversion.model_copy(update=update)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeError) as e:
        console.print(f"[bold red]Error:[/bold red] cannot read {path}: {escape(str(e))}")
        raise typer.Exit(code=1)


def _write_text(path: Path, text: str) -> None:
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        console.print(f"[bold red]Error:[/bold red] cannot write {path}: {escape(str(e))}")
        raise typer.Exit(code=1)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@app.command()
def convert(
    file: Optional[Path] = typer.Argument(
        None, exists=True, dir_okay=False, help="Markdown file (default: stdin)"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write result here"),
    in_place: bool = typer.Option(False, "--in-place", help="Overwrite FILE"),
    check: bool = typer.Option(False, "--check", help="Exit 1 if the text would change"),
    parens: Optional[bool] = PARENS,
    brackets: Optional[bool] = BRACKETS,
    bare_latex: Optional[bool] = BARE_LATEX,
    bare_lines: Optional[bool] = BARE_LINES,
    wrap_envs: Optional[bool] = WRAP_ENVS,
):
    """
    Convert one file, or stdin, to dollar-delimited math.
    """
    if in_place and file is None:
        console.print("[bold red]Error:[/bold red] --in-place needs a FILE")
        raise typer.Exit(code=1)
    if in_place and output is not None:
        console.print("[bold red]Error:[/bold red] use either --in-place or --output")
        raise typer.Exit(code=1)

    config = _load_config()
    options = _resolve_options(config, parens, brackets, bare_latex, bare_lines, wrap_envs)

    source = _read_text(file) if file is not None else sys.stdin.read()
    converted = ConversionPipeline(options).run(source)
    label = str(file) if file is not None else "<stdin>"

    if check:
        if converted != source:
            console.print(f"[yellow]{label} would change[/yellow]")
            raise typer.Exit(code=1)
        console.print(f"[green]{label} is already converted[/green]")
        return

    if in_place:
        if converted != source:
            _write_text(file, converted)
            console.print(f"[green]Converted {label}[/green]")
        else:
            console.print(f"[dim]{label} unchanged[/dim]")
    elif output is not None:
        _write_text(output, converted)
        console.print(f"[green]Wrote {output}[/green]")
    else:
        typer.echo(converted, nl=False)


@app.command("convert-all")
def convert_all(
    directory: Path = typer.Argument(
        ..., exists=True, file_okay=False, help="Directory of Markdown files"
    ),
    check: bool = typer.Option(
        False, "--check", help="Report files that would change; write nothing"
    ),
    report: Optional[Path] = typer.Option(None, "--report", help="Write a JSON report here"),
    parens: Optional[bool] = PARENS,
    brackets: Optional[bool] = BRACKETS,
    bare_latex: Optional[bool] = BARE_LATEX,
    bare_lines: Optional[bool] = BARE_LINES,
    wrap_envs: Optional[bool] = WRAP_ENVS,
):
    """
    Convert every Markdown file under DIRECTORY.
    """
    config = _load_config()
    options = _resolve_options(config, parens, brackets, bare_latex, bare_lines, wrap_envs)

    store = DirectoryStore(
        directory, pattern=config.files.pattern, exclude_dirs=config.files.exclude_dirs
    )
    report_path = report
    if report_path is None and config.report.enabled:
        report_path = directory / config.report.path
    batch_logger = ConversionLogger(root=str(directory))

    console.print(
        Panel.fit(
            f"[bold]Converting[/bold] {directory}"
            + (" [yellow](check only)[/yellow]" if check else ""),
            border_style="blue",
        )
    )

    total = len(store.list_markdown_files())
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Converting...", total=total)
        result = convert_all_files(
            store,
            options,
            ConsoleNotifier(console),
            batch_logger=batch_logger,
            dry_run=check,
            on_progress=lambda name: progress.advance(task),
        )

    if report_path is not None:
        batch_logger.save(report_path)

    if check and result.changed:
        for name in result.changed:
            console.print(f"[yellow]would change:[/yellow] {name}")
        raise typer.Exit(code=1)
    if result.failed:
        for name in result.failed:
            console.print(f"[bold red]failed:[/bold red] {name}")
        raise typer.Exit(code=1)


@app.command()
def paste(
    parens: Optional[bool] = PARENS,
    brackets: Optional[bool] = BRACKETS,
    bare_latex: Optional[bool] = BARE_LATEX,
    bare_lines: Optional[bool] = BARE_LINES,
    wrap_envs: Optional[bool] = WRAP_ENVS,
):
    """
    Convert the clipboard contents in place.
    """
    config = _load_config()
    options = _resolve_options(config, parens, brackets, bare_latex, bare_lines, wrap_envs)

    text = get_clipboard()
    if not text:
        console.print("[yellow]Clipboard is empty[/yellow]")
        return

    converted = ConversionPipeline(options).run(text)
    if set_clipboard(converted):
        console.print(f"[green]Clipboard converted ({len(converted)} chars)[/green]")


@app.command()
def validate(
    original: Path = typer.Argument(..., exists=True, dir_okay=False, help="Source file"),
    converted: Path = typer.Argument(..., exists=True, dir_okay=False, help="Converted file"),
):
    """
    Check a converted file against its source.
    """
    validator = ValidationEngine()
    result = validator.validate(_read_text(original), _read_text(converted))

    problems = [e for e in result.errors if e.severity == "error"]
    warnings = result.warnings
    if result.valid:
        console.print("[green]File is valid![/green]")
    else:
        console.print(f"[red]Found {len(problems)} errors[/red]")
    for err in result.errors:
        console.print(f"- {escape(err.message)} ({err.severity})")
    if warnings:
        console.print(f"[yellow]{len(warnings)} warnings[/yellow]")
    if not result.valid:
        raise typer.Exit(code=1)


@config_app.command("show")
def config_show():
    """Show current configuration."""
    config = _load_config()
    console.print(config.model_dump())


def _parse_value(value: str) -> Any:
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    if value.isdigit():
        return int(value)
    return value


@config_app.command("set")
def config_set(key: str, value: str):
    """
    Set a configuration value (dot-separated).
    Example: mathdelim config set conversion.plainParensAsDelimiters true
    """
    data = load_user_config(CONFIG_FILE)

    keys = key.split(".")
    current = data
    for k in keys[:-1]:
        if k not in current:
            current[k] = {}
        current = current[k]
        if not isinstance(current, dict):
            console.print(f"[bold red]Error:[/bold red] {k} is not a section")
            raise typer.Exit(1)
    current[keys[-1]] = _parse_value(value)

    if isinstance(data.get("conversion"), dict):
        data["conversion"] = normalize_option_keys(data["conversion"])

    try:
        build_config(deep_merge(load_defaults(), data))
    except ConfigError as e:
        console.print(
            f"[bold red]Error:[/bold red] cannot set {key} = {escape(value)}\n{escape(str(e))}"
        )
        raise typer.Exit(1)

    save_user_config(data, CONFIG_FILE)
    console.print(f"[green]Updated {key} = {value}[/green]")


def main():
    app()


if __name__ == "__main__":
    main()
