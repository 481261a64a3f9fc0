"""Command-line interface for running terminal forms."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console

from . import rich_logger
from .cli_form import CLIForm, configure_logging
from .config import get_settings
from .form import Form
from .loader import FormDefinitionError, load_form
from .questions import (
    BooleanQuestion,
    CheckboxesQuestion,
    IntegerQuestion,
    MultipleChoiceQuestion,
    TextQuestion,
)
from .rawinput import FormCancelled, TerminalIOError
from .results import FormResult

console = Console()
app = typer.Typer(help="Run interactive forms in the terminal.")

# Exit status used by shells for Ctrl-C.
EXIT_CANCELLED = 130


def build_demo_form(**form_kwargs: Any) -> CLIForm:
    """A sample form touching every question type."""
    questions = [
        TextQuestion(
            "name",
            "Project Name",
            "What is the name of your project? Paste with Ctrl-V.",
            character_limit=32,
        ),
        IntegerQuestion.up_to("team-size", "Team Size", "How many people work on it?", 500),
        BooleanQuestion("open-source", "Open Source", "Is the project open source?", default=True),
        MultipleChoiceQuestion(
            "license",
            "License",
            "Which license does it use?",
            ["MIT", "Apache-2.0", "GPL-3.0", "BSD-3-Clause", "Other"],
        ).set_requirement("open-source", True),
        CheckboxesQuestion(
            "platforms",
            "Platforms",
            "Which platforms are supported? Select any number.",
            ["Linux", "macOS", "Windows", "Web"],
        ),
    ]
    form_kwargs.setdefault("theme", "#5f87ff")
    return CLIForm(
        "Project Survey",
        "A short survey about your project. Every page shows the keys it understands.",
        questions,
        **form_kwargs,
    )


def _run_form(form: CLIForm) -> FormResult:
    try:
        return form.run()
    except FormCancelled as exc:
        rich_logger.log_warning("Form cancelled.")
        raise typer.Exit(code=EXIT_CANCELLED) from exc
    except TerminalIOError as exc:
        rich_logger.log_error("Terminal input failed.", error=exc)
        raise typer.Exit(code=1) from exc


def _emit_result(form: Form, result: FormResult, output: Optional[Path]) -> None:
    settings = get_settings()
    if settings.log_rich_enabled:
        skipped = len(form.questions) - len(result)
        rich_logger.console.print(rich_logger.create_result_panel(form.title, result, skipped=skipped))
    payload = result.to_json()
    if output is None:
        typer.echo(payload)
        return
    output_path = output.expanduser()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(payload + "\n", encoding="utf-8")
    rich_logger.log_success(f"Wrote {len(result)} answer(s) to {output_path}")


@app.command("run")
def run_form(
    definition: Annotated[Path, typer.Argument(..., help="Path to a JSON form definition.")],
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the JSON answers to this file instead of stdout."),
    ] = None,
    theme: Annotated[Optional[str], typer.Option("--theme", help="Theme colour, e.g. 'green' or '#ff8800'.")] = None,
) -> None:
    """Run the form described by a JSON definition file."""
    configure_logging(get_settings())
    form_kwargs: dict[str, Any] = {}
    if theme is not None:
        form_kwargs["theme"] = theme
    try:
        form = load_form(definition, **form_kwargs)
    except FormDefinitionError as exc:
        rich_logger.log_error("Invalid form definition.", error=exc, path=str(definition))
        raise typer.Exit(code=1) from exc
    except OSError as exc:
        rich_logger.log_error("Could not read form definition.", error=exc, path=str(definition))
        raise typer.Exit(code=1) from exc

    result = _run_form(form)
    _emit_result(form, result, output)


@app.command("demo")
def demo(
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write the JSON answers to this file instead of stdout."),
    ] = None,
) -> None:
    """Run a built-in sample form."""
    configure_logging(get_settings())
    form = build_demo_form()
    result = _run_form(form)
    _emit_result(form, result, output)


@app.command("keys")
def keys() -> None:
    """Show the keys understood by form pages."""
    console.print(rich_logger.create_key_table())
