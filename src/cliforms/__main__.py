"""Allow `python -m cliforms` to invoke the CLI entry-point."""

from .cli import app


def main() -> None:
    """Dispatch to the Typer CLI."""
    app(prog_name="cliforms")


if __name__ == "__main__":  # pragma: no cover - manual execution path
    main()
