# Copyright (c) Syntropy Systems
"""Main CLI entry point for gridbench."""

import logging

import typer
from rich.logging import RichHandler

from gridbench.cli.doctor import doctor
from gridbench.cli.export import export
from gridbench.cli.init_cmd import init
from gridbench.cli.results import results
from gridbench.cli.sweep import plan, sweep

app = typer.Typer(
    name="gridbench",
    help=(
        "Docstore compression benchmark grid. Sweep datasets, algorithms "
        "and block sizes, resume where you left off."
    ),
    no_args_is_help=True,
    add_completion=False,
)


def configure_logging(verbose: bool) -> None:  # noqa: FBT001
    """Route gridbench logs through rich."""
    logger = logging.getLogger("gridbench")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        logger.addHandler(RichHandler(show_path=False, markup=False))
    logger.propagate = False


@app.callback()
def main(
    verbose: bool = typer.Option(  # noqa: FBT001
        False,
        "--verbose", "-v",
        help="Show debug logs, including every quickwit command",
    ),
) -> None:
    """Docstore compression benchmark grid."""
    configure_logging(verbose)


# Register commands
_ = app.command()(init)
_ = app.command()(plan)
_ = app.command()(sweep)
_ = app.command()(results)
_ = app.command(name="export")(export)
_ = app.command()(doctor)


if __name__ == "__main__":
    app()
