"""Implementation of the ``katexsmith expr`` command."""

from __future__ import annotations

from typing import Annotated

import typer

from katexsmith.core.exceptions import KatexSmithError

from .._options import (
    RENDERING_PANEL,
    ConfigOption,
    NodeExecutableOption,
    NodePathOption,
    RenderOption,
)
from ..diagnostics import CliEmitter
from ..state import emit_error, get_cli_state
from ..utils import build_renderer, describe_failure


def expr(
    expression: Annotated[
        str,
        typer.Argument(metavar="EXPRESSION", help="TeX expression to render."),
    ],
    display: Annotated[
        bool | None,
        typer.Option(
            "--display/--inline",
            help="Render in display mode or inline mode (KaTeX default: inline).",
            rich_help_panel=RENDERING_PANEL,
        ),
    ] = None,
    config: ConfigOption = None,
    option: RenderOption = None,
    node: NodeExecutableOption = None,
    node_path: NodePathOption = None,
) -> None:
    """Render a single expression and print the KaTeX markup."""
    emitter = CliEmitter(get_cli_state())
    call_options = {} if display is None else {"displayMode": display}
    try:
        with build_renderer(
            config_path=config,
            options=option,
            node_executable=node,
            node_path=node_path,
            emitter=emitter,
        ) as renderer:
            markup = renderer.render_to_string(expression, call_options)
    except KatexSmithError as exc:
        emit_error(describe_failure(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    typer.echo(markup)


__all__ = ["expr"]
