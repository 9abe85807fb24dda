"""Implementation of the ``katexsmith html`` command."""

from __future__ import annotations

import typer

from katexsmith.core.exceptions import KatexSmithError
from katexsmith.core.html import serialize

from .._options import (
    ConfigOption,
    DelimiterOption,
    IgnoreTagOption,
    InputPathArgument,
    NodeExecutableOption,
    NodePathOption,
    OutputPathOption,
    ParserOption,
    RenderOption,
)
from ..diagnostics import CliEmitter
from ..state import emit_error, get_cli_state, render_message
from ..utils import build_renderer, describe_failure, read_input, write_output_file


def html(
    input_path: InputPathArgument = None,
    output: OutputPathOption = None,
    config: ConfigOption = None,
    parser: ParserOption = None,
    delimiter: DelimiterOption = None,
    ignore_tag: IgnoreTagOption = None,
    option: RenderOption = None,
    node: NodeExecutableOption = None,
    node_path: NodePathOption = None,
) -> None:
    """Render every delimited math expression found in an HTML document."""
    state = get_cli_state()
    emitter = CliEmitter(state)
    try:
        renderer = build_renderer(
            config_path=config,
            parser=parser,
            delimiters=delimiter,
            ignored_tags=ignore_tag,
            options=option,
            node_executable=node,
            node_path=node_path,
            emitter=emitter,
        )
    except KatexSmithError as exc:
        emit_error(describe_failure(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    markup = read_input(input_path)
    try:
        with renderer:
            tree = renderer.render_in_html(markup)
    except KatexSmithError as exc:
        emit_error(describe_failure(exc), exception=exc)
        raise typer.Exit(code=1) from exc

    total = sum(int(entry.get("count") or 0) for entry in state.consume_events("math_rendered"))
    noun = "expression" if total == 1 else "expressions"
    render_message("info", f"Rendered {total} math {noun} in total.")

    result = serialize(tree)
    if output is None:
        typer.echo(result, nl=False)
        return
    write_output_file(output, result)


__all__ = ["html"]
