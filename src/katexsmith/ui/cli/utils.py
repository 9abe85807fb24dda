"""Auxiliary helpers used by CLI commands."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
import sys
from typing import Any

import typer
import yaml

from katexsmith.core.config import Delimiter, MathConfig, load_config
from katexsmith.core.diagnostics import DiagnosticEmitter
from katexsmith.core.exceptions import RenderError, exception_hint
from katexsmith.renderer import KatexHtmlRenderer


_DISPLAY_TOKENS = {"display": True, "block": True, "inline": False}


def parse_delimiter_option(values: Iterable[str] | None) -> list[Delimiter]:
    """Parse ``--delimiter`` values declared as 'LEFT RIGHT [display|inline]'."""
    delimiters: list[Delimiter] = []
    for raw in values or ():
        tokens = raw.split()
        if len(tokens) not in (2, 3):
            raise typer.BadParameter(
                f"Invalid delimiter '{raw}', expected 'LEFT RIGHT [display|inline]'.",
                param_hint="--delimiter",
            )
        display = False
        if len(tokens) == 3:
            mode = tokens[2].lower()
            if mode not in _DISPLAY_TOKENS:
                raise typer.BadParameter(
                    f"Invalid delimiter mode '{tokens[2]}', expected 'display' or 'inline'.",
                    param_hint="--delimiter",
                )
            display = _DISPLAY_TOKENS[mode]
        delimiters.append(Delimiter(left=tokens[0], right=tokens[1], display=display))
    return delimiters


def parse_render_options(values: Iterable[str] | None) -> dict[str, Any]:
    """Parse ``KEY=VALUE`` render options, decoding values as YAML scalars."""
    options: dict[str, Any] = {}
    for raw in values or ():
        entry = raw.strip()
        if "=" not in entry:
            raise typer.BadParameter(
                f"Invalid option '{raw}', expected format 'KEY=VALUE'.", param_hint="--option"
            )
        key, value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise typer.BadParameter(
                f"Invalid option '{raw}', the key cannot be empty.", param_hint="--option"
            )
        try:
            options[key] = yaml.safe_load(value) if value.strip() else ""
        except yaml.YAMLError:
            options[key] = value
    return options


def build_renderer(
    *,
    config_path: Path | None = None,
    parser: str | None = None,
    delimiters: Iterable[str] | None = None,
    ignored_tags: Iterable[str] | None = None,
    options: Iterable[str] | None = None,
    node_executable: str | None = None,
    node_path: Iterable[Path] | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> KatexHtmlRenderer:
    """Assemble a renderer from a configuration file and CLI overrides."""
    config = load_config(config_path) if config_path is not None else MathConfig()
    updates: dict[str, Any] = {}
    if parser:
        updates["parser"] = parser
    parsed_delimiters = parse_delimiter_option(delimiters)
    if parsed_delimiters:
        updates["delimiters"] = parsed_delimiters
    if ignored_tags:
        updates["ignored_tags"] = list(ignored_tags)
    render_options = parse_render_options(options)
    if render_options:
        updates["options"] = {**config.options, **render_options}
    if node_executable:
        updates["node_executable"] = node_executable
    if node_path:
        updates["node_path"] = [*config.node_path, *node_path]
    if updates:
        config = MathConfig.model_validate({**config.model_dump(), **updates})
    return KatexHtmlRenderer(config, emitter=emitter)


def describe_failure(exc: BaseException) -> str:
    """Return a one-line summary of a rendering failure."""
    hint = exception_hint(exc) or type(exc).__name__
    if isinstance(exc, RenderError) and exc.expression is not None:
        return f"Failed to render '{exc.expression}': {hint}"
    return hint


def read_input(path: Path | None) -> str:
    """Return the HTML input from ``path`` or standard input."""
    if path is not None:
        return path.read_text(encoding="utf-8")
    if sys.stdin is None or sys.stdin.closed:
        raise typer.BadParameter("No input file given and standard input is unavailable.")
    return sys.stdin.read()


def write_output_file(target: Path, content: str) -> None:
    """Persist HTML content to disk, creating parent directories as needed."""
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as exc:  # pragma: no cover - filesystem errors
        raise OSError(f"Failed to write HTML output to '{target}': {exc}") from exc


__all__ = [
    "build_renderer",
    "describe_failure",
    "parse_delimiter_option",
    "parse_render_options",
    "read_input",
    "write_output_file",
]
