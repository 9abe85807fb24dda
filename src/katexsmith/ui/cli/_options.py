"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
MATCHING_PANEL = "Matching"
RENDERING_PANEL = "Rendering"
OUTPUT_PANEL = "Output"

InputPathArgument = Annotated[
    Path | None,
    typer.Argument(
        metavar="INPUT",
        help="HTML document to process. Standard input is read when omitted.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML or TOML file holding delimiters, ignored tags and KaTeX options.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

ParserOption = Annotated[
    str | None,
    typer.Option(
        "--parser",
        help="BeautifulSoup backend used to parse the input (html.parser, lxml, html5lib).",
        rich_help_panel=INPUTS_PANEL,
    ),
]

DelimiterOption = Annotated[
    list[str] | None,
    typer.Option(
        "--delimiter",
        "-d",
        metavar="'LEFT RIGHT [display|inline]'",
        help="Delimiter pair, applied in the order given. Replaces the default list.",
        rich_help_panel=MATCHING_PANEL,
    ),
]

IgnoreTagOption = Annotated[
    list[str] | None,
    typer.Option(
        "--ignore-tag",
        "-i",
        metavar="TAG",
        help="Element whose content is never scanned. Replaces the default set.",
        rich_help_panel=MATCHING_PANEL,
    ),
]

RenderOption = Annotated[
    list[str] | None,
    typer.Option(
        "--option",
        "-O",
        metavar="KEY=VALUE",
        help="KaTeX option forwarded to renderToString (e.g. throwOnError=false).",
        rich_help_panel=RENDERING_PANEL,
    ),
]

NodeExecutableOption = Annotated[
    str | None,
    typer.Option(
        "--node",
        metavar="PATH",
        help="Node.js executable used to run KaTeX.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

NodePathOption = Annotated[
    list[Path] | None,
    typer.Option(
        "--node-path",
        metavar="DIR",
        help="Directory added to NODE_PATH to locate the katex package.",
        rich_help_panel=RENDERING_PANEL,
    ),
]

OutputPathOption = Annotated[
    Path | None,
    typer.Option(
        "--output",
        "-o",
        help="Write the rendered HTML to this file instead of standard output.",
        dir_okay=False,
        resolve_path=True,
        rich_help_panel=OUTPUT_PANEL,
    ),
]
