"""Delimiter substitution engine.

For every delimiter, in order, the engine snapshots the eligible text nodes
of the tree, renders each delimited span through an
:class:`ExpressionRenderer`, and replaces the text node with the parsed
markup. Text surrounding the matches is escaped before reparsing so it comes
back as the same text. Nodes without any match are never touched.

Renderer failures propagate unchanged and abort the whole pass; the tree is
not rolled back.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from html import escape
from typing import Any, Protocol, runtime_checkable

from bs4.element import NavigableString, PageElement

from .config import Delimiter
from .diagnostics import DiagnosticEmitter, record_event
from .html import parse_fragment
from .matching import MathMatch, find_matches
from .walker import TextNodeWalker


@runtime_checkable
class ExpressionRenderer(Protocol):
    """Converts a math expression into an HTML string."""

    def render(self, expression: str, options: Mapping[str, Any]) -> str: ...


def render_options(options: Mapping[str, Any] | None, delimiter: Delimiter) -> dict[str, Any]:
    """Return ``options`` extended with the delimiter display flag."""
    merged = dict(options or {})
    merged["displayMode"] = delimiter.display
    return merged


def build_markup(
    text: str,
    matches: Iterable[MathMatch],
    rendered: Iterable[str],
) -> str:
    """Interleave the escaped text between matches with rendered markup."""
    parts: list[str] = []
    cursor = 0
    for match, html in zip(matches, rendered, strict=True):
        parts.append(escape(text[cursor : match.start], quote=False))
        parts.append(html)
        cursor = match.end
    parts.append(escape(text[cursor:], quote=False))
    return "".join(parts)


def replace_text_node(node: NavigableString, markup: str) -> list[PageElement]:
    """Swap ``node`` for the nodes parsed from ``markup``."""
    fragment = parse_fragment(markup)
    if fragment:
        node.replace_with(*fragment)
    else:
        node.extract()
    return fragment


def substitute_delimiter(
    root: PageElement,
    delimiter: Delimiter,
    ignored_tags: Collection[str],
    renderer: ExpressionRenderer,
    options: Mapping[str, Any] | None = None,
) -> int:
    """Apply a single delimiter to every eligible text node below ``root``.

    Returns the number of rendered expressions.
    """
    call_options = render_options(options, delimiter)
    count = 0
    for node in TextNodeWalker(root, ignored_tags).snapshot():
        text = str(node)
        matches = find_matches(text, delimiter)
        if not matches:
            continue
        rendered = [renderer.render(match.expression, call_options) for match in matches]
        replace_text_node(node, build_markup(text, matches, rendered))
        count += len(matches)
    return count


def substitute(
    root: PageElement,
    delimiters: Iterable[Delimiter],
    ignored_tags: Collection[str],
    renderer: ExpressionRenderer,
    options: Mapping[str, Any] | None = None,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> PageElement:
    """Render every delimited expression below ``root`` in place and return it."""
    for delimiter in delimiters:
        count = substitute_delimiter(root, delimiter, ignored_tags, renderer, options)
        record_event(
            emitter,
            "math_rendered",
            {
                "left": delimiter.left,
                "right": delimiter.right,
                "display": delimiter.display,
                "count": count,
            },
        )
    return root


__all__ = [
    "ExpressionRenderer",
    "build_markup",
    "render_options",
    "replace_text_node",
    "substitute",
    "substitute_delimiter",
]
