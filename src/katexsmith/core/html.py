"""BeautifulSoup helpers used to parse and serialise HTML fragments."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import warnings

from bs4 import BeautifulSoup, FeatureNotFound, MarkupResemblesLocatorWarning
from bs4.builder import ParserRejectedMarkup
from bs4.element import PageElement, Tag

from .diagnostics import DiagnosticEmitter, record_event
from .exceptions import HtmlParseError


FRAGMENT_PARSER = "html.parser"


@contextmanager
def _quiet_locator_warnings() -> Iterator[None]:
    # Short fragments such as "x" trip bs4's filename heuristics.
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        yield


def _build_soup(markup: str | bytes, parser: str) -> BeautifulSoup:
    try:
        with _quiet_locator_warnings():
            return BeautifulSoup(markup, parser)
    except ParserRejectedMarkup as exc:
        raise HtmlParseError(f"Unable to parse HTML input with '{parser}': {exc}") from exc


def parse_document(
    markup: str | bytes,
    parser: str = FRAGMENT_PARSER,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> BeautifulSoup:
    """Parse ``markup`` into a mutable tree.

    Falls back to the built-in parser when the requested backend is not
    installed.
    """
    try:
        return _build_soup(markup, parser)
    except FeatureNotFound:
        if parser == FRAGMENT_PARSER:
            raise
        record_event(emitter, "parser_fallback", {"preferred": parser, "fallback": FRAGMENT_PARSER})
        return _build_soup(markup, FRAGMENT_PARSER)


def parse_fragment(markup: str) -> list[PageElement]:
    """Parse ``markup`` and detach its top-level nodes, ready for insertion."""
    soup = _build_soup(markup, FRAGMENT_PARSER)
    return [node.extract() for node in list(soup.contents)]


def serialize(node: PageElement, *, formatter: str = "minimal") -> str:
    """Return the HTML serialisation of ``node``."""
    if isinstance(node, Tag):
        return node.decode(formatter=formatter)
    return str(node)


__all__ = ["FRAGMENT_PARSER", "parse_document", "parse_fragment", "serialize"]
