"""High-level renderer replacing delimited math in HTML with KaTeX markup."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from bs4.element import Tag

from katexsmith.adapters.katex import KatexBridge
from katexsmith.core.config import Delimiter, MathConfig, shadowed_delimiters
from katexsmith.core.diagnostics import DiagnosticEmitter, NullEmitter
from katexsmith.core.exceptions import HtmlParseError
from katexsmith.core.html import parse_document
from katexsmith.core.substitution import ExpressionRenderer, substitute


class KatexHtmlRenderer:
    """Render math expressions, alone or embedded in HTML fragments.

    The delimiter list and ignored tags are fixed for the lifetime of the
    instance. Without an explicit ``renderer`` a :class:`KatexBridge` is created
    from the configuration and owned by this instance; :meth:`close` stops it.
    """

    def __init__(
        self,
        config: MathConfig | None = None,
        *,
        delimiters: Iterable[Delimiter | Mapping[str, Any]] | None = None,
        ignored_tags: Iterable[str] | None = None,
        renderer: ExpressionRenderer | None = None,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        config = config or MathConfig()
        updates: dict[str, Any] = {}
        if delimiters is not None:
            updates["delimiters"] = list(delimiters)
        if ignored_tags is not None:
            updates["ignored_tags"] = list(ignored_tags)
        if updates:
            config = MathConfig.model_validate({**config.model_dump(), **updates})
        self.config = config
        self.emitter = emitter or NullEmitter()

        self._owns_renderer = renderer is None
        self.renderer: ExpressionRenderer = renderer or KatexBridge(
            node_executable=config.node_executable,
            node_path=config.node_path,
            emitter=self.emitter,
        )

        for earlier, later in shadowed_delimiters(config.delimiters):
            self.emitter.warning(
                f"Delimiter {earlier.left}...{earlier.right} is listed before "
                f"{later.left}...{later.right} and will consume its opening marker."
            )

    def __enter__(self) -> KatexHtmlRenderer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def delimiters(self) -> tuple[Delimiter, ...]:
        return self.config.delimiters

    @property
    def ignored_tags(self) -> frozenset[str]:
        return self.config.ignored_tags

    def render_to_string(self, expression: str, options: Mapping[str, Any] | None = None) -> str:
        """Render a single expression whose boundaries are already known."""
        return self.renderer.render(expression, self._merge_options(options))

    def render_in_html(
        self,
        html: str | bytes | Tag,
        options: Mapping[str, Any] | None = None,
    ) -> Tag:
        """Replace every delimited expression in ``html`` with rendered markup.

        Strings are parsed with the configured backend; an existing tree is
        mutated in place. The tree is returned unserialised. A renderer failure
        aborts the call and leaves the tree partially rendered.
        """
        if isinstance(html, Tag):
            root = html
        elif isinstance(html, str | bytes):
            root = parse_document(html, self.config.parser, emitter=self.emitter)
        else:
            raise HtmlParseError(
                f"Expected HTML markup or a BeautifulSoup tree, got {type(html).__name__}."
            )

        substitute(
            root,
            self.config.delimiters,
            self.config.ignored_tags,
            self.renderer,
            self._merge_options(options),
            emitter=self.emitter,
        )
        return root

    def close(self) -> None:
        """Release the renderer when this instance created it."""
        if self._owns_renderer and isinstance(self.renderer, KatexBridge):
            self.renderer.close()

    def _merge_options(self, options: Mapping[str, Any] | None) -> dict[str, Any]:
        merged = dict(self.config.options)
        if options:
            merged.update(options)
        return merged


__all__ = ["KatexHtmlRenderer"]
