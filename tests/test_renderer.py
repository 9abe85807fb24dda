from __future__ import annotations

from collections.abc import Mapping
from html import escape
from typing import Any

from bs4 import BeautifulSoup
import pytest

from katexsmith import KatexHtmlRenderer, MathConfig, serialize
from katexsmith.core.config import DEFAULT_DELIMITERS, DEFAULT_IGNORED_TAGS, Delimiter
from katexsmith.core.exceptions import HtmlParseError


INLINE_AND_CODE = (
    '<div><span class="inline">\\(x\\)</span><code class="ignored">\\(x\\)</code></div>'
)


class RecordingRenderer:
    """Renderer double wrapping each expression in a tagged span."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def render(self, expression: str, options: Mapping[str, Any]) -> str:
        self.calls.append((expression, dict(options)))
        mode = "display" if options.get("displayMode") else "inline"
        return f'<span class="{mode}">{escape(expression)}</span>'

    @property
    def expressions(self) -> list[str]:
        return [expression for expression, _ in self.calls]


class RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))


@pytest.fixture
def recording_renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def recording_emitter() -> RecordingEmitter:
    return RecordingEmitter()


def test_default_configuration(recording_renderer: RecordingRenderer) -> None:
    renderer = KatexHtmlRenderer(renderer=recording_renderer)

    assert renderer.delimiters == DEFAULT_DELIMITERS
    assert renderer.ignored_tags == DEFAULT_IGNORED_TAGS
    assert [d.left for d in renderer.delimiters][:2] == ["$$", "\\("]
    assert renderer.delimiters[-1].left == "\\["


def test_inline_math_rendered_outside_ignored_tags(recording_renderer: RecordingRenderer) -> None:
    renderer = KatexHtmlRenderer(renderer=recording_renderer)

    tree = renderer.render_in_html(INLINE_AND_CODE)

    assert serialize(tree) == (
        '<div><span class="inline"><span class="inline">x</span></span>'
        '<code class="ignored">\\(x\\)</code></div>'
    )
    assert recording_renderer.calls == [("x", {"displayMode": False})]


def test_custom_delimiters_and_ignored_tags(recording_renderer: RecordingRenderer) -> None:
    renderer = KatexHtmlRenderer(
        delimiters=[{"left": "§§", "right": "§§", "display": False}],
        ignored_tags=["span"],
        renderer=recording_renderer,
    )

    tree = renderer.render_in_html("<div>§§x§§</div><span>§§x§§</span>")

    assert serialize(tree) == '<div><span class="inline">x</span></div><span>§§x§§</span>'
    assert renderer.ignored_tags == frozenset({"span"})


def test_display_math_keeps_text_between_matches(recording_renderer: RecordingRenderer) -> None:
    renderer = KatexHtmlRenderer(renderer=recording_renderer)

    tree = renderer.render_in_html("<p>$$a$$ and $$b$$</p>")

    assert recording_renderer.expressions == ["a", "b"]
    assert tree.p is not None
    assert tree.p.get_text() == "a and b"


def test_existing_tree_is_mutated_in_place(recording_renderer: RecordingRenderer) -> None:
    soup = BeautifulSoup("<p>\\[y\\]</p>", "html.parser")
    renderer = KatexHtmlRenderer(renderer=recording_renderer)

    result = renderer.render_in_html(soup)

    assert result is soup
    assert soup.find("span", class_="display") is not None


def test_environments_are_forwarded_whole(recording_renderer: RecordingRenderer) -> None:
    renderer = KatexHtmlRenderer(renderer=recording_renderer)

    renderer.render_in_html("<p>\\begin{align}a&amp;=b\\end{align}</p>")

    assert recording_renderer.calls == [
        ("\\begin{align}a&=b\\end{align}", {"displayMode": True})
    ]


def test_config_options_merge_under_call_options(recording_renderer: RecordingRenderer) -> None:
    config = MathConfig(options={"throwOnError": False, "output": "html"})
    renderer = KatexHtmlRenderer(config, renderer=recording_renderer)

    renderer.render_to_string("x", {"throwOnError": True, "displayMode": True})
    renderer.render_in_html("<p>\\(y\\)</p>", {"output": "mathml"})

    assert recording_renderer.calls == [
        ("x", {"throwOnError": True, "output": "html", "displayMode": True}),
        ("y", {"throwOnError": False, "output": "mathml", "displayMode": False}),
    ]


def test_render_to_string_does_not_scan_delimiters(recording_renderer: RecordingRenderer) -> None:
    renderer = KatexHtmlRenderer(renderer=recording_renderer)

    assert renderer.render_to_string("$$x$$") == '<span class="inline">$$x$$</span>'


def test_rejects_non_markup_input(recording_renderer: RecordingRenderer) -> None:
    renderer = KatexHtmlRenderer(renderer=recording_renderer)

    with pytest.raises(HtmlParseError):
        renderer.render_in_html(42)  # type: ignore[arg-type]


def test_missing_parser_backend_falls_back(
    recording_renderer: RecordingRenderer, recording_emitter: RecordingEmitter
) -> None:
    renderer = KatexHtmlRenderer(
        MathConfig(parser="nonexistent-parser"),
        renderer=recording_renderer,
        emitter=recording_emitter,
    )

    tree = renderer.render_in_html("<p>\\(x\\)</p>")

    assert serialize(tree) == '<p><span class="inline">x</span></p>'
    assert ("parser_fallback", {"preferred": "nonexistent-parser", "fallback": "html.parser"}) in (
        recording_emitter.events
    )


def test_lxml_backend_wraps_documents(recording_renderer: RecordingRenderer) -> None:
    pytest.importorskip("lxml")
    renderer = KatexHtmlRenderer(MathConfig(parser="lxml"), renderer=recording_renderer)

    tree = renderer.render_in_html("<p>\\(x\\)</p>")

    assert tree.body is not None
    assert str(tree.body.p) == '<p><span class="inline">x</span></p>'


def test_prefix_shadowing_is_reported(
    recording_renderer: RecordingRenderer, recording_emitter: RecordingEmitter
) -> None:
    KatexHtmlRenderer(
        delimiters=[Delimiter(left="$", right="$"), Delimiter(left="$$", right="$$", display=True)],
        renderer=recording_renderer,
        emitter=recording_emitter,
    )

    assert len(recording_emitter.warnings) == 1
    assert "$...$" in recording_emitter.warnings[0]


def test_default_delimiters_are_not_shadowed(recording_emitter: RecordingEmitter) -> None:
    KatexHtmlRenderer(renderer=RecordingRenderer(), emitter=recording_emitter)

    assert recording_emitter.warnings == []


def test_close_leaves_injected_renderer_alone() -> None:
    class ClosableRenderer(RecordingRenderer):
        closed = False

        def close(self) -> None:
            self.closed = True

    injected = ClosableRenderer()
    with KatexHtmlRenderer(renderer=injected):
        pass

    assert injected.closed is False
