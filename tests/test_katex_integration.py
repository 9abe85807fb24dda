"""End-to-end checks against a real KaTeX installation."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from katexsmith import KatexBridge, KatexHtmlRenderer, KatexParseError, serialize


@pytest.fixture(scope="module")
def katex_renderer() -> Iterator[KatexHtmlRenderer]:
    bridge = KatexBridge()
    if not bridge.is_available():
        bridge.close()
        pytest.skip("Node.js with the katex package is not available.")
    with bridge, KatexHtmlRenderer(renderer=bridge) as renderer:
        yield renderer


def test_render_to_string_matches_katex(katex_renderer: KatexHtmlRenderer) -> None:
    expected_html = (
        '<span class="katex-display">'
        '<span class="katex">'
        '<span class="katex-html" aria-hidden="true">'
        '<span class="base">'
        '<span class="strut" style="height:0.4306em;"></span>'
        '<span class="mord mathnormal">x</span>'
        "</span>"
        "</span>"
        "</span>"
        "</span>"
    )

    html = katex_renderer.render_to_string(
        "x", {"output": "html", "displayMode": True, "throwOnError": True}
    )

    assert html == expected_html


def test_render_in_html_skips_ignored_tags(katex_renderer: KatexHtmlRenderer) -> None:
    tree = katex_renderer.render_in_html(
        '<div><span class="inline">\\(x\\)</span><code class="ignored">\\(x\\)</code></div>'
    )

    output = serialize(tree)
    inline = tree.find("span", class_="inline")
    assert inline is not None
    assert inline.find("span", class_="katex") is not None
    assert inline.find("span", class_="katex-display") is None
    assert '<span class="mord mathnormal">x</span>' in output
    assert '<code class="ignored">\\(x\\)</code>' in output


def test_invalid_expression_raises_parse_error(katex_renderer: KatexHtmlRenderer) -> None:
    with pytest.raises(KatexParseError):
        katex_renderer.render_in_html("<p>\\(\\frac{1}\\)</p>", {"throwOnError": True})


def test_lenient_mode_returns_error_markup(katex_renderer: KatexHtmlRenderer) -> None:
    html = katex_renderer.render_to_string("\\undefinedmacro", {"throwOnError": False})

    assert "katex-error" in html
