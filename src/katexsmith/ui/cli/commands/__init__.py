"""CLI command implementations exposed via `katexsmith.ui.cli`."""

from __future__ import annotations

from .expr import expr
from .html import html


__all__ = ["expr", "html"]
