"""Primary public API for katexsmith."""

from __future__ import annotations

from katexsmith.adapters.katex import KatexBridge, is_katex_available
from katexsmith.core.config import (
    DEFAULT_DELIMITERS,
    DEFAULT_IGNORED_TAGS,
    Delimiter,
    MathConfig,
    load_config,
)
from katexsmith.core.diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from katexsmith.core.exceptions import (
    ConfigurationError,
    HtmlParseError,
    KatexParseError,
    KatexSmithError,
    RenderError,
    RendererUnavailableError,
)
from katexsmith.core.html import serialize
from katexsmith.core.substitution import ExpressionRenderer, substitute
from katexsmith.renderer import KatexHtmlRenderer
from katexsmith.version import get_version


__version__ = get_version()

__all__ = [
    "DEFAULT_DELIMITERS",
    "DEFAULT_IGNORED_TAGS",
    "ConfigurationError",
    "Delimiter",
    "DiagnosticEmitter",
    "ExpressionRenderer",
    "HtmlParseError",
    "KatexBridge",
    "KatexHtmlRenderer",
    "KatexParseError",
    "KatexSmithError",
    "LoggingEmitter",
    "MathConfig",
    "NullEmitter",
    "RenderError",
    "RendererUnavailableError",
    "__version__",
    "get_version",
    "is_katex_available",
    "load_config",
    "serialize",
    "substitute",
]
