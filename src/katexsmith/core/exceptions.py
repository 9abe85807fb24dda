"""Custom exception hierarchy for the math rendering pipeline."""

from __future__ import annotations


class KatexSmithError(RuntimeError):
    """Base exception for math rendering failures."""


class RenderError(KatexSmithError):
    """Raised when the renderer rejects an expression."""

    def __init__(self, message: str, *, expression: str | None = None) -> None:
        super().__init__(message)
        self.expression = expression


class KatexParseError(RenderError):
    """Raised when KaTeX cannot parse an expression in strict mode."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        position: int | None = None,
    ) -> None:
        super().__init__(message, expression=expression)
        self.position = position


class RendererUnavailableError(KatexSmithError):
    """Raised when the external renderer cannot be located or started."""


class HtmlParseError(KatexSmithError):
    """Raised when the HTML input cannot be turned into a document tree."""


class ConfigurationError(KatexSmithError):
    """Raised when configuration values or files are invalid."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConfigurationError",
    "HtmlParseError",
    "KatexParseError",
    "KatexSmithError",
    "RenderError",
    "RendererUnavailableError",
    "exception_hint",
    "exception_messages",
]
