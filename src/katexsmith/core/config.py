"""Configuration models used by the math renderer.

Delimiter

`left` (`str`)
: Opening marker, matched literally. Must not be empty.

`right` (`str`)
: Closing marker, matched literally. Must not be empty.

`display` (`bool`)
: Render the expression in display mode instead of inline mode.

`keep_delimiters` (`bool`)
: Forward the whole match, markers included, to the renderer. Used by the
  `\\begin{env}...\\end{env}` defaults since KaTeX typesets the environment
  itself.

MathConfig

`delimiters` (`tuple[Delimiter, ...]`)
: Ordered delimiter pairs. Each pair is applied to the whole document before
  the next one is attempted, so a delimiter that is a prefix of another
  (`$` and `$$`) must be listed after the longer one.

`ignored_tags` (`frozenset[str]`)
: Element names whose subtrees are never scanned for math. Names are
  lowercased.

`parser` (`str`)
: BeautifulSoup backend used to parse input documents. `html.parser` keeps
  fragments as-is; `lxml` and `html5lib` wrap them into a full document.

`options` (`dict[str, Any]`)
: Default KaTeX options (camelCase keys such as `throwOnError`) merged under
  the options given to each call.

`node_executable` (`str | None`)
: Path to the Node.js executable. Looked up on `PATH` when omitted.

`node_path` (`list[Path]`)
: Extra directories appended to `NODE_PATH` so the `katex` npm package can be
  resolved.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
import tomllib
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
import yaml

from .exceptions import ConfigurationError


class Delimiter(BaseModel):
    """Pair of literal markers surrounding a math expression."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    left: str = Field(min_length=1)
    right: str = Field(min_length=1)
    display: bool = False
    keep_delimiters: bool = False

    @model_validator(mode="before")
    @classmethod
    def _coerce_sequence(cls, value: Any) -> Any:
        """Accept ``[left, right]`` and ``[left, right, display]`` shorthands."""
        if isinstance(value, Sequence) and not isinstance(value, str | bytes):
            items = list(value)
            if len(items) not in (2, 3):
                msg = "Delimiter shorthand expects [left, right] or [left, right, display]."
                raise ValueError(msg)
            payload: dict[str, Any] = {"left": items[0], "right": items[1]}
            if len(items) == 3:
                payload["display"] = items[2]
            return payload
        return value


def _environment(name: str) -> Delimiter:
    return Delimiter(
        left=f"\\begin{{{name}}}",
        right=f"\\end{{{name}}}",
        display=True,
        keep_delimiters=True,
    )


DEFAULT_DELIMITERS: tuple[Delimiter, ...] = (
    Delimiter(left="$$", right="$$", display=True),
    Delimiter(left="\\(", right="\\)", display=False),
    _environment("equation"),
    _environment("align"),
    _environment("alignat"),
    _environment("gather"),
    _environment("CD"),
    Delimiter(left="\\[", right="\\]", display=True),
)

DEFAULT_IGNORED_TAGS: frozenset[str] = frozenset(
    {"script", "noscript", "style", "textarea", "pre", "code", "option"}
)

DEFAULT_PARSER = "html.parser"


class MathConfig(BaseModel):
    """Settings shared by every render call of a renderer instance."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    delimiters: tuple[Delimiter, ...] = DEFAULT_DELIMITERS
    ignored_tags: frozenset[str] = DEFAULT_IGNORED_TAGS
    parser: str = DEFAULT_PARSER
    options: dict[str, Any] = Field(default_factory=dict)
    node_executable: str | None = None
    node_path: list[Path] = Field(default_factory=list)

    @field_validator("ignored_tags", mode="before")
    @classmethod
    def _normalise_tags(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if isinstance(value, Iterable):
            return frozenset(str(tag).strip().lower() for tag in value if str(tag).strip())
        return value

    @field_validator("parser")
    @classmethod
    def _check_parser(cls, value: str) -> str:
        token = value.strip()
        if not token:
            msg = "Parser backend name cannot be empty."
            raise ValueError(msg)
        return token


def shadowed_delimiters(
    delimiters: Sequence[Delimiter],
) -> list[tuple[Delimiter, Delimiter]]:
    """Return ``(earlier, later)`` pairs where ``earlier`` swallows ``later``.

    A delimiter whose left marker is a prefix of the left marker of a
    delimiter listed after it consumes that delimiter's text first.
    """
    shadowed: list[tuple[Delimiter, Delimiter]] = []
    for index, earlier in enumerate(delimiters):
        for later in delimiters[index + 1 :]:
            if later.left.startswith(earlier.left):
                shadowed.append((earlier, later))
    return shadowed


def load_config(path: Path | str, **overrides: Any) -> MathConfig:
    """Load a :class:`MathConfig` from a YAML or TOML file."""
    source = Path(path)
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Unable to read configuration file '{source}': {exc}") from exc

    suffix = source.suffix.lower()
    try:
        if suffix == ".toml":
            data: Any = tomllib.loads(text)
        elif suffix in {".yml", ".yaml"}:
            data = yaml.safe_load(text)
        else:
            raise ConfigurationError(
                f"Unsupported configuration format '{source.suffix}', expected .yml, .yaml or .toml."
            )
    except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Invalid configuration file '{source}': {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Configuration file '{source}' must contain a mapping.")
    section = data.get("katexsmith", data)
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"The 'katexsmith' section of '{source}' must be a mapping.")

    payload = dict(section)
    payload.update(overrides)
    node_path = payload.get("node_path")
    if isinstance(node_path, str | Path):
        node_path = [node_path]
    if node_path:
        payload["node_path"] = [
            entry if Path(entry).is_absolute() else source.parent / entry for entry in node_path
        ]

    try:
        return MathConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration in '{source}': {exc}") from exc


__all__ = [
    "DEFAULT_DELIMITERS",
    "DEFAULT_IGNORED_TAGS",
    "DEFAULT_PARSER",
    "Delimiter",
    "MathConfig",
    "load_config",
    "shadowed_delimiters",
]
