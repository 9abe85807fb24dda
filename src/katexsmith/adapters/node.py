"""Abstractions for invoking Node.js scripts safely."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import os
from pathlib import Path
import shutil
import subprocess

from katexsmith.core.exceptions import RendererUnavailableError


@dataclass(slots=True)
class NodeScriptRequest:
    """Full request payload for a Node.js execution."""

    script: str
    node_path: Sequence[Path | str] = field(default_factory=tuple)
    environment: Mapping[str, str] = field(default_factory=dict)


class NodeRunner:
    """Utility class encapsulating Node.js invocations."""

    def __init__(self, executable: str | None = None) -> None:
        self._explicit_executable = executable
        self._cached_executable: str | None = None

    @property
    def executable(self) -> str:
        """Return the resolved Node.js executable."""
        return self._resolve_executable()

    def spawn(self, request: NodeScriptRequest) -> subprocess.Popen[str]:
        """Start a long-running script talking over line-buffered pipes."""
        command = self.build_command(request)
        try:
            return subprocess.Popen(
                command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                bufsize=1,
                env=self.build_environment(request),
            )
        except FileNotFoundError as exc:
            self._cached_executable = None
            raise RendererUnavailableError("Node.js executable could not be located.") from exc
        except OSError as exc:
            raise RendererUnavailableError(f"Failed to invoke Node.js: {exc}") from exc

    def build_command(self, request: NodeScriptRequest) -> list[str]:
        return [self.executable, "-e", request.script]

    def build_environment(self, request: NodeScriptRequest) -> dict[str, str]:
        environment = dict(os.environ)
        environment.update(request.environment)
        entries = [str(Path(entry).expanduser()) for entry in request.node_path]
        existing = environment.get("NODE_PATH")
        if existing:
            entries.append(existing)
        if entries:
            environment["NODE_PATH"] = os.pathsep.join(entries)
        return environment

    def _resolve_executable(self) -> str:
        if self._explicit_executable:
            return self._explicit_executable

        if self._cached_executable:
            return self._cached_executable

        try:
            executable = shutil.which("node") or shutil.which("nodejs")
        except (AssertionError, OSError, ValueError):
            executable = None

        if executable:
            self._cached_executable = executable
            return executable

        raise RendererUnavailableError("Node.js is required but was not found on PATH.")


__all__ = [
    "NodeRunner",
    "NodeScriptRequest",
]
