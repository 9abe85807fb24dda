"""KaTeX renderer running inside a long-lived Node.js process.

The bridge starts ``node`` once, loads the ``katex`` npm package and then
exchanges one JSON document per line: ``{"expression", "options"}`` requests
are answered with ``{"html"}`` or ``{"error"}`` replies. Calls are blocking and
serialised with a lock so a single bridge may back several renderers.
"""

from __future__ import annotations

import atexit
from collections.abc import Mapping, Sequence
from contextlib import suppress
import json
import logging
from pathlib import Path
import subprocess
import threading
from typing import Any

from katexsmith.core.diagnostics import DiagnosticEmitter, record_event
from katexsmith.core.exceptions import KatexParseError, RenderError, RendererUnavailableError

from .node import NodeRunner, NodeScriptRequest


logger = logging.getLogger(__name__)

KATEX_MODULE = "katex"

_BRIDGE_SCRIPT = r"""
const readline = require("readline");
const describe = (error) => String((error && error.message) || error);
let katex = null;
try {
  katex = require(process.env.KATEXSMITH_MODULE || "katex");
} catch (error) {
  process.stdout.write(JSON.stringify({ fatal: describe(error) }) + "\n");
  process.exitCode = 1;
}
if (katex) {
  process.stdout.write(JSON.stringify({ ready: true, version: katex.version || null }) + "\n");
  const lines = readline.createInterface({ input: process.stdin, terminal: false });
  lines.on("line", serve);
}
function serve(line) {
  let reply;
  try {
    const request = JSON.parse(line);
    reply = { html: katex.renderToString(request.expression, request.options || {}) };
  } catch (error) {
    const isParseError = Boolean(katex.ParseError) && error instanceof katex.ParseError;
    reply = {
      error: {
        name: isParseError ? "ParseError" : (error && error.name) || "Error",
        message: describe(error),
        position: error && typeof error.position === "number" ? error.position : null,
      },
    };
  }
  process.stdout.write(JSON.stringify(reply) + "\n");
}
"""


class KatexBridge:
    """Render expressions with ``katex.renderToString`` through Node.js."""

    def __init__(
        self,
        *,
        runner: NodeRunner | None = None,
        node_executable: str | None = None,
        node_path: Sequence[Path | str] = (),
        module: str = KATEX_MODULE,
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.runner = runner or NodeRunner(node_executable)
        self.node_path = tuple(node_path)
        self.module = module
        self.emitter = emitter
        self.version: str | None = None
        self._process: subprocess.Popen[str] | None = None
        self._lock = threading.Lock()

    def __enter__(self) -> KatexBridge:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def running(self) -> bool:
        """Return True while the Node.js process is alive."""
        return self._process is not None and self._process.poll() is None

    def is_available(self) -> bool:
        """Return True when Node.js and the KaTeX package can be loaded."""
        try:
            self.start()
        except RendererUnavailableError:
            return False
        return True

    def start(self) -> None:
        """Start the Node.js process unless it is already running."""
        with self._lock:
            self._ensure_started()

    def render(self, expression: str, options: Mapping[str, Any]) -> str:
        """Render ``expression`` and return the KaTeX HTML string."""
        payload = json.dumps({"expression": expression, "options": dict(options)})
        with self._lock:
            process = self._ensure_started()
            reply = self._exchange(process, payload)

        if "html" in reply:
            return str(reply["html"])

        error = reply.get("error") or {}
        message = str(error.get("message") or "KaTeX failed to render the expression.")
        if error.get("name") == "ParseError":
            raise KatexParseError(message, expression=expression, position=error.get("position"))
        raise RenderError(message, expression=expression)

    def close(self) -> None:
        """Stop the Node.js process."""
        with self._lock:
            process = self._process
            self._process = None
        if process is None:
            return
        atexit.unregister(self.close)
        if process.stdin is not None:
            process.stdin.close()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
        if process.stdout is not None:
            process.stdout.close()
        logger.debug("KaTeX bridge stopped (exit code %s)", process.returncode)

    # --------------------------------------------------------------------- helpers

    def _request(self, script: str) -> NodeScriptRequest:
        return NodeScriptRequest(
            script=script,
            node_path=self.node_path,
            environment={"KATEXSMITH_MODULE": self.module},
        )

    def _ensure_started(self) -> subprocess.Popen[str]:
        if self._process is not None:
            if self._process.poll() is None:
                return self._process
            logger.debug("KaTeX bridge exited with code %s, restarting", self._process.returncode)
            self._discard(self._process)

        process = self.runner.spawn(self._request(_BRIDGE_SCRIPT))
        try:
            handshake = self._read_reply(process)
        except RendererUnavailableError:
            _terminate(process)
            raise
        if handshake is None or not handshake.get("ready"):
            detail = (handshake or {}).get("fatal") or "no handshake received"
            _terminate(process)
            raise RendererUnavailableError(
                f"Unable to load the '{self.module}' package with Node.js: {detail}"
            )

        self._process = process
        self.version = handshake.get("version")
        atexit.register(self.close)
        logger.debug("KaTeX bridge started (pid %s)", process.pid)
        record_event(
            self.emitter,
            "katex_started",
            {"executable": self.runner.executable, "version": self.version},
        )
        return process

    def _exchange(self, process: subprocess.Popen[str], payload: str) -> dict[str, Any]:
        assert process.stdin is not None
        try:
            process.stdin.write(payload + "\n")
            process.stdin.flush()
        except (BrokenPipeError, OSError) as exc:
            self._discard(process)
            raise RendererUnavailableError("KaTeX bridge process is no longer running.") from exc

        try:
            reply = self._read_reply(process)
        except RendererUnavailableError:
            self._discard(process)
            raise
        if reply is None:
            self._discard(process)
            raise RendererUnavailableError("KaTeX bridge process exited unexpectedly.")
        return reply

    def _discard(self, process: subprocess.Popen[str]) -> None:
        if self._process is process:
            self._process = None
            atexit.unregister(self.close)
        _terminate(process)

    def _read_reply(self, process: subprocess.Popen[str]) -> dict[str, Any] | None:
        assert process.stdout is not None
        line = process.stdout.readline()
        if not line:
            return None
        try:
            reply = json.loads(line)
        except json.JSONDecodeError as exc:
            raise RendererUnavailableError(f"Malformed reply from KaTeX bridge: {line!r}") from exc
        if not isinstance(reply, dict):
            raise RendererUnavailableError(f"Malformed reply from KaTeX bridge: {line!r}")
        return reply


def _terminate(process: subprocess.Popen[str]) -> None:
    process.kill()
    process.wait()
    for stream in (process.stdin, process.stdout):
        if stream is not None:
            with suppress(BrokenPipeError):
                stream.close()


def is_katex_available(**kwargs: Any) -> bool:
    """Return True when a bridge can be started with the given settings."""
    with KatexBridge(**kwargs) as bridge:
        return bridge.is_available()


__all__ = ["KATEX_MODULE", "KatexBridge", "is_katex_available"]
