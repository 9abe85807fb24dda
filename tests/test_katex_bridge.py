from __future__ import annotations

import io
import json
import os
from pathlib import Path
from typing import Any

import pytest

from katexsmith.adapters import katex as katex_mod, node as node_mod
from katexsmith.adapters.katex import KatexBridge
from katexsmith.adapters.node import NodeRunner, NodeScriptRequest
from katexsmith.core.exceptions import KatexParseError, RenderError, RendererUnavailableError


class _StubProcess:
    def __init__(self, *replies: dict[str, Any]) -> None:
        self.stdin = io.StringIO()
        self.stdout = io.StringIO("".join(json.dumps(reply) + "\n" for reply in replies))
        self.pid = 4242
        self.returncode: int | None = None
        self.killed = False

    def poll(self) -> int | None:
        return self.returncode

    def wait(self, timeout: float | None = None) -> int:
        self.returncode = 0
        return 0

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    @property
    def requests(self) -> list[dict[str, Any]]:
        return [json.loads(line) for line in self.stdin.getvalue().splitlines()]


def _bridge(monkeypatch: pytest.MonkeyPatch, *processes: _StubProcess) -> KatexBridge:
    runner = NodeRunner(executable="/usr/bin/node")
    requests: list[NodeScriptRequest] = []
    pending = iter(processes)

    def fake_spawn(request: NodeScriptRequest) -> _StubProcess:
        requests.append(request)
        return next(pending)

    monkeypatch.setattr(runner, "spawn", fake_spawn)
    bridge = KatexBridge(runner=runner, node_path=["/srv/node_modules"])
    bridge.spawned = requests  # type: ignore[attr-defined]
    return bridge


def test_render_round_trips_request(monkeypatch: pytest.MonkeyPatch) -> None:
    process = _StubProcess({"ready": True, "version": "0.16.9"}, {"html": "<span>x</span>"})
    bridge = _bridge(monkeypatch, process)

    html = bridge.render("x", {"displayMode": True, "throwOnError": True})

    assert html == "<span>x</span>"
    assert bridge.version == "0.16.9"
    assert process.requests == [
        {"expression": "x", "options": {"displayMode": True, "throwOnError": True}}
    ]
    (request,) = bridge.spawned  # type: ignore[attr-defined]
    assert request.environment == {"KATEXSMITH_MODULE": "katex"}
    assert tuple(request.node_path) == ("/srv/node_modules",)


def test_process_is_started_once(monkeypatch: pytest.MonkeyPatch) -> None:
    process = _StubProcess({"ready": True}, {"html": "a"}, {"html": "b"})
    bridge = _bridge(monkeypatch, process)

    assert [bridge.render("a", {}), bridge.render("b", {})] == ["a", "b"]
    assert len(bridge.spawned) == 1  # type: ignore[attr-defined]
    assert bridge.running


def test_parse_errors_are_distinguished(monkeypatch: pytest.MonkeyPatch) -> None:
    process = _StubProcess(
        {"ready": True},
        {"error": {"name": "ParseError", "message": "Undefined control sequence", "position": 1}},
    )
    bridge = _bridge(monkeypatch, process)

    with pytest.raises(KatexParseError) as excinfo:
        bridge.render("\\foo", {"throwOnError": True})

    assert excinfo.value.expression == "\\foo"
    assert excinfo.value.position == 1
    assert "Undefined control sequence" in str(excinfo.value)


def test_other_errors_raise_render_error(monkeypatch: pytest.MonkeyPatch) -> None:
    process = _StubProcess(
        {"ready": True}, {"error": {"name": "TypeError", "message": "bad options"}}
    )
    bridge = _bridge(monkeypatch, process)

    with pytest.raises(RenderError) as excinfo:
        bridge.render("x", {})

    assert not isinstance(excinfo.value, KatexParseError)


def test_missing_katex_module(monkeypatch: pytest.MonkeyPatch) -> None:
    process = _StubProcess({"fatal": "Cannot find module 'katex'"})
    bridge = _bridge(monkeypatch, process)

    with pytest.raises(RendererUnavailableError, match="Cannot find module"):
        bridge.render("x", {})

    assert process.killed


def test_is_available_reports_missing_module(monkeypatch: pytest.MonkeyPatch) -> None:
    bridge = _bridge(monkeypatch, _StubProcess({"fatal": "Cannot find module 'katex'"}))

    assert bridge.is_available() is False


def test_process_exit_is_reported(monkeypatch: pytest.MonkeyPatch) -> None:
    process = _StubProcess({"ready": True})
    bridge = _bridge(monkeypatch, process)

    with pytest.raises(RendererUnavailableError, match="exited unexpectedly"):
        bridge.render("x", {})

    assert process.stdin.closed
    assert process.stdout.closed
    assert not bridge.running


def test_malformed_reply_stops_process(monkeypatch: pytest.MonkeyPatch) -> None:
    process = _StubProcess({"ready": True})
    process.stdout = io.StringIO('{"ready": true}\nnot json\n')
    bridge = _bridge(monkeypatch, process)

    with pytest.raises(RendererUnavailableError, match="Malformed reply"):
        bridge.render("x", {})

    assert process.killed
    assert process.stdout.closed


def test_dead_process_is_replaced(monkeypatch: pytest.MonkeyPatch) -> None:
    crashed = _StubProcess({"ready": True}, {"html": "a"})
    fresh = _StubProcess({"ready": True}, {"html": "b"})
    bridge = _bridge(monkeypatch, crashed, fresh)

    assert bridge.render("a", {}) == "a"
    crashed.returncode = 1
    assert bridge.render("b", {}) == "b"

    assert crashed.stdin.closed
    assert crashed.stdout.closed
    assert len(bridge.spawned) == 2  # type: ignore[attr-defined]
    assert fresh.requests == [{"expression": "b", "options": {}}]


def test_close_stops_process(monkeypatch: pytest.MonkeyPatch) -> None:
    process = _StubProcess({"ready": True})
    bridge = _bridge(monkeypatch, process)
    bridge.start()

    bridge.close()

    assert process.stdin.closed
    assert process.returncode == 0
    assert not bridge.running


def test_is_katex_available_without_node(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(node_mod.shutil, "which", lambda _: None)

    assert katex_mod.is_katex_available() is False


def test_runner_environment_extends_node_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NODE_PATH", "/usr/lib/node_modules")
    runner = NodeRunner(executable="/usr/bin/node")
    request = NodeScriptRequest(
        script="1", node_path=[Path("/srv/node_modules")], environment={"EXTRA": "1"}
    )

    environment = runner.build_environment(request)

    assert environment["NODE_PATH"] == os.pathsep.join(
        ["/srv/node_modules", "/usr/lib/node_modules"]
    )
    assert environment["EXTRA"] == "1"
    assert runner.build_command(request) == ["/usr/bin/node", "-e", "1"]


def test_runner_requires_node(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(node_mod.shutil, "which", lambda _: None)
    runner = NodeRunner()

    with pytest.raises(RendererUnavailableError):
        runner.build_command(NodeScriptRequest(script="1"))

