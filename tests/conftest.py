"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import io
import textwrap
import threading
import time
from pathlib import Path
from typing import Callable, List, Tuple

import pytest



class Recorder:
    """Stands in for both the log sink and the console sink, recording calls in order."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, str]] = []
        self._lock = threading.Lock()

    def _record(self, kind: str, line: str) -> None:
        with self._lock:
            self.events.append((kind, line))

    # log sink
    def info(self, line: str) -> None:
        self._record("info", line)

    def error(self, line: str) -> None:
        self._record("error", line)

    # console sink
    def out(self, line: str) -> None:
        self._record("out", line)

    def err(self, line: str) -> None:
        self._record("err", line)

    def notice(self, line: str) -> None:
        self._record("notice", line)

    def lines(self, kind: str) -> List[str]:
        with self._lock:
            return [line for k, line in self.events if k == kind]

    def wait_for(self, kind: str, line: str, timeout: float = 10.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if line in self.lines(kind):
                return True
            time.sleep(0.02)
        return False


class CapturingPipe(io.BytesIO):
    """A BytesIO that keeps its contents readable after close()."""

    captured = b""

    def close(self) -> None:
        if not self.closed:
            self.captured = self.getvalue()
        super().close()

    def written(self) -> bytes:
        return self.captured if self.closed else self.getvalue()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Temporary working directory for the supervised child."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def write_script(workspace: Path) -> Callable[[str, str], Path]:
    """Writes a Python script into the workspace and returns its path."""

    def _write(name: str, body: str) -> Path:
        path = workspace / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path

    return _write
