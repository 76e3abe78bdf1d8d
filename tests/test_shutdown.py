"""Shutdown coordinator and registration tests."""

from __future__ import annotations

import io
import os
import signal
import sys

import pytest

from anyjar.local.config import ServerConfig
from anyjar.local.supervisor.process_utils import ChildInput
from anyjar.local.supervisor.shutdown import ShutdownCoordinator, ShutdownRegistration

from conftest import CapturingPipe


class FakeProcess:
    """Popen stand-in; a running fake reports the test process's own PID."""

    def __init__(self, exit_code=None) -> None:
        self.pid = os.getpid()
        self.exit_code = exit_code

    def poll(self):
        return self.exit_code


class ClosedPipe(io.BytesIO):
    def write(self, data):
        raise BrokenPipeError(32, "Broken pipe")


def make_coordinator(config: ServerConfig, process=None, pipe=None):
    pipe = pipe if pipe is not None else CapturingPipe()
    process = process if process is not None else FakeProcess()
    return ShutdownCoordinator(config, process, ChildInput(pipe)), pipe


JAR = ServerConfig(server_target="app.jar", use_options=True)


class TestShutdownCoordinator:
    """Decision rule and once-only behaviour."""

    @pytest.mark.parametrize(
        "config, expected",
        [
            (ServerConfig(server_target="app.jar", use_options=True), b"stop\n"),
            (ServerConfig(server_target="dir/App.JAR", use_options=True), b"stop\n"),
            (ServerConfig(server_target="run.sh", use_options=True), b""),
            (ServerConfig(server_target="run.bat", use_options=True), b""),
            (ServerConfig(server_target="run.cmd", use_options=True), b""),
            (ServerConfig(server_target="server.exe", use_options=True), b""),
            (ServerConfig(server_target="server", use_options=True), b""),
            (ServerConfig(server_target="app.jar", use_options=False, manual_startup_command="java -jar app.jar"), b""),
        ],
    )
    def test_stop_only_for_derived_jar(self, config, expected):
        coordinator, pipe = make_coordinator(config)
        assert coordinator.trigger() is bool(expected)
        assert pipe.written() == expected

    def test_stop_closes_child_input(self):
        coordinator, pipe = make_coordinator(JAR)
        coordinator.trigger()
        assert pipe.closed
        assert coordinator.child_input.closed

    def test_runs_once(self):
        coordinator, pipe = make_coordinator(JAR)
        assert coordinator.trigger() is True
        assert coordinator.trigger() is False
        assert pipe.written() == b"stop\n"

    def test_disarm_skips_action(self):
        coordinator, pipe = make_coordinator(JAR)
        coordinator.disarm()
        assert coordinator.done
        assert coordinator.trigger() is False
        assert pipe.written() == b""

    def test_exited_child_is_not_signalled(self):
        coordinator, pipe = make_coordinator(JAR, process=FakeProcess(exit_code=0))
        assert coordinator.trigger() is False
        assert pipe.written() == b""

    def test_write_failure_is_swallowed(self):
        coordinator, _ = make_coordinator(JAR, pipe=ClosedPipe())
        assert coordinator.trigger() is False
        assert coordinator.done


class TestShutdownRegistration:
    """Signal handler and atexit hook installation."""

    @pytest.mark.skipif(sys.platform == "win32", reason="SIGTERM handler semantics differ on Windows")
    def test_signal_handler_installed_and_restored(self):
        received = []
        previous = signal.getsignal(signal.SIGTERM)
        registration = ShutdownRegistration(received.append, lambda: None)

        registration.install()
        try:
            handler = signal.getsignal(signal.SIGTERM)
            assert handler is not previous
            handler(signal.SIGTERM, None)
            assert received == [signal.SIGTERM]
        finally:
            registration.uninstall()

        assert signal.getsignal(signal.SIGTERM) == previous

    def test_without_signal_handlers(self):
        previous = signal.getsignal(signal.SIGINT)
        registration = ShutdownRegistration(lambda signum: None, lambda: None)
        registration.install(install_signal_handlers=False)
        try:
            assert signal.getsignal(signal.SIGINT) == previous
        finally:
            registration.uninstall()

    def test_install_and_uninstall_are_idempotent(self):
        registration = ShutdownRegistration(lambda signum: None, lambda: None)
        registration.install(install_signal_handlers=False)
        registration.install(install_signal_handlers=False)
        registration.uninstall()
        registration.uninstall()
