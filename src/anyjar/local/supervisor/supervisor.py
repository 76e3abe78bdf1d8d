import sys
import signal
import logging
import threading
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, TextIO

from anyjar import settings
from anyjar.local.config import ServerConfig
from anyjar.local.console import ConsoleSink
from anyjar.local.supervisor import process_utils, startup
from anyjar.local.supervisor.command import build_command
from anyjar.local.supervisor.shutdown import ShutdownCoordinator, ShutdownRegistration

log = logging.getLogger(__name__)


class SupervisorState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SPAWNED = "spawned"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class RunOutcome(Enum):
    COMPLETED = "completed"
    INVALID_CONFIG = "invalid_config"
    SPAWN_FAILED = "spawn_failed"


@dataclass
class RunResult:
    """
    What a supervisor run ended with.

    `exit_code` is the child's exit code, or None if the child never spawned or
    was still running when the supervisor finished.
    """
    outcome: RunOutcome
    invocation: List[str] = field(default_factory=list)
    exit_code: Optional[int] = None
    failed_tasks: List[str] = field(default_factory=list)

    @property
    def exit_status(self) -> int:
        """The supervisor's own exit status: only a failed spawn is an error."""
        return 1 if self.outcome is RunOutcome.SPAWN_FAILED else 0


class ProcessSupervisor:
    """
    Runs one child process for one run of the launcher.

    The supervisor validates the configuration, spawns the child, relays its
    stdout/stderr to the log and the console, forwards operator input to its
    stdin and, when asked to terminate, lets the shutdown coordinator stop it.
    """

    def __init__(
        self,
        config: ServerConfig,
        output_logger: Optional[Any] = None,
        console: Optional[ConsoleSink] = None,
        input_stream: Optional[TextIO] = None,
        cwd: Optional[Path] = None,
        grace_period: float = settings.TASK_GRACE_PERIOD,
        shutdown_timeout: float = settings.SHUTDOWN_WAIT_TIMEOUT,
        poll_interval: float = settings.WAIT_POLL_INTERVAL,
        install_signal_handlers: bool = True,
        name: str = "server",
    ) -> None:
        """
        Initializes the supervisor. Nothing is validated or spawned until run().

        :param config: The server configuration.
        :param output_logger: Log sink with `info` and `error` for child stdout/stderr.
        :param console: Console sink for relayed output and operator messages.
        :param input_stream: Operator input forwarded to the child, sys.stdin by default.
        :param cwd: Working directory of the child, the current directory by default.
        :param grace_period: Seconds to wait for relay/forwarder threads when draining.
        :param shutdown_timeout: Seconds to wait for the child after it was sent the stop command.
        :param poll_interval: How often the wait loop checks for a termination request.
        :param install_signal_handlers: Whether run() hooks SIGINT/SIGTERM (main thread only).
        :param name: Logical name of the child, used for the `proc.<name>` logger.
        """
        self.config = config
        self.output_logger = output_logger if output_logger is not None else logging.getLogger(f"proc.{name}")
        self.console = console if console is not None else ConsoleSink()
        self.input_stream = input_stream if input_stream is not None else sys.stdin
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.grace_period = grace_period
        self.shutdown_timeout = shutdown_timeout
        self.poll_interval = poll_interval
        self.install_signal_handlers = install_signal_handlers

        self.state = SupervisorState.IDLE
        self.invocation: List[str] = []
        self.process: Optional[subprocess.Popen] = None
        self.coordinator: Optional[ShutdownCoordinator] = None
        self.termination_requested = threading.Event()
        self._received_signal: Optional[int] = None

    def _set_state(self, state: SupervisorState) -> None:
        log.debug(f"Supervisor state: {self.state.value} -> {state.value}")
        self.state = state

    def request_termination(self, signum: Optional[int] = None) -> None:
        """
        Asks the running supervisor to shut the child down and finish.
        Safe to call from signal handlers and other threads.
        """
        if signum is not None:
            self._received_signal = signum
        self.termination_requested.set()

    def _run_shutdown_action(self) -> None:
        """The deferred action of the shutdown registration."""
        if self.coordinator is not None:
            self.coordinator.trigger()

    def run(self) -> RunResult:
        """
        Validates, spawns and supervises the child until it exits or termination is requested.

        :return RunResult: The outcome of the run.
        :raises RuntimeError: If this supervisor has already been run.
        """
        if self.state is not SupervisorState.IDLE:
            raise RuntimeError("A ProcessSupervisor supervises exactly one run.")

        self._set_state(SupervisorState.VALIDATING)
        if not startup.validate_configuration(self.config, self.cwd, self.console):
            self._set_state(SupervisorState.TERMINATED)
            return RunResult(RunOutcome.INVALID_CONFIG)

        self.invocation = build_command(self.config)
        registration = ShutdownRegistration(self.request_termination, self._run_shutdown_action)
        registration.install(self.install_signal_handlers)
        try:
            return self._spawn_and_supervise()
        finally:
            # No-op unless an error escaped while the child was still running.
            self._run_shutdown_action()
            registration.uninstall()

    def _spawn_and_supervise(self) -> RunResult:
        if self.termination_requested.is_set():
            log.info("Termination requested before the server was started; not starting it.")
            self._set_state(SupervisorState.TERMINATED)
            return RunResult(RunOutcome.COMPLETED, list(self.invocation))

        self._set_state(SupervisorState.SPAWNED)
        log.info(f"Starting server with command: {self.invocation}")
        try:
            self.process = process_utils.launch_process(self.invocation, self.cwd)
        except OSError as e:
            log.critical(f"An error occurred while starting the server: {e}", exc_info=True)
            self.console.notice(f"Error: could not start the server with {self.invocation}: {e}")
            self._set_state(SupervisorState.TERMINATED)
            return RunResult(RunOutcome.SPAWN_FAILED, list(self.invocation))

        child_input = process_utils.ChildInput(self.process.stdin)
        self.coordinator = ShutdownCoordinator(self.config, self.process, child_input)

        tasks = process_utils.TaskGroup()
        tasks.start("stdout-relay", process_utils.relay_stream, self.process.stdout, self.output_logger.info, self.console.out)
        tasks.start("stderr-relay", process_utils.relay_stream, self.process.stderr, self.output_logger.error, self.console.err)
        tasks.start("stdin-forwarder", process_utils.forward_input, self.input_stream, child_input, tasks.stop_event)

        self._set_state(SupervisorState.RUNNING)
        log.info(f"Server process started successfully (PID: {self.process.pid}).")

        exit_code = self._wait_for_exit()

        self._set_state(SupervisorState.DRAINING)
        tasks.stop_event.set()
        if exit_code is None:
            exit_code = self._shut_down_child()
        else:
            self.coordinator.disarm()

        tasks.drain(self.grace_period)
        child_input.close()
        self._set_state(SupervisorState.TERMINATED)

        if exit_code is None:
            log.warning(f"Server process (PID: {self.process.pid}) is still running; leaving it to exit on its own.")
        else:
            log.info(f"Server process exited with code: {exit_code}")
        return RunResult(RunOutcome.COMPLETED, list(self.invocation), exit_code, sorted(tasks.failures))

    def _wait_for_exit(self) -> Optional[int]:
        """
        Blocks until the child exits or termination is requested.

        :return: The child's exit code, or None if termination was requested first.
        """
        while True:
            try:
                return self.process.wait(timeout=self.poll_interval)
            except subprocess.TimeoutExpired:
                if self.termination_requested.is_set():
                    return None
            except KeyboardInterrupt:
                log.error("Server process wait was interrupted.", exc_info=True)
                self.request_termination()
                return None

    def _shut_down_child(self) -> Optional[int]:
        """
        Runs the shutdown action for a child that is still running.

        :return: The child's exit code if it exited, otherwise None.
        """
        if self._received_signal is not None:
            log.info(f"Received {signal.Signals(self._received_signal).name}.")

        if self.coordinator.trigger():
            try:
                return self.process.wait(timeout=self.shutdown_timeout)
            except subprocess.TimeoutExpired:
                log.warning(f"Server did not exit within {self.shutdown_timeout:.0f}s of the stop command.")
                return None
        return self.process.poll()
