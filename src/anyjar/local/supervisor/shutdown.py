import atexit
import signal
import logging
import threading
import subprocess
from typing import Any, Callable, Dict, List, Optional

from anyjar import settings
from anyjar.local.config import ServerConfig
from anyjar.local.supervisor.command import is_java_target
from anyjar.local.supervisor.process_utils import ChildInput, is_process_alive

log = logging.getLogger(__name__)


class ShutdownCoordinator:
    """
    Decides how the child is told to stop when the supervisor terminates.

    Java targets started from options get the stop command on stdin. Every other
    mode gets no in-band signal and is left to the platform's process-group
    semantics. The action runs at most once per run.
    """

    def __init__(
        self,
        config: ServerConfig,
        process: subprocess.Popen,
        child_input: ChildInput,
        stop_command: str = settings.STOP_COMMAND,
    ) -> None:
        self.process = process
        self.child_input = child_input
        self.stop_command = stop_command
        self.cooperative = is_java_target(config)
        self._lock = threading.Lock()
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    def _claim(self) -> bool:
        with self._lock:
            if self._done:
                return False
            self._done = True
            return True

    def disarm(self) -> None:
        """Marks the action as spent because the child exited on its own."""
        self._claim()

    def trigger(self) -> bool:
        """
        Runs the shutdown action if it has not run yet.

        :return: True if the stop command was delivered to the child.
        """
        if not self._claim():
            return False

        if not is_process_alive(self.process):
            log.info("AnyJar is shutting down. Server process has already exited.")
            return False

        if not self.cooperative:
            log.info("AnyJar is shutting down.")
            return False

        log.info(f"AnyJar is shutting down, sending '{self.stop_command}' command to server.")
        try:
            self.child_input.write_last_line(self.stop_command)
        except (OSError, ValueError) as e:
            # Child went away in the meantime; nothing left to signal.
            log.debug(f"Could not deliver '{self.stop_command}' to the server: {e}")
            return False
        return True


def _termination_signals() -> List[signal.Signals]:
    """Returns the termination signals available on this platform."""
    names = ("SIGINT", "SIGTERM", "SIGHUP", "SIGBREAK")
    return [getattr(signal, name) for name in names if hasattr(signal, name)]


class ShutdownRegistration:
    """
    Installs the run's termination handling: signal handlers plus an atexit hook.

    Signal handlers only record the request through `on_signal`; the actual
    shutdown work happens on the supervisor's wait loop. Handlers can only be
    installed from the main thread; elsewhere only the atexit hook is used.
    """

    def __init__(self, on_signal: Callable[[int], None], on_exit: Callable[[], Any]) -> None:
        self._on_signal = on_signal
        self._on_exit = on_exit
        self._previous_handlers: Dict[signal.Signals, Any] = {}
        self._installed = False

    def _handle_signal(self, signum: int, frame: Optional[Any]) -> None:
        # No logging here: the interrupted frame may hold a logging lock.
        self._on_signal(signum)

    def install(self, install_signal_handlers: bool = True) -> None:
        if self._installed:
            return
        self._installed = True
        atexit.register(self._on_exit)

        if not install_signal_handlers:
            return
        if threading.current_thread() is not threading.main_thread():
            log.debug("Not on the main thread; termination signal handlers were not installed.")
            return

        for sig in _termination_signals():
            try:
                self._previous_handlers[sig] = signal.signal(sig, self._handle_signal)
            except (OSError, ValueError) as e:
                log.debug(f"Could not install handler for {sig.name}: {e}")

    def uninstall(self) -> None:
        if not self._installed:
            return
        self._installed = False
        atexit.unregister(self._on_exit)

        for sig, previous in self._previous_handlers.items():
            signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        self._previous_handlers.clear()
