import time
import psutil
import logging
import threading
import subprocess
from pathlib import Path
from typing import IO, Any, Callable, Dict, List, TextIO

log = logging.getLogger(__name__)

LineSink = Callable[[str], None]


#* --- Process Creation & Status ---
def launch_process(args: List[str], cwd: Path) -> subprocess.Popen:
    """
    Starts the child process with all three standard streams piped.

    :param args: The program followed by its arguments.
    :param cwd: Working directory of the child.
    :return: The Popen handle.
    :raises OSError: If the OS cannot create the process.
    """
    return subprocess.Popen(
        args,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=str(cwd),
    )


def get_proc_status(process: subprocess.Popen) -> str:
    """Gets a string representation of the child's status."""
    if process.poll() is not None:
        return "stopped"
    try:
        if psutil.Process(process.pid).status() == psutil.STATUS_ZOMBIE:
            return "zombie"
        return "running"
    except psutil.NoSuchProcess:
        return "stopped"
    except psutil.Error:
        return "unknown"


def is_process_alive(process: subprocess.Popen) -> bool:
    """True unless the child is known to have exited."""
    return get_proc_status(process) in ("running", "unknown")


#* --- Stream Views ---
class ChildInput:
    """
    A write-only view of the child's stdin.

    All writes are serialized by a lock. Once the final line has been written
    the stream is closed and any further write raises BrokenPipeError.
    """

    def __init__(self, pipe: IO[bytes], encoding: str = "utf-8") -> None:
        self._pipe = pipe
        self._encoding = encoding
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed or self._pipe.closed

    def _write_locked(self, line: str) -> None:
        if self.closed:
            raise BrokenPipeError("Child input stream is closed.")
        self._pipe.write(f"{line}\n".encode(self._encoding))
        self._pipe.flush()

    def write_line(self, line: str) -> None:
        """
        Writes a newline-terminated line and flushes it immediately.

        :raises OSError: If the child closed its input (BrokenPipeError included).
        :raises ValueError: If the underlying file object is already closed.
        """
        with self._lock:
            self._write_locked(line)

    def write_last_line(self, line: str) -> None:
        """Writes a final line and closes the stream in one step."""
        with self._lock:
            try:
                self._write_locked(line)
            finally:
                self._close_locked()

    def _close_locked(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._pipe.close()
        except OSError as e:
            log.debug(f"Closing child input raised: {e}")

    def close(self) -> None:
        with self._lock:
            self._close_locked()


def _strip_line_ending(line: str) -> str:
    """Removes a trailing '\\n' and, only then, a preceding '\\r'."""
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


#* --- Relay & Forwarder Tasks ---
def relay_stream(pipe: IO[bytes], log_sink: LineSink, console_sink: LineSink, encoding: str = "utf-8") -> int:
    """
    Copies a child output stream, line by line, to the log and the console.

    Each line goes to `log_sink` and then to `console_sink` before the next
    line is read. A final line without a newline is still emitted. Returns at
    end of stream; read errors propagate to the caller.

    :param pipe: The child's stdout or stderr.
    :param log_sink: Receives each line first.
    :param console_sink: Receives each line second.
    :return: The number of lines relayed.
    """
    relayed = 0
    try:
        for line_bytes in iter(pipe.readline, b""):
            line = _strip_line_ending(line_bytes.decode(encoding, errors="replace"))
            log_sink(line)
            console_sink(line)
            relayed += 1
    finally:
        pipe.close()
    return relayed


def forward_input(source: TextIO, child_input: ChildInput, stop_event: threading.Event) -> int:
    """
    Forwards operator lines to the child's stdin until either side closes.

    A closed child input ends forwarding normally; it is what happens once the
    child exits or the stop command has been delivered.

    :param source: The operator's input, read with readline().
    :param child_input: The child's stdin view.
    :param stop_event: Checked before every read; set when draining starts.
    :return: The number of lines forwarded.
    """
    forwarded = 0
    while not stop_event.is_set():
        line = source.readline()
        if not line:
            log.debug("Operator input reached end of stream.")
            break
        try:
            child_input.write_line(_strip_line_ending(line))
        except (OSError, ValueError) as e:
            log.debug(f"Child input closed, input forwarding stopped: {e}")
            break
        forwarded += 1
    return forwarded


class TaskGroup:
    """
    Runs a fixed set of named daemon threads and tears them down with a deadline.

    An exception inside a task is logged and recorded in `failures`; it never
    reaches the other tasks or the caller.
    """

    def __init__(self) -> None:
        self.stop_event = threading.Event()
        self.failures: Dict[str, BaseException] = {}
        self._threads: Dict[str, threading.Thread] = {}

    def start(self, name: str, target: Callable[..., Any], *args: Any) -> None:
        thread = threading.Thread(target=self._run, args=(name, target, args), daemon=True, name=name)
        self._threads[name] = thread
        thread.start()

    def _run(self, name: str, target: Callable[..., Any], args: tuple) -> None:
        try:
            result = target(*args)
            log.debug(f"Task '{name}' finished ({result}).")
        except Exception as e:
            self.failures[name] = e
            log.error(f"Task '{name}' failed: {e}", exc_info=True)

    def alive(self) -> List[str]:
        return [name for name, thread in self._threads.items() if thread.is_alive()]

    def drain(self, grace_period: float) -> List[str]:
        """
        Asks all tasks to stop and waits for them, at most `grace_period` seconds in total.

        :param grace_period: The wait budget in seconds.
        :return list: Names of the tasks abandoned because they were still running.
        """
        self.stop_event.set()
        deadline = time.monotonic() + grace_period
        for thread in self._threads.values():
            thread.join(max(0.0, deadline - time.monotonic()))

        abandoned = self.alive()
        if abandoned:
            log.warning(f"Abandoning tasks still running after {grace_period:.1f}s: {', '.join(abandoned)}")
        return abandoned
