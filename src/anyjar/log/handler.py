import sys
import logging
import threading
from pathlib import Path
from typing import List, Optional

from anyjar import settings


class BufferedFileHandler(logging.Handler):
    """
    A logging handler that appends formatted records to a text file
    in batches using a background thread.
    """
    def __init__(
        self,
        file_path: Path,
        flush_interval: float = settings.LOG_BUFFER_FLUSH_INTERVAL,
        buffer_size: int = settings.LOG_BUFFER_SIZE,
    ):
        """
        Initializes the file handler and starts its flush thread.

        :param file_path: The path of the log file. Parent directories are created.
        :param flush_interval: Seconds between periodic flushes.
        :param buffer_size: Number of buffered lines that forces an immediate flush.
        """
        super().__init__()
        self.file_path = file_path
        self.flush_interval = flush_interval
        self.buffer_size = buffer_size
        self.log_buffer: List[str] = []
        self.buffer_lock = threading.Lock()
        self.stop_event = threading.Event()

        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        self._stream = self.file_path.open("a", encoding="utf-8")

        self.flush_thread: Optional[threading.Thread] = threading.Thread(target=self._periodic_flush, daemon=True)
        self.flush_thread.name = "LogFileFlushThread"
        self.flush_thread.start()

    def _periodic_flush(self) -> None:
        """
        Periodically flushes the log buffer. This runs in a background thread.
        The final flush is called when the handler is closed.
        """
        while not self.stop_event.wait(self.flush_interval):
            self.flush()

    def emit(self, record: logging.LogRecord) -> None:
        """
        Formats a log record and adds it to the internal buffer.

        :param record: The log record to be processed.
        """
        try:
            line = self.format(record)
        except Exception:
            self.handleError(record)
            return

        with self.buffer_lock:
            self.log_buffer.append(line)
            if len(self.log_buffer) >= self.buffer_size:
                self._flush_locked()

    def _flush_locked(self) -> None:
        """
        Writes the buffered lines to the log file. Assumes the buffer lock is held.
        """
        if not self.log_buffer or self._stream is None:
            return

        lines_to_write = list(self.log_buffer)
        self.log_buffer.clear()
        try:
            self._stream.write("\n".join(lines_to_write) + "\n")
            self._stream.flush()
        except (OSError, ValueError) as e:
            print(f"Error writing {len(lines_to_write)} log lines to '{self.file_path}': {e}", file=sys.stderr)

    def flush(self) -> None:
        """Public method to trigger a manual flush of the log buffer."""
        with self.buffer_lock:
            self._flush_locked()

    def close(self) -> None:
        """
        Shuts down the handler, joining the flush thread and writing what is left.
        """
        self.stop_event.set()
        if self.flush_thread and self.flush_thread.is_alive():
            self.flush_thread.join(timeout=self.flush_interval + 2)
        # Final flush must be called after the thread is stopped
        with self.buffer_lock:
            self._flush_locked()
            if self._stream is not None:
                self._stream.close()
                self._stream = None
        super().close()
