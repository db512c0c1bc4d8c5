"""
Queue-based logging setup.

Log records are handed to a background thread so that console and file
I/O never stalls the event loop between scans or inside API handlers.
"""

import logging
import sys
from datetime import datetime
from logging.handlers import QueueHandler, QueueListener
from pathlib import Path
from queue import Queue

from dexarb.config.constants import LOG_DATE_FORMAT, LOG_FORMAT, MAX_LOG_QUEUE_SIZE


# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS = ("aiohttp", "asyncio", "uvicorn.access", "httpx")


class MicrosecondFormatter(logging.Formatter):
    """Formatter with microsecond precision timestamps."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ct = datetime.fromtimestamp(record.created)
        s = ct.strftime(datefmt or LOG_DATE_FORMAT)
        return f"{s}.{ct.microsecond:06d}"


class AsyncLogger:
    """
    Non-blocking log output for one logger hierarchy.

    Records are queued by a `QueueHandler` and written by a
    `QueueListener` thread to stdout and, optionally, a file.
    """

    def __init__(
        self,
        name: str,
        level: int = logging.INFO,
        log_file: Path | None = None,
    ) -> None:
        """
        Initialize async logger.

        Args:
            name: Logger name ("" for the root logger).
            level: Logging level.
            log_file: Optional file path; receives DEBUG and above.
        """
        self._level = level
        self._log_file = log_file
        self._queue: Queue[logging.LogRecord] = Queue(maxsize=MAX_LOG_QUEUE_SIZE)
        self._queue_handler: QueueHandler | None = None
        self._listener: QueueListener | None = None
        self._logger = logging.getLogger(name)

    def _build_handlers(self) -> list[logging.Handler]:
        formatter = MicrosecondFormatter(LOG_FORMAT, LOG_DATE_FORMAT)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(self._level)
        handlers: list[logging.Handler] = [console_handler]

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(self._log_file, encoding="utf-8")
            file_handler.setFormatter(formatter)
            file_handler.setLevel(logging.DEBUG)
            handlers.append(file_handler)

        return handlers

    def start(self) -> None:
        """Attach the queue handler and start the listener thread."""
        if self._listener is not None:
            return

        self._queue_handler = QueueHandler(self._queue)
        self._logger.addHandler(self._queue_handler)
        self._logger.setLevel(logging.DEBUG if self._log_file else self._level)

        self._listener = QueueListener(
            self._queue,
            *self._build_handlers(),
            respect_handler_level=True,
        )
        self._listener.start()

    def stop(self) -> None:
        """Flush queued records and detach."""
        if self._listener:
            self._listener.stop()
            self._listener = None
        if self._queue_handler:
            self._logger.removeHandler(self._queue_handler)
            self._queue_handler = None

    @property
    def logger(self) -> logging.Logger:
        """Get the underlying logger."""
        return self._logger

    @property
    def running(self) -> bool:
        """Check whether the listener thread is active."""
        return self._listener is not None

    def __enter__(self) -> "AsyncLogger":
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.stop()


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
) -> AsyncLogger:
    """
    Set up application-wide logging on the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional log file path.

    Returns:
        Started AsyncLogger; call `stop()` on shutdown to flush.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    async_logger = AsyncLogger(name="", level=numeric_level, log_file=log_file)
    async_logger.start()

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return async_logger
