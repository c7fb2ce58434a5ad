"""Logging setup and operation metrics for notenav.

``configure_logging`` attaches a rotating log file (and optionally stderr)
to the ``notenav`` logger tree. Functions wrapped with ``traced`` are timed
into the process-wide ``metrics`` collector, which the CLI can print with
``--metrics``.
"""
import functools
import logging
import time
import uuid
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, Optional, TypeVar, Union

logger = logging.getLogger(__name__)

ROOT_LOGGER_NAME = "notenav"
LOG_FILE_NAME = "notenav.log"

DEFAULT_LOG_DIR = Path.home() / ".notenav" / "logs"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

F = TypeVar('F', bound=Callable[..., Any])


def _has_handler(target: logging.Logger, kind: type, exclude: Optional[type] = None) -> bool:
    return any(
        isinstance(h, kind) and not (exclude and isinstance(h, exclude))
        for h in target.handlers
    )


def configure_logging(
    log_dir: Optional[Union[str, Path]] = None,
    level: int = logging.INFO,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    console: bool = True,
) -> Path:
    """Send ``notenav.*`` records to a rotating file in ``log_dir``.

    Calling this again does not stack handlers.

    Args:
        log_dir: Where ``notenav.log`` is written. Defaults to ~/.notenav/logs/
        level: Level for the logger and its handlers.
        max_bytes: Size at which the file is rotated.
        backup_count: Rotated files kept next to the live one.
        console: Add a stderr handler as well.

    Returns:
        The log directory, created if needed.
    """
    log_path = Path(log_dir) if log_dir else DEFAULT_LOG_DIR
    log_path.mkdir(parents=True, exist_ok=True)

    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers = []
    if not _has_handler(package_logger, RotatingFileHandler):
        handlers.append(
            RotatingFileHandler(
                log_path / LOG_FILE_NAME,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
    if console and not _has_handler(
        package_logger, logging.StreamHandler, exclude=RotatingFileHandler
    ):
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        package_logger.addHandler(handler)

    package_logger.debug("Logging to %s", log_path / LOG_FILE_NAME)
    return log_path


def _shorten_error(message: Optional[str], max_length: int = 200) -> Optional[str]:
    """Collapse an error message to a single line of at most ``max_length``."""
    if message is None:
        return None
    single_line = " ".join(message.split())
    if len(single_line) > max_length:
        return single_line[: max_length - 3] + "..."
    return single_line


@dataclass
class OperationMetrics:
    """Running totals for one operation name."""
    count: int = 0
    error_count: int = 0
    total_duration_ms: float = 0.0
    min_duration_ms: Optional[float] = None
    max_duration_ms: float = 0.0
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None

    @property
    def success_count(self) -> int:
        return self.count - self.error_count

    def record(self, duration_ms: float, error: Optional[str] = None, failed: bool = False) -> None:
        self.count += 1
        self.total_duration_ms += duration_ms
        if self.min_duration_ms is None or duration_ms < self.min_duration_ms:
            self.min_duration_ms = duration_ms
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        if failed:
            self.error_count += 1
            self.last_error = _shorten_error(error)
            self.last_error_time = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        average = self.total_duration_ms / self.count if self.count else 0.0
        return {
            'count': self.count,
            'success_count': self.success_count,
            'error_count': self.error_count,
            'avg_duration_ms': round(average, 2),
            'min_duration_ms': round(self.min_duration_ms or 0.0, 2),
            'max_duration_ms': round(self.max_duration_ms, 2),
            'last_error': self.last_error,
            'last_error_time': self.last_error_time.isoformat() if self.last_error_time else None,
        }


class MetricsCollector:
    """In-memory timings for traced operations, safe to share between threads."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._reset_unlocked()

    def _reset_unlocked(self) -> None:
        self._operations: Dict[str, OperationMetrics] = defaultdict(OperationMetrics)
        self._started = time.monotonic()

    def record_operation(
        self,
        operation: str,
        duration_ms: float,
        success: bool,
        error: Optional[str] = None
    ) -> None:
        """Add one run of ``operation``; ``error`` is kept only for failures."""
        with self._lock:
            self._operations[operation].record(duration_ms, error, failed=not success)

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Per-operation totals, keyed by operation name."""
        with self._lock:
            return {name: m.to_dict() for name, m in self._operations.items()}

    def get_summary(self) -> Dict[str, Any]:
        """Totals across every operation since creation or the last reset."""
        with self._lock:
            recorded = list(self._operations.values())
            return {
                'elapsed_seconds': round(time.monotonic() - self._started, 3),
                'total_operations': sum(m.count for m in recorded),
                'total_success': sum(m.success_count for m in recorded),
                'total_errors': sum(m.error_count for m in recorded),
                'operations_tracked': sorted(self._operations),
            }

    def reset(self) -> None:
        with self._lock:
            self._reset_unlocked()


metrics = MetricsCollector()


@contextmanager
def timed_operation(operation: str, **context):
    """Time the enclosed block and record it under ``operation``.

    Start and end are logged at DEBUG with a short correlation id. The
    yielded dict is appended to the end line, so callers can attach
    counts or flags to it. Exceptions are recorded as failures and
    re-raised.

    Example:
        with timed_operation('load_notes', vaults=2) as op:
            notes = repository.load_notes()
            op['result_count'] = len(notes)
    """
    correlation_id = uuid.uuid4().hex[:8]
    info: Dict[str, Any] = {}
    logger.debug(
        "[%s] START %s (%s)",
        correlation_id,
        operation,
        ', '.join(f'{k}={v}' for k, v in context.items()),
    )

    error: Optional[str] = None
    started = time.perf_counter()
    try:
        yield info
    except Exception as e:
        error = str(e)
        raise
    finally:
        duration_ms = (time.perf_counter() - started) * 1000
        metrics.record_operation(operation, duration_ms, error is None, error)
        logger.debug(
            "[%s] END %s (%.2fms) [%s] %s",
            correlation_id,
            operation,
            duration_ms,
            'OK' if error is None else f'ERROR: {error}',
            ', '.join(f'{k}={v}' for k, v in info.items()),
        )


def traced(operation_name: Optional[str] = None) -> Callable[[F], F]:
    """Run the decorated function inside ``timed_operation``.

    A returned ``Result`` adds ``ok`` (and its shortened error) to the end
    log line; anything with a length adds ``result_count``. An error
    ``Result`` still counts as a successful run.
    """
    def decorator(func: F) -> F:
        name = operation_name or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with timed_operation(name) as op:
                result = func(*args, **kwargs)
                if hasattr(result, 'is_ok'):
                    op['ok'] = result.is_ok
                    if result.error is not None:
                        op['error'] = _shorten_error(str(result.error), 80)
                elif hasattr(result, '__len__'):
                    op['result_count'] = len(result)
                return result

        return wrapper  # type: ignore
    return decorator
