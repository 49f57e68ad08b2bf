from datetime import datetime
import sys

# Log levels (lower number = higher priority)
LOG_SILENT = 0
LOG_WARN = 1
LOG_INFO = 2
LOG_EVENT = 3
LOG_DEBUG = 4
LOG_TRACE = 5

LOG_LEVELS = {
    'silent': LOG_SILENT,
    'warn': LOG_WARN,
    'info': LOG_INFO,
    'event': LOG_EVENT,
    'debug': LOG_DEBUG,
    'trace': LOG_TRACE,
}

_current_log_level = LOG_INFO
_max_log_length = 4000


def set_log_level(level: int) -> None:
    """Set the global log level."""
    global _current_log_level
    _current_log_level = level


def set_max_log_length(max_len: int) -> None:
    """Set the maximum log message length (0 = unlimited)."""
    global _max_log_length
    _max_log_length = max_len


def _truncate(s: str) -> str:
    if _max_log_length <= 0 or len(s) <= _max_log_length:
        return s
    return f"{s[:_max_log_length]}... (truncated, {len(s)} chars total)"


def _log(prefix: str, s: str, min_level: int) -> None:
    if _current_log_level < min_level:
        return
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    print(f"{prefix}[{timestamp}] {_truncate(s)}", file=sys.stderr)


def warn(s: str):
    """Log warning message (failures the server recovers from)."""
    _log("W", "WARN: " + s, LOG_WARN)


def info(s: str):
    """Log info-level message (lifecycle, rename failures)."""
    _log("i", s, LOG_INFO)


def event(s: str):
    """Log JSONRPC protocol event."""
    _log("e", s, LOG_EVENT)


def debug(s: str):
    """Log debug-level message (dispatch decisions, edit counts)."""
    _log("d", s, LOG_DEBUG)


def trace(s: str):
    """Log trace-level message (edit by edit)."""
    _log("t", s, LOG_TRACE)


log = info
