"""
Backend Logging Utility

Readable console logging for the tutor API:
- Color-coded levels (only on a TTY)
- Icons per backend area (chat, glossary, templates, sessions)
- Section banners around request processing
- Inline pretty-printing of small payload dicts
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, Optional


class Colors:
    """ANSI color codes for terminal output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'

    DEBUG = '\033[36m'      # Cyan
    INFO = '\033[32m'       # Green
    WARNING = '\033[33m'    # Yellow
    ERROR = '\033[31m'      # Red
    CRITICAL = '\033[35m'   # Magenta

    SECTION = '\033[94m'    # Bright Blue
    TIMESTAMP = '\033[90m'  # Dark Gray


LEVEL_COLORS = {
    'DEBUG': Colors.DEBUG,
    'INFO': Colors.INFO,
    'WARNING': Colors.WARNING,
    'ERROR': Colors.ERROR,
    'CRITICAL': Colors.CRITICAL,
}


class ColoredFormatter(logging.Formatter):
    """Formatter adding timestamps, area icons and level colors."""

    ICONS = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️',
        'WARNING': '⚠️',
        'ERROR': '❌',
        'CRITICAL': '🚨',
    }

    # Keyed by the last component of the logger name
    AREA_ICONS = {
        'chat': '💬',
        'glossary': '📚',
        'templates': '🧩',
        'sessions': '💾',
        'logic_tutor': '🎓',
        'completion_client': '🤖',
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def _paint(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{Colors.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        area = record.name.split('.')[-1]
        icon = self.AREA_ICONS.get(area, self.ICONS.get(record.levelname, '•'))
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S.%f')[:-3]

        formatted = (
            f"{self._paint(f'[{timestamp}]', Colors.TIMESTAMP)} "
            f"{icon} {self._paint(f'{record.levelname:8s}', LEVEL_COLORS.get(record.levelname, Colors.RESET))} "
            f"{self._paint(record.name, Colors.BOLD)} | {record.getMessage()}"
        )
        if record.exc_info:
            formatted += f"\n{self.formatException(record.exc_info)}"
        return formatted


def format_data(data: Any, indent: int = 2) -> str:
    """Render a small dict/list payload on indented lines; long lists are truncated."""
    pad = ' ' * indent
    if isinstance(data, dict):
        lines = [f"{pad}{key}: {format_data(value, indent + 2).lstrip()}" for key, value in data.items()]
        return "\n".join(lines)
    if isinstance(data, (list, tuple)):
        items = list(data)
        shown = items[:3] if len(items) > 5 else items
        rendered = ", ".join(str(item) for item in shown)
        if len(shown) < len(items):
            rendered += f", ... ({len(items)} items total)"
        return f"{pad}[{rendered}]"
    return f"{pad}{data}"


class StructuredLogger:
    """Logger wrapper with sections and optional data payloads."""

    def __init__(self, name: str, logger: Optional[logging.Logger] = None):
        self.name = name
        self.logger = logger or logging.getLogger(name)

    def _with_data(self, message: str, data: Optional[Dict[str, Any]]) -> str:
        if not data:
            return message
        return f"{message}\n{format_data(data)}"

    def section(self, title: str, data: Optional[Dict[str, Any]] = None):
        """Log a banner line for a major lifecycle event."""
        separator = "=" * 60
        self.logger.info(self._with_data(f"{separator}\n📋 {title.upper()}", data))

    def debug(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.debug(self._with_data(message, data))

    def info(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.info(self._with_data(message, data))

    def warning(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.warning(self._with_data(message, data))

    def error(self, message: str, error: Optional[Exception] = None, data: Optional[Dict[str, Any]] = None):
        """Log an error with the exception type and traceback when given."""
        error_info = f" Error: {type(error).__name__}: {error}" if error else ""
        self.logger.error(self._with_data(f"{message}{error_info}", data), exc_info=error)

    def success(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.logger.info(self._with_data(f"✅ {message}", data))

    def request(self, method: str, path: str, session_id: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        """Log an incoming request."""
        request_data = {"session_id": session_id}
        if data:
            request_data.update(data)
        self.logger.info(self._with_data(f"📥 REQUEST: {method} {path}", request_data))

    def response(self, status: int, path: str, duration: Optional[float] = None, data: Optional[Dict[str, Any]] = None):
        """Log a response with its duration in milliseconds."""
        response_data = {
            "status": status,
            "duration_ms": f"{duration * 1000:.2f}" if duration is not None else None,
        }
        if data:
            response_data.update(data)
        self.logger.info(self._with_data(f"📤 RESPONSE: {status} {path}", response_data))


def setup_logging(level: int = logging.INFO, use_colors: bool = True):
    """Install the colored console handler on the root logger."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ColoredFormatter(use_colors=use_colors))

    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Suppress noisy loggers
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('openai').setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, logging.getLogger(name))
