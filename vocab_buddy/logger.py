"""
Centralized logging configuration for Vocab Buddy.

Provides consistent, color-coded debug output for:
- Environment/configuration status
- OpenAI calls (translation, speech)
- Row store reads and writes
- Session workflow transitions
- Errors and warnings

Usage:
    from vocab_buddy.logger import logger

    logger.api("Calling translation model...")
    logger.db_write("test_results", "insert")
    logger.error("Failed to record result", exc_info=True)
"""

import logging
import os
import sys
import time
import traceback
from datetime import datetime
from typing import Optional

# ---------------------------------------------------------------------------
# Force UTF-8 output on Windows (Python 3.7+)
# Prevents UnicodeEncodeError when printing the status glyphs (✓, ✗, →)
# ---------------------------------------------------------------------------
if hasattr(sys.stdout, "reconfigure"):
    sys.stdout.reconfigure(encoding="utf-8")
if hasattr(sys.stderr, "reconfigure"):
    sys.stderr.reconfigure(encoding="utf-8")


class ColorCodes:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"


class DebugLogger:
    """
    Custom debug logger with categorized, color-coded output.

    Categories:
    - ENV: Environment/configuration (dotenv, API keys, store backend)
    - API: OpenAI calls
    - DB: Row store calls
    - SES: Session workflow (creation, scoring, completion)
    - SPCH: Speech synthesis / recognition
    - UI: Console front-end events
    - OK: Success messages
    - WARN: Warnings
    - ERR: Errors

    Every line is also forwarded to the standard ``logging`` module under the
    ``vocab_buddy`` name so pytest's caplog and host applications can see it.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._start_time = datetime.now()
        self._std = logging.getLogger("vocab_buddy")

    def _timestamp(self) -> str:
        """Get formatted timestamp with elapsed time."""
        now = datetime.now()
        elapsed = (now - self._start_time).total_seconds()
        return f"{now.strftime('%H:%M:%S')}.{now.microsecond // 1000:03d} (+{elapsed:>6.1f}s)"

    def _log(self, category: str, color: str, message: str, level: int = logging.INFO, **kwargs) -> None:
        """Internal logging method."""
        self._std.log(level, "[%s] %s", category, message)
        if not self.enabled:
            return

        timestamp = self._timestamp()
        prefix = f"{ColorCodes.DIM}{timestamp}{ColorCodes.RESET}"
        tag = f"{color}{ColorCodes.BOLD}[{category:>4}]{ColorCodes.RESET}"
        padding = " " * (len(timestamp) + 8)

        lines = message.split('\n')
        for i, line in enumerate(lines):
            if i == 0:
                print(f"{prefix} {tag} {line}", file=sys.stdout, flush=True)
            else:
                print(f"{ColorCodes.DIM}{padding}{ColorCodes.RESET}{line}", file=sys.stdout, flush=True)

        if kwargs.get('exc_info'):
            tb = traceback.format_exc()
            for line in tb.split('\n'):
                if line.strip():
                    print(f"{ColorCodes.DIM}{padding}{ColorCodes.RED}{line}{ColorCodes.RESET}",
                          file=sys.stderr, flush=True)

    # === Environment/Configuration ===
    def env(self, message: str, **kwargs) -> None:
        """Log environment/configuration messages (dotenv, API keys, etc.)."""
        self._log("ENV", ColorCodes.MAGENTA, message, **kwargs)

    def env_success(self, message: str, **kwargs) -> None:
        """Log successful environment setup."""
        self._log("ENV", ColorCodes.GREEN, f"✓ {message}", **kwargs)

    def env_error(self, message: str, **kwargs) -> None:
        """Log environment setup errors."""
        self._log("ENV", ColorCodes.RED, f"✗ {message}", level=logging.ERROR, **kwargs)

    # === API Calls ===
    def api(self, message: str, **kwargs) -> None:
        """Log API-related messages."""
        self._log("API", ColorCodes.CYAN, message, **kwargs)

    def api_call(self, endpoint: str, model: Optional[str] = None, **kwargs) -> None:
        """Log an API call being made."""
        model_info = f" (model: {model})" if model else ""
        self._log("API", ColorCodes.CYAN, f"→ Calling {endpoint}{model_info}", **kwargs)

    def api_response(self, endpoint: str, duration_ms: Optional[float] = None, **kwargs) -> None:
        """Log an API response received."""
        duration_info = f" ({duration_ms:.0f}ms)" if duration_ms else ""
        self._log("API", ColorCodes.BRIGHT_CYAN, f"← Response from {endpoint}{duration_info}", **kwargs)

    def api_error(self, message: str, **kwargs) -> None:
        """Log API errors."""
        self._log("API", ColorCodes.BRIGHT_RED, f"✗ {message}", level=logging.ERROR, **kwargs)

    # === Row store ===
    def db(self, message: str, **kwargs) -> None:
        """Log row store messages."""
        self._log("DB", ColorCodes.YELLOW, message, level=logging.DEBUG, **kwargs)

    def db_write(self, table: str, operation: str, duration_ms: Optional[float] = None, **kwargs) -> None:
        """Log a completed write against a table."""
        duration_info = f" ({duration_ms:.0f}ms)" if duration_ms else ""
        self._log("DB", ColorCodes.BRIGHT_GREEN, f"✓ {operation} {table}{duration_info}", **kwargs)

    def db_error(self, message: str, **kwargs) -> None:
        """Log row store errors."""
        self._log("DB", ColorCodes.BRIGHT_RED, f"✗ {message}", level=logging.ERROR, **kwargs)

    # === Session workflow ===
    def session(self, message: str, **kwargs) -> None:
        """Log session workflow events."""
        self._log("SES", ColorCodes.BLUE, message, **kwargs)

    def session_transition(self, session_id: str, from_state: str, to_state: str, **kwargs) -> None:
        """Log a session state change."""
        self._log("SES", ColorCodes.BRIGHT_BLUE, f"{session_id[:8]} {from_state} → {to_state}", **kwargs)

    # === Speech ===
    def speech(self, message: str, **kwargs) -> None:
        """Log speech capability messages."""
        self._log("SPCH", ColorCodes.BRIGHT_MAGENTA, message, **kwargs)

    # === UI Events ===
    def ui(self, message: str, **kwargs) -> None:
        """Log UI state changes and events."""
        self._log("UI", ColorCodes.BLUE, message, level=logging.DEBUG, **kwargs)

    def ui_transition(self, from_state: str, to_state: str, **kwargs) -> None:
        """Log UI state transitions."""
        self._log("UI", ColorCodes.BRIGHT_BLUE, f"{from_state} → {to_state}", level=logging.DEBUG, **kwargs)

    # === General Status ===
    def success(self, message: str, **kwargs) -> None:
        """Log success messages."""
        self._log("OK", ColorCodes.BRIGHT_GREEN, f"✓ {message}", **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        """Log warnings."""
        self._log("WARN", ColorCodes.BRIGHT_YELLOW, f"⚠ {message}", level=logging.WARNING, **kwargs)

    def error(self, message: str, **kwargs) -> None:
        """Log errors."""
        self._log("ERR", ColorCodes.BRIGHT_RED, f"✗ {message}", level=logging.ERROR, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        """Log general info messages."""
        self._log("INFO", ColorCodes.WHITE, message, **kwargs)

    def debug(self, message: str, **kwargs) -> None:
        """Log debug details."""
        self._log("DBG", ColorCodes.DIM, message, level=logging.DEBUG, **kwargs)

    # === Separators/Formatting ===
    def separator(self, title: Optional[str] = None) -> None:
        """Print a visual separator."""
        if not self.enabled:
            return

        if title:
            line = f"{'─' * 20} {title} {'─' * 20}"
        else:
            line = "─" * 60
        print(f"\n{ColorCodes.DIM}{line}{ColorCodes.RESET}\n", file=sys.stdout, flush=True)

    def banner(self, text: str) -> None:
        """Print a banner message."""
        if not self.enabled:
            return

        width = max(60, len(text) + 4)
        border = "═" * width
        padding = " " * ((width - len(text)) // 2)

        print(f"\n{ColorCodes.BRIGHT_CYAN}{border}{ColorCodes.RESET}", file=sys.stdout, flush=True)
        print(f"{ColorCodes.BRIGHT_CYAN}║{padding}{ColorCodes.BOLD}{text}{ColorCodes.RESET}{ColorCodes.BRIGHT_CYAN}{padding}║{ColorCodes.RESET}", file=sys.stdout, flush=True)
        print(f"{ColorCodes.BRIGHT_CYAN}{border}{ColorCodes.RESET}\n", file=sys.stdout, flush=True)


# Global logger instance. Read directly from the environment so the logger is
# usable before the settings module (which logs) is imported.
logger = DebugLogger(enabled=os.getenv("VOCAB_BUDDY_DEBUG", "1").lower() not in ("0", "false", "no"))


class Timer:
    """Context manager for timing operations."""

    def __init__(self):
        self.start_time: Optional[float] = None
        self.duration_ms: float = 0

    def __enter__(self) -> 'Timer':
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        if self.start_time:
            self.duration_ms = (time.perf_counter() - self.start_time) * 1000
