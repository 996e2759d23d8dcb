"""Windows-safe Console wrapper for Rich, bound to the diagnostic stream.

All human-readable output of refscan goes through this console on stderr;
stdout is reserved for the JSON result.
"""
from typing import Any

from rich.console import Console

from refscan.utils.logger import sanitize_for_terminal, is_utf8_capable


class SafeConsole(Console):
    """Rich Console on stderr that sanitizes Unicode on non-UTF-8 terminals."""

    def __init__(self, *args, **kwargs):
        """Initialize SafeConsole with UTF-8 capability detection.

        All arguments are passed through to Rich's Console; stderr defaults to True.
        """
        kwargs.setdefault('stderr', True)
        self._needs_sanitization = not is_utf8_capable()

        # Force legacy_windows mode if needed to prevent Unicode spinner issues
        if self._needs_sanitization:
            kwargs['legacy_windows'] = True

        super().__init__(*args, **kwargs)

    def _sanitize(self, objects):
        return [
            sanitize_for_terminal(obj, self.file) if isinstance(obj, str) else obj
            for obj in objects
        ]

    def print(self, *objects: Any, **kwargs) -> None:
        """Print with automatic Unicode sanitization (same arguments as Console.print)."""
        if self._needs_sanitization:
            objects = self._sanitize(objects)
        super().print(*objects, **kwargs)

    def log(self, *objects: Any, **kwargs) -> None:
        """Time-stamped log line with automatic Unicode sanitization."""
        if self._needs_sanitization:
            objects = self._sanitize(objects)
        # Report the caller's location, not this wrapper
        kwargs.setdefault('_stack_offset', 2)
        super().log(*objects, **kwargs)

    def status(self, *args, **kwargs):
        """Create a status context with ASCII-safe spinner on Windows."""
        if self._needs_sanitization:
            kwargs['spinner'] = 'line'  # Simple ASCII spinner: - \ | /

        return super().status(*args, **kwargs)
