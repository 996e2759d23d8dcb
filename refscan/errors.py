"""Error types raised by the reference scan.

- ConfigurationError: bad arguments or an unusable project root (fatal)
- ParseError: a single file could not be turned into a syntax tree (recovered per file)
- UnexpectedError: anything else that breaks a scan (fatal, no partial output)
"""
from pathlib import Path


class RefscanError(Exception):
    """Base class for all refscan failures."""


class ConfigurationError(RefscanError):
    """Invalid invocation or configuration. Raised before any scanning starts."""


class ParseError(RefscanError):
    """A source file could not be read, decoded or parsed."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class UnexpectedError(RefscanError):
    """Failure during traversal that invalidates the whole run."""
