"""Configuration management for refscan.

Loads environment variables (optionally from a .env file) and builds the
immutable ScanConfig that is threaded through the loader, scanner and
context extractor. There is no process-wide config object: every scan gets
its own value.
"""
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple

from dotenv import find_dotenv, load_dotenv

from refscan.errors import ConfigurationError

# Keep in sync with pyproject.toml
__version__ = "1.2.0"

# Domain filter value that turns off service-layer narrowing
NO_DOMAIN_SCOPE = "database"

DEFAULT_INCLUDE_PATTERNS: Tuple[str, ...] = (
    '*.ts', '*.tsx', '*.js', '*.jsx', '*.mjs', '*.cjs',
)

# Dependency folders, build output and compiled declaration files
DEFAULT_EXCLUDE_PATTERNS: Tuple[str, ...] = (
    'node_modules/', 'dist/', 'build/', '.git/', 'coverage/', '*.d.ts',
)

DEFAULT_CONTEXT_BEFORE = 1
DEFAULT_CONTEXT_AFTER = 1
DEFAULT_WORKERS = 4

_SYMBOL_PATTERN = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$]*$')


@dataclass(frozen=True)
class ScanConfig:
    """Everything one scan needs to know. Immutable once built."""
    project_root: Path
    symbol_name: str
    domain_filter: str
    include_patterns: Tuple[str, ...] = DEFAULT_INCLUDE_PATTERNS
    exclude_patterns: Tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    context_before: int = DEFAULT_CONTEXT_BEFORE
    context_after: int = DEFAULT_CONTEXT_AFTER
    workers: int = DEFAULT_WORKERS
    strict_parse: bool = True

    @property
    def domain_scoped(self) -> bool:
        """True when service files outside the filtered domain are skipped."""
        return self.domain_filter != NO_DOMAIN_SCOPE


class Config:
    """Environment-backed defaults with .env support.

    Priority for every setting:
    1. Explicit value passed to build()
    2. REFSCAN_* environment variable (a .env file in the scanned project
       or the working directory is loaded first)
    3. Built-in default
    """

    def __init__(self, project_root: Optional[Path] = None):
        """Load .env files without overriding variables already set.

        Args:
            project_root: Scanned project; its .env is consulted before the cwd one
        """
        if project_root is not None:
            load_dotenv(Path(project_root) / ".env")
        load_dotenv(find_dotenv(usecwd=True))

    @property
    def workers(self) -> int:
        return _env_int("REFSCAN_WORKERS", DEFAULT_WORKERS)

    @property
    def context_before(self) -> int:
        return _env_int("REFSCAN_CONTEXT_BEFORE", DEFAULT_CONTEXT_BEFORE)

    @property
    def context_after(self) -> int:
        return _env_int("REFSCAN_CONTEXT_AFTER", DEFAULT_CONTEXT_AFTER)

    @property
    def include_patterns(self) -> Tuple[str, ...]:
        return _env_list("REFSCAN_INCLUDE", DEFAULT_INCLUDE_PATTERNS)

    @property
    def exclude_patterns(self) -> Tuple[str, ...]:
        return _env_list("REFSCAN_EXCLUDE", DEFAULT_EXCLUDE_PATTERNS)

    @property
    def strict_parse(self) -> bool:
        return _env_bool("REFSCAN_STRICT_PARSE", True)

    def build(self, project_root: str | Path, symbol_name: str, domain_filter: str,
              include: Optional[Sequence[str]] = None,
              exclude: Optional[Sequence[str]] = None,
              before: Optional[int] = None,
              after: Optional[int] = None,
              workers: Optional[int] = None,
              strict_parse: Optional[bool] = None) -> ScanConfig:
        """Validate arguments and produce a ScanConfig.

        Raises:
            ConfigurationError: If any argument or environment value is unusable
        """
        root = validate_project_root(project_root)

        if not symbol_name or not _SYMBOL_PATTERN.match(symbol_name):
            raise ConfigurationError(
                f"Symbol name must be a single identifier token, got {symbol_name!r}"
            )
        if not domain_filter or not domain_filter.strip():
            raise ConfigurationError("Domain filter must be a non-empty string")

        config = ScanConfig(
            project_root=root,
            symbol_name=symbol_name,
            domain_filter=domain_filter.strip(),
            include_patterns=tuple(include) if include else self.include_patterns,
            exclude_patterns=tuple(exclude) if exclude else self.exclude_patterns,
            context_before=self.context_before if before is None else before,
            context_after=self.context_after if after is None else after,
            workers=self.workers if workers is None else workers,
            strict_parse=self.strict_parse if strict_parse is None else strict_parse,
        )

        if config.context_before < 0 or config.context_after < 0:
            raise ConfigurationError("Context window sizes must be zero or positive")
        if config.workers < 1:
            raise ConfigurationError(f"Worker count must be at least 1, got {config.workers}")
        if not config.include_patterns:
            raise ConfigurationError("At least one include pattern is required")

        return config


def validate_project_root(project_root: str | Path) -> Path:
    """Resolve the project root and check that it can be scanned.

    Raises:
        ConfigurationError: If the path is missing, not a directory or unreadable
    """
    root = Path(project_root).expanduser().resolve()
    if not root.exists():
        raise ConfigurationError(f"Project root does not exist: {root}")
    if not root.is_dir():
        raise ConfigurationError(f"Project root is not a directory: {root}")
    if not os.access(root, os.R_OK | os.X_OK):
        raise ConfigurationError(f"Project root is not readable: {root}")
    return root


def load_config(project_root: str | Path, symbol_name: str, domain_filter: str,
                **overrides) -> ScanConfig:
    """Build a ScanConfig from arguments, environment and defaults."""
    root = validate_project_root(project_root)
    return Config(root).build(root, symbol_name, domain_filter, **overrides)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")
