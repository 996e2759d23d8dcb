"""Shared fixtures: throwaway TypeScript projects on disk and in-memory parsing."""
import os
from pathlib import Path
from typing import Dict

import pytest

from refscan.analyzer.parser import LanguageParser
from refscan.analyzer.source_loader import SourceUnit
from refscan.analyzer.syntax import lower
from refscan.config import ScanConfig

ENV_VARS = (
    'REFSCAN_WORKERS', 'REFSCAN_CONTEXT_BEFORE', 'REFSCAN_CONTEXT_AFTER',
    'REFSCAN_INCLUDE', 'REFSCAN_EXCLUDE', 'REFSCAN_STRICT_PARSE',
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep REFSCAN_* settings (including ones loaded from .env files) out of other tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    for name in ENV_VARS:
        os.environ.pop(name, None)


@pytest.fixture
def make_project(tmp_path):
    """Write {relative_path: content} into a fresh project root and return the root."""
    def _make(files: Dict[str, str | bytes]) -> Path:
        root = tmp_path / 'project'
        root.mkdir(exist_ok=True)
        for rel_path, content in files.items():
            file_path = root / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                file_path.write_bytes(content)
            else:
                file_path.write_text(content, encoding='utf-8')
        return root
    return _make


@pytest.fixture
def scan_config():
    """Build a ScanConfig without touching the environment."""
    def _config(root: Path, symbol: str = 'foo', domain: str = 'database', **kwargs) -> ScanConfig:
        return ScanConfig(project_root=root.resolve(), symbol_name=symbol, domain_filter=domain, **kwargs)
    return _config


@pytest.fixture
def parse_unit():
    """Parse a snippet into a SourceUnit without going through the file system."""
    def _parse(code: str, path: str = '/virtual/src/a.ts', language: str = 'typescript') -> SourceUnit:
        tree = LanguageParser(language).parse_source(code.encode('utf-8'))
        return SourceUnit(path=Path(path), text=code, tree=lower(tree))
    return _parse
