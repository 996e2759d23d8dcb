"""Tests for configuration loading (arguments, REFSCAN_* environment, .env files)."""
import pytest

from refscan.config import (
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_INCLUDE_PATTERNS,
    load_config,
)
from refscan.errors import ConfigurationError


def test_defaults(tmp_path):
    config = load_config(tmp_path, 'foo', 'database')

    assert config.project_root == tmp_path.resolve()
    assert config.symbol_name == 'foo'
    assert config.include_patterns == DEFAULT_INCLUDE_PATTERNS
    assert config.exclude_patterns == DEFAULT_EXCLUDE_PATTERNS
    assert (config.context_before, config.context_after) == (1, 1)
    assert config.workers == 4
    assert config.strict_parse is True
    assert config.domain_scoped is False


def test_domain_filter_enables_scoping(tmp_path):
    assert load_config(tmp_path, 'foo', 'billing').domain_scoped is True


def test_environment_overrides_defaults(tmp_path, monkeypatch):
    monkeypatch.setenv('REFSCAN_WORKERS', '2')
    monkeypatch.setenv('REFSCAN_CONTEXT_BEFORE', '3')
    monkeypatch.setenv('REFSCAN_EXCLUDE', 'vendor/, *.gen.ts')
    monkeypatch.setenv('REFSCAN_STRICT_PARSE', 'false')

    config = load_config(tmp_path, 'foo', 'database')

    assert config.workers == 2
    assert config.context_before == 3
    assert config.exclude_patterns == ('vendor/', '*.gen.ts')
    assert config.strict_parse is False


def test_explicit_values_beat_environment(tmp_path, monkeypatch):
    monkeypatch.setenv('REFSCAN_WORKERS', '2')

    config = load_config(tmp_path, 'foo', 'database', workers=8, include=['src/**/*.ts'])

    assert config.workers == 8
    assert config.include_patterns == ('src/**/*.ts',)


def test_dotenv_in_project_root_is_loaded(tmp_path):
    (tmp_path / '.env').write_text("REFSCAN_CONTEXT_AFTER=4\n")

    config = load_config(tmp_path, 'foo', 'database')

    assert config.context_after == 4


@pytest.mark.parametrize('symbol', ['', 'foo.bar', 'foo bar', '1foo', 'foo()'])
def test_symbol_must_be_an_identifier(tmp_path, symbol):
    with pytest.raises(ConfigurationError, match="identifier"):
        load_config(tmp_path, symbol, 'database')


def test_dollar_and_underscore_symbols_are_accepted(tmp_path):
    assert load_config(tmp_path, '$_legacyFetch', 'database').symbol_name == '$_legacyFetch'


def test_blank_domain_is_rejected(tmp_path):
    with pytest.raises(ConfigurationError, match="Domain filter"):
        load_config(tmp_path, 'foo', '  ')


def test_missing_root(tmp_path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_config(tmp_path / 'missing', 'foo', 'database')


@pytest.mark.parametrize('name, value', [
    ('REFSCAN_WORKERS', 'many'),
    ('REFSCAN_STRICT_PARSE', 'sometimes'),
])
def test_invalid_environment_values(tmp_path, monkeypatch, name, value):
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError, match=name):
        load_config(tmp_path, 'foo', 'database')


def test_invalid_numbers_are_rejected(tmp_path):
    with pytest.raises(ConfigurationError, match="Worker count"):
        load_config(tmp_path, 'foo', 'database', workers=0)
    with pytest.raises(ConfigurationError, match="Context window"):
        load_config(tmp_path, 'foo', 'database', before=-1)
