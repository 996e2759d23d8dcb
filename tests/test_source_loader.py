"""Tests for source discovery, exclusion patterns and per-file parsing."""
import warnings
from pathlib import Path

import pytest

from refscan.analyzer.source_loader import SourceLoader
from refscan.analyzer.syntax import Group
from refscan.errors import ConfigurationError, ParseError


def relative(loader, files):
    return [loader.relative_path(path) for path in files]


class TestDiscovery:

    def test_default_patterns(self, make_project, scan_config):
        root = make_project({
            'src/app.ts': "foo();\n",
            'src/view.tsx': "foo();\n",
            'src/legacy.js': "foo();\n",
            'src/types.d.ts': "declare function foo(): void;\n",
            'src/readme.md': "foo()\n",
            'node_modules/lib/index.ts': "foo();\n",
            'packages/a/node_modules/lib/index.js': "foo();\n",
            'dist/app.js': "foo();\n",
            'build/app.js': "foo();\n",
        })
        loader = SourceLoader(scan_config(root))

        assert relative(loader, loader.discover()) == [
            'src/app.ts',
            'src/legacy.js',
            'src/view.tsx',
        ]

    def test_custom_include_and_exclude(self, make_project, scan_config):
        root = make_project({
            'src/app.ts': "foo();\n",
            'src/generated/schema.ts': "foo();\n",
            'scripts/tool.js': "foo();\n",
        })
        config = scan_config(root, include_patterns=('src/**/*.ts',), exclude_patterns=('generated/',))
        loader = SourceLoader(config)

        assert relative(loader, loader.discover()) == ['src/app.ts']

    def test_patterns_compile_without_deprecation_warnings(self, make_project, scan_config):
        root = make_project({'src/app.ts': "foo();\n", 'dist/app.js': "foo();\n"})

        with warnings.catch_warnings():
            warnings.simplefilter('error', DeprecationWarning)
            loader = SourceLoader(scan_config(root))
            files = loader.discover()

        assert relative(loader, files) == ['src/app.ts']

    def test_discovery_order_is_sorted(self, make_project, scan_config):
        root = make_project({
            'b.ts': "",
            'a/z.ts': "",
            'a/b/c.ts': "",
            'a.ts': "",
        })
        loader = SourceLoader(scan_config(root))

        files = loader.discover()

        assert files == sorted(files, key=str)

    def test_missing_root_is_a_configuration_error(self, tmp_path, scan_config):
        with pytest.raises(ConfigurationError, match="does not exist"):
            SourceLoader(scan_config(tmp_path / 'nope'))

    def test_file_as_root_is_a_configuration_error(self, tmp_path, scan_config):
        file_path = tmp_path / 'file.ts'
        file_path.write_text("foo();\n")

        with pytest.raises(ConfigurationError, match="not a directory"):
            SourceLoader(scan_config(file_path))


class TestLoad:

    def test_load_returns_text_and_tree(self, make_project, scan_config):
        root = make_project({'src/app.ts': "import { foo } from 'x';\nfoo();\n"})
        loader = SourceLoader(scan_config(root))

        unit = loader.load(root / 'src/app.ts')

        assert unit.path == root / 'src/app.ts'
        assert unit.text == "import { foo } from 'x';\nfoo();\n"
        assert isinstance(unit.tree, Group)
        assert unit.tree.kind == 'program'

    def test_syntax_error_is_a_parse_error(self, make_project, scan_config):
        root = make_project({'src/broken.ts': "export function (( {\n  foo(;\n"})
        loader = SourceLoader(scan_config(root))

        with pytest.raises(ParseError) as excinfo:
            loader.load(root / 'src/broken.ts')

        assert excinfo.value.path.endswith('broken.ts')
        assert 'syntax error' in excinfo.value.reason

    def test_tolerant_mode_scans_broken_files(self, make_project, scan_config):
        root = make_project({'src/broken.ts': "export function (( {\n  foo(;\n"})
        loader = SourceLoader(scan_config(root, strict_parse=False))

        unit = loader.load(root / 'src/broken.ts')

        assert isinstance(unit.tree, Group)

    def test_invalid_utf8_is_a_parse_error(self, make_project, scan_config):
        root = make_project({'src/latin1.ts': b"const caf\xe9 = foo();\n"})
        loader = SourceLoader(scan_config(root))

        with pytest.raises(ParseError, match="UTF-8"):
            loader.load(root / 'src/latin1.ts')

    def test_unknown_extension_is_a_parse_error(self, make_project, scan_config):
        root = make_project({'notes.txt': "foo();\n"})
        loader = SourceLoader(scan_config(root))

        with pytest.raises(ParseError, match="no grammar"):
            loader.load(Path(root / 'notes.txt'))
