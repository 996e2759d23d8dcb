"""End-to-end tests for the refscan command line.

stdout must carry nothing but the JSON result; every diagnostic goes to stderr.
"""
import json

from typer.testing import CliRunner

from refscan.config import __version__
from refscan.main import app

runner = CliRunner()


def test_scan_prints_json_array(make_project):
    root = make_project({'a.ts': "import { foo } from 'x';\nfoo();\nobj.foo();\n"})

    result = runner.invoke(app, [str(root), 'foo', 'database'])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [(r['line'], r['type']) for r in data] == [
        (1, 'import'), (2, 'direct-call'), (3, 'method-call'),
    ]
    assert all(r['category'] == 'internal' for r in data)
    assert 'foo' in result.stderr
    assert 'Source files matched' in result.stderr


def test_stdout_is_identical_across_runs(make_project):
    root = make_project({
        'src/api/a.ts': "foo();\n",
        'src/domains/billing/b.ts': "x.foo();\n",
        'tests/c.test.ts': "items.map(foo);\n",
    })

    first = runner.invoke(app, [str(root), 'foo', 'database'])
    second = runner.invoke(app, [str(root), 'foo', 'database', '--workers', '1'])

    assert first.exit_code == second.exit_code == 0
    assert first.stdout == second.stdout


def test_missing_root_exits_non_zero_without_json(tmp_path):
    result = runner.invoke(app, [str(tmp_path / 'missing'), 'foo', 'database'])

    assert result.exit_code == 2
    assert result.stdout == ''
    assert 'does not exist' in result.stderr
    assert 'Usage' in result.stderr


def test_wrong_argument_count_is_a_usage_error(tmp_path):
    result = runner.invoke(app, [str(tmp_path), 'foo'])

    assert result.exit_code != 0
    assert result.stdout == ''


def test_parse_failure_is_reported_on_stderr_only(make_project):
    root = make_project({
        'src/a.ts': "foo();\n",
        'src/b.ts': "export const x = foo;\n",
        'src/broken.ts': "export function (( {\n  foo(;\n",
    })

    result = runner.invoke(app, [str(root), 'foo', 'database'])

    assert result.exit_code == 0
    assert len(json.loads(result.stdout)) == 2
    assert 'broken.ts' in result.stderr


def test_all_files_failing_exits_non_zero(make_project):
    root = make_project({'src/broken.ts': "foo(;\n"})

    result = runner.invoke(app, [str(root), 'foo', 'database'])

    assert result.exit_code == 1
    assert result.stdout == ''
    assert 'failed to parse' in result.stderr


def test_with_summary_and_output_file(make_project, tmp_path):
    root = make_project({'src/api/a.ts': "foo();\n"})
    out_file = tmp_path / 'refs.json'

    result = runner.invoke(app, [str(root), 'foo', 'database', '--with-summary', '--output', str(out_file)])

    assert result.exit_code == 0
    assert result.stdout == ''
    payload = json.loads(out_file.read_text(encoding='utf-8'))
    assert payload['summary']['countsByCategory']['api'] == 1
    assert payload['references'][0]['type'] == 'direct-call'


def test_domain_argument_scopes_service_files(make_project):
    root = make_project({
        'src/domains/billing/a.ts': "foo();\n",
        'src/domains/shipping/b.ts': "foo();\n",
    })

    result = runner.invoke(app, [str(root), 'foo', 'billing'])

    files = [r['file'] for r in json.loads(result.stdout)]
    assert len(files) == 1
    assert files[0].endswith('a.ts')


def test_version():
    result = runner.invoke(app, ['--version'])

    assert result.exit_code == 0
    assert __version__ in result.stdout
