"""Tests for the convergecheck CLI."""

import re
from unittest.mock import patch

import pytest

pytest.importorskip("typer")

from typer.testing import CliRunner  # noqa: E402

from convergecheck import cli  # noqa: E402
from convergecheck.cli import app  # noqa: E402
from convergecheck.errors import ConfigError, TestSuiteLoadFailure  # noqa: E402
from convergecheck.handler import (  # noqa: E402
    TEST_FAILURE_EXIT_CODE,
    TEST_FAILURE_MESSAGE,
    VerificationResult,
)

runner = CliRunner()

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


class StubHandler:
    """Stands in for VerificationHandler; records options and status."""

    instances = []
    result = VerificationResult()

    def __init__(self, options):
        self.options = options
        self.status = None
        StubHandler.instances.append(self)

    def report(self, run_status):
        self.status = run_status
        return StubHandler.result


@pytest.fixture()
def stub_handler():
    StubHandler.instances = []
    StubHandler.result = VerificationResult()
    with patch.object(cli, "VerificationHandler", StubHandler):
        yield StubHandler


@pytest.fixture()
def summary(tmp_path):
    path = tmp_path / "run.yml"
    path.write_text("recipes: [nginx]\nnode:\n  hostname: web01\n")
    return path


class TestTopLevel:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        output = strip_ansi(result.output)
        assert "verify" in output
        assert "inspect" in output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "convergecheck 0.1.0" in result.output


class TestVerify:
    def test_passing_run(self, stub_handler, summary):
        StubHandler.result = VerificationResult(suites=("test/test_web.py",), executed=3)
        result = runner.invoke(app, ["verify", "-r", str(summary), "--path", "x/test_*.py", "--seed", "9"])
        assert result.exit_code == 0, result.output
        handler = StubHandler.instances[0]
        assert handler.options.path == "x/test_*.py"
        assert handler.options.seed == 9
        assert handler.status.seen_recipes == frozenset({"nginx::default"})
        assert "3 test(s) run" in strip_ansi(result.output)

    def test_failures_exit_with_code(self, stub_handler, summary):
        StubHandler.result = VerificationResult(
            suites=("test/test_web.py",),
            executed=2,
            failures=2,
            failed_tests=("test/test_web.py::test_enabled",),
            load_failures=(TestSuiteLoadFailure("test/test_db.py", "ImportError"),),
            message=TEST_FAILURE_MESSAGE,
            exit_code=TEST_FAILURE_EXIT_CODE,
        )
        result = runner.invoke(app, ["verify", "-r", str(summary)])
        assert result.exit_code == TEST_FAILURE_EXIT_CODE
        output = strip_ansi(result.output)
        assert "2 failure(s)" in output
        assert "FAIL test/test_web.py::test_enabled" in output
        assert "LOAD test/test_db.py" in output

    def test_managed_failures_do_not_exit(self, stub_handler, summary):
        StubHandler.result = VerificationResult(suites=("t.py",), executed=1, failures=1)
        result = runner.invoke(app, ["verify", "-r", str(summary), "--managed"])
        assert result.exit_code == 0
        assert StubHandler.instances[0].options.managed is True
        assert "managed mode" in strip_ansi(result.output)

    def test_convergence_failed(self, stub_handler, tmp_path):
        path = tmp_path / "run.yml"
        path.write_text("recipes: [nginx]\nfailed: true\nerror: boom\n")
        StubHandler.result = VerificationResult(convergence_failed=True)
        result = runner.invoke(app, ["verify", "-r", str(path)])
        assert result.exit_code == 0
        assert StubHandler.instances[0].status.failed
        assert "verification skipped" in strip_ansi(result.output)

    def test_crashed_handler_exits_nonzero(self, stub_handler, summary):
        """A handler that raised (e.g. a rejected filter) is not a pass."""
        def crash(self, run_status):
            raise ConfigError(["pytest rejected the handler options"])

        with patch.object(StubHandler, "report", crash):
            result = runner.invoke(app, ["verify", "-r", str(summary), "-k", "a and ("])
        assert result.exit_code == 1
        assert StubHandler.instances[0].options.filter == "a and ("
        assert "crashed" in strip_ansi(result.output)

    def test_missing_summary(self, stub_handler, tmp_path):
        result = runner.invoke(app, ["verify", "-r", str(tmp_path / "absent.yml")])
        assert result.exit_code == 1
        assert "Error loading run summary" in strip_ansi(result.output)
        assert StubHandler.instances == []

    def test_bad_config(self, stub_handler, summary, tmp_path):
        cfg = tmp_path / "opts.yml"
        cfg.write_text("colour: red\n")
        result = runner.invoke(app, ["verify", "-r", str(summary), "-c", str(cfg)])
        assert result.exit_code == 1
        assert "Unknown option: colour" in strip_ansi(result.output)


class TestInspect:
    def test_file(self, tmp_path):
        path = tmp_path / "app.conf"
        path.write_text("x")
        path.chmod(0o600)
        result = runner.invoke(app, ["inspect", "file", str(path)])
        assert result.exit_code == 0, result.output
        output = strip_ansi(result.output)
        assert "mode" in output
        assert "384" in output

    def test_unsupported_kind(self):
        result = runner.invoke(app, ["inspect", "firewall", "ssh"])
        assert result.exit_code == 1
        assert "Unsupported resource kind" in strip_ansi(result.output)

    def test_missing_required_option(self):
        result = runner.invoke(app, ["inspect", "mount", "/srv"])
        assert result.exit_code == 1
        assert "requires argument 'device'" in strip_ansi(result.output)

    def test_malformed_option(self):
        result = runner.invoke(app, ["inspect", "mount", "/srv", "-o", "device"])
        assert result.exit_code == 1
        assert "expected key=value" in strip_ansi(result.output)
