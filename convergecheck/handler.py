"""Post-convergence report handler: runs the verification suite.

The handler is invoked once after convergence. It never raises or exits
because tests failed; it returns a VerificationResult and leaves the
termination decision to ReportHooks.terminate_if_failed, which runs after
every other report hook has finished. Options pytest rejects raise
ConfigError.
"""

import enum
import glob
import logging
from dataclasses import dataclass, replace

import pytest

from convergecheck import plugin as plugin_module
from convergecheck.config import HandlerOptions, validate_options
from convergecheck.errors import ConfigError, VerificationError
from convergecheck.plugin import RunScopePlugin

logger = logging.getLogger("convergecheck.handler")

TEST_FAILURE_MESSAGE = "There were test failures"
TEST_FAILURE_EXIT_CODE = 3

# pytest exit statuses that mean the session itself broke.
_BROKEN_SESSION = (
    pytest.ExitCode.INTERRUPTED,
    pytest.ExitCode.INTERNAL_ERROR,
)


class State(enum.Enum):
    IDLE = "idle"
    LOADED = "loaded"
    RUNNING = "running"
    REPORTED = "reported"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of one report step.

    ``exit_code`` and ``message`` are set only when the failures should
    fail the overall run.
    """

    convergence_failed: bool = False
    suites: tuple = ()
    executed: int = 0
    failures: int = 0
    deselected: tuple = ()
    failed_tests: tuple = ()
    load_failures: tuple = ()
    message: str | None = None
    exit_code: int | None = None

    @property
    def failed(self) -> bool:
        return self.failures > 0

    @property
    def should_terminate(self) -> bool:
        return self.exit_code is not None


class VerificationHandler:
    """Report handler that verifies the converged host with pytest."""

    def __init__(self, options=None, **kwargs):
        if options is None:
            options = HandlerOptions.from_mapping(kwargs)
        elif isinstance(options, dict):
            options = HandlerOptions.from_mapping({**options, **kwargs})
        elif kwargs:
            errors = validate_options(kwargs)
            if errors:
                raise ConfigError(errors)
            options = replace(options, **kwargs)
        self.options = options
        self.state = State.IDLE
        self.result = None

    def test_suites(self):
        """Test suite files matched by the ``path`` glob, sorted."""
        return sorted(glob.glob(self.options.path, recursive=True))

    def pytest_args(self, suites):
        args = list(suites)
        args += [
            "-p", "no:cacheprovider",
            "--import-mode=importlib",
            "--continue-on-collection-errors",
        ]
        if self.options.filter:
            args += ["-k", self.options.filter]
        args.append("-v" if self.options.verbose else "-q")
        return args

    def report(self, run_status):
        """Run the suite for ``run_status`` and return the result."""
        if self.state is not State.IDLE:
            raise VerificationError(
                f"handler already used (state: {self.state.value})"
            )

        if run_status.failed:
            logger.info(
                "Convergence failed (%s), skipping verification",
                run_status.exception,
            )
            return self._finish(VerificationResult(convergence_failed=True))

        suites = self.test_suites()
        self.state = State.LOADED
        if not suites:
            logger.warning("No test suites match %s", self.options.path)
            return self._finish(VerificationResult())

        logger.info("Running %d test suite(s)", len(suites))
        scope = RunScopePlugin(run_status, seed=self.options.seed)
        self.state = State.RUNNING
        exit_status = pytest.main(
            self.pytest_args(suites), plugins=[scope, plugin_module],
        )

        if exit_status == pytest.ExitCode.USAGE_ERROR:
            self.state = State.REPORTED
            raise ConfigError([
                f"pytest rejected the handler options "
                f"(path={self.options.path!r}, filter={self.options.filter!r})"
            ])

        failures = scope.failures
        if exit_status in _BROKEN_SESSION:
            logger.error("Test session ended abnormally: %s", exit_status)
            failures = max(failures, 1)

        result = VerificationResult(
            suites=tuple(suites),
            executed=scope.executed,
            failures=failures,
            deselected=tuple(scope.deselected),
            failed_tests=tuple(scope.failed_nodeids),
            load_failures=tuple(scope.load_failures),
        )
        if result.failed:
            if self.options.managed:
                logger.error(
                    "%s: %d failure(s), not failing the run (managed mode)",
                    TEST_FAILURE_MESSAGE, failures,
                )
            else:
                logger.error("%s: %d failure(s)", TEST_FAILURE_MESSAGE, failures)
                result = replace(
                    result,
                    message=TEST_FAILURE_MESSAGE,
                    exit_code=TEST_FAILURE_EXIT_CODE,
                )
        return self._finish(result)

    def _finish(self, result):
        self.result = result
        self.state = State.REPORTED
        return result
