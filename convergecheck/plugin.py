"""pytest plugin applying the run scope to a verification session.

The handler registers a RunScopePlugin instance together with this module:
the instance owns the hooks and counters, the module-level fixtures read
it back from the config stash.
"""

import logging
import random

import pytest

from convergecheck.errors import TestSuiteLoadFailure
from convergecheck.resolver import ResourceLookup
from convergecheck.scope import RECIPE_MARKER, partition, recipe_for

logger = logging.getLogger("convergecheck.plugin")

run_scope_key = pytest.StashKey()


class RunScopePlugin:
    def __init__(self, run_status, seed=None):
        self.run_status = run_status
        self.seed = seed
        self.resources = ResourceLookup(run_status.run_context)
        self.deselected = []
        self.executed = 0
        self.failed_nodeids = []
        self.load_failures = []

    @property
    def failures(self):
        return len(self.failed_nodeids) + len(self.load_failures)

    def bind(self, instance):
        """Expose the run state on a test class instance."""
        instance.run_status = self.run_status
        instance.node = self.run_status.node
        instance.run_context = self.run_status.run_context
        instance.resources = self.resources

    def pytest_configure(self, config):
        config.stash[run_scope_key] = self
        config.addinivalue_line(
            "markers",
            f"{RECIPE_MARKER}(name): recipe verified by this test "
            f"(cookbook::recipe)",
        )

    @pytest.hookimpl(trylast=True)
    def pytest_collection_modifyitems(self, session, config, items):
        selected, deselected = partition(items, self.run_status.seen_recipes)
        for item in deselected:
            recipe = recipe_for(item)
            if recipe is None:
                logger.warning("Skipping %s: no recipe declared", item.nodeid)
            else:
                logger.info(
                    "Skipping %s: recipe %s did not run", item.nodeid, recipe,
                )
        if deselected:
            config.hook.pytest_deselected(items=deselected)
            self.deselected.extend(item.nodeid for item in deselected)
        if self.seed is not None:
            random.Random(self.seed).shuffle(selected)
        items[:] = selected

    def pytest_collectreport(self, report):
        if report.failed:
            failure = TestSuiteLoadFailure(report.nodeid, report.longreprtext)
            logger.error("%s", failure)
            self.load_failures.append(failure)

    def pytest_runtest_logreport(self, report):
        if report.failed and report.nodeid not in self.failed_nodeids:
            self.failed_nodeids.append(report.nodeid)

    def pytest_runtest_logfinish(self, nodeid, location):
        self.executed += 1


def _plugin(request):
    scope = request.config.stash.get(run_scope_key, None)
    if scope is None:
        pytest.fail(
            "run state is only available inside a convergence report",
            pytrace=False,
        )
    return scope


@pytest.fixture(autouse=True)
def _bind_run_state(request):
    scope = request.config.stash.get(run_scope_key, None)
    if scope is not None and request.instance is not None:
        scope.bind(request.instance)


@pytest.fixture()
def run_status(request):
    return _plugin(request).run_status


@pytest.fixture()
def node(request):
    return _plugin(request).run_status.node


@pytest.fixture()
def run_context(request):
    return _plugin(request).run_status.run_context


@pytest.fixture()
def resources(request):
    return _plugin(request).resources
