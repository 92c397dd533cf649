"""Shared fixtures and helpers: a scripted run context instead of a live host."""

import sys
import textwrap

import pytest

from convergecheck.run_state import RunStatus


class FakeProvider:
    """Returns (or raises) whatever the run context was scripted with."""

    def __init__(self, context, declaration):
        self.context = context
        self.declaration = declaration
        self.current_resource = None

    def load_current_resource(self):
        self.context.loads.append(self.declaration)
        state = self.context.states.get(
            (self.declaration.kind, self.declaration.name)
        )
        if isinstance(state, BaseException):
            raise state
        if callable(state):
            state = state(self.declaration)
        self.current_resource = state
        return state


class FakeRunContext:
    """Run context keyed by (kind, name); records every live read."""

    def __init__(self, states=None):
        self.states = dict(states or {})
        self.loads = []

    def provider_for(self, declaration):
        return FakeProvider(self, declaration)


@pytest.fixture(autouse=True)
def _forget_suite_modules():
    """Drop suite modules imported by nested verification sessions."""
    before = set(sys.modules)
    yield
    for name in set(sys.modules) - before:
        if name.startswith(("test_", "test.")):
            del sys.modules[name]


@pytest.fixture()
def fake_context():
    return FakeRunContext()


@pytest.fixture()
def make_status(fake_context):
    """Build a RunStatus over the fake run context."""

    def _make(seen=(), failed=False, node=None, context=None):
        return RunStatus(
            run_context=context or fake_context,
            all_recipes=frozenset(seen),
            seen_recipes=frozenset(seen),
            node=node or {},
            exception=RuntimeError("boom") if failed else None,
        )

    return _make


def write_suite(directory, name, body):
    """Write a dedented test suite file and return its path."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(textwrap.dedent(body))
    return path
