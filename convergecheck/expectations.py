"""Expectation methods (``must_*`` / ``wont_*``) built from predicate pairs.

Methods live in an explicit registry keyed by (resource kind, method
name). The default registry is filled from EXPECTATION_TABLE once, at
import time, before any test runs.
"""

import enum
import logging

from convergecheck import assertions as a

logger = logging.getLogger("convergecheck.expectations")


class Arity(enum.Enum):
    """How the subject and the caller's argument reach the predicate."""

    ONLY_ONE_ARGUMENT = "only_one_argument"  # predicate(subject)
    SUBJECT_FIRST = "subject_first"  # predicate(subject, arg)
    REVERSED = "reversed"  # predicate(arg, subject)


def _delegate(predicate, arity, method_name):
    if arity is Arity.ONLY_ONE_ARGUMENT:
        def method(subject):
            return predicate(subject)
    elif arity is Arity.SUBJECT_FIRST:
        def method(subject, arg):
            return predicate(subject, arg)
    else:
        def method(subject, arg):
            return predicate(arg, subject)
    method.__name__ = method_name
    method.__qualname__ = method_name
    method.__doc__ = f"{method_name} -> {predicate.__name__}"
    method.predicate = predicate
    return method


class ExpectationRegistry:
    def __init__(self):
        self._methods = {}

    def synthesize(self, kind, assert_fn, refute_fn, verb, arity=Arity.SUBJECT_FIRST):
        """Register ``must_<verb>`` and ``wont_<verb>`` for ``kind``.

        Re-registering an existing pair replaces it.
        """
        arity = Arity(arity)
        for prefix, predicate in (("must", assert_fn), ("wont", refute_fn)):
            name = f"{prefix}_{verb}"
            if (kind, name) in self._methods:
                logger.debug("Replacing expectation %s.%s", kind, name)
            self._methods[(kind, name)] = _delegate(predicate, arity, name)

    def lookup(self, kind, name):
        try:
            return self._methods[(kind, name)]
        except KeyError:
            raise AttributeError(
                f"No expectation '{name}' for resource kind '{kind}'"
            ) from None

    def names(self, kind):
        return sorted(n for k, n in self._methods if k == kind)

    def __contains__(self, key):
        return key in self._methods

    def load(self, table):
        for kind, assert_fn, refute_fn, verb, arity in table:
            self.synthesize(kind, assert_fn, refute_fn, verb, arity)
        return self


ONE = Arity.ONLY_ONE_ARGUMENT

EXPECTATION_TABLE = [
    # kind, assert, refute, verb, arity
    ("cron", a.assert_cron_exists, a.refute_cron_exists, "exist", ONE),
    ("directory", a.assert_path_exists, a.refute_path_exists, "exist", ONE),
    ("directory", a.assert_modified_after, a.refute_modified_after,
     "be_modified_after", Arity.SUBJECT_FIRST),
    ("file", a.assert_path_exists, a.refute_path_exists, "exist", ONE),
    ("file", a.assert_includes_content, a.refute_includes_content,
     "include", Arity.SUBJECT_FIRST),
    ("file", a.assert_matches_content, a.refute_matches_content,
     "match", Arity.SUBJECT_FIRST),
    ("file", a.assert_modified_after, a.refute_modified_after,
     "be_modified_after", Arity.SUBJECT_FIRST),
    ("group", a.assert_group_exists, a.refute_group_exists, "exist", ONE),
    ("group", a.assert_group_includes, a.refute_group_includes,
     "include", Arity.REVERSED),
    ("link", a.assert_link_exists, a.refute_link_exists, "exist", ONE),
    ("mount", a.assert_mounted, a.refute_mounted, "be_mounted", ONE),
    ("mount", a.assert_enabled, a.refute_enabled, "be_enabled", ONE),
    ("network_interface", a.assert_network_interface_exists,
     a.refute_network_interface_exists, "exist", ONE),
    ("package", a.assert_installed, a.refute_installed, "be_installed", ONE),
    ("service", a.assert_running, a.refute_running, "be_running", ONE),
    ("service", a.assert_enabled, a.refute_enabled, "be_enabled", ONE),
    ("user", a.assert_user_exists, a.refute_user_exists, "exist", ONE),
]

registry = ExpectationRegistry().load(EXPECTATION_TABLE)


class Expectation:
    """Fluent wrapper: ``expect(svc).must_be_running()``.

    Attribute matching is forwarded too, so ``expect(f).must_have("mode",
    "644")`` works alongside the synthesized methods.
    """

    def __init__(self, subject, registry=registry):
        self.subject = subject
        self._registry = registry

    def __getattr__(self, name):
        if not name.startswith(("must_", "wont_")):
            raise AttributeError(name)
        if name == "must_have":
            return self.subject.must_have
        method = self._registry.lookup(self.subject.kind, name)

        def bound(*args):
            return method(self.subject, *args)

        return bound


def expect(subject, registry=registry):
    return Expectation(subject, registry)
