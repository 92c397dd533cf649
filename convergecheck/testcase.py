"""Base class and marker for recipe-scoped test cases.

Usage::

    class TestNginx(RecipeTestCase):
        recipe = "nginx::default"

        def test_service(self):
            expect(self.service("nginx")).must_be_running()

    @for_recipe("users::default")
    def test_admins(resources):
        expect(resources.group("admins")).must_include(["alice"])
"""

import pytest

from convergecheck.scope import RECIPE_MARKER


def for_recipe(recipe):
    """Mark a test function or class as verifying ``recipe``."""
    return getattr(pytest.mark, RECIPE_MARKER)(recipe)


class RecipeTestCase:
    """Test class whose run state is bound before each test runs.

    Subclasses must set ``recipe``; classes without one never execute.
    """

    recipe = None

    run_status = None
    node = None
    run_context = None
    resources = None

    def cron(self, name, **options):
        return self.resources.cron(name, **options)

    def directory(self, name, **options):
        return self.resources.directory(name, **options)

    def file(self, name, **options):
        return self.resources.file(name, **options)

    def group(self, name, **options):
        return self.resources.group(name, **options)

    def link(self, name, **options):
        return self.resources.link(name, **options)

    def mount(self, name, **options):
        return self.resources.mount(name, **options)

    def network_interface(self, name, **options):
        return self.resources.network_interface(name, **options)

    def package(self, name, **options):
        return self.resources.package(name, **options)

    def service(self, name, **options):
        return self.resources.service(name, **options)

    def user(self, name, **options):
        return self.resources.user(name, **options)
