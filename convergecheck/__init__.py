"""convergecheck: verify a host after a configuration-management run.

Public API re-exported here.
"""

from convergecheck.assertions import (
    assert_cron_exists,
    assert_enabled,
    assert_group_exists,
    assert_group_includes,
    assert_includes_content,
    assert_installed,
    assert_link_exists,
    assert_matches_content,
    assert_modified_after,
    assert_mounted,
    assert_network_interface_exists,
    assert_path_exists,
    assert_running,
    assert_user_exists,
    refute_cron_exists,
    refute_enabled,
    refute_group_exists,
    refute_group_includes,
    refute_includes_content,
    refute_installed,
    refute_link_exists,
    refute_matches_content,
    refute_modified_after,
    refute_mounted,
    refute_network_interface_exists,
    refute_path_exists,
    refute_running,
    refute_user_exists,
)
from convergecheck.config import HandlerOptions, load_options
from convergecheck.declarations import RESOURCE_KINDS, ResourceDeclaration, declare
from convergecheck.errors import (
    ConfigError,
    ExpectationFailure,
    MissingRequiredArgument,
    ResolutionFailure,
    TestSuiteLoadFailure,
    UnsupportedResourceKind,
    VerificationError,
)
from convergecheck.expectations import (
    EXPECTATION_TABLE,
    Arity,
    ExpectationRegistry,
    expect,
    registry,
)
from convergecheck.handler import (
    TEST_FAILURE_EXIT_CODE,
    TEST_FAILURE_MESSAGE,
    VerificationHandler,
    VerificationResult,
)
from convergecheck.hooks import ReportHooks
from convergecheck.matchers import matches, with_attribute
from convergecheck.resolver import ResourceLookup, resolve
from convergecheck.run_state import LocalRunContext, RunStatus
from convergecheck.testcase import RecipeTestCase, for_recipe

__version__ = "0.1.0"

__all__ = [
    # Errors
    "ConfigError",
    "ExpectationFailure",
    "MissingRequiredArgument",
    "ResolutionFailure",
    "TestSuiteLoadFailure",
    "UnsupportedResourceKind",
    "VerificationError",
    # Declarations and resolution
    "RESOURCE_KINDS",
    "ResourceDeclaration",
    "ResourceLookup",
    "declare",
    "resolve",
    # Run state
    "LocalRunContext",
    "RunStatus",
    # Matching
    "matches",
    "with_attribute",
    # Expectations
    "EXPECTATION_TABLE",
    "Arity",
    "ExpectationRegistry",
    "expect",
    "registry",
    # Test cases
    "RecipeTestCase",
    "for_recipe",
    # Reporting
    "HandlerOptions",
    "ReportHooks",
    "TEST_FAILURE_EXIT_CODE",
    "TEST_FAILURE_MESSAGE",
    "VerificationHandler",
    "VerificationResult",
    "load_options",
    # Assertions
    "assert_cron_exists",
    "assert_enabled",
    "assert_group_exists",
    "assert_group_includes",
    "assert_includes_content",
    "assert_installed",
    "assert_link_exists",
    "assert_matches_content",
    "assert_modified_after",
    "assert_mounted",
    "assert_network_interface_exists",
    "assert_path_exists",
    "assert_running",
    "assert_user_exists",
    "refute_cron_exists",
    "refute_enabled",
    "refute_group_exists",
    "refute_group_includes",
    "refute_includes_content",
    "refute_installed",
    "refute_link_exists",
    "refute_matches_content",
    "refute_modified_after",
    "refute_mounted",
    "refute_network_interface_exists",
    "refute_path_exists",
    "refute_running",
    "refute_user_exists",
]
