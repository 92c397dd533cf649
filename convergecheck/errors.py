"""Error taxonomy for post-convergence verification."""


class VerificationError(Exception):
    """Base class for all verification errors."""


class ConfigError(VerificationError):
    """Invalid handler options. Carries every problem found."""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems))


class UnsupportedResourceKind(VerificationError):
    """The requested resource kind is not known to the resolver."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Unsupported resource kind: {kind!r}")


class MissingRequiredArgument(VerificationError):
    """A resource kind was resolved without one of its required arguments."""

    def __init__(self, kind, argument):
        self.kind = kind
        self.argument = argument
        super().__init__(
            f"Resource kind '{kind}' requires argument '{argument}'"
        )


class ResolutionFailure(VerificationError):
    """The live host could not be queried for a declared resource."""

    def __init__(self, declaration, reason):
        self.declaration = declaration
        self.reason = reason
        super().__init__(
            f"Could not resolve {declaration.kind} '{declaration.name}': "
            f"{reason}"
        )


class TestSuiteLoadFailure(VerificationError):
    """A test suite file failed to load."""

    __test__ = False

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load test suite {path}: {reason}")


class ExpectationFailure(VerificationError, AssertionError):
    """An observed resource did not meet an expectation.

    Subclasses AssertionError so pytest reports it as a plain test failure.
    ``expected`` and ``actual`` are None for predicate checks that carry
    only a message.
    """

    def __init__(
        self, message, *, kind=None, name=None, attribute=None,
        expected=None, actual=None,
    ):
        self.kind = kind
        self.name = name
        self.attribute = attribute
        self.expected = expected
        self.actual = actual
        super().__init__(message)

    @classmethod
    def mismatch(cls, resource, attribute, expected, actual):
        """Build the failure for an attribute comparison."""
        return cls(
            f"Expected {resource.kind} '{resource.name}' to have "
            f"{attribute} {expected!r}, got {actual!r}",
            kind=resource.kind,
            name=resource.name,
            attribute=attribute,
            expected=expected,
            actual=actual,
        )
