"""Generic attribute matching against observed resources.

Attribute names map onto the right comparison for the resource:

- ``mode``: an integer mode is rendered as an octal string ("644").
- ``owner`` / ``user``: a numeric uid is resolved to the account name.
- ``group``: a numeric gid is resolved to the group name.
- anything else: the attribute is read and compared by equality.
"""

import grp
import pwd

from convergecheck.errors import ExpectationFailure


class _UnknownId:
    """Placeholder for a uid/gid with no account; equal to nothing."""

    def __init__(self, db, value):
        self.db = db
        self.value = value

    def __repr__(self):
        return f"<unknown {self.db} id {self.value}>"


def _account_name(uid):
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return _UnknownId("user", uid)


def _group_name(gid):
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return _UnknownId("group", gid)


def _read(resource, attribute):
    try:
        return getattr(resource, attribute)
    except AttributeError:
        raise AttributeError(
            f"{resource.kind} '{resource.name}' has no attribute "
            f"'{attribute}'"
        ) from None


def actual_value(resource, attribute):
    """Return the normalized value of ``attribute`` on ``resource``."""
    if attribute == "mode":
        mode = _read(resource, "mode")
        if isinstance(mode, int):
            return format(mode, "o")
        return mode
    if attribute in ("owner", "user"):
        source = "owner" if hasattr(resource, "owner") else attribute
        owner = _read(resource, source)
        if isinstance(owner, int):
            return _account_name(owner)
        return owner
    if attribute == "group":
        group = _read(resource, "group")
        if isinstance(group, int):
            return _group_name(group)
        return group
    return _read(resource, attribute)


def matches(resource, attribute, expected) -> bool:
    """Return True if the normalized attribute equals ``expected``."""
    return actual_value(resource, attribute) == expected


def with_attribute(resource, attribute, expected):
    """Assert the attribute matches and return the resource for chaining."""
    actual = actual_value(resource, attribute)
    if actual != expected:
        raise ExpectationFailure.mismatch(resource, attribute, expected, actual)
    return resource
