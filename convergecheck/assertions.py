"""Canonical assert/refute predicate pairs over observed resources.

Every predicate returns the resource it checked so checks can be chained,
and raises ExpectationFailure naming the resource when unsatisfied. Each
``refute_*`` is the exact negation of its ``assert_*``.
"""

import re
from datetime import datetime

from convergecheck.errors import ExpectationFailure


def _fail(resource, message, *, attribute=None, expected=None, actual=None):
    raise ExpectationFailure(
        message,
        kind=resource.kind,
        name=resource.name,
        attribute=attribute,
        expected=expected,
        actual=actual,
    )


def _label(resource):
    return f"{resource.kind} '{resource.name}'"


# ── Existence ─────────────────────────────────────────────


def _existence_pair(field, description):
    """Build (assert, refute) checking that ``field`` is non-null."""

    def assert_exists(resource):
        if getattr(resource, field) is None:
            _fail(
                resource,
                f"Expected {description} '{resource.name}' to exist",
                attribute=field,
            )
        return resource

    def refute_exists(resource):
        if getattr(resource, field) is not None:
            _fail(
                resource,
                f"Expected {description} '{resource.name}' not to exist",
                attribute=field,
                actual=getattr(resource, field),
            )
        return resource

    return assert_exists, refute_exists


assert_cron_exists, refute_cron_exists = _existence_pair("command", "cron")
assert_group_exists, refute_group_exists = _existence_pair("gid", "group")
assert_link_exists, refute_link_exists = _existence_pair("to", "link")
assert_user_exists, refute_user_exists = _existence_pair("uid", "user")
(
    assert_network_interface_exists,
    refute_network_interface_exists,
) = _existence_pair("device", "network interface")


def assert_path_exists(resource):
    if not resource.path_exists():
        _fail(resource, f"Expected {_label(resource)} to exist")
    return resource


def refute_path_exists(resource):
    if resource.path_exists():
        _fail(resource, f"Expected {_label(resource)} not to exist")
    return resource


# ── Packages, services, mounts ────────────────────────────


def assert_installed(package):
    if package.version is None:
        _fail(package, f"Expected {_label(package)} to be installed")
    return package


def refute_installed(package):
    if package.version is not None:
        _fail(
            package,
            f"Expected {_label(package)} not to be installed",
            attribute="version",
            actual=package.version,
        )
    return package


def assert_running(service):
    if not service.running:
        _fail(service, f"Expected {_label(service)} to be running")
    return service


def refute_running(service):
    if service.running:
        _fail(service, f"Expected {_label(service)} not to be running")
    return service


def assert_enabled(resource):
    """Service or mount enabled at boot."""
    if not resource.enabled:
        _fail(resource, f"Expected {_label(resource)} to be enabled")
    return resource


def refute_enabled(resource):
    if resource.enabled:
        _fail(resource, f"Expected {_label(resource)} not to be enabled")
    return resource


def assert_mounted(mount):
    if not mount.mounted:
        _fail(mount, f"Expected {_label(mount)} to be mounted")
    return mount


def refute_mounted(mount):
    if mount.mounted:
        _fail(mount, f"Expected {_label(mount)} not to be mounted")
    return mount


# ── File content ──────────────────────────────────────────


def _content(resource):
    try:
        return resource.read_content()
    except OSError as e:
        _fail(resource, f"Expected {_label(resource)} to be readable: {e}")


def assert_includes_content(resource, content):
    if content not in _content(resource):
        _fail(
            resource,
            f"Expected {_label(resource)} to include {content!r}",
            attribute="content",
            expected=content,
        )
    return resource


def refute_includes_content(resource, content):
    if content in _content(resource):
        _fail(
            resource,
            f"Expected {_label(resource)} not to include {content!r}",
            attribute="content",
            expected=content,
        )
    return resource


def assert_matches_content(resource, pattern):
    if not re.search(pattern, _content(resource)):
        _fail(
            resource,
            f"Expected {_label(resource)} to match {_pattern(pattern)!r}",
            attribute="content",
            expected=_pattern(pattern),
        )
    return resource


def refute_matches_content(resource, pattern):
    if re.search(pattern, _content(resource)):
        _fail(
            resource,
            f"Expected {_label(resource)} not to match {_pattern(pattern)!r}",
            attribute="content",
            expected=_pattern(pattern),
        )
    return resource


def _pattern(pattern):
    return getattr(pattern, "pattern", pattern)


# ── Modification time ─────────────────────────────────────


def _epoch(reference):
    if isinstance(reference, datetime):
        return int(reference.timestamp())
    return int(reference)


def _mtime(resource):
    try:
        return int(resource.modified_time())
    except AttributeError:
        if resource.mtime is None:
            _fail(resource, f"Expected {_label(resource)} to exist")
        return int(resource.mtime)
    except OSError as e:
        _fail(resource, f"Expected {_label(resource)} to exist: {e}")


def assert_modified_after(resource, reference):
    """Pass when mtime >= reference, compared in whole seconds."""
    mtime, ref = _mtime(resource), _epoch(reference)
    if not mtime >= ref:
        _fail(
            resource,
            f"Expected {_label(resource)} to be modified after {ref}",
            attribute="mtime",
            expected=ref,
            actual=mtime,
        )
    return resource


def refute_modified_after(resource, reference):
    mtime, ref = _mtime(resource), _epoch(reference)
    if mtime >= ref:
        _fail(
            resource,
            f"Expected {_label(resource)} not to be modified after {ref}",
            attribute="mtime",
            expected=ref,
            actual=mtime,
        )
    return resource


# ── Group membership ──────────────────────────────────────


def _members(members):
    if isinstance(members, str):
        return [members]
    return list(members)


def _includes(members, group):
    found = [m for m in dict.fromkeys(members) if m in group.members]
    return found == members


def assert_group_includes(members, group):
    members = _members(members)
    if not _includes(members, group):
        _fail(
            group,
            f"Expected group '{group.name}' to include members: "
            f"{', '.join(members)}",
            attribute="members",
            expected=members,
            actual=list(group.members),
        )
    return group


def refute_group_includes(members, group):
    members = _members(members)
    if _includes(members, group):
        _fail(
            group,
            f"Expected group '{group.name}' not to include members: "
            f"{', '.join(members)}",
            attribute="members",
            expected=members,
            actual=list(group.members),
        )
    return group
