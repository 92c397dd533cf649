"""Resource kinds and immutable resource declarations."""

from dataclasses import dataclass, field
from types import MappingProxyType

from convergecheck.errors import MissingRequiredArgument, UnsupportedResourceKind

# Kind -> arguments that must be supplied alongside the name.
RESOURCE_KINDS = {
    "cron": (),
    "directory": (),
    "file": (),
    "group": (),
    "link": (),
    "mount": ("device",),
    "network_interface": (),
    "package": (),
    "service": (),
    "user": (),
}

KIND_ALIASES = {
    "ifconfig": "network_interface",
    "network-interface": "network_interface",
}


def canonical_kind(kind):
    """Return the canonical spelling of a resource kind or raise."""
    kind = KIND_ALIASES.get(kind, kind)
    if kind not in RESOURCE_KINDS:
        raise UnsupportedResourceKind(kind)
    return kind


@dataclass(frozen=True)
class ResourceDeclaration:
    """A (kind, name, options) triple identifying a resource to inspect."""

    kind: str
    name: str
    _options: tuple = field(default=(), repr=False)

    @property
    def options(self):
        return MappingProxyType(dict(self._options))

    def option(self, key, default=None):
        return dict(self._options).get(key, default)


def declare(kind, name, **options):
    """Validate and build a ResourceDeclaration.

    Unknown kinds raise UnsupportedResourceKind; a missing name or a missing
    kind-specific argument raises MissingRequiredArgument.
    """
    kind = canonical_kind(kind)
    if name is None or name == "":
        raise MissingRequiredArgument(kind, "name")
    for arg in RESOURCE_KINDS[kind]:
        if options.get(arg) in (None, ""):
            raise MissingRequiredArgument(kind, arg)
    return ResourceDeclaration(
        kind=kind,
        name=str(name),
        _options=tuple(sorted(options.items())),
    )
