"""Observed (live) state of host resources.

Each class is a read-only projection of one resource kind as the host
reported it at resolution time. Capabilities are mixed in explicitly:
every kind is Matchable, file-like kinds are also Readable.
"""

import os
from dataclasses import dataclass, field
from typing import ClassVar

from convergecheck.matchers import with_attribute


class Matchable:
    """Fluent attribute matching: ``res.with_("mode", "644").and_(...)``."""

    def with_(self, attribute, expected):
        return with_attribute(self, attribute, expected)

    def and_(self, attribute, expected):
        return with_attribute(self, attribute, expected)

    def must_have(self, attribute, expected):
        return with_attribute(self, attribute, expected)


class Readable:
    """Live access to the filesystem object behind a resource."""

    def path_exists(self) -> bool:
        return os.path.exists(self.path)

    def read_content(self) -> str:
        with open(self.path, encoding="utf-8", errors="surrogateescape") as f:
            return f.read()

    def modified_time(self) -> float:
        return os.stat(self.path).st_mtime


@dataclass(frozen=True)
class ObservedResource(Matchable):
    kind: ClassVar[str] = "resource"

    name: str


@dataclass(frozen=True)
class FileState(ObservedResource, Readable):
    kind: ClassVar[str] = "file"

    path: str = ""
    mode: int | str | None = None
    owner: int | str | None = None
    group: int | str | None = None
    mtime: float | None = None
    size: int | None = None
    checksum: str | None = None


@dataclass(frozen=True)
class DirectoryState(ObservedResource, Readable):
    kind: ClassVar[str] = "directory"

    path: str = ""
    mode: int | str | None = None
    owner: int | str | None = None
    group: int | str | None = None
    mtime: float | None = None


@dataclass(frozen=True)
class LinkState(ObservedResource, Readable):
    kind: ClassVar[str] = "link"

    path: str = ""
    to: str | None = None
    link_type: str = "symbolic"
    owner: int | str | None = None
    group: int | str | None = None
    mtime: float | None = None


@dataclass(frozen=True)
class PackageState(ObservedResource):
    kind: ClassVar[str] = "package"

    version: str | None = None
    arch: str | None = None


@dataclass(frozen=True)
class ServiceState(ObservedResource):
    kind: ClassVar[str] = "service"

    running: bool = False
    enabled: bool = False


@dataclass(frozen=True)
class CronState(ObservedResource):
    kind: ClassVar[str] = "cron"

    command: str | None = None
    user: str = "root"
    minute: str = "*"
    hour: str = "*"
    day: str = "*"
    month: str = "*"
    weekday: str = "*"


@dataclass(frozen=True)
class GroupState(ObservedResource):
    kind: ClassVar[str] = "group"

    gid: int | None = None
    members: tuple = field(default_factory=tuple)


@dataclass(frozen=True)
class UserState(ObservedResource):
    kind: ClassVar[str] = "user"

    uid: int | None = None
    gid: int | None = None
    home: str | None = None
    shell: str | None = None
    comment: str | None = None


@dataclass(frozen=True)
class MountState(ObservedResource):
    kind: ClassVar[str] = "mount"

    mount_point: str = ""
    device: str | None = None
    fstype: str | None = None
    options: tuple = field(default_factory=tuple)
    mounted: bool = False
    enabled: bool = False


@dataclass(frozen=True)
class NetworkInterfaceState(ObservedResource):
    kind: ClassVar[str] = "network_interface"

    device: str | None = None
    inet_addr: str | None = None
    hwaddr: str | None = None
    mtu: int | None = None
    state: str | None = None


OBSERVED_TYPES = {
    cls.kind: cls
    for cls in (
        FileState, DirectoryState, LinkState, PackageState, ServiceState,
        CronState, GroupState, UserState, MountState, NetworkInterfaceState,
    )
}
