"""Live readers for each resource kind on a local Linux host.

A provider is built for one declaration and loads the resource's current
state on demand. Nothing is cached: every ``load_current_resource`` call
goes back to the host.
"""

import grp
import hashlib
import logging
import os
import pwd
import re
import shutil
import stat
import subprocess

from convergecheck.observed import (
    CronState,
    DirectoryState,
    FileState,
    GroupState,
    LinkState,
    MountState,
    NetworkInterfaceState,
    PackageState,
    ServiceState,
    UserState,
)

logger = logging.getLogger("convergecheck.providers")

PROC_MOUNTS = "/proc/mounts"
FSTAB = "/etc/fstab"
SYS_CLASS_NET = "/sys/class/net"
DISK_BY = "/dev/disk"

# Name markers written above managed crontab lines by common engines.
CRON_MARKERS = ("# Chef Name: ", "#Ansible: ")

_SYSTEMD_DOWN = ("Failed to connect to bus", "System has not been booted")


class HostQueryError(RuntimeError):
    """The host answered, but not in a way that describes the resource."""


def _run(args):
    logger.debug("host query: %s", " ".join(args))
    return subprocess.run(args, capture_output=True, text=True, check=False)


class Provider:
    """Loads the current state of one declared resource."""

    def __init__(self, declaration):
        self.declaration = declaration
        self.current_resource = None

    @property
    def name(self):
        return self.declaration.name

    def load_current_resource(self):
        self.current_resource = self.load()
        return self.current_resource

    def load(self):
        raise NotImplementedError


# ── Filesystem ────────────────────────────────────────────


def _sha256(path):
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


class FileProvider(Provider):
    def load(self):
        path = self.declaration.option("path", self.name)
        if not os.path.isfile(path):
            return FileState(name=self.name, path=path)
        st = os.stat(path)
        return FileState(
            name=self.name,
            path=path,
            mode=stat.S_IMODE(st.st_mode),
            owner=st.st_uid,
            group=st.st_gid,
            mtime=st.st_mtime,
            size=st.st_size,
            checksum=_sha256(path),
        )


class DirectoryProvider(Provider):
    def load(self):
        path = self.declaration.option("path", self.name)
        if not os.path.isdir(path):
            return DirectoryState(name=self.name, path=path)
        st = os.stat(path)
        return DirectoryState(
            name=self.name,
            path=path,
            mode=stat.S_IMODE(st.st_mode),
            owner=st.st_uid,
            group=st.st_gid,
            mtime=st.st_mtime,
        )


class LinkProvider(Provider):
    """The name is the link itself; ``to`` is filled in when it exists."""

    def load(self):
        path = self.name
        if os.path.islink(path):
            st = os.lstat(path)
            return LinkState(
                name=self.name,
                path=path,
                to=os.readlink(path),
                link_type="symbolic",
                owner=st.st_uid,
                group=st.st_gid,
                mtime=st.st_mtime,
            )
        target = self.declaration.option("to")
        if (
            target
            and os.path.exists(path)
            and os.path.exists(target)
            and os.path.samefile(path, target)
        ):
            st = os.stat(path)
            return LinkState(
                name=self.name,
                path=path,
                to=target,
                link_type="hard",
                owner=st.st_uid,
                group=st.st_gid,
                mtime=st.st_mtime,
            )
        return LinkState(name=self.name, path=path)


# ── Packages and services ─────────────────────────────────


class PackageProvider(Provider):
    """Query dpkg or rpm, whichever the host has."""

    def load(self):
        if shutil.which("dpkg-query"):
            return self._load_dpkg()
        if shutil.which("rpm"):
            return self._load_rpm()
        raise FileNotFoundError("no supported package database (dpkg, rpm)")

    def _load_dpkg(self):
        result = _run([
            "dpkg-query", "-W",
            "-f=${Status}\t${Version}\t${Architecture}",
            self.name,
        ])
        if result.returncode != 0:
            return PackageState(name=self.name)
        try:
            status, version, arch = result.stdout.strip().split("\t")
        except ValueError:
            raise HostQueryError(
                f"unexpected dpkg-query output: {result.stdout!r}"
            ) from None
        if status.split()[-1:] != ["installed"]:
            return PackageState(name=self.name)
        return PackageState(name=self.name, version=version, arch=arch)

    def _load_rpm(self):
        result = _run([
            "rpm", "-q", "--qf", "%{VERSION}-%{RELEASE}\t%{ARCH}\n", self.name,
        ])
        if result.returncode != 0:
            return PackageState(name=self.name)
        first = result.stdout.strip().splitlines()[0]
        version, _, arch = first.partition("\t")
        return PackageState(name=self.name, version=version, arch=arch or None)


class ServiceProvider(Provider):
    """Ask systemd whether the unit is active and enabled."""

    def load(self):
        active = _run(["systemctl", "is-active", self.name])
        self._check_systemd(active)
        enabled = _run(["systemctl", "is-enabled", self.name])
        self._check_systemd(enabled)
        return ServiceState(
            name=self.name,
            running=active.returncode == 0,
            enabled=(
                enabled.returncode == 0
                and enabled.stdout.strip() in ("enabled", "enabled-runtime")
            ),
        )

    @staticmethod
    def _check_systemd(result):
        if any(marker in result.stderr for marker in _SYSTEMD_DOWN):
            raise HostQueryError(result.stderr.strip())


class CronProvider(Provider):
    """Find a named entry in a user's crontab."""

    def load(self):
        user = self.declaration.option("user", "root")
        result = _run(["crontab", "-l", "-u", user])
        if result.returncode != 0:
            if "no crontab for" in result.stderr:
                return CronState(name=self.name, user=user)
            raise HostQueryError(result.stderr.strip())
        return self._parse(result.stdout, user)

    def _parse(self, crontab, user):
        wanted = {f"{marker}{self.name}" for marker in CRON_MARKERS}
        lines = crontab.splitlines()
        for i, line in enumerate(lines[:-1]):
            if line.strip() not in wanted:
                continue
            entry = lines[i + 1].split()
            if entry and entry[0].startswith("@"):
                return CronState(
                    name=self.name, user=user, minute=entry[0],
                    command=" ".join(entry[1:]),
                )
            if len(entry) < 6:
                raise HostQueryError(f"malformed crontab line: {lines[i + 1]!r}")
            minute, hour, day, month, weekday = entry[:5]
            return CronState(
                name=self.name,
                command=" ".join(entry[5:]),
                user=user,
                minute=minute,
                hour=hour,
                day=day,
                month=month,
                weekday=weekday,
            )
        return CronState(name=self.name, user=user)


# ── Accounts ──────────────────────────────────────────────


class GroupProvider(Provider):
    def load(self):
        try:
            entry = grp.getgrnam(self.name)
        except KeyError:
            return GroupState(name=self.name)
        return GroupState(
            name=self.name, gid=entry.gr_gid, members=tuple(entry.gr_mem),
        )


class UserProvider(Provider):
    def load(self):
        try:
            entry = pwd.getpwnam(self.name)
        except KeyError:
            return UserState(name=self.name)
        return UserState(
            name=self.name,
            uid=entry.pw_uid,
            gid=entry.pw_gid,
            home=entry.pw_dir,
            shell=entry.pw_shell,
            comment=entry.pw_gecos,
        )


# ── Mounts ────────────────────────────────────────────────


def _unescape_mount_field(value):
    """Decode the octal escapes used in /proc/mounts and fstab (\\040)."""
    return re.sub(r"\\([0-7]{3})", lambda m: chr(int(m.group(1), 8)), value)


def _parse_mount_table(path):
    """Return (device, mount_point, fstype, options) rows from a mount table."""
    rows = []
    with open(path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            fields = line.split()
            if len(fields) < 4:
                continue
            rows.append((
                _unescape_mount_field(fields[0]),
                _unescape_mount_field(fields[1]),
                fields[2],
                tuple(fields[3].split(",")),
            ))
    return rows


def _canonical_device(device):
    for prefix, subdir in (("UUID=", "by-uuid"), ("LABEL=", "by-label")):
        if device.startswith(prefix):
            link = os.path.join(DISK_BY, subdir, device[len(prefix):])
            return os.path.realpath(link) if os.path.exists(link) else device
    if device.startswith("/"):
        return os.path.realpath(device)
    return device


def _device_matches(declared, actual):
    return declared == actual or _canonical_device(declared) == _canonical_device(actual)


class MountProvider(Provider):
    """The name is the mount point; the ``device`` option is required."""

    def load(self):
        mount_point = self.name.rstrip("/") or "/"
        device = self.declaration.option("device")
        mounted = None
        for dev, mp, fstype, options in _parse_mount_table(PROC_MOUNTS):
            if mp == mount_point and _device_matches(device, dev):
                mounted = (dev, fstype, options)
        enabled = False
        if os.path.exists(FSTAB):
            enabled = any(
                mp == mount_point and _device_matches(device, dev)
                for dev, mp, _fstype, _options in _parse_mount_table(FSTAB)
            )
        if mounted is None:
            return MountState(
                name=self.name, mount_point=mount_point, device=device,
                mounted=False, enabled=enabled,
            )
        dev, fstype, options = mounted
        return MountState(
            name=self.name,
            mount_point=mount_point,
            device=device,
            fstype=fstype,
            options=options,
            mounted=True,
            enabled=enabled,
        )


# ── Network ───────────────────────────────────────────────


def _read_sys(path):
    try:
        with open(path) as f:
            return f.read().strip()
    except FileNotFoundError:
        return None


class NetworkInterfaceProvider(Provider):
    def load(self):
        base = os.path.join(SYS_CLASS_NET, self.name)
        if not os.path.isdir(base):
            return NetworkInterfaceState(name=self.name)
        mtu = _read_sys(os.path.join(base, "mtu"))
        return NetworkInterfaceState(
            name=self.name,
            device=self.name,
            inet_addr=self._inet_addr(),
            hwaddr=_read_sys(os.path.join(base, "address")),
            mtu=int(mtu) if mtu else None,
            state=_read_sys(os.path.join(base, "operstate")),
        )

    def _inet_addr(self):
        try:
            result = _run(["ip", "-o", "-4", "addr", "show", "dev", self.name])
        except FileNotFoundError:
            logger.debug("ip not available, skipping address for %s", self.name)
            return None
        match = re.search(r"\binet (\d+\.\d+\.\d+\.\d+)", result.stdout)
        return match.group(1) if match else None


PROVIDERS = {
    "cron": CronProvider,
    "directory": DirectoryProvider,
    "file": FileProvider,
    "group": GroupProvider,
    "link": LinkProvider,
    "mount": MountProvider,
    "network_interface": NetworkInterfaceProvider,
    "package": PackageProvider,
    "service": ServiceProvider,
    "user": UserProvider,
}
