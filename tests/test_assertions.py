"""Tests for the assert/refute predicate pairs."""

import os
import re
from datetime import datetime, timedelta

import pytest

from convergecheck import assertions as a
from convergecheck.errors import ExpectationFailure
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


@pytest.fixture()
def conf(tmp_path):
    """A real file with known content and an mtime of 1_700_000_000."""
    path = tmp_path / "nginx.conf"
    path.write_text("worker_processes 4;\nlisten 80;\n")
    os.utime(path, (1_700_000_000, 1_700_000_000))
    return FileState(name=str(path), path=str(path))


class TestServiceScenario:
    """Service 'nginx' observed running but not enabled."""

    nginx = ServiceState(name="nginx", running=True, enabled=False)

    def test_running_passes(self):
        assert a.assert_running(self.nginx) is self.nginx

    def test_enabled_fails_with_message(self):
        with pytest.raises(ExpectationFailure) as exc:
            a.assert_enabled(self.nginx)
        assert str(exc.value) == "Expected service 'nginx' to be enabled"

    def test_refutes(self):
        a.refute_enabled(self.nginx)
        with pytest.raises(ExpectationFailure, match="not to be running"):
            a.refute_running(self.nginx)


class TestExistence:
    @pytest.mark.parametrize("pair,present,absent,message", [
        ((a.assert_cron_exists, a.refute_cron_exists),
         CronState(name="backup", command="/usr/local/bin/backup"),
         CronState(name="backup"),
         "Expected cron 'backup' to exist"),
        ((a.assert_group_exists, a.refute_group_exists),
         GroupState(name="admins", gid=1500),
         GroupState(name="admins"),
         "Expected group 'admins' to exist"),
        ((a.assert_link_exists, a.refute_link_exists),
         LinkState(name="/etc/alt", to="/opt/alt"),
         LinkState(name="/etc/alt"),
         "Expected link '/etc/alt' to exist"),
        ((a.assert_user_exists, a.refute_user_exists),
         UserState(name="deploy", uid=1001),
         UserState(name="deploy"),
         "Expected user 'deploy' to exist"),
        ((a.assert_network_interface_exists, a.refute_network_interface_exists),
         NetworkInterfaceState(name="eth0", device="eth0"),
         NetworkInterfaceState(name="eth0"),
         "Expected network interface 'eth0' to exist"),
    ])
    def test_pair(self, pair, present, absent, message):
        """Assert passes on present, refute on absent, and vice versa."""
        assert_fn, refute_fn = pair
        assert assert_fn(present) is present
        assert refute_fn(absent) is absent
        with pytest.raises(ExpectationFailure) as exc:
            assert_fn(absent)
        assert str(exc.value) == message
        with pytest.raises(ExpectationFailure, match="not to exist"):
            refute_fn(present)

    def test_uid_zero_exists(self):
        """A zero id is present, not null."""
        a.assert_user_exists(UserState(name="root", uid=0))

    def test_path_exists_is_live(self, tmp_path):
        """Path existence is checked at assertion time."""
        path = tmp_path / "late.conf"
        f = FileState(name=str(path), path=str(path))
        a.refute_path_exists(f)
        path.write_text("")
        a.assert_path_exists(f)
        with pytest.raises(ExpectationFailure, match=f"Expected file '{path}' not to exist"):
            a.refute_path_exists(f)

    def test_directory_path(self, tmp_path):
        d = DirectoryState(name=str(tmp_path), path=str(tmp_path))
        assert a.assert_path_exists(d) is d


class TestPackagesAndMounts:
    def test_installed(self):
        pkg = PackageState(name="nginx", version="1.24.0-2")
        assert a.assert_installed(pkg) is pkg
        with pytest.raises(ExpectationFailure, match="Expected package 'curl' to be installed"):
            a.assert_installed(PackageState(name="curl"))
        a.refute_installed(PackageState(name="curl"))

    def test_mounted_and_enabled(self):
        mount = MountState(name="/srv", device="/dev/sdb1", mounted=True, enabled=False)
        a.assert_mounted(mount)
        with pytest.raises(ExpectationFailure, match="Expected mount '/srv' to be enabled"):
            a.assert_enabled(mount)
        with pytest.raises(ExpectationFailure, match="Expected mount '/srv' not to be mounted"):
            a.refute_mounted(mount)


class TestContent:
    def test_includes(self, conf):
        """Literal substring containment, both polarities."""
        assert a.assert_includes_content(conf, "listen 80;") is conf
        a.refute_includes_content(conf, "listen 443;")
        with pytest.raises(ExpectationFailure, match="to include 'listen 443;'"):
            a.assert_includes_content(conf, "listen 443;")

    def test_includes_is_literal(self, conf):
        """Regex metacharacters are not interpreted."""
        with pytest.raises(ExpectationFailure):
            a.assert_includes_content(conf, "listen \\d+")

    def test_matches(self, conf):
        """Pattern search over the whole content."""
        a.assert_matches_content(conf, r"worker_processes \d+;")
        a.assert_matches_content(conf, re.compile(r"^listen", re.MULTILINE))
        a.refute_matches_content(conf, r"listen 443")
        with pytest.raises(ExpectationFailure, match="not to match"):
            a.refute_matches_content(conf, r"listen \d+")

    def test_content_read_live(self, conf):
        """Content checks see edits made after resolution."""
        with open(conf.path, "a") as f:
            f.write("gzip on;\n")
        a.assert_includes_content(conf, "gzip on;")

    def test_non_utf8_content(self, tmp_path):
        """Undecodable bytes do not stop the predicate from being evaluated."""
        path = tmp_path / "latin1.conf"
        path.write_bytes(b"# caf\xe9\nlisten 80\n")
        f = FileState(name=str(path), path=str(path))
        assert a.assert_includes_content(f, "listen 80") is f
        assert a.refute_includes_content(f, "listen 443") is f
        a.assert_matches_content(f, r"(?m)^listen \d+$")
        a.refute_matches_content(f, r"listen 443")
        with pytest.raises(ExpectationFailure, match="to include 'listen 443'"):
            a.assert_includes_content(f, "listen 443")

    def test_missing_file(self, tmp_path):
        """A missing file fails the expectation instead of erroring."""
        path = tmp_path / "absent.conf"
        f = FileState(name=str(path), path=str(path))
        with pytest.raises(ExpectationFailure, match="readable"):
            a.assert_includes_content(f, "x")


class TestModifiedAfter:
    def test_inclusive_boundary(self, conf):
        """mtime equal to the reference counts as modified after."""
        a.assert_modified_after(conf, 1_700_000_000)
        with pytest.raises(ExpectationFailure):
            a.refute_modified_after(conf, 1_700_000_000)

    def test_before_and_after(self, conf):
        a.assert_modified_after(conf, 1_699_999_999)
        a.refute_modified_after(conf, 1_700_000_001)
        with pytest.raises(ExpectationFailure) as exc:
            a.assert_modified_after(conf, 1_700_000_001)
        assert exc.value.actual == 1_700_000_000
        assert exc.value.expected == 1_700_000_001

    def test_subsecond_reference_truncated(self, conf):
        """Comparison happens in whole seconds."""
        a.assert_modified_after(conf, 1_700_000_000.9)

    def test_datetime_reference(self, conf):
        ref = datetime.fromtimestamp(1_700_000_000)
        a.assert_modified_after(conf, ref - timedelta(hours=1))
        a.refute_modified_after(conf, ref + timedelta(seconds=1))

    def test_polarity_is_exact_negation(self, conf):
        """For any reference exactly one of assert/refute passes."""
        for ref in range(1_699_999_998, 1_700_000_003):
            outcomes = []
            for fn in (a.assert_modified_after, a.refute_modified_after):
                try:
                    fn(conf, ref)
                    outcomes.append(True)
                except ExpectationFailure:
                    outcomes.append(False)
            assert outcomes.count(True) == 1


class TestGroupIncludes:
    admins = GroupState(name="admins", gid=1500, members=("alice", "bob", "carol"))

    def test_subset(self):
        assert a.assert_group_includes(["alice", "carol"], self.admins) is self.admins

    def test_single_member_string(self):
        a.assert_group_includes("bob", self.admins)
        a.refute_group_includes("mallory", self.admins)

    def test_missing_member_message(self):
        with pytest.raises(ExpectationFailure) as exc:
            a.assert_group_includes(["alice", "mallory"], self.admins)
        assert str(exc.value) == (
            "Expected group 'admins' to include members: alice, mallory"
        )

    def test_partial_overlap_refuted(self):
        """Refute passes unless every candidate is a member."""
        a.refute_group_includes(["alice", "mallory"], self.admins)
        with pytest.raises(ExpectationFailure, match="not to include"):
            a.refute_group_includes(["alice"], self.admins)
