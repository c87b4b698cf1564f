from __future__ import annotations

from pathlib import Path

import pytest

from agent_acceptance.harness.context import HarnessContext
from agent_acceptance.harness.executor import check_result
from agent_acceptance.harness.models import CommandResult, Host
from agent_acceptance.harness.roster import HostRoster
from agent_acceptance.harness.settings import HarnessSettings
from agent_acceptance.observers.dispatcher import EventBus


# ----------------- Recording executor -----------------

class FakeExecutor:
    """
    Records every call and answers run() from canned (stdout, stderr, rc)
    responses keyed by command, or by (host name, command). A list of
    responses is consumed in order; the last one repeats.
    """

    def __init__(self):
        self.log = []
        self._responses = {}

    def respond(self, command, stdout="", stderr="", rc=0, host=None):
        key = (host, command) if host else command
        self._responses.setdefault(key, []).append((stdout, stderr, rc))
        return self

    def _lookup(self, host, command):
        for key in ((host.name, command), command):
            queue = self._responses.get(key)
            if queue:
                return queue.pop(0) if len(queue) > 1 else queue[0]
        return ("", "", 0)

    def run(self, host, command, *, acceptable_exit_codes=(0,)):
        self.log.append(("run", host.name, command))
        out, err, rc = self._lookup(host, command)
        return check_result(
            CommandResult(host=host.name, command=command, exit_code=rc, stdout=out, stderr=err),
            acceptable_exit_codes,
        )

    def copy(self, host, local_path, remote_path):
        self.log.append(("copy", host.name, str(local_path), remote_path))

    def copy_tree(self, host, local_dir, remote_dir, *, ignore=()):
        self.log.append(("copy_tree", host.name, str(local_dir), remote_dir))

    def create_remote_file(self, host, remote_path, content):
        self.log.append(("write", host.name, remote_path, content))

    # helpers for assertions
    def commands(self, host=None):
        return [e[2] for e in self.log if e[0] == "run" and (host is None or e[1] == host)]

    def index(self, host, command):
        for i, entry in enumerate(self.log):
            if entry[0] == "run" and entry[1] == host and entry[2] == command:
                return i
        raise AssertionError(f"{command!r} never ran on {host}")

    def writes(self, host=None):
        return {e[2]: e[3] for e in self.log if e[0] == "write" and (host is None or e[1] == host)}


class RecordingObserver:
    def __init__(self):
        self.events = []

    def notify(self, event):
        self.events.append(event)


# ----------------- Fixtures -----------------

@pytest.fixture
def master():
    return Host(
        name="master",
        address="10.0.0.10",
        platform="el-7-x86_64",
        roles=["master"],
        use_service_scripts=True,
        graceful_restarts=True,
        puppetservice="puppetserver",
    )


@pytest.fixture
def agent_host():
    return Host(name="agent", address="10.0.0.11", platform="debian-8-amd64", roles=["agent"])


@pytest.fixture
def fake_executor():
    ex = FakeExecutor()
    ex.respond("facter hostname", "master\n")
    ex.respond("facter fqdn", "master.example.test\n")
    ex.respond("mktemp -d -t puppet.XXXXXX", "/tmp/puppet.abc123\n")
    ex.respond("puppet agent --configprint ssldir", "/var/lib/puppet/ssl\n")
    return ex


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def make_ctx(tmp_path: Path, fake_executor, observer, master, agent_host):
    def _make(hosts=None, provision=True, sha=None, **kw):
        ctx = HarnessContext(
            executor=fake_executor,
            roster=HostRoster(hosts or [master, agent_host]),
            files_dir=tmp_path / "files",
            project_root=tmp_path / "module",
            settings=HarnessSettings(
                provision=provision,
                sha=sha,
                config_path=None,
                dev_builds_url="http://builds.example.test",
            ),
            bus=EventBus(observers=[observer]),
            sleep=lambda s: None,
            **kw,
        )
        return ctx
    return _make
