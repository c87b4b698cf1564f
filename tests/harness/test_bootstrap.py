import pytest

from agent_acceptance.harness.bootstrap import (
    provision_suite,
    setup_mcollective_on,
    setup_puppet_on,
    wait_for_broker,
)
from agent_acceptance.harness.errors import CommandFailedError, ServiceNotReadyError, UnsupportedPlatformError
from agent_acceptance.harness.handshake import HandshakeState
from agent_acceptance.harness.models import Host, Outcome
from agent_acceptance.harness.puppet import install_module_dependencies
from agent_acceptance.harness.services import port_probe
from agent_acceptance.observers.events import ProvisionSkipped, StepFinished, StepStarted


# ----------------- Suite provisioning -----------------

def test_provision_skipped_when_disabled(make_ctx, fake_executor, observer):
    ctx = make_ctx(provision=False)

    assert provision_suite(ctx) is False
    assert fake_executor.log == []
    assert [type(e) for e in observer.events] == [ProvisionSkipped]
    assert observer.events[0].env == "provision"


def test_provision_installs_repos_server_module_and_broker(make_ctx, fake_executor, master):
    master.use_service_scripts = False
    ctx = make_ctx()

    assert provision_suite(ctx) is True

    master_cmds = fake_executor.commands("master")
    agent_cmds = fake_executor.commands("agent")
    assert "rpm -ivh http://yum.puppetlabs.com/puppetlabs-release-el-7.noarch.rpm" in master_cmds
    assert "dpkg -i --force-all /tmp/puppetlabs-release-jessie.deb" in agent_cmds
    assert "yum -y install puppet-server" in master_cmds
    assert "yum -y install activemq" in master_cmds
    assert "puppet resource service activemq ensure=running" in master_cmds
    assert master_cmds[-1] == port_probe(61614)
    # master switches to service scripts once puppet-server is installed
    assert master.use_service_scripts is True

    copies = [e for e in fake_executor.log if e[0] == "copy"]
    assert [e[3] for e in copies] == ["/etc/activemq/activemq.truststore", "/etc/activemq/activemq.keystore"]
    assert any(e[0] == "copy_tree" and e[3] == "/etc/puppet/modules/puppet_agent" for e in fake_executor.log)

    xml = fake_executor.writes("master")["/etc/activemq/activemq.xml"]
    assert 'brokerName="master"' in xml
    assert 'keyStorePassword="puppet"' in xml


def test_provision_firewall_cleared_before_broker_started(make_ctx, fake_executor):
    ctx = make_ctx()

    provision_suite(ctx)

    assert fake_executor.index("master", "puppet resource service firewalld ensure=stopped") < fake_executor.index(
        "master", "puppet resource service activemq ensure=running"
    )


def test_provision_with_sha_adds_dev_repos(make_ctx, fake_executor):
    ctx = make_ctx(sha="abc1234")

    provision_suite(ctx)

    assert (
        "curl -fsSL -o /etc/yum.repos.d/pl-puppet-abc1234.repo "
        "http://builds.example.test/puppet/abc1234/repo_configs/rpm/pl-puppet-abc1234-el-7-x86_64.repo"
    ) in fake_executor.commands("master")
    assert (
        "curl -fsSL -o /etc/apt/sources.list.d/pl-puppet-abc1234.list "
        "http://builds.example.test/puppet/abc1234/repo_configs/deb/pl-puppet-abc1234-jessie.list"
    ) in fake_executor.commands("agent")


def test_provision_without_sha_skips_dev_repos(make_ctx, fake_executor):
    ctx = make_ctx()

    provision_suite(ctx)

    assert not any("repo_configs" in c for c in fake_executor.commands())


def test_provision_step_events(make_ctx, observer):
    ctx = make_ctx()

    provision_suite(ctx)

    started = [e.step for e in observer.events if isinstance(e, StepStarted)]
    finished = [(e.step, e.status) for e in observer.events if isinstance(e, StepFinished)]
    assert started[-1] == "Install activemq"
    assert all(status == "OK" for _, status in finished)
    assert len(started) == len(finished)


def test_provision_broker_never_ready(make_ctx, fake_executor, observer):
    fake_executor.respond(port_probe(61614), rc=1, host="master")
    ctx = make_ctx(ready_timeout=10.0, ready_interval=2.0)

    with pytest.raises(ServiceNotReadyError):
        provision_suite(ctx)

    probes = [c for c in fake_executor.commands("master") if c == port_probe(61614)]
    assert len(probes) == 6
    failed = [e for e in observer.events if isinstance(e, StepFinished) and e.status == "FAILED"]
    assert [e.step for e in failed] == ["Install activemq"]


def test_wait_for_broker_falls_back_to_fixed_delay(make_ctx, fake_executor):
    slept = []
    ctx = make_ctx(broker_port=None, broker_fixed_delay=10.0)
    ctx.sleep = slept.append

    wait_for_broker(ctx)

    assert slept == [10.0]
    assert fake_executor.commands() == []


def test_release_repo_unknown_platform_rejected(make_ctx, master):
    odd = Host(name="odd", address="10.0.0.30", platform="solaris-11-i386")
    ctx = make_ctx(hosts=[master, odd])

    with pytest.raises(UnsupportedPlatformError):
        provision_suite(ctx)


# ----------------- Module dependencies -----------------

def test_module_dependencies_already_installed_tolerated(make_ctx, fake_executor, master):
    fake_executor.respond("puppet module install puppetlabs-inifile", rc=1)
    ctx = make_ctx()

    results = install_module_dependencies(ctx, master)

    assert results == {
        "puppetlabs-stdlib": Outcome.INSTALLED,
        "puppetlabs-inifile": Outcome.ALREADY_INSTALLED,
        "puppetlabs-apt": Outcome.INSTALLED,
    }


def test_module_dependencies_other_failures_raise(make_ctx, fake_executor, master):
    fake_executor.respond("puppet module install puppetlabs-stdlib", rc=2)
    ctx = make_ctx()

    with pytest.raises(CommandFailedError):
        install_module_dependencies(ctx, master)


# ----------------- Per-host setup -----------------

def test_setup_puppet_on_master_installs_module(make_ctx, fake_executor, master):
    ctx = make_ctx()

    assert setup_puppet_on(ctx, master) is None

    cmds = fake_executor.commands("master")
    assert cmds[0] == "yum -y install puppet"
    conf = fake_executor.writes("master")["/etc/puppet/puppet.conf"]
    assert "[main]" in conf and "parser = future" in conf and "stringify_facts = false" in conf
    assert "puppet module install puppetlabs-apt" in cmds


def test_setup_puppet_on_agent_runs_handshake(make_ctx, fake_executor, agent_host):
    fake_executor.respond("puppet agent --test --server master", rc=1, host="agent")
    fake_executor.respond("puppet agent --test --server master", rc=0, host="agent")
    ctx = make_ctx()

    report = setup_puppet_on(ctx, agent_host, agent=True)

    assert report.states[-1] is HandshakeState.COORDINATOR_RESTARTED
    # agents get their catalog from the master instead of a local module copy
    assert not any(e[0] == "copy_tree" and e[1] == "agent" for e in fake_executor.log)


def test_setup_mcollective_files_and_config(make_ctx, fake_executor, agent_host):
    ctx = make_ctx()

    setup_mcollective_on(ctx, agent_host)

    copied = [e[3] for e in fake_executor.log if e[0] == "copy" and e[1] == "agent"]
    assert copied == [
        "/etc/mcollective/ca_crt.pem",
        "/etc/mcollective/server.crt",
        "/etc/mcollective/server.key",
        "/etc/mcollective/client.crt",
        "/etc/mcollective/client.key",
        "/etc/mcollective/ssl-clients/client.pem",
    ]
    written = fake_executor.writes("agent")
    assert "plugin.activemq.pool.1.host = master" in written["/etc/mcollective/client.cfg"]
    assert "plugin.activemq.pool.1.port = 61614" in written["/etc/mcollective/server.cfg"]
    assert "identity = agent" in written["/etc/mcollective/server.cfg"]

    cmds = fake_executor.commands("agent")
    assert cmds.index("mkdir -p /etc/mcollective/ssl-clients") < cmds.index(
        "puppet resource service mcollective ensure=running"
    )
    assert cmds[-2:] == [
        "puppet resource service mcollective ensure=stopped",
        "puppet resource service mcollective ensure=running",
    ]
