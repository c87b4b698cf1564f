# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/bootstrap.py

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from agent_acceptance.observers.events import ProvisionSkipped, StepFinished, StepStarted

from .handshake import HandshakeReport, establish_trust
from .models import Host
from .options import parser_opts
from .platform import stop_firewall_on
from .puppet import (
    configure_puppet_on,
    install_dev_repo,
    install_module_dependencies,
    install_module_on,
    install_package,
    install_release_repo,
)
from .services import set_service, wait_for_port
from .templates import render_and_create

if TYPE_CHECKING:
    from .context import HarnessContext

log = logging.getLogger("agent_acceptance")

DEFAULT_BROKER_PORT = 61614

MCOLLECTIVE_DIR = "/etc/mcollective"
MCOLLECTIVE_PKI_FILES = ("ca_crt.pem", "server.crt", "server.key", "client.crt", "client.key")
MCOLLECTIVE_TEMPLATES = ("client.cfg", "server.cfg")
ACTIVEMQ_DIR = "/etc/activemq"
ACTIVEMQ_STORES = ("truststore", "keystore")


def _binding(ctx: "HarnessContext", host: Optional[Host] = None) -> Dict[str, Any]:
    master = ctx.roster.master
    return {
        "activemq_host": master.name,
        "activemq_port": ctx.broker_port or DEFAULT_BROKER_PORT,
        "keystore_password": ctx.keystore_password,
        "identity": (host or master).name,
    }


@contextmanager
def _step(ctx: "HarnessContext", host: Host, name: str) -> Iterator[None]:
    log.info("[%s] %s", host, name)
    ctx.emit(StepStarted, host=host.name, step=name)
    try:
        yield
    except Exception as exc:
        ctx.emit(StepFinished, host=host.name, step=name, status="FAILED", error=str(exc))
        raise
    ctx.emit(StepFinished, host=host.name, step=name, status="OK")


# ------------------------------------------------------------------
# Suite provisioning
# ------------------------------------------------------------------

def install_activemq(ctx: "HarnessContext") -> None:
    master = ctx.roster.master
    install_package(ctx, master, "activemq")

    for ext in ACTIVEMQ_STORES:
        ctx.executor.copy(master, ctx.files_dir / f"activemq.{ext}", f"{ACTIVEMQ_DIR}/activemq.{ext}")

    render_and_create(ctx, master, "activemq.xml.j2", _binding(ctx), f"{ACTIVEMQ_DIR}/activemq.xml")


def wait_for_broker(ctx: "HarnessContext") -> None:
    """
    Block until the broker accepts connections. Without a known broker
    port there is nothing to probe, so fall back to the fixed delay.
    """
    master = ctx.roster.master
    if ctx.broker_port:
        wait_for_port(ctx, master, ctx.broker_port, service="activemq")
    else:
        log.info("[%s] No broker port configured, sleeping %ss for activemq", master, ctx.broker_fixed_delay)
        ctx.sleep(ctx.broker_fixed_delay)


def provision_suite(ctx: "HarnessContext") -> bool:
    """
    Prepare every roster host for the acceptance suite: package repos,
    puppet-server and the module under test on the master, and a running
    activemq broker. Returns False when provisioning is switched off.
    """
    master = ctx.roster.master
    if not ctx.settings.provision:
        log.info("BEAKER_provision=no, reusing provisioned hosts")
        ctx.emit(ProvisionSkipped, env="provision", reason="BEAKER_provision=no")
        return False

    for host in ctx.roster:
        with _step(ctx, host, "Install repositories"):
            install_release_repo(ctx, host)
            if ctx.settings.sha:
                log.info("[%s] Setup dev repositories", host)
                install_dev_repo(ctx, host, "puppet", ctx.settings.sha)

    with _step(ctx, master, "Install puppet-server"):
        install_package(ctx, master, "puppet-server")
        master.use_service_scripts = True

    with _step(ctx, master, "Install module and dependencies"):
        install_module_on(ctx, master)
        install_module_dependencies(ctx, master)

    with _step(ctx, master, "Install activemq"):
        install_activemq(ctx)
        stop_firewall_on(ctx, master)
        set_service(ctx, master, "activemq", "running")
        wait_for_broker(ctx)

    return True


# ------------------------------------------------------------------
# Per-host setup
# ------------------------------------------------------------------

def setup_mcollective_on(ctx: "HarnessContext", host: Host) -> None:
    install_package(ctx, host, "mcollective")
    install_package(ctx, host, "mcollective-client")
    stop_firewall_on(ctx, host)

    for name in MCOLLECTIVE_PKI_FILES:
        ctx.executor.copy(host, ctx.files_dir / name, f"{MCOLLECTIVE_DIR}/{name}")

    binding = _binding(ctx, host)
    for name in MCOLLECTIVE_TEMPLATES:
        render_and_create(ctx, host, f"{name}.j2", binding, f"{MCOLLECTIVE_DIR}/{name}")

    ctx.executor.run(host, f"mkdir -p {MCOLLECTIVE_DIR}/ssl-clients")
    ctx.executor.copy(host, ctx.files_dir / "client.crt", f"{MCOLLECTIVE_DIR}/ssl-clients/client.pem")
    ctx.executor.run(host, "mkdir -p /usr/libexec/mcollective/plugins")

    set_service(ctx, host, "mcollective", "stopped")
    set_service(ctx, host, "mcollective", "running")


def setup_puppet_on(
    ctx: "HarnessContext",
    host: Host,
    *,
    agent: bool = False,
    mcollective: bool = False,
) -> Optional[HandshakeReport]:
    """
    Install and configure puppet on *host*.

    agent: register *host* with the master via the certificate handshake
        instead of installing the module under test locally.
    mcollective: also install and configure mcollective against the
        master's broker.

    Returns the handshake report when *agent* is set.
    """
    with _step(ctx, host, f"Setup puppet on {host}"):
        install_package(ctx, host, "puppet")
        configure_puppet_on(ctx, host, parser_opts())

    if mcollective:
        with _step(ctx, host, "Setup mcollective"):
            setup_mcollective_on(ctx, host)

    if agent:
        with _step(ctx, host, "Establish trust with master"):
            return establish_trust(ctx, host)

    with _step(ctx, host, "Install module and dependencies"):
        install_module_on(ctx, host)
        install_module_dependencies(ctx, host)
    return None
