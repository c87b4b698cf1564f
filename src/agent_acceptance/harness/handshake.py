# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/handshake.py
"""
Two-phase certificate handshake between an agent and the master.

    SSL_CLEARED -> FIRST_AGENT_RUN -> CERTS_SIGNED -> SECOND_AGENT_RUN
                -> COORDINATOR_RESTARTED

The first agent run generates a CSR and must exit 1. The master then
signs everything pending (0 = signed, 24 = nothing to sign), and the
second agent run must exit 0 or 2. Any other exit code aborts the
sequence with CommandFailedError; nothing is retried, a failure here
means the environment is broken and needs a teardown.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from agent_acceptance.observers.events import HandshakeTransition

from .executor import run_step
from .models import (
    FIRST_AGENT_RUN,
    SECOND_AGENT_RUN,
    SERVICE_STOPPED,
    SIGN_ALL,
    Host,
    Outcome,
)
from .options import SERVICE_ARGS, merge_options, parser_opts
from .platform import stop_firewall_on
from .puppet import puppet_running_on
from .services import puppet, service_resource, set_service

if TYPE_CHECKING:
    from .context import HarnessContext

log = logging.getLogger("agent_acceptance")


class HandshakeState(str, Enum):
    SSL_CLEARED = "ssl_cleared"
    FIRST_AGENT_RUN = "first_agent_run"
    CERTS_SIGNED = "certs_signed"
    SECOND_AGENT_RUN = "second_agent_run"
    COORDINATOR_RESTARTED = "coordinator_restarted"


@dataclass
class HandshakeReport:
    host: str
    master: str
    transitions: List[Tuple[HandshakeState, Optional[Outcome]]] = field(default_factory=list)
    cleared_ssldirs: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def states(self) -> List[HandshakeState]:
        return [s for s, _ in self.transitions]

    def outcome(self, state: HandshakeState) -> Optional[Outcome]:
        for s, o in self.transitions:
            if s is state:
                return o
        return None


def agent_test_command(master: Host) -> str:
    return puppet("agent", "--test", "--server", str(master))


def master_options(hostname: str, fqdn: str) -> dict:
    return merge_options(
        parser_opts(),
        {
            "main": {"dns_alt_names": f"puppet,{hostname},{fqdn}"},
            # service scripts can't restart once the ssl dir is gone
            SERVICE_ARGS: {"bypass_service_script": True},
        },
    )


def clear_ssl(ctx: "HarnessContext") -> List[Tuple[str, str]]:
    """Remove the ssl directory on every roster host. Returns (host, ssldir) pairs."""
    cleared = []
    for h in ctx.roster:
        ssldir = ctx.executor.run(h, puppet("agent", "--configprint", "ssldir")).stdout.strip()
        ctx.executor.run(h, f"rm -rf '{ssldir}'")
        log.debug("[%s] Removed ssldir %s", h, ssldir)
        cleared.append((h.name, ssldir))
    return cleared


def establish_trust(ctx: "HarnessContext", host: Host) -> HandshakeReport:
    """
    Drive *host* through the CSR / sign / second run sequence against the
    roster master, starting from an empty trust state on every host.
    """
    master = ctx.roster.master
    report = HandshakeReport(host=host.name, master=master.name)

    def _transition(state: HandshakeState, outcome: Optional[Outcome] = None) -> None:
        report.transitions.append((state, outcome))
        log.info("[%s] Handshake -> %s%s", host, state.value, f" ({outcome.value})" if outcome else "")
        ctx.emit(HandshakeTransition, host=host.name, state=state.value,
                 outcome=outcome.value if outcome else None)

    hostname = ctx.executor.run(master, "facter hostname").stdout.strip()
    fqdn = ctx.executor.run(master, "facter fqdn").stdout.strip()

    if master.use_service_scripts:
        # A running master (passenger in particular) holds the old ssl state
        # and can ignore the puppet.conf changes made below.
        log.info("[%s] Ensure puppet master is stopped", master)
        run_step(ctx.executor, master, service_resource(master.puppetservice, "stopped"), SERVICE_STOPPED)

    log.info("Clearing SSL on all hosts")
    report.cleared_ssldirs = clear_ssl(ctx)
    _transition(HandshakeState.SSL_CLEARED)

    stop_firewall_on(ctx, host)

    with puppet_running_on(ctx, master, master_options(hostname, fqdn)):
        outcome = run_step(ctx.executor, host, agent_test_command(master), FIRST_AGENT_RUN)
        _transition(HandshakeState.FIRST_AGENT_RUN, outcome)

        outcome = run_step(ctx.executor, master, puppet("cert", "--sign", "--all"), SIGN_ALL)
        _transition(HandshakeState.CERTS_SIGNED, outcome)

        outcome = run_step(ctx.executor, host, agent_test_command(master), SECOND_AGENT_RUN)
        _transition(HandshakeState.SECOND_AGENT_RUN, outcome)

    if master.graceful_restarts:
        set_service(ctx, master, master.puppetservice, "running")
        _transition(HandshakeState.COORDINATOR_RESTARTED)

    return report
