# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/services.py

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from agent_acceptance.utils.poll import PollTimeout, wait_until

from .errors import ServiceNotReadyError
from .models import CommandResult, Host

if TYPE_CHECKING:
    from .context import HarnessContext

log = logging.getLogger("agent_acceptance")


def puppet(*args: str) -> str:
    return " ".join(("puppet",) + args)


def service_resource(name: str, ensure: str) -> str:
    return puppet("resource", "service", name, f"ensure={ensure}")


def set_service(
    ctx: "HarnessContext",
    host: Host,
    name: str,
    ensure: str,
    *,
    acceptable_exit_codes: Iterable[int] = (0,),
) -> CommandResult:
    log.info("[%s] Service %s -> %s", host, name, ensure)
    return ctx.executor.run(host, service_resource(name, ensure), acceptable_exit_codes=acceptable_exit_codes)


def port_probe(port: int, address: str = "127.0.0.1") -> str:
    return f"bash -c 'exec 3<>/dev/tcp/{address}/{port}'"


def wait_for_port(
    ctx: "HarnessContext",
    host: Host,
    port: int,
    *,
    service: str,
    timeout: Optional[float] = None,
) -> int:
    """
    Poll until *port* on *host* accepts TCP connections. Raises
    ServiceNotReadyError if it never does within the timeout.
    """
    timeout = ctx.ready_timeout if timeout is None else timeout
    probe = port_probe(port)

    def _accepting() -> bool:
        return ctx.executor.run(host, probe, acceptable_exit_codes=(0, 1)).exit_code == 0

    try:
        attempts = wait_until(
            _accepting,
            timeout=timeout,
            interval=ctx.ready_interval,
            description=f"{service} on {host}:{port}",
            on_attempt=lambda n: log.debug("[%s] %s not accepting on %d yet (attempt %d)", host, service, port, n),
            sleep=ctx.sleep,
        )
    except PollTimeout as exc:
        raise ServiceNotReadyError(f"[{host}] {service} never became ready on port {port}") from exc
    log.info("[%s] %s accepting connections on %d", host, service, port)
    return attempts
