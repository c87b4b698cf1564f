# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/observers/console.py
import typer

from .events import (
    BaseEvent,
    HandshakeTransition,
    ProvisionSkipped,
    StepFinished,
    StepStarted,
    TeardownApplied,
)
from .interface import event_payload


def describe(event: BaseEvent) -> str:
    """One human-readable line per event, prefixed with the host where there is one."""
    if isinstance(event, StepStarted):
        return f"[{event.host}] ▶ {event.step}"
    if isinstance(event, StepFinished):
        if event.status == "OK":
            return f"[{event.host}] ✔ {event.step}"
        return f"[{event.host}] ✖ {event.step}: {event.error}"
    if isinstance(event, HandshakeTransition):
        suffix = f" ({event.outcome})" if event.outcome else ""
        return f"[{event.host}] handshake -> {event.state}{suffix}"
    if isinstance(event, ProvisionSkipped):
        return f"provisioning skipped: {event.reason}"
    if isinstance(event, TeardownApplied):
        repo = "with repo removal" if event.repo_clause else "without repo removal"
        return f"[{event.host}] purged ({event.platform}, {repo})"
    data = ", ".join(f"{k}={v}" for k, v in event_payload(event).items())
    return f"{event.__class__.__name__} {data}"


class ConsoleObserver:
    def notify(self, event: BaseEvent) -> None:
        failed = isinstance(event, StepFinished) and event.status != "OK"
        typer.secho(
            f"[{event.ts}] {describe(event)}",
            fg=typer.colors.RED if failed else None,
        )
