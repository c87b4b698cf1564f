# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single harness invocation
    env: str          # acceptance/provision/teardown
    context: Optional[str]  # master host name

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def now_ts() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat(timespec="seconds") + "Z"


def new_ctx(env: str, context: Optional[str], run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": now_ts(),
        "run_id": run_id or str(uuid.uuid4()),
        "env": env,
        "context": context,
    }


# ---------------------------------------------------------------------
# Step lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepStarted(BaseEvent):
    host: str
    step: str

@dataclass(frozen=True)
class StepFinished(BaseEvent):
    host: str
    step: str
    status: str       # "OK" | "FAILED"
    error: Optional[str] = None


# ---------------------------------------------------------------------
# Certificate handshake
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class HandshakeTransition(BaseEvent):
    host: str
    state: str
    outcome: Optional[str] = None


# ---------------------------------------------------------------------
# Provisioning & teardown
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ProvisionSkipped(BaseEvent):
    reason: str

@dataclass(frozen=True)
class TeardownApplied(BaseEvent):
    host: str
    platform: str
    repo_clause: bool
