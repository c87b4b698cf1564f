# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/observers/interface.py
from __future__ import annotations
from typing import Any, Dict, Protocol
from .events import BaseEvent

ENVELOPE_FIELDS = ("ts", "run_id", "env", "context")


class Observer(Protocol):
    """Receives every event emitted on the bus. Should not raise."""

    def notify(self, event: BaseEvent) -> None: ...


def event_payload(event: BaseEvent) -> Dict[str, Any]:
    # event fields without the envelope shared by all events
    return {k: v for k, v in event.dict().items() if k not in ENVELOPE_FIELDS}
