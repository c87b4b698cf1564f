# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/observers/jsonfile.py
from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from .events import BaseEvent


class JsonFileObserver:
    """Append each event as one JSON line next to the run log."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, event: BaseEvent) -> None:
        with self.path.open("a") as f:
            f.write(json.dumps({"type": event.__class__.__name__, **event.dict()}, default=str))
            f.write("\n")


def read_events(path: str | Path, *, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """Load the events recorded for a run, optionally only those of one type."""
    events = []
    with Path(path).open() as f:
        for line in f:
            if not line.strip():
                continue
            record = json.loads(line)
            if event_type is None or record["type"] == event_type:
                events.append(record)
    return events
