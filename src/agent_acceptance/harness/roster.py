# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/roster.py

from __future__ import annotations

from typing import Iterator, List, Sequence

from .errors import RosterError
from .models import Host


class HostRoster:
    """
    The fixed set of hosts for one acceptance run: exactly one master
    (coordinator) plus any number of agents.
    """

    def __init__(self, hosts: Sequence[Host]):
        if not hosts:
            raise RosterError("Roster has no hosts")
        names = [h.name for h in hosts]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise RosterError(f"Duplicate host names in roster: {', '.join(dupes)}")
        masters = [h for h in hosts if h.is_master]
        if len(masters) != 1:
            raise RosterError(f"Roster needs exactly one master, found {len(masters)}")
        self._hosts: List[Host] = list(hosts)

    def __iter__(self) -> Iterator[Host]:
        return iter(self._hosts)

    def __len__(self) -> int:
        return len(self._hosts)

    @property
    def hosts(self) -> List[Host]:
        return list(self._hosts)

    @property
    def master(self) -> Host:
        return next(h for h in self._hosts if h.is_master)

    @property
    def agents(self) -> List[Host]:
        return [h for h in self._hosts if not h.is_master]

    def get(self, name: str) -> Host:
        for h in self._hosts:
            if h.name == name:
                return h
        raise RosterError(f"Unknown host '{name}'. Known: {', '.join(h.name for h in self._hosts)}")
