# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Mapping, Optional


@dataclass
class Host:
    """
    A machine taking part in the acceptance run, reached over SSH.
    """
    name: str                     # roster name, also used as --server value
    address: str                  # IP or DNS to connect
    platform: str                 # beaker-style platform string, e.g. 'el-7-x86_64'
    username: str = "root"
    port: int = 22
    password: Optional[str] = None
    pkey_path: Optional[Path] = None
    roles: List[str] = field(default_factory=list)
    use_service_scripts: bool = False
    graceful_restarts: bool = False
    puppetservice: str = "puppetmaster"
    puppetpath: str = "/etc/puppet"
    distmoduledir: str = "/etc/puppet/modules"

    def __str__(self) -> str:
        return self.name

    @property
    def is_master(self) -> bool:
        return "master" in self.roles


@dataclass(frozen=True)
class CommandResult:
    host: str
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""


class Outcome(str, Enum):
    """Named result of a remote step, decoded from its exit code."""

    STOPPED = "stopped"
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"
    CSR_GENERATED = "csr_generated"
    SIGNED = "signed"
    NOTHING_PENDING = "nothing_pending"
    TRUST_ESTABLISHED = "trust_established"
    CHANGES_APPLIED = "changes_applied"


# exit code -> outcome, per step. The keys are the step's acceptable exit codes.
SERVICE_STOPPED: Mapping[int, Outcome] = {0: Outcome.STOPPED}
MODULE_INSTALL: Mapping[int, Outcome] = {0: Outcome.INSTALLED, 1: Outcome.ALREADY_INSTALLED}
FIRST_AGENT_RUN: Mapping[int, Outcome] = {1: Outcome.CSR_GENERATED}
SIGN_ALL: Mapping[int, Outcome] = {0: Outcome.SIGNED, 24: Outcome.NOTHING_PENDING}
SECOND_AGENT_RUN: Mapping[int, Outcome] = {
    0: Outcome.TRUST_ESTABLISHED,
    2: Outcome.CHANGES_APPLIED,
}
