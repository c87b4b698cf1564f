# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/errors.py

from __future__ import annotations

from typing import Iterable


class HarnessError(RuntimeError):
    """Base class for acceptance-harness failures."""


class CommandFailedError(HarnessError):
    """Raised when a remote command exits with a code outside its allow-list."""

    def __init__(
        self,
        host: str,
        command: str,
        exit_code: int,
        acceptable_exit_codes: Iterable[int],
        stdout: str = "",
        stderr: str = "",
    ):
        self.host = host
        self.command = command
        self.exit_code = exit_code
        self.acceptable_exit_codes = tuple(sorted(acceptable_exit_codes))
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip() or stdout.strip()
        super().__init__(
            f"[{host}] '{command}' exited {exit_code} "
            f"(expected one of {list(self.acceptable_exit_codes)})"
            + (f": {detail}" if detail else "")
        )


class ServiceNotReadyError(HarnessError):
    """Raised when a service never became ready within its timeout."""


class UnsupportedPlatformError(HarnessError):
    """Raised when a step has no strategy for a host's platform."""


class RosterError(HarnessError):
    """Raised for an inconsistent host roster."""
