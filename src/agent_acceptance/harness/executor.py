# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/executor.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Protocol

from agent_acceptance.utils.ssh import open_ssh
from agent_acceptance.utils.ssh_runner import SSHRunner

from .errors import CommandFailedError
from .models import CommandResult, Host, Outcome

log = logging.getLogger("agent_acceptance")

# Directories never shipped when copying a module tree onto a host.
DEFAULT_COPY_IGNORE = (
    ".bundle",
    ".git",
    ".idea",
    ".vagrant",
    ".vendor",
    "vendor",
    "acceptance",
    "bundle",
    "spec",
    "tests",
    "log",
)


class RemoteExecutor(Protocol):
    """
    Contract for running commands and placing files on roster hosts.
    Implementations must raise CommandFailedError for exit codes outside
    *acceptable_exit_codes* and return the result otherwise.
    """

    def run(
        self,
        host: Host,
        command: str,
        *,
        acceptable_exit_codes: Iterable[int] = (0,),
    ) -> CommandResult:
        ...

    def copy(self, host: Host, local_path: str | Path, remote_path: str) -> None:
        ...

    def copy_tree(
        self,
        host: Host,
        local_dir: str | Path,
        remote_dir: str,
        *,
        ignore: Iterable[str] = DEFAULT_COPY_IGNORE,
    ) -> None:
        ...

    def create_remote_file(self, host: Host, remote_path: str, content: str) -> None:
        ...


def check_result(result: CommandResult, acceptable_exit_codes: Iterable[int]) -> CommandResult:
    allowed = set(acceptable_exit_codes)
    if result.exit_code not in allowed:
        raise CommandFailedError(
            host=result.host,
            command=result.command,
            exit_code=result.exit_code,
            acceptable_exit_codes=allowed,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result


def run_step(
    executor: RemoteExecutor,
    host: Host,
    command: str,
    outcomes: Mapping[int, Outcome],
) -> Outcome:
    """
    Run *command* and decode its exit code through *outcomes*. The table's
    keys are the only acceptable exit codes.
    """
    result = executor.run(host, command, acceptable_exit_codes=outcomes.keys())
    outcome = outcomes[result.exit_code]
    log.debug("[%s] %s -> %s (rc=%d)", host, command, outcome.value, result.exit_code)
    return outcome


class SshExecutor:
    """
    RemoteExecutor over paramiko. Keeps one connection per host for the
    lifetime of the executor.
    """

    def __init__(
        self,
        *,
        connect_timeout: float = 20.0,
        cmd_timeout: float = 1800.0,
        sudo: bool = False,
        connect: Callable[..., SSHRunner] = open_ssh,
    ):
        self.connect_timeout = connect_timeout
        self.cmd_timeout = cmd_timeout
        self.sudo = sudo
        self._connect = connect
        self._runners: Dict[str, SSHRunner] = {}

    def __enter__(self) -> "SshExecutor":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _runner(self, host: Host) -> SSHRunner:
        runner = self._runners.get(host.name)
        if runner is None:
            log.debug("[%s] Connecting to %s@%s:%d", host, host.username, host.address, host.port)
            runner = self._connect(
                host,
                connect_timeout=self.connect_timeout,
                cmd_timeout=self.cmd_timeout,
            )
            self._runners[host.name] = runner
        return runner

    def run(
        self,
        host: Host,
        command: str,
        *,
        acceptable_exit_codes: Iterable[int] = (0,),
    ) -> CommandResult:
        log.debug("[%s] $ %s", host, command)
        rc, out, err = self._runner(host).run(command, sudo=self.sudo)
        if out.strip():
            log.debug("[%s] [stdout]\n%s", host, out.rstrip())
        if err.strip():
            log.debug("[%s] [stderr]\n%s", host, err.rstrip())
        log.debug("[%s] [exit %d]", host, rc)
        result = CommandResult(host=host.name, command=command, exit_code=rc, stdout=out, stderr=err)
        return check_result(result, acceptable_exit_codes)

    def copy(self, host: Host, local_path: str | Path, remote_path: str) -> None:
        log.debug("[%s] scp %s -> %s", host, local_path, remote_path)
        self._runner(host).put_file(local_path, remote_path, sudo=self.sudo)

    def copy_tree(
        self,
        host: Host,
        local_dir: str | Path,
        remote_dir: str,
        *,
        ignore: Iterable[str] = DEFAULT_COPY_IGNORE,
    ) -> None:
        log.debug("[%s] upload tree %s -> %s", host, local_dir, remote_dir)
        self._runner(host).put_dir(Path(local_dir), remote_dir, ignore=ignore, sudo=self.sudo)

    def create_remote_file(self, host: Host, remote_path: str, content: str) -> None:
        log.debug("[%s] write %s (%d bytes)", host, remote_path, len(content))
        self._runner(host).put_text(content, remote_path, sudo=self.sudo)

    def close(self) -> None:
        for name, runner in list(self._runners.items()):
            try:
                runner.close()
            finally:
                self._runners.pop(name, None)
