# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/utils/ssh_runner.py

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import Iterable, Optional

import paramiko


def shq(value: str) -> str:
    """Quote a string for bash -c."""
    return "'" + value.replace("'", "'\"'\"'") + "'"


class SSHRunner:
    """
    Thin wrapper around a connected paramiko client: run commands and push
    files/directories over SFTP.
    """

    def __init__(self, client: paramiko.SSHClient, *, cmd_timeout: Optional[float] = None):
        self.client = client
        self.cmd_timeout = cmd_timeout

    def run(
        self,
        cmd: str,
        *,
        sudo: bool = False,
        timeout: Optional[float] = None,
    ) -> tuple[int, str, str]:
        if sudo:
            cmd = f"sudo -H -E bash -c {shq(cmd)}"

        stdin, stdout, stderr = self.client.exec_command(cmd, timeout=timeout or self.cmd_timeout)
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        rc = stdout.channel.recv_exit_status()
        return rc, out, err

    def put_text(self, content: str, remote_path: str, *, sudo: bool = False) -> None:
        if sudo:
            tmp = f"/tmp/.agent_acceptance.tmp.{os.getpid()}"
            self.put_text(content, tmp)
            self.run(f"mv {tmp} {remote_path}", sudo=True)
            return

        sftp = self.client.open_sftp()
        try:
            with sftp.open(remote_path, "w") as f:
                f.write(content)
        finally:
            sftp.close()

    def put_file(self, local_path: str | Path, remote_path: str, *, sudo: bool = False) -> None:
        if sudo:
            tmp = f"/tmp/.agent_acceptance.upload.{os.getpid()}"
            self.put_file(local_path, tmp)
            self.run(f"mv {tmp} {remote_path}", sudo=True)
            return

        sftp = self.client.open_sftp()
        try:
            sftp.put(str(local_path), str(remote_path))
        finally:
            sftp.close()

    def put_dir(
        self,
        local_dir: Path,
        remote_dir: str,
        *,
        ignore: Iterable[str] = (),
        sudo: bool = False,
    ) -> None:
        """
        Recursively upload a directory to the remote host using SFTP.
        Entries whose name is in *ignore* are skipped at every level.
        With sudo the tree is staged under /tmp and copied into place as root.
        """
        if sudo:
            tmp = f"/tmp/.agent_acceptance.dir.{os.getpid()}"
            self.run(f"rm -rf {shq(tmp)}")
            self.put_dir(local_dir, tmp, ignore=ignore)
            rc, _, err = self.run(
                f"mkdir -p {shq(remote_dir)} && cp -R {shq(tmp)}/. {shq(remote_dir)} && rm -rf {shq(tmp)}",
                sudo=True,
            )
            if rc != 0:
                raise IOError(f"moving {tmp} to {remote_dir} failed (rc={rc}): {err.strip()}")
            return

        skip = set(ignore)
        self.run(f"mkdir -p {shq(remote_dir)}")
        sftp = self.client.open_sftp()
        try:
            self._put_dir_recursive(sftp, Path(local_dir), remote_dir, skip)
        finally:
            sftp.close()

    def _put_dir_recursive(self, sftp, local: Path, remote: str, skip: set[str]) -> None:
        try:
            sftp.mkdir(remote)
        except IOError:
            pass  # already exists

        for item in sorted(local.iterdir()):
            if item.name in skip:
                continue
            rpath = posixpath.join(remote, item.name)
            if item.is_dir():
                self._put_dir_recursive(sftp, item, rpath, skip)
            else:
                sftp.put(str(item), rpath)

    def close(self) -> None:
        self.client.close()
