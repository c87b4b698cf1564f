# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/config/models.py

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from agent_acceptance.harness.models import Host
from agent_acceptance.harness.roster import HostRoster


class HostSpec(BaseModel):
    name: str
    address: Optional[str] = None          # defaults to name
    platform: str                          # e.g. el-7-x86_64, debian-8-amd64
    username: str = "root"
    port: int = 22
    password: Optional[str] = None
    pkey_path: Optional[Path] = None
    roles: List[Literal["master", "agent"]] = Field(default_factory=lambda: ["agent"])
    use_service_scripts: bool = False
    graceful_restarts: bool = False
    puppetservice: str = "puppetmaster"
    puppetpath: str = "/etc/puppet"
    distmoduledir: str = "/etc/puppet/modules"

    def to_host(self) -> Host:
        return Host(
            name=self.name,
            address=self.address or self.name,
            platform=self.platform,
            username=self.username,
            port=self.port,
            password=self.password,
            pkey_path=self.pkey_path,
            roles=list(self.roles),
            use_service_scripts=self.use_service_scripts,
            graceful_restarts=self.graceful_restarts,
            puppetservice=self.puppetservice,
            puppetpath=self.puppetpath,
            distmoduledir=self.distmoduledir,
        )


class HarnessConfig(BaseModel):
    """Roster and paths for one acceptance environment."""

    hosts: List[HostSpec]
    files_dir: Path = Path("spec/acceptance/files")
    project_root: Path = Path(".")
    module_name: str = "puppet_agent"
    templates_dir: Optional[Path] = None
    broker_port: Optional[int] = 61614
    keystore_password: str = "puppet"
    ready_timeout: float = 120.0
    sudo: bool = False

    @model_validator(mode="after")
    def _one_master(self) -> "HarnessConfig":
        masters = [h.name for h in self.hosts if "master" in h.roles]
        if len(masters) != 1:
            raise ValueError(f"exactly one host must have the 'master' role, got {masters or 'none'}")
        return self

    def roster(self) -> HostRoster:
        return HostRoster([h.to_host() for h in self.hosts])
