# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/platform.py
"""
Platform classification and the per-family dispatch tables.

Hosts carry beaker-style platform strings (``el-7-x86_64``,
``debian-8-amd64``, ``ubuntu-1404-amd64``, ``fedora-22-x86_64``). Every
decision that depends on the OS goes through :class:`PlatformFamily`, so
an unrecognised platform always lands on the explicit ``UNKNOWN`` branch.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, TYPE_CHECKING

from .models import Host

if TYPE_CHECKING:
    from .context import HarnessContext

log = logging.getLogger("agent_acceptance")


class PlatformFamily(str, Enum):
    DEBIAN = "debian"
    UBUNTU = "ubuntu"
    FEDORA = "fedora"
    ENTERPRISE_LINUX = "el"
    UNKNOWN = "unknown"


DEB_FAMILIES = (PlatformFamily.DEBIAN, PlatformFamily.UBUNTU)
RPM_FAMILIES = (PlatformFamily.FEDORA, PlatformFamily.ENTERPRISE_LINUX)

_FAMILY_PREFIXES = {
    "debian": PlatformFamily.DEBIAN,
    "ubuntu": PlatformFamily.UBUNTU,
    "fedora": PlatformFamily.FEDORA,
    "el": PlatformFamily.ENTERPRISE_LINUX,
    "centos": PlatformFamily.ENTERPRISE_LINUX,
    "redhat": PlatformFamily.ENTERPRISE_LINUX,
}

_CODENAMES = {
    ("debian", "6"): "squeeze",
    ("debian", "7"): "wheezy",
    ("debian", "8"): "jessie",
    ("ubuntu", "1004"): "lucid",
    ("ubuntu", "1204"): "precise",
    ("ubuntu", "1404"): "trusty",
    ("ubuntu", "1504"): "vivid",
    ("ubuntu", "1604"): "xenial",
}


@dataclass(frozen=True)
class Platform:
    raw: str
    family: PlatformFamily
    version: str = ""
    arch: str = ""
    codename: Optional[str] = None


def parse_platform(raw: str) -> Platform:
    parts = (raw or "").strip().lower().split("-")
    family = _FAMILY_PREFIXES.get(parts[0], PlatformFamily.UNKNOWN)
    version = parts[1] if len(parts) > 1 else ""
    arch = parts[2] if len(parts) > 2 else ""
    return Platform(
        raw=raw,
        family=family,
        version=version,
        arch=arch,
        codename=_CODENAMES.get((parts[0], version)),
    )


def family_of(host: Host) -> PlatformFamily:
    return parse_platform(host.platform).family


# ------------------------------------------------------------------
# Firewall
# ------------------------------------------------------------------

def _firewall_strategy(platform: Platform) -> Optional[str]:
    if platform.family is PlatformFamily.DEBIAN:
        return "iptables"
    if platform.family is PlatformFamily.FEDORA:
        return "firewalld"
    if platform.family is PlatformFamily.ENTERPRISE_LINUX:
        return "firewalld" if platform.version == "7" else "iptables-service"
    if platform.family is PlatformFamily.UBUNTU:
        return "ufw"
    return None


# clearing the firewall never aborts a run
ANY_EXIT_CODE = range(256)

FIREWALL_COMMANDS: Dict[str, str] = {
    "iptables": "iptables -F",
    "firewalld": "puppet resource service firewalld ensure=stopped",
    "iptables-service": "puppet resource service iptables ensure=stopped",
    "ufw": "puppet resource service ufw ensure=stopped",
}


def stop_firewall_on(ctx: "HarnessContext", host: Host) -> Optional[str]:
    """
    Clear the firewall on *host*. Returns the strategy used, or None when
    the platform is not recognised (nothing is run in that case). A
    nonzero exit is logged as a warning and otherwise ignored.
    """
    strategy = _firewall_strategy(parse_platform(host.platform))
    if strategy is None:
        log.warning("Not sure how to clear firewall on %s", host.platform)
        return None
    log.info("[%s] Clearing firewall (%s)", host, strategy)
    result = ctx.executor.run(host, FIREWALL_COMMANDS[strategy], acceptable_exit_codes=ANY_EXIT_CODE)
    if result.exit_code != 0:
        log.warning("[%s] Clearing firewall failed (rc=%d)", host, result.exit_code)
    return strategy


# ------------------------------------------------------------------
# Package managers
# ------------------------------------------------------------------

def install_command(platform: Platform, package: str) -> Optional[str]:
    if platform.family in DEB_FAMILIES:
        return f"DEBIAN_FRONTEND=noninteractive apt-get install -y {package}"
    if platform.family in RPM_FAMILIES:
        return f"yum -y install {package}"
    return None


def refresh_command(platform: Platform) -> Optional[str]:
    if platform.family in DEB_FAMILIES:
        return "apt-get update"
    if platform.family in RPM_FAMILIES:
        return "yum makecache"
    return None


# ------------------------------------------------------------------
# Repository removal (teardown)
# ------------------------------------------------------------------

REPO_NAME = "pc1_repo"

REPO_REMOVAL_CLAUSES: Dict[PlatformFamily, str] = {
    PlatformFamily.DEBIAN: (
        "include apt\n"
        f"apt::source {{ '{REPO_NAME}': ensure => absent, notify => Package['puppet-agent'] }}"
    ),
    PlatformFamily.UBUNTU: (
        "include apt\n"
        f"apt::source {{ '{REPO_NAME}': ensure => absent, notify => Package['puppet-agent'] }}"
    ),
    PlatformFamily.FEDORA: (
        f"yumrepo {{ '{REPO_NAME}': ensure => absent, notify => Package['puppet-agent'] }}"
    ),
    PlatformFamily.ENTERPRISE_LINUX: (
        f"yumrepo {{ '{REPO_NAME}': ensure => absent, notify => Package['puppet-agent'] }}"
    ),
    PlatformFamily.UNKNOWN: "",
}
