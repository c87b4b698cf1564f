# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/teardown.py

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agent_acceptance.observers.events import TeardownApplied

from .models import Host
from .platform import DEB_FAMILIES, REPO_REMOVAL_CLAUSES, PlatformFamily, family_of
from .puppet import install_module_dependencies

if TYPE_CHECKING:
    from .context import HarnessContext

log = logging.getLogger("agent_acceptance")

AIO_PUPPET = "/opt/puppetlabs/bin/puppet"

PURGE_DIRECTORIES = ("/etc/puppet", "/etc/puppetlabs", "/etc/mcollective")
PURGE_PACKAGES = ("puppet-agent", "puppet", "mcollective", "mcollective-client")


def _puppet_list(items) -> str:
    return "[" + ", ".join(f"'{i}'" for i in items) + "]"


def purge_manifest(repo_clause: str) -> str:
    """Compose the single manifest applied by teardown, repo clause first."""
    return (
        f"{repo_clause}\n"
        f"file {{ {_puppet_list(PURGE_DIRECTORIES)}: ensure => absent, force => true, backup => false }}\n"
        f"package {{ {_puppet_list(PURGE_PACKAGES)}: ensure => purged }}\n"
    )


def teardown_puppet_on(ctx: "HarnessContext", host: Host) -> str:
    """
    Purge puppet and mcollective from *host*, including the pc1_repo
    definition that the module under test adds. Best effort: nothing is
    rolled back if the apply fails part way. Returns the applied manifest.
    """
    log.info("[%s] Purge puppet from %s", host, host)
    family = family_of(host)

    if family in DEB_FAMILIES:
        # apt::source needs the apt module present on the host
        install_module_dependencies(ctx, host, puppet_bin=AIO_PUPPET, modules=("puppetlabs-apt",))
    elif family is PlatformFamily.UNKNOWN:
        log.warning("Not sure how to remove repos on %s", host.platform)

    repo_clause = REPO_REMOVAL_CLAUSES[family]
    manifest = purge_manifest(repo_clause)
    ctx.executor.run(host, f'{AIO_PUPPET} apply -e "{manifest}"')
    ctx.emit(TeardownApplied, env="teardown", host=host.name, platform=host.platform,
             repo_clause=bool(repo_clause))
    return manifest
