# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/puppet.py

from __future__ import annotations

import logging
import posixpath
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterator, Mapping, Optional

from .errors import UnsupportedPlatformError
from .executor import run_step
from .models import MODULE_INSTALL, Host, Outcome
from .options import puppet_conf_sections, service_args
from .platform import (
    DEB_FAMILIES,
    PlatformFamily,
    install_command,
    parse_platform,
    refresh_command,
)
from .services import puppet, set_service, wait_for_port

if TYPE_CHECKING:
    from .context import HarnessContext

log = logging.getLogger("agent_acceptance")

MODULE_DEPENDENCIES = ("puppetlabs-stdlib", "puppetlabs-inifile", "puppetlabs-apt")

APT_RELEASE_URL = "http://apt.puppetlabs.com"
YUM_RELEASE_URL = "http://yum.puppetlabs.com"


# ------------------------------------------------------------------
# Packages & repositories
# ------------------------------------------------------------------

def install_package(ctx: "HarnessContext", host: Host, package: str) -> None:
    cmd = install_command(parse_platform(host.platform), package)
    if cmd is None:
        raise UnsupportedPlatformError(f"Don't know how to install packages on {host.platform}")
    log.info("[%s] Installing package %s", host, package)
    ctx.executor.run(host, cmd)


def _rpm_dist(platform) -> str:
    prefix = "fedora" if platform.family is PlatformFamily.FEDORA else "el"
    return f"{prefix}-{platform.version}"


def install_release_repo(ctx: "HarnessContext", host: Host) -> None:
    """Install the Puppet Labs release repository package on *host*."""
    platform = parse_platform(host.platform)
    if platform.family in DEB_FAMILIES:
        if not platform.codename:
            raise UnsupportedPlatformError(f"No release codename known for {host.platform}")
        deb = f"puppetlabs-release-{platform.codename}.deb"
        log.info("[%s] Installing release repo %s", host, deb)
        ctx.executor.run(host, f"curl -fsSL -o /tmp/{deb} {APT_RELEASE_URL}/{deb}")
        ctx.executor.run(host, f"dpkg -i --force-all /tmp/{deb}")
        ctx.executor.run(host, refresh_command(platform))
    elif platform.family is PlatformFamily.UNKNOWN:
        raise UnsupportedPlatformError(f"Don't know how to install a release repo on {host.platform}")
    else:
        rpm = f"puppetlabs-release-{_rpm_dist(platform)}.noarch.rpm"
        log.info("[%s] Installing release repo %s", host, rpm)
        # rc=1 when the release package is already installed
        ctx.executor.run(host, f"rpm -ivh {YUM_RELEASE_URL}/{rpm}", acceptable_exit_codes=(0, 1))


def install_dev_repo(ctx: "HarnessContext", host: Host, project: str, sha: str) -> str:
    """
    Point *host* at the development build of *project* for commit *sha*.
    Returns the repository definition path written on the host.
    """
    platform = parse_platform(host.platform)
    base = f"{ctx.settings.dev_builds_url}/{project}/{sha}/repo_configs"
    if platform.family in DEB_FAMILIES:
        url = f"{base}/deb/pl-{project}-{sha}-{platform.codename}.list"
        dest = f"/etc/apt/sources.list.d/pl-{project}-{sha}.list"
    elif platform.family is PlatformFamily.UNKNOWN:
        raise UnsupportedPlatformError(f"Don't know how to install a dev repo on {host.platform}")
    else:
        url = f"{base}/rpm/pl-{project}-{sha}-{_rpm_dist(platform)}-{platform.arch}.repo"
        dest = f"/etc/yum.repos.d/pl-{project}-{sha}.repo"

    log.info("[%s] Setting up dev repository %s", host, url)
    ctx.executor.run(host, f"curl -fsSL -o {dest} {url}")
    ctx.executor.run(host, refresh_command(platform))
    return dest


# ------------------------------------------------------------------
# Modules
# ------------------------------------------------------------------

def install_module_on(
    ctx: "HarnessContext",
    host: Host,
    *,
    source: Optional[Path] = None,
    module_name: Optional[str] = None,
) -> str:
    """Copy the module under test onto *host*'s module path."""
    source = Path(source or ctx.project_root)
    module_name = module_name or ctx.module_name
    target = posixpath.join(host.distmoduledir, module_name)
    log.info("[%s] Installing module %s from %s", host, module_name, source)
    ctx.executor.run(host, f"mkdir -p {host.distmoduledir}")
    ctx.executor.run(host, f"rm -rf {target}")
    ctx.executor.copy_tree(host, source, target)
    return target


def install_module_dependencies(
    ctx: "HarnessContext",
    host: Host,
    *,
    puppet_bin: str = "puppet",
    modules=MODULE_DEPENDENCIES,
) -> Dict[str, Outcome]:
    results: Dict[str, Outcome] = {}
    for module in modules:
        outcome = run_step(ctx.executor, host, f"{puppet_bin} module install {module}", MODULE_INSTALL)
        log.info("[%s] %s: %s", host, module, outcome.value)
        results[module] = outcome
    return results


# ------------------------------------------------------------------
# puppet.conf & master lifecycle
# ------------------------------------------------------------------

def puppet_conf_path(host: Host) -> str:
    return posixpath.join(host.puppetpath, "puppet.conf")


def configure_puppet_on(ctx: "HarnessContext", host: Host, opts: Mapping[str, Any]) -> str:
    """Write puppet.conf on *host* from an option set. Returns the rendered text."""
    content = ctx.renderer.render("puppet.conf.j2", {"sections": puppet_conf_sections(opts)})
    ctx.executor.run(host, f"mkdir -p {host.puppetpath}")
    ctx.executor.create_remote_file(host, puppet_conf_path(host), content)
    return content


@contextmanager
def puppet_running_on(ctx: "HarnessContext", host: Host, opts: Mapping[str, Any]) -> Iterator[Host]:
    """
    Run a puppet master on *host* with *opts* applied for the duration of
    the block. puppet.conf is backed up first and restored afterwards, and
    the master is stopped even if the block raises.
    """
    tmpdir = ctx.executor.run(host, "mktemp -d -t puppet.XXXXXX").stdout.strip()
    conf = puppet_conf_path(host)
    backup = posixpath.join(tmpdir, "puppet.conf.bak")
    pidfile = posixpath.join(tmpdir, "master.pid")

    ctx.executor.run(host, f"cp -p {conf} {backup}", acceptable_exit_codes=(0, 1))

    use_service = host.use_service_scripts and not service_args(opts).get("bypass_service_script")
    try:
        configure_puppet_on(ctx, host, opts)
        log.info("[%s] Starting puppet master (%s)", host, "service" if use_service else "daemon")
        if use_service:
            set_service(ctx, host, host.puppetservice, "running")
        else:
            ctx.executor.run(host, puppet("master", "--daemonize", f"--pidfile {pidfile}"))
        wait_for_port(ctx, host, ctx.master_port, service="puppet master")
        yield host
    finally:
        log.info("[%s] Stopping puppet master", host)
        if use_service:
            set_service(ctx, host, host.puppetservice, "stopped")
        else:
            ctx.executor.run(host, f"kill $(cat {pidfile})", acceptable_exit_codes=(0, 1, 2))
        ctx.executor.run(
            host,
            f"if [ -f {backup} ]; then cp -p {backup} {conf}; else rm -f {conf}; fi",
        )
        ctx.executor.run(host, f"rm -rf {tmpdir}")
