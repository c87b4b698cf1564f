# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from agent_acceptance.config.loader import load_config
from agent_acceptance.harness.bootstrap import provision_suite, setup_puppet_on
from agent_acceptance.harness.context import HarnessContext, context_from_config
from agent_acceptance.harness.errors import HarnessError
from agent_acceptance.harness.handshake import establish_trust
from agent_acceptance.harness.teardown import teardown_puppet_on
from agent_acceptance.logging.log import init_logging
from agent_acceptance.observers.console import ConsoleObserver
from agent_acceptance.observers.dispatcher import EventBus
from agent_acceptance.observers.jsonfile import JsonFileObserver
from agent_acceptance.observers.logger import LoggerObserver


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Puppet agent acceptance harness")


def _open_context(config: Path, *, verbose: bool, events: bool) -> HarnessContext:
    logger, run_id, log_path = init_logging(verbose=verbose)

    observers: List = [
        LoggerObserver(logger),
        JsonFileObserver(log_path.with_suffix(".jsonl")),
    ]
    if events:
        observers.append(ConsoleObserver())

    cfg = load_config(config)
    return context_from_config(cfg, bus=EventBus(observers=observers), run_id=run_id)


def _run(config: Path, verbose: bool, events: bool, fn) -> None:
    ctx = _open_context(config, verbose=verbose, events=events)
    try:
        fn(ctx)
    except HarnessError as exc:
        typer.secho(f"✖ {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    finally:
        close = getattr(ctx.executor, "close", None)
        if close:
            close()


ConfigArg = typer.Argument(..., exists=True, dir_okay=False, help="Roster config (YAML)")
VerboseOpt = typer.Option(False, "--verbose", "-v", help="Log every remote command to the console")
EventsOpt = typer.Option(False, "--events", help="Print lifecycle events to the console")


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def provision(
    config: Path = ConfigArg,
    verbose: bool = VerboseOpt,
    events: bool = EventsOpt,
) -> None:
    """Install repos, puppet-server, the module under test and activemq."""
    def _do(ctx: HarnessContext) -> None:
        if provision_suite(ctx):
            typer.echo("✔ Suite provisioned")
        else:
            typer.echo("Provisioning skipped (BEAKER_provision=no)")

    _run(config, verbose, events, _do)


@app.command()
def setup(
    config: Path = ConfigArg,
    host: str = typer.Argument(..., help="Roster host name"),
    agent: bool = typer.Option(False, "--agent", help="Register the host with the master"),
    mcollective: bool = typer.Option(False, "--mcollective", help="Also set up mcollective"),
    verbose: bool = VerboseOpt,
    events: bool = EventsOpt,
) -> None:
    """Install and configure puppet on one host."""
    def _do(ctx: HarnessContext) -> None:
        target = ctx.roster.get(host)
        setup_puppet_on(ctx, target, agent=agent, mcollective=mcollective)
        typer.echo(f"✔ Puppet set up on {target}")

    _run(config, verbose, events, _do)


@app.command()
def handshake(
    config: Path = ConfigArg,
    host: str = typer.Argument(..., help="Roster host name"),
    verbose: bool = VerboseOpt,
    events: bool = EventsOpt,
) -> None:
    """Re-run the certificate handshake between one host and the master."""
    def _do(ctx: HarnessContext) -> None:
        report = establish_trust(ctx, ctx.roster.get(host))
        for state, outcome in report.transitions:
            typer.echo(f"  {state.value}" + (f": {outcome.value}" if outcome else ""))
        typer.echo(f"✔ {report.host} trusts {report.master}")

    _run(config, verbose, events, _do)


@app.command()
def teardown(
    config: Path = ConfigArg,
    host: Optional[str] = typer.Argument(None, help="Roster host name (default: all hosts)"),
    verbose: bool = VerboseOpt,
    events: bool = EventsOpt,
) -> None:
    """Purge puppet, mcollective and the pc1 repo from hosts."""
    def _do(ctx: HarnessContext) -> None:
        targets = [ctx.roster.get(host)] if host else ctx.roster.hosts
        for target in targets:
            teardown_puppet_on(ctx, target)
            typer.echo(f"✔ Purged {target}")

    _run(config, verbose, events, _do)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
