# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/pytest_plugin.py
"""
Fixtures for acceptance suites. Enable with

    pytest_plugins = ["agent_acceptance.pytest_plugin"]

and point AGENT_ACCEPTANCE_CONFIG (or --acceptance-config) at a roster
YAML file. The suite is provisioned once per session unless
BEAKER_provision=no.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

import pytest

from agent_acceptance.config.loader import load_config
from agent_acceptance.harness.bootstrap import provision_suite
from agent_acceptance.harness.context import HarnessContext, context_from_config
from agent_acceptance.harness.settings import HarnessSettings, load_harness_settings
from agent_acceptance.observers.dispatcher import EventBus
from agent_acceptance.observers.logger import LoggerObserver

log = logging.getLogger("agent_acceptance")


def pytest_addoption(parser) -> None:
    group = parser.getgroup("agent_acceptance")
    group.addoption(
        "--acceptance-config",
        action="store",
        default=None,
        help="Roster YAML for acceptance tests (overrides AGENT_ACCEPTANCE_CONFIG)",
    )


def resolve_config_path(option: Optional[str], settings: HarnessSettings) -> Optional[Path]:
    value = option or settings.config_path
    return Path(value) if value else None


@pytest.fixture(scope="session")
def harness_context(request) -> Iterator[HarnessContext]:
    settings = load_harness_settings()
    path = resolve_config_path(request.config.getoption("--acceptance-config"), settings)
    if path is None:
        pytest.skip("no acceptance roster configured (set AGENT_ACCEPTANCE_CONFIG)")

    ctx = context_from_config(
        load_config(path),
        settings=settings,
        bus=EventBus(observers=[LoggerObserver(log)]),
    )
    try:
        yield ctx
    finally:
        close = getattr(ctx.executor, "close", None)
        if close:
            close()


@pytest.fixture(scope="session")
def provisioned_suite(harness_context: HarnessContext) -> HarnessContext:
    provision_suite(harness_context)
    return harness_context
