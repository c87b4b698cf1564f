# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/context.py

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional, Type

from agent_acceptance.observers.dispatcher import EventBus
from agent_acceptance.observers.events import BaseEvent, new_ctx

from .executor import RemoteExecutor, SshExecutor
from .roster import HostRoster
from .settings import HarnessSettings, load_harness_settings
from .templates import TemplateRenderer

if TYPE_CHECKING:
    from agent_acceptance.config.models import HarnessConfig


@dataclass
class HarnessContext:
    """
    Everything an orchestration step needs: where to run commands, which
    hosts exist, where test files and templates live, and how long to wait
    for services.
    """
    executor: RemoteExecutor
    roster: HostRoster
    files_dir: Path
    project_root: Path
    module_name: str = "puppet_agent"
    renderer: TemplateRenderer = field(default_factory=TemplateRenderer)
    settings: HarnessSettings = field(default_factory=load_harness_settings)
    bus: EventBus = field(default_factory=EventBus)
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    master_port: int = 8140
    broker_port: Optional[int] = 61614
    keystore_password: str = "puppet"
    ready_timeout: float = 120.0
    ready_interval: float = 2.0
    broker_fixed_delay: float = 10.0
    sleep: Callable[[float], None] = time.sleep

    @property
    def master(self):
        return self.roster.master

    def emit(self, event_cls: Type[BaseEvent], env: str = "acceptance", **fields: Any) -> None:
        base = new_ctx(env=env, context=self.roster.master.name, run_id=self.run_id)
        self.bus.emit(event_cls(**base, **fields))


def context_from_config(
    cfg: "HarnessConfig",
    *,
    executor: Optional[RemoteExecutor] = None,
    bus: Optional[EventBus] = None,
    settings: Optional[HarnessSettings] = None,
    run_id: Optional[str] = None,
) -> HarnessContext:
    """Build a context from a loaded roster config. Defaults to an SSH executor."""
    return HarnessContext(
        executor=executor or SshExecutor(sudo=cfg.sudo),
        roster=cfg.roster(),
        files_dir=cfg.files_dir,
        project_root=cfg.project_root,
        module_name=cfg.module_name,
        renderer=TemplateRenderer(cfg.templates_dir),
        settings=settings or load_harness_settings(),
        bus=bus or EventBus(),
        run_id=run_id or str(uuid.uuid4()),
        broker_port=cfg.broker_port,
        keystore_password=cfg.keystore_password,
        ready_timeout=cfg.ready_timeout,
    )
