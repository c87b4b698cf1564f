# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/observers/logger.py
from __future__ import annotations
import logging
from .events import BaseEvent, StepFinished
from .interface import event_payload


class LoggerObserver:
    """Mirror events into the run log. Failed steps are logged as warnings."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def notify(self, event: BaseEvent) -> None:
        etype = event.__class__.__name__
        msg = ", ".join(f"{k}={v}" for k, v in event_payload(event).items())
        level = logging.DEBUG
        if isinstance(event, StepFinished) and event.status != "OK":
            level = logging.WARNING

        self.logger.log(level, "[EVENT] %s run=%s env=%s: %s", etype, event.run_id, event.env, msg)
