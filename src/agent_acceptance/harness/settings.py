# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/settings.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DEV_BUILDS_URL = "http://builds.puppetlabs.lan"


@dataclass(frozen=True)
class HarnessSettings:
    provision: bool
    sha: Optional[str]
    config_path: Optional[str]
    dev_builds_url: str


def load_harness_settings(env: Optional[Mapping[str, str]] = None) -> HarnessSettings:
    # BEAKER_provision=no reuses already provisioned hosts
    env = os.environ if env is None else env
    return HarnessSettings(
        provision=env.get("BEAKER_provision", "") != "no",
        sha=env.get("SHA") or None,
        config_path=env.get("AGENT_ACCEPTANCE_CONFIG") or None,
        dev_builds_url=env.get("AGENT_ACCEPTANCE_DEV_BUILDS_URL", DEFAULT_DEV_BUILDS_URL),
    )
