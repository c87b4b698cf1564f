# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/harness/options.py

from __future__ import annotations

import copy
from typing import Any, Dict, Mapping

OptionSet = Dict[str, Dict[str, Any]]

# Key holding arguments for starting a service; never written to puppet.conf.
SERVICE_ARGS = "__service_args__"


def merge_options(base: Mapping[str, Any], override: Mapping[str, Any]) -> OptionSet:
    """
    Return a new option set with *override* merged over *base*.
    Nested sections merge recursively; override wins on key collision.
    Neither input is mutated.
    """
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(merged.get(key), Mapping) and isinstance(value, Mapping):
            merged[key] = merge_options(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def parser_opts() -> OptionSet:
    # Configuration only needed on a 3.x master
    return {
        "main": {"stringify_facts": False, "parser": "future", "color": "ansi"},
        "agent": {"stringify_facts": False, "cfacter": True, "ssldir": "$vardir/ssl"},
        "master": {"stringify_facts": False, "cfacter": True},
    }


def puppet_conf_sections(opts: Mapping[str, Any]) -> Dict[str, Dict[str, str]]:
    """
    Flatten an option set into puppet.conf sections with string values.
    Booleans are written lowercase, the service-args key is dropped.
    """
    sections: Dict[str, Dict[str, str]] = {}
    for section, values in opts.items():
        if section == SERVICE_ARGS or not isinstance(values, Mapping):
            continue
        sections[section] = {k: _conf_value(v) for k, v in values.items()}
    return sections


def service_args(opts: Mapping[str, Any]) -> Dict[str, Any]:
    return dict(opts.get(SERVICE_ARGS) or {})


def _conf_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
