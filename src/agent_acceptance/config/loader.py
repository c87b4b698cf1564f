# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/agent_acceptance/config/loader.py

import logging
import os
import yaml
from pathlib import Path
from .models import HarnessConfig

log = logging.getLogger("agent_acceptance")

_PATH_FIELDS = ("files_dir", "project_root", "templates_dir")


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Only overwrites when the override value is non-empty.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            _deep_merge(base[key], value)
        elif key in base and _named_list(base[key]) and _named_list(value):
            _merge_by_name(base[key], value)
        else:
            if value not in (None, ""):
                base[key] = value
    return base


def _named_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(i, dict) and "name" in i for i in value)


def _merge_by_name(base: list, override: list) -> list:
    # hosts in secrets.yaml are matched to the roster by name
    by_name = {item["name"]: item for item in base}
    for item in override:
        if item["name"] in by_name:
            _deep_merge(by_name[item["name"]], item)
        else:
            base.append(item)
    return base


def _find_secrets_file(config_path: Path) -> Path | None:
    """
    Locate secrets.yaml using this priority:

    1. AGENT_ACCEPTANCE_SECRETS_FILE environment variable (explicit override)
    2. secrets.yaml in the same directory as the roster config
    """
    env = os.environ.get("AGENT_ACCEPTANCE_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("AGENT_ACCEPTANCE_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    if p.is_file():
        return p

    return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: str | Path) -> HarnessConfig:
    """
    Load and validate a roster config.

    SSH passwords and other secrets can live in a ``secrets.yaml`` next to
    the config (or at ``$AGENT_ACCEPTANCE_SECRETS_FILE``) whose structure
    mirrors it; it is deep-merged before validation. ``${ENV_VAR}``
    placeholders are expanded in both files.

    Relative ``files_dir``, ``project_root`` and ``templates_dir`` are
    resolved against the config file's directory.
    """
    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))
    else:
        log.debug("No secrets.yaml found, proceeding without secrets merge")

    cfg = HarnessConfig.model_validate(data)

    base = path.resolve().parent
    updates = {}
    for name in _PATH_FIELDS:
        value = getattr(cfg, name)
        if value is not None and not value.is_absolute():
            updates[name] = (base / value).resolve()
    return cfg.model_copy(update=updates)
