# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Mapping, Optional

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, StrictUndefined

from .models import Host

if TYPE_CHECKING:
    from .context import HarnessContext

BUILTIN_TEMPLATES = Path(__file__).resolve().parent.parent / "templates"


def expand_env_vars(value: str) -> str:
    return re.sub(r"\$\{([^}^{]+)\}", lambda m: os.getenv(m.group(1), m.group(0)), value)


class TemplateRenderer:
    def __init__(self, templates_dir: Optional[Path] = None):
        # a custom dir shadows the bundled templates name by name
        search = [Path(templates_dir)] if templates_dir else []
        search.append(BUILTIN_TEMPLATES)
        self.env = Environment(
            loader=ChoiceLoader([FileSystemLoader(str(p)) for p in search]),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, context: Mapping[str, Any]) -> str:
        expanded = {k: expand_env_vars(v) if isinstance(v, str) else v for k, v in context.items()}
        tmpl = self.env.get_template(template_name)
        return tmpl.render(**expanded)


def render_and_create(
    ctx: "HarnessContext",
    host: Host,
    template_name: str,
    binding: Mapping[str, Any],
    remote_path: str,
) -> str:
    """Render *template_name* against *binding* and write it to *remote_path* on *host*."""
    content = ctx.renderer.render(template_name, binding)
    ctx.executor.create_remote_file(host, remote_path, content)
    return content
