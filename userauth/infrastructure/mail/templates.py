# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

_TEMPLATE_DIR = Path(__file__).resolve().parents[2] / "templates" / "email"


class EmailTemplates:
    """Renders the html and plain-text bodies of a transactional email."""

    def __init__(self, directory: Path | str = _TEMPLATE_DIR) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, name: str, **context: Any) -> tuple[str, str]:
        html = self._env.get_template(f"{name}.html").render(**context)
        text = self._env.get_template(f"{name}.txt").render(**context)
        return html, text
