"""Markdown string builders used by the table and document renderers."""
from __future__ import annotations

import re
from typing import Callable, Optional, Sequence

EOL = "\n"

_ANCHOR_STRIP = re.compile(r"[^a-z0-9_-]+")


def anchor_id(ref: str) -> str:
    slug = _ANCHOR_STRIP.sub("-", ref.strip().lower()).strip("-")
    return slug or "schema"


def anchor(ref: str, text: Optional[str] = None) -> str:
    return f"[{text or ref}](#{anchor_id(ref)})"


def title(level: int) -> Callable[[str], str]:
    prefix = "#" * max(1, min(level, 6))

    def render(text: str) -> str:
        return f"{prefix} {text}"

    return render


def concat_new_line(first: str, second: str) -> str:
    if not first:
        return second
    if not second:
        return first
    return f"{first}{EOL}{second}"


def _cell(value: str) -> str:
    # Table cells are single-line; keep line breaks visible as <br>.
    return value.replace("|", "\\|").replace("\r\n", EOL).replace(EOL, "<br>")


def table(rows: Sequence[Sequence[str]]) -> str:
    """Render ``rows`` as a Markdown table; the first row is the header."""

    if not rows:
        return ""
    header, *body = rows
    lines = [
        "| " + " | ".join(_cell(str(value)) for value in header) + " |",
        "| " + " | ".join("---" for _ in header) + " |",
    ]
    for row in body:
        lines.append("| " + " | ".join(_cell(str(value)) for value in row) + " |")
    return EOL.join(lines)


def table_parameter_name(key: str, required: bool) -> str:
    return f"{key}*" if required else key


__all__ = [
    "EOL",
    "anchor",
    "anchor_id",
    "concat_new_line",
    "table",
    "table_parameter_name",
    "title",
]
