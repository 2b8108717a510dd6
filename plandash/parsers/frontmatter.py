"""Split and load the leading YAML frontmatter block of a markdown file."""
from __future__ import annotations

import re
from typing import Any

import yaml

_FRONTMATTER_RE = re.compile(r"^\s*---\s*\n(.*?)\n---\s*(?:\n|$)(.*)", re.DOTALL)


def has_frontmatter(text: str) -> bool:
    return (text or "").strip().startswith("---")


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Return the raw YAML block and the markdown after it.

    Text without a leading ``---`` block comes back as ``(None, text)``.
    """
    match = _FRONTMATTER_RE.match(text or "")
    if not match:
        return None, text
    return match.group(1), match.group(2)


def extract_frontmatter(text: str) -> dict[str, Any]:
    """Parse the frontmatter mapping; malformed or non-mapping YAML yields {}."""
    if not has_frontmatter(text):
        return {}
    fm_text, _ = split_frontmatter(text)
    if fm_text is None:
        return {}
    try:
        fm = yaml.safe_load(fm_text) or {}
    except (yaml.YAMLError, ValueError):
        return {}
    if not isinstance(fm, dict):
        return {}
    return fm
