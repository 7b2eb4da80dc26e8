"""Normalized path formatting."""

from __future__ import annotations

from collections.abc import Iterable


_NAMED_ESCAPES: dict[str, str] = {
    "\\": "\\\\",
    "'": "\\'",
    "\b": "\\b",
    "\f": "\\f",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}


def escape_member_name(name: str) -> str:
    """Escape a member name for use inside a single-quoted normalized path step."""
    parts: list[str] = []
    for char in name:
        escaped = _NAMED_ESCAPES.get(char)
        if escaped is not None:
            parts.append(escaped)
        elif ord(char) <= 0x1F:
            parts.append(f"\\u{ord(char):04x}")
        else:
            parts.append(char)
    return "".join(parts)


def format_normalized_path(steps: Iterable[str | int]) -> str:
    """Render path steps as a normalized path.

    Args:
        steps: Member names and array indices from the root to a node

    Returns:
        Normalized path such as ``$['store']['book'][0]``
    """
    parts = ["$"]
    for step in steps:
        if isinstance(step, int) and not isinstance(step, bool):
            parts.append(f"[{step}]")
        else:
            parts.append(f"['{escape_member_name(str(step))}']")
    return "".join(parts)
