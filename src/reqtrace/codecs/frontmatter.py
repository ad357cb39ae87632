# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 ReqTrace Contributors

"""Low-level text format shared by every record codec.

A stored record is a fenced block of ``key: value`` lines, a blank line, and
a free-form body::

    ---
    id: REQ-001
    parentIds: REQ-000, REQ-010
    ---

    body text, verbatim

Scalar values never span lines: backslash, newline and carriage return are
escaped. List items are comma-joined with commas inside an item escaped, and
split back with whitespace trimmed and empty tokens dropped.
"""

from __future__ import annotations

FENCE = "---"

_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r"}
_UNESCAPES = {"\\": "\\", "n": "\n", "r": "\r", ",": ","}


def escape_text(value: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def unescape_text(value: str) -> str:
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is None:
            out.append("\\")
        elif nxt in _UNESCAPES:
            out.append(_UNESCAPES[nxt])
        else:
            out.append("\\" + nxt)
    return "".join(out)


def join_list(items: list[str]) -> str:
    return ", ".join(escape_text(item).replace(",", "\\,") for item in items)


def split_list(value: str) -> list[str]:
    tokens: list[str] = []
    current: list[str] = []
    escaped = False
    for ch in value:
        if escaped:
            current.append("\\" + ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == ",":
            tokens.append("".join(current))
            current = []
        else:
            current.append(ch)
    if escaped:
        current.append("\\")
    tokens.append("".join(current))
    items = (unescape_text(token).strip() for token in tokens)
    return [item for item in items if item]


def render(fields: list[tuple[str, str]], body: str = "") -> str:
    """Render metadata *fields* (already encoded) followed by *body*."""
    lines = [FENCE]
    lines.extend(f"{key}: {value}" for key, value in fields)
    lines.append(FENCE)
    return "\n".join(lines) + "\n\n" + body


def parse(text: str) -> tuple[dict[str, str], str] | None:
    """Split *text* into raw metadata values and body, or None if it is not fenced."""
    opening = FENCE + "\n"
    if not text.startswith(opening):
        return None
    closing = "\n" + FENCE + "\n"
    end = text.find(closing, len(opening) - 1)
    if end == -1:
        if not text.endswith("\n" + FENCE):
            return None
        end = len(text) - len(FENCE) - 1
        rest = ""
    else:
        rest = text[end + len(closing):]

    meta_text = text[len(opening):end] if end >= len(opening) else ""
    metadata: dict[str, str] = {}
    for line in meta_text.split("\n"):
        if not line.strip():
            continue
        key, sep, value = line.partition(":")
        if not sep or not key.strip():
            return None
        if value.startswith(" "):
            value = value[1:]
        metadata[key.strip()] = value

    if rest.startswith("\n"):
        rest = rest[1:]
    return metadata, rest
