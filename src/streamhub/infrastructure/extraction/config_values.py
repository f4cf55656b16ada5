"""Permissive ``key: value`` scanning over player markup and scripts.

Embedded players configure themselves with loosely-written JavaScript
object literals (``file:'[...]'``, ``"file": "..."``, ``link = //cdn/x``).
These helpers pull a single configuration value out of such text without
trying to parse the surrounding script.
"""

from __future__ import annotations

import re
from html import unescape

# Closing quote of a quoted key is optional: file:, "file":, 'file' =
_KEY_TEMPLATE = r"""\b{key}["']?\s*[:=]\s*"""

# Quoted value honouring backslash escapes, may span lines.
_QUOTED_VALUE_RE = re.compile(r"""(["'])((?:\\.|(?!\1)[^\\])*)\1""", re.DOTALL)

# Bare value up to end of line / comma / semicolon.
_BARE_VALUE_RE = re.compile(r"[^,;\n]+")

_BRACKETS = {"[": "]", "{": "}"}


def decode_entities(text: str) -> str:
    """Decode HTML entities (``&quot;``, ``&#39;``, ``&amp;`` ...)."""
    return unescape(text)


def _balanced_block(text: str, start: int) -> str | None:
    """Return the bracketed block opening at *start*, or None if unterminated.

    Quotes are tracked so brackets inside string literals do not count.
    """
    stack: list[str] = []
    quote: str | None = None
    escaped = False
    for idx in range(start, len(text)):
        ch = text[idx]
        if quote:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch in _BRACKETS:
            stack.append(_BRACKETS[ch])
        elif stack and ch == stack[-1]:
            stack.pop()
            if not stack:
                return text[start : idx + 1]
    return None


def pick_config_value(text: str, key: str) -> str | None:
    """Find the value assigned to *key* anywhere in *text*.

    Quoted values (single or double) and bracketed literals win over bare
    values; the first bare value is only used when no occurrence of *key*
    carries a quoted/bracketed one.  Returns the raw (still escaped) value.
    """
    key_re = re.compile(_KEY_TEMPLATE.format(key=re.escape(key)), re.IGNORECASE)
    first_bare: str | None = None

    for match in key_re.finditer(text):
        pos = match.end()
        if pos >= len(text):
            continue
        head = text[pos]

        if head in ("'", '"'):
            quoted = _QUOTED_VALUE_RE.match(text, pos)
            if quoted:
                return quoted.group(2)
            continue

        if head in _BRACKETS:
            block = _balanced_block(text, pos)
            if block is not None:
                return block

        if first_bare is None:
            bare = _BARE_VALUE_RE.match(text, pos)
            if bare and bare.group(0).strip():
                first_bare = bare.group(0).strip()

    return first_bare
