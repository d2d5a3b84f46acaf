# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Text cleanup for values lifted out of fetched homepages.

Homepage text ends up in classifier evidence, API responses and log lines.
Hidden Unicode and terminal escapes are stripped before any of that happens.
"""

from __future__ import annotations

import re

# Zero-width chars, bidi overrides, C0/C1 controls (tab/newline handled below)
_CONTROL_CHAR_RE = re.compile(
    r"[\u200B-\u200F\u202A-\u202E\u2060-\u2069\uFEFF\uFFF9-\uFFFB"
    r"\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F-\u009F]"
)

_ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[a-zA-Z]")

_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_text(text: str | None, max_len: int = 256) -> str:
    """Clean a single-line text field.

    - Removes ANSI escape sequences
    - Strips Unicode control characters (zero-width, bidi overrides)
    - Collapses all whitespace runs, newlines included, to one space
    - Truncates to max_len
    """
    if not text:
        return ""

    text = _ANSI_ESCAPE_RE.sub("", text)
    text = _CONTROL_CHAR_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text).strip()

    if len(text) > max_len:
        text = text[:max_len]

    return text
