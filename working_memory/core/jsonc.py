"""JSON-with-comments support.

:func:`strip_comments` is a single left-to-right scan with two states that
matter: inside a string literal, and inside a block comment.  Comment
markers inside string literals (``"https://example.com"``) are data and
are kept.  Newlines are always preserved so that ``json`` error positions
still point at the right line of the original file.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def strip_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments that are outside string literals.

    - ``//`` runs to the end of the line; the newline itself is kept.
    - ``/* ... */`` is removed; newlines inside it are kept.
    - An unterminated block comment swallows the rest of the input.
    - Backslash escapes inside strings are honoured (``"a\\"//b"`` is one
      string).

    Args:
        text: JSONC source.

    Returns:
        The source with comments removed, otherwise unchanged.
    """
    out: list[str] = []
    i = 0
    n = len(text)
    in_string = False

    while i < n:
        ch = text[i]

        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
            continue

        nxt = text[i + 1] if i + 1 < n else ""

        if ch == "/" and nxt == "/":
            end = text.find("\n", i + 2)
            if end == -1:
                break
            i = end  # newline is emitted on the next iteration
            continue

        if ch == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            body = text[i + 2 :] if end == -1 else text[i + 2 : end]
            out.append("\n" * body.count("\n"))
            if end == -1:
                break
            i = end + 2
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def loads(text: str) -> Any:
    """Parse JSONC text.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON once comments
            are removed.
    """
    return json.loads(strip_comments(text))


def load(path: str | Path) -> Any:
    """Read and parse a JSONC file.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the content is not valid JSONC.
    """
    return loads(Path(path).read_text(encoding="utf-8"))
