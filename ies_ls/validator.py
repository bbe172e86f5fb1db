"""ies_ls.validator
~~~~~~~~~~~~~~~~
Line-style check: every statement line must end with ``.``, ``,`` or ``;``.

Two flags are carried from line to line while scanning:

* ``in_string`` – toggled by any line holding an odd number of ``"``; lines
  inside a multi-line literal are never checked.
* ``in_block`` – set by a line containing ``[`` and cleared by a line
  containing ``]`` (both tested on the same line, close wins).  The line that
  opens a block may end with ``[`` instead of a terminator.
"""
from __future__ import annotations

from typing import List

from lsprotocol import types

from .indexer import split_lines

__all__ = ["SOURCE", "MESSAGE", "validate"]

SOURCE = "ies-ls"
MESSAGE = "Lines end with a dot, comma, or semicolon"

_TERMINATORS = (".", ",", ";")


def validate(text: str) -> List[types.Diagnostic]:
    """Return one Error diagnostic per badly terminated line, in line order."""
    diags: List[types.Diagnostic] = []
    in_string = False
    in_block = False

    for lineno, raw in enumerate(split_lines(text)):
        line = raw.strip()

        if line.count('"') % 2:
            in_string = not in_string
        if in_string:
            continue
        if not line or line.startswith("#"):
            continue

        if "[" in line:
            in_block = True
        if "]" in line:
            in_block = False

        if line.endswith(_TERMINATORS):
            continue
        if in_block and line.endswith("["):
            continue

        diags.append(
            types.Diagnostic(
                range=types.Range(
                    start=types.Position(line=lineno, character=0),
                    end=types.Position(line=lineno, character=len(line)),
                ),
                severity=types.DiagnosticSeverity.Error,
                source=SOURCE,
                message=MESSAGE,
            )
        )

    return diags
