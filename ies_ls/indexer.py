"""ies_ls.indexer
~~~~~~~~~~~~~~
Builds the *instance index* for **one document**: every ``instance a class``
declaration maps the instance token to its class token, so hover can answer
"what kind of thing is ``data:X``" anywhere in the buffer.

The indexer is stateless and side-effect-free so unit tests can feed raw
strings and assert on the returned mapping.  It deliberately ignores comments,
string literals and bracket blocks: only the declaration pattern decides.
"""
from __future__ import annotations

from typing import Dict, List
import re

__all__ = [
    "QNAME", "TERMINATORS", "BEFORE", "AFTER", "DECLARATION_RE", "split_lines", "index",
]

# ---------------------------------------------------------------------------
# Token grammar – shared with the hover classifier
# ---------------------------------------------------------------------------

# prefix:local – the local part is any run of non-space characters (no quotes);
# inner "." ";" "," are kept but a trailing one is a terminator, so "ns:Foo."
# is the token "ns:Foo" followed by a terminator.
QNAME = r'[A-Za-z][\w\-]*:[^\s.;,"]+(?:[.;,]+[^\s.;,"]+)*'

TERMINATORS = ".;,"

# A token must stand on its own: whitespace (or line edge) before it,
# optional terminator then whitespace (or line edge) after it.
BEFORE = r"(?<!\S)"
AFTER = r"(?=[.;,]?(?:\s|$))"

DECLARATION_RE = re.compile(
    rf"{BEFORE}(?P<instance>{QNAME})\s+a\s+(?P<cls>{QNAME}){AFTER}"
)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> List[str]:
    """Split on LSP line breaks only (``\\n``, ``\\r\\n``, ``\\r``)."""
    return _LINE_BREAK_RE.split(text)

# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def index(text: str) -> Dict[str, str]:
    """Scan *text* top to bottom and return ``{instance: class}``.

    A later declaration of the same instance overwrites an earlier one.
    """
    instances: Dict[str, str] = {}
    for line in split_lines(text):
        m = DECLARATION_RE.search(line)
        if m:
            instances[m.group("instance")] = m.group("cls")
    return instances
