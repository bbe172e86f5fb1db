"""ies_ls.completion
~~~~~~~~~~~~~~~~~~
Knowledge-base completion.

A knowledge-base name is offered when the line, up to the cursor, ends with
the name's first character (case-insensitive).  No ranking, no
de-duplication: items come out in knowledge-base order, so a name present in
two records is offered twice.

Items carry a ``{"kb": name}`` marker in ``data``; :func:`resolve_item` uses
it to attach richer documentation when the client asks for it.
"""
from __future__ import annotations

import logging
from typing import List

from lsprotocol import types

from .indexer import split_lines
from .kb import KnowledgeBase

__all__ = ["MARKER", "complete", "make_item", "resolve_item"]

log = logging.getLogger("ies_ls.completion")

MARKER = "kb"


def make_item(key: str, documentation: str) -> types.CompletionItem:
    return types.CompletionItem(
        label=key,
        kind=types.CompletionItemKind.Text,
        detail=documentation,
        documentation=f"This item represents a {key}.",
        insert_text=key,
        data={MARKER: key},
    )


def complete(text: str, position: types.Position, kb: KnowledgeBase) -> List[types.CompletionItem]:
    lines = split_lines(text)
    if not 0 <= position.line < len(lines):
        return []
    typed = lines[position.line][: position.character].lower()

    items: List[types.CompletionItem] = []
    for key, doc in kb.entries():
        if key and typed.endswith(key[0].lower()):
            items.append(make_item(key, doc))
    log.debug("completion: %r → %d items", typed[-20:], len(items))
    return items


def resolve_item(item: types.CompletionItem, kb: KnowledgeBase) -> types.CompletionItem:
    """Enrich *item* with Markdown documentation when it carries our marker."""
    data = item.data
    if not isinstance(data, dict):
        return item
    key = data.get(MARKER)
    if not isinstance(key, str):
        return item
    doc = kb.lookup(key)
    if doc is None:
        return item

    item.detail = doc
    item.documentation = types.MarkupContent(
        kind=types.MarkupKind.Markdown,
        value=f"`{key}`\n\n{doc}",
    )
    return item
