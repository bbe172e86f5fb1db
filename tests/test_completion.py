"""Unit tests for ies_ls.completion."""
from __future__ import annotations

from lsprotocol import types

from ies_ls.completion import MARKER, complete, make_item, resolve_item
from ies_ls.kb import KnowledgeBase

KB = KnowledgeBase((
    {"iso3166:GB": "UK", "ies:Person": "A human being."},
    {"iso3166:IE": "Ireland", "iso3166:GB": "Great Britain"},
))


def _labels(items):
    return [i.label for i in items]


def test_single_letter_prefix():
    items = complete("i", types.Position(line=0, character=1),
                     KnowledgeBase(({"iso3166:GB": "UK"},)))

    assert _labels(items) == ["iso3166:GB"]
    item = items[0]
    assert item.kind == types.CompletionItemKind.Text
    assert item.detail == "UK"
    assert item.documentation == "This item represents a iso3166:GB."
    assert item.insert_text == "iso3166:GB"
    assert item.data == {MARKER: "iso3166:GB"}


def test_kb_order_and_duplicates_kept():
    items = complete("data:A a I", types.Position(line=0, character=10), KB)
    assert _labels(items) == ["iso3166:GB", "ies:Person", "iso3166:IE", "iso3166:GB"]
    assert [i.detail for i in items][-1] == "Great Britain"


def test_only_text_before_cursor_counts():
    text = "data:A a ix"
    assert complete(text, types.Position(line=0, character=10), KB)
    assert complete(text, types.Position(line=0, character=11), KB) == []


def test_no_match():
    assert complete("data:A a ", types.Position(line=0, character=9), KB) == []


def test_cursor_on_other_line():
    text = "data:A a ies:Person .\ni"
    assert len(complete(text, types.Position(line=1, character=1), KB)) == 4


def test_empty_document():
    assert complete("", types.Position(line=0, character=0), KB) == []


def test_resolve_adds_markdown_documentation():
    item = resolve_item(make_item("iso3166:GB", "UK"), KB)

    assert item.detail == "UK"
    assert isinstance(item.documentation, types.MarkupContent)
    assert item.documentation.kind == types.MarkupKind.Markdown
    assert "`iso3166:GB`" in item.documentation.value
    assert "UK" in item.documentation.value


def test_resolve_leaves_foreign_items_alone():
    item = types.CompletionItem(label="Helloo", data=1)
    assert resolve_item(item, KB) is item
    assert item.detail is None


def test_resolve_unknown_key_unchanged():
    item = make_item("ies:Gone", "old docs")
    resolved = resolve_item(item, KB)
    assert resolved.documentation == "This item represents a ies:Gone."


def test_completion_line_lookup_ignores_unicode_separators():
    text = "# comment\u2028still comment\ni"
    assert len(complete(text, types.Position(line=1, character=1), KB)) == 4
