"""ies_ls.hover
~~~~~~~~~~~~~
Works out what the token under the cursor *is* and what to show for it.

Only the cursor's line is looked at.  The line is classified once into the
shapes it matches, in precedence order::

    Declaration          data:A a ies:Person .
    PredicateObject      data:A ies:isPartOf data:B ;
    StandaloneReference      ies:isPartOf data:B .
    LiteralAssignment    data:A ies:hasName "Alice" .
    Unmatched            (always last: plain knowledge-base lookup)

Each shape gets a chance to explain the hovered token; the first one that
produces text wins.  :func:`resolve` is pure – a Declaration line also yields
an ``{instance: class}`` *patch* the caller applies to its instance index, so
the index heals itself before the next full rebuild.
"""
from __future__ import annotations

import re
from collections import ChainMap
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

from lsprotocol import types

from .indexer import AFTER, BEFORE, DECLARATION_RE, QNAME, TERMINATORS, split_lines
from .kb import KnowledgeBase

__all__ = [
    "Token",
    "Declaration",
    "PredicateObject",
    "StandaloneReference",
    "LiteralAssignment",
    "Unmatched",
    "HoverResult",
    "HoverOutcome",
    "token_at",
    "classify",
    "resolve",
]

# ---------------------------------------------------------------------------
# Line shapes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Declaration:
    instance: str
    cls: str


@dataclass(frozen=True)
class PredicateObject:
    subject: str
    predicate: str
    obj: str


@dataclass(frozen=True)
class StandaloneReference:
    entity: str


@dataclass(frozen=True)
class LiteralAssignment:
    instance: str
    predicate: str


@dataclass(frozen=True)
class Unmatched:
    pass


Shape = Union[Declaration, PredicateObject, StandaloneReference, LiteralAssignment, Unmatched]

_PREDICATE_OBJECT_RE = re.compile(
    rf"{BEFORE}(?P<subject>{QNAME})\s+(?P<predicate>{QNAME})\s+(?P<obj>{QNAME}){AFTER}"
)
# the last token on the line, e.g. an object-list continuation "    ies:isPartOf data:B ."
_STANDALONE_RE = re.compile(rf"{BEFORE}(?P<entity>{QNAME})\s*[.;,]?\s*$")
# "literal", "literal"@en, "literal"^^xsd:string
_LITERAL_RE = re.compile(
    rf"{BEFORE}(?P<instance>{QNAME})\s+(?P<predicate>{QNAME})\s+"
    r'"[^"]*"(?:@[\w\-]+|\^\^\S+?)?\s*[.;,]?\s*$'
)

_WORD_RE = re.compile(r"\S+")

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Token:
    """A whitespace-delimited word; ``text`` has trailing terminators removed."""

    text: str
    start: int
    end: int


@dataclass(frozen=True)
class HoverResult:
    contents: str
    token: Token


@dataclass(frozen=True)
class HoverOutcome:
    result: Optional[HoverResult] = None
    patch: Dict[str, str] = field(default_factory=dict)

# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------

def token_at(line: str, character: int) -> Optional[Token]:
    """Return the word whose span contains *character* (end inclusive).

    When the cursor sits between two adjacent spans the earlier word wins.
    """
    for m in _WORD_RE.finditer(line):
        if m.start() <= character <= m.end():
            word = m.group(0)
            return Token(word.rstrip(TERMINATORS) or word, m.start(), m.end())
    return None


def classify(line: str) -> List[Shape]:
    """Every shape *line* matches, in precedence order, ending with Unmatched."""
    shapes: List[Shape] = []

    m = DECLARATION_RE.search(line)
    if m:
        shapes.append(Declaration(m.group("instance"), m.group("cls")))
    m = _PREDICATE_OBJECT_RE.search(line)
    if m:
        shapes.append(PredicateObject(m.group("subject"), m.group("predicate"), m.group("obj")))
    m = _STANDALONE_RE.search(line)
    if m:
        shapes.append(StandaloneReference(m.group("entity")))
    m = _LITERAL_RE.search(line)
    if m:
        shapes.append(LiteralAssignment(m.group("instance"), m.group("predicate")))

    shapes.append(Unmatched())
    return shapes


def _explain(shape: Shape, word: str, instances: Mapping[str, str],
             kb: KnowledgeBase) -> Optional[str]:
    if isinstance(shape, Declaration):
        if word == shape.cls:
            return kb.lookup(shape.cls)
        if word == shape.instance:
            return shape.cls
        return None

    if isinstance(shape, PredicateObject):
        if word == shape.obj:
            return instances.get(shape.obj)
        if word == shape.predicate:
            return kb.lookup(shape.predicate)
        if word == shape.subject:
            return instances.get(shape.subject)
        return None

    if isinstance(shape, StandaloneReference):
        if word == shape.entity:
            return instances.get(shape.entity) or kb.lookup(shape.entity)
        return None

    if isinstance(shape, LiteralAssignment):
        if word == shape.instance:
            return instances.get(shape.instance)
        return None

    return kb.lookup(word)

# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def resolve(text: str, instances: Mapping[str, str], kb: KnowledgeBase,
            position: types.Position) -> HoverOutcome:
    """Explain the token at *position*; never raises.

    The returned patch is non-empty whenever the cursor line declares an
    instance, even if nothing is shown for the hovered word.
    """
    lines = split_lines(text)
    if not 0 <= position.line < len(lines):
        return HoverOutcome()
    line = lines[position.line]

    token = token_at(line, position.character)
    if token is None:
        return HoverOutcome()

    shapes = classify(line)
    patch = {s.instance: s.cls for s in shapes if isinstance(s, Declaration)}
    view = ChainMap(patch, instances)

    for shape in shapes:
        contents = _explain(shape, token.text, view, kb)
        if contents:
            return HoverOutcome(HoverResult(contents, token), patch)
    return HoverOutcome(None, patch)
