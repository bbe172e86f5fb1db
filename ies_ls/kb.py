"""ies_ls.kb
~~~~~~~~~
Read-only *knowledge base* of entity documentation.

The knowledge base is an **ordered sequence of small records** (``{name:
documentation}``), not one flat map: the same name may appear in several
records and the first record in sequence order wins on lookup, while
completion lists every entry, duplicates included.

Records come from three kinds of source:

* JSON files – a top-level array of flat string→string objects
  (the bundled ``records.json`` is one of these);
* RDF vocabularies (Turtle, RDF/XML) – parsed with rdflib, one record per
  vocabulary, keyed by ``prefix:local`` names;
* remote vocabularies – fetched over HTTP by :mod:`ies_ls.remote`.
"""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from rdflib import Graph, URIRef
from rdflib.namespace import RDFS, SKOS

from .config import Settings

__all__ = [
    "KnowledgeBase",
    "KnowledgeBaseError",
    "load",
    "load_bundled",
    "load_records",
    "load_vocabulary",
]

log = logging.getLogger("ies_ls.kb")

BUNDLED = "records.json"

# Preference order for the documentation text of a vocabulary term.
_DOC_PREDICATES = (SKOS.definition, RDFS.comment, SKOS.prefLabel)

_RDF_FORMATS = {
    ".ttl": "turtle",
    ".n3": "n3",
    ".nt": "nt",
    ".rdf": "xml",
    ".owl": "xml",
    ".xml": "xml",
    ".jsonld": "json-ld",
}


class KnowledgeBaseError(Exception):
    """A knowledge-base resource could not be read."""


# ---------------------------------------------------------------------------
# Public data container
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class KnowledgeBase:
    records: Tuple[Mapping[str, str], ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.records)

    def lookup(self, name: str) -> Optional[str]:
        """Documentation of *name* from the first record that has it."""
        for record in self.records:
            doc = record.get(name)
            if doc:
                return doc
        return None

    def entries(self) -> Iterator[Tuple[str, str]]:
        """Every ``(name, documentation)`` pair in record order."""
        for record in self.records:
            yield from record.items()

    def extend(self, records: Iterable[Mapping[str, str]]) -> "KnowledgeBase":
        return KnowledgeBase(self.records + tuple(dict(r) for r in records))


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def _parse_records(data: str, origin: str) -> List[Dict[str, str]]:
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise KnowledgeBaseError(f"{origin}: invalid JSON ({exc})") from exc
    if not isinstance(payload, list):
        raise KnowledgeBaseError(f"{origin}: expected an array of records")

    records: List[Dict[str, str]] = []
    for pos, item in enumerate(payload):
        if not isinstance(item, dict):
            log.warning("%s: record %d is not an object – skipped", origin, pos)
            continue
        record: Dict[str, str] = {}
        for key, value in item.items():
            if isinstance(value, str):
                record[key] = value
            else:
                log.warning("%s: %r has non-string documentation – skipped", origin, key)
        records.append(record)
    return records


def load_records(path: Path) -> List[Dict[str, str]]:
    """Read a JSON array of flat ``{name: documentation}`` objects."""
    return _parse_records(Path(path).read_text(encoding="utf-8"), str(path))


def load_bundled() -> List[Dict[str, str]]:
    data = resources.files("ies_ls").joinpath(BUNDLED).read_text(encoding="utf-8")
    return _parse_records(data, BUNDLED)


def load_vocabulary(data: str, format: str = "turtle") -> Dict[str, str]:
    """Parse an RDF vocabulary and return one record for its documented terms.

    Each subject IRI gets the first of ``skos:definition``, ``rdfs:comment``,
    ``skos:prefLabel`` it carries, keyed by its ``prefix:local`` name when the
    vocabulary binds a prefix for it, by the absolute IRI otherwise.
    """
    g = Graph(bind_namespaces="none")
    try:
        g.parse(data=data, format=format)
    except Exception as exc:  # rdflib raises a zoo of parser errors
        raise KnowledgeBaseError(f"cannot parse vocabulary as {format}: {exc}") from exc

    # longest namespace first so nested vocabularies compact correctly
    bound = {str(ns): prefix for prefix, ns in g.namespaces() if prefix}
    declared = sorted(bound.items(), key=lambda kv: -len(kv[0]))

    record: Dict[str, str] = {}
    for subject in sorted(set(g.subjects()), key=str):
        if not isinstance(subject, URIRef):
            continue
        for pred in _DOC_PREDICATES:
            doc = g.value(subject, pred)
            if doc is not None:
                record[_compact(str(subject), declared)] = str(doc)
                break
    return record


def _compact(iri: str, declared: List[Tuple[str, str]]) -> str:
    for ns, prefix in declared:
        if iri.startswith(ns) and len(iri) > len(ns):
            return f"{prefix}:{iri[len(ns):]}"
    return iri


def _load_file(source: str) -> List[Dict[str, str]]:
    path = Path(source).expanduser()
    if path.suffix.lower() == ".json":
        return load_records(path)
    fmt = _RDF_FORMATS.get(path.suffix.lower(), "turtle")
    return [load_vocabulary(path.read_text(encoding="utf-8"), fmt)]


def _is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load(settings: Settings) -> KnowledgeBase:
    """Build the process-wide knowledge base once, at startup.

    Sources failing to load are logged and skipped.
    """
    from .remote import fetch_all

    records: List[Dict[str, str]] = []
    if settings.include_bundled:
        records.extend(load_bundled())

    remote = [s for s in settings.kb_sources if _is_remote(s)]
    fetched: Dict[str, Dict[str, str]] = {}
    if remote:
        results = asyncio.run(fetch_all(remote, timeout=settings.fetch_timeout))
        fetched = dict(zip(remote, results))

    for source in settings.kb_sources:
        if _is_remote(source):
            record = fetched.get(source)
            if record:
                records.append(record)
            else:
                log.warning("knowledge base %s: nothing fetched – skipped", source)
            continue
        try:
            records.extend(_load_file(source))
        except (KnowledgeBaseError, OSError, ValueError) as exc:
            log.warning("knowledge base %s skipped: %s", source, exc)

    kb = KnowledgeBase(tuple(records))
    log.info("knowledge base ready: %d records, %d entries",
             len(kb), sum(1 for _ in kb.entries()))
    return kb
