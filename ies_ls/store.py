"""ies_ls.store
~~~~~~~~~~~~~
Per-document state for the server.

Each open document is held as an immutable :class:`DocumentSnapshot`
(text, instance index, diagnostics).  Every change replaces the snapshot
wholesale; nothing is patched in place, so a reader holding a snapshot
always sees a consistent triple.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple

from lsprotocol import types

from .indexer import index
from .validator import validate

__all__ = ["DocumentSnapshot", "DocumentStore"]

log = logging.getLogger("ies_ls.store")


@dataclass(frozen=True)
class DocumentSnapshot:
    uri: str
    text: str
    instances: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    diagnostics: Tuple[types.Diagnostic, ...] = ()
    version: Optional[int] = None


class DocumentStore:
    """``uri → DocumentSnapshot``; writers are serialized by one lock."""

    def __init__(self) -> None:
        self._docs: Dict[str, DocumentSnapshot] = {}
        self._lock = threading.Lock()

    def __contains__(self, uri: object) -> bool:
        return uri in self._docs

    def __len__(self) -> int:
        return len(self._docs)

    def uris(self) -> Iterator[str]:
        return iter(list(self._docs))

    def get(self, uri: str) -> Optional[DocumentSnapshot]:
        return self._docs.get(uri)

    def update(self, uri: str, text: str, version: Optional[int] = None) -> DocumentSnapshot:
        """Re-validate and re-index *text* and make it the current snapshot."""
        snapshot = DocumentSnapshot(
            uri=uri,
            text=text,
            instances=MappingProxyType(index(text)),
            diagnostics=tuple(validate(text)),
            version=version,
        )
        with self._lock:
            self._docs[uri] = snapshot
        log.debug("indexed %s: %d instances, %d diagnostics",
                  uri, len(snapshot.instances), len(snapshot.diagnostics))
        return snapshot

    def apply_patch(self, uri: str, patch: Mapping[str, str]) -> Optional[DocumentSnapshot]:
        """Merge *patch* into the instance index of *uri* (new snapshot)."""
        if not patch:
            return self._docs.get(uri)
        with self._lock:
            current = self._docs.get(uri)
            if current is None:
                return None
            if all(current.instances.get(k) == v for k, v in patch.items()):
                return current
            merged = dict(current.instances)
            merged.update(patch)
            current = replace(current, instances=MappingProxyType(merged))
            self._docs[uri] = current
        log.debug("patched %s: %s", uri, dict(patch))
        return current

    def remove(self, uri: str) -> Optional[DocumentSnapshot]:
        with self._lock:
            return self._docs.pop(uri, None)
