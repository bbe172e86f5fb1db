"""ies_ls.remote
~~~~~~~~~~~~~~
Fetches remote RDF vocabularies over HTTP so their term documentation can be
added to the knowledge base.

Usage (from kb.py, once at startup)::

    records = asyncio.run(fetch_all(["https://example.org/ies4.ttl"]))

A failed fetch never raises – it just contributes an empty record.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Sequence

import aiohttp

from .kb import KnowledgeBaseError, load_vocabulary

__all__ = ["fetch_records", "fetch_all"]

log = logging.getLogger("ies_ls.remote")

_ACCEPT_HDR = (
    "text/turtle, application/rdf+xml; q=0.9, */*; q=0.1"
)
_TIMEOUT = 2.0  # seconds

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def fetch_all(urls: Sequence[str], timeout: float = _TIMEOUT) -> List[Dict[str, str]]:
    """Fetch every URL concurrently; results keep the input order."""
    return list(await asyncio.gather(*(fetch_records(u, timeout) for u in urls)))


async def fetch_records(url: str, timeout: float = _TIMEOUT) -> Dict[str, str]:
    """Return ``{name: documentation}`` for one vocabulary URL, or {} on failure."""

    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with aiohttp.ClientSession(timeout=client_timeout) as session:
        try:
            async with session.get(url, headers={"Accept": _ACCEPT_HDR}) as resp:
                if resp.status >= 400:
                    log.debug("HTTP %s on %s", resp.status, url)
                    return {}
                data = await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            log.debug("HTTP error on %s – %s", url, exc)
            return {}

    try:
        return load_vocabulary(data, format="turtle")
    except KnowledgeBaseError:
        try:
            return load_vocabulary(data, format="xml")
        except KnowledgeBaseError as exc:
            log.debug("vocabulary parse failed for %s – %s", url, exc)
            return {}
