"""ies_ls.server
~~~~~~~~~~~~~~
Language server for IES-style triple files that provides
* Error diagnostics for lines not ending in ``.``, ``,`` or ``;``
* hover: the class of an instance, or knowledge-base documentation
* completion of knowledge-base names (triggered by ``i``/``I``) with a
  resolve step that attaches Markdown documentation
"""
from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from . import __version__
from .completion import complete, resolve_item
from .config import Settings, configure_logging
from .hover import resolve as resolve_hover
from .kb import KnowledgeBase, load as load_kb
from .store import DocumentStore

log = logging.getLogger("ies_ls.server")

# ---------------------------------------------------------------------------
# Language‑server class
# ---------------------------------------------------------------------------

class IesLanguageServer(LanguageServer):
    """One server per editor client; owns the document store and the KB."""

    def __init__(self, kb: Optional[KnowledgeBase] = None) -> None:
        super().__init__(
            "ies-ls",
            __version__,
            text_document_sync_kind=types.TextDocumentSyncKind.Full,
        )
        self.documents = DocumentStore()
        self.kb = kb if kb is not None else KnowledgeBase()


ls = IesLanguageServer()

# ---------------------------------------------------------------------------
# INITIALIZE
# ---------------------------------------------------------------------------

def _apply_log_level(raw: Optional[str]) -> None:
    if not raw:
        return
    level = logging.getLevelName(str(raw).upper())
    if not isinstance(level, int):
        log.warning("initialize: unknown logLevel %r ignored", raw)
        return
    logging.getLogger().setLevel(level)


@ls.feature(types.INITIALIZE)
def on_initialize(ls: IesLanguageServer, params: types.InitializeParams):
    log.info("initialize: client %s, %d knowledge-base records",
             params.client_info, len(ls.kb))
    opts = params.initialization_options
    if isinstance(opts, dict):
        _apply_log_level(opts.get("logLevel"))

# ---------------------------------------------------------------------------
# Document lifecycle helpers
# ---------------------------------------------------------------------------

def _publish_diagnostics(ls: IesLanguageServer, uri: str,
                         diags: Iterable[types.Diagnostic],
                         version: Optional[int] = None) -> None:
    diags = list(diags)
    log.debug("publish %s → %d diagnostics", uri, len(diags))
    ls.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=uri, diagnostics=diags, version=version)
    )


def _index_and_store(ls: IesLanguageServer, uri: str, text: str,
                     version: Optional[int] = None) -> None:
    """(Re)build the snapshot for *uri* and push its diagnostics."""
    snapshot = ls.documents.update(uri, text, version)
    _publish_diagnostics(ls, uri, snapshot.diagnostics, version)

# didOpen --------------------------------------------------------------------

@ls.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: IesLanguageServer, params: types.DidOpenTextDocumentParams):
    td = params.text_document
    _index_and_store(ls, td.uri, td.text, td.version)

# didChange ------------------------------------------------------------------

@ls.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: IesLanguageServer, params: types.DidChangeTextDocumentParams):
    uri = params.text_document.uri
    full_text = ls.workspace.get_text_document(uri).source
    _index_and_store(ls, uri, full_text, params.text_document.version)

# didClose -------------------------------------------------------------------

@ls.feature(types.TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: IesLanguageServer, params: types.DidCloseTextDocumentParams):
    uri = params.text_document.uri
    ls.documents.remove(uri)
    _publish_diagnostics(ls, uri, [])

# ---------------------------------------------------------------------------
# HOVER
# ---------------------------------------------------------------------------

@ls.feature(types.TEXT_DOCUMENT_HOVER)
def hover(ls: IesLanguageServer, params: types.HoverParams) -> Optional[types.Hover]:
    uri = params.text_document.uri
    snapshot = ls.documents.get(uri)
    if snapshot is None:
        log.debug("hover: %s not indexed", uri)
        return None

    outcome = resolve_hover(snapshot.text, snapshot.instances, ls.kb, params.position)
    ls.documents.apply_patch(uri, outcome.patch)

    result = outcome.result
    if result is None:
        return None
    log.debug("hover: %s at %s → %r", result.token.text, params.position, result.contents)

    line = params.position.line
    return types.Hover(
        contents=types.MarkupContent(kind=types.MarkupKind.Markdown, value=result.contents),
        range=types.Range(
            start=types.Position(line=line, character=result.token.start),
            end=types.Position(line=line, character=result.token.end),
        ),
    )

# ---------------------------------------------------------------------------
# COMPLETION
# ---------------------------------------------------------------------------

@ls.feature(
    types.TEXT_DOCUMENT_COMPLETION,
    types.CompletionOptions(trigger_characters=["i", "I"], resolve_provider=True),
)
def completion(ls: IesLanguageServer, params: types.CompletionParams) -> types.CompletionList:
    snapshot = ls.documents.get(params.text_document.uri)
    items: List[types.CompletionItem] = []
    if snapshot is None:
        log.debug("completion: %s not indexed", params.text_document.uri)
    else:
        items = complete(snapshot.text, params.position, ls.kb)
    return types.CompletionList(is_incomplete=False, items=items)


@ls.feature(types.COMPLETION_ITEM_RESOLVE)
def completion_resolve(ls: IesLanguageServer, item: types.CompletionItem) -> types.CompletionItem:
    return resolve_item(item, ls.kb)

# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ies-ls", description="IES triple language server (stdio)")
    parser.add_argument("--kb", action="append", default=None, metavar="SOURCE",
                        help="knowledge-base file or URL; repeatable, appended in order")
    parser.add_argument("--no-bundled", action="store_true",
                        help="do not load the bundled records.json")
    parser.add_argument("--log-level", default=None)
    parser.add_argument("--log-file", default=None,
                        help="log file path; empty string logs to stderr only")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_settings(argv: Optional[Sequence[str]] = None) -> Settings:
    args = _parse_args(argv)
    settings = Settings.from_env()
    if args.kb:
        settings = replace(settings, kb_sources=list(args.kb))
    if args.no_bundled:
        settings = replace(settings, include_bundled=False)
    if args.log_level:
        settings = replace(settings, log_level=args.log_level.upper())
    if args.log_file is not None:
        settings = replace(settings, log_file=args.log_file)
    return settings


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Run the language server on stdio."""
    settings = build_settings(argv)
    configure_logging(settings)
    ls.kb = load_kb(settings)
    ls.start_io()


if __name__ == "__main__":
    main()
