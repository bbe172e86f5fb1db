"""ies_ls.config
~~~~~~~~~~~~~~
Process settings (knowledge-base sources, logging) and the logging setup.

Environment variables give the defaults, command-line flags override them::

    IES_LS_KB=~/vocab/ies4.ttl,https://example.org/extra.ttl
    IES_LS_NO_BUNDLED=1
    IES_LS_LOG_LEVEL=DEBUG
    IES_LS_LOG_FILE=/tmp/ies-ls.log      # empty → stderr only
    IES_LS_FETCH_TIMEOUT=5
"""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Mapping, Optional

__all__ = ["Settings", "configure_logging", "LOG_FORMAT", "DEFAULT_LOG_PATH"]

LOG_FORMAT = "%(levelname)s %(asctime)s [%(name)s] %(message)s"
DEFAULT_LOG_PATH = Path.home() / ".cache/ies-ls/server.log"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    kb_sources: List[str] = field(default_factory=list)
    include_bundled: bool = True
    log_level: str = "INFO"
    log_file: str = str(DEFAULT_LOG_PATH)
    fetch_timeout: float = 2.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        settings = cls()

        raw_kb = env.get("IES_LS_KB", "")
        if raw_kb:
            settings = replace(settings, kb_sources=_split_sources(raw_kb))
        if env.get("IES_LS_NO_BUNDLED", "").lower() in _TRUTHY:
            settings = replace(settings, include_bundled=False)
        if "IES_LS_LOG_LEVEL" in env:
            settings = replace(settings, log_level=env["IES_LS_LOG_LEVEL"].upper())
        if "IES_LS_LOG_FILE" in env:
            settings = replace(settings, log_file=env["IES_LS_LOG_FILE"])
        if "IES_LS_FETCH_TIMEOUT" in env:
            raw = env["IES_LS_FETCH_TIMEOUT"]
            try:
                timeout = float(raw)
            except ValueError:
                raise ValueError(f"IES_LS_FETCH_TIMEOUT must be a number, got {raw!r}") from None
            settings = replace(settings, fetch_timeout=timeout)
        return settings


def _split_sources(raw: str) -> List[str]:
    return [p.strip() for p in raw.split(",") if p.strip()]


def configure_logging(settings: Settings) -> None:
    """Log to ``settings.log_file`` and stderr; stdout carries the protocol."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_file:
        log_path = Path(settings.log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.insert(0, logging.FileHandler(log_path, mode="w", encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
