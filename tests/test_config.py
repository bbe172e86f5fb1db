"""Unit tests for ies_ls.config."""
from __future__ import annotations

import logging

import pytest

from ies_ls.config import DEFAULT_LOG_PATH, Settings, configure_logging


def test_defaults():
    s = Settings.from_env({})
    assert s.kb_sources == []
    assert s.include_bundled is True
    assert s.log_level == "INFO"
    assert s.log_file == str(DEFAULT_LOG_PATH)
    assert s.fetch_timeout == 2.0


def test_from_env():
    s = Settings.from_env({
        "IES_LS_KB": "~/vocab/ies4.ttl, https://example.org/extra.ttl,",
        "IES_LS_NO_BUNDLED": "yes",
        "IES_LS_LOG_LEVEL": "debug",
        "IES_LS_LOG_FILE": "",
        "IES_LS_FETCH_TIMEOUT": "5",
    })
    assert s.kb_sources == ["~/vocab/ies4.ttl", "https://example.org/extra.ttl"]
    assert s.include_bundled is False
    assert s.log_level == "DEBUG"
    assert s.log_file == ""
    assert s.fetch_timeout == 5.0


def test_bad_timeout_names_variable():
    with pytest.raises(ValueError, match="IES_LS_FETCH_TIMEOUT"):
        Settings.from_env({"IES_LS_FETCH_TIMEOUT": "soon"})


def test_configure_logging(tmp_path, monkeypatch):
    seen = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: seen.update(kw))
    log_file = tmp_path / "nested" / "server.log"

    configure_logging(Settings(log_file=str(log_file), log_level="debug"))

    assert log_file.parent.is_dir()
    assert seen["level"] == logging.DEBUG
    kinds = [type(h) for h in seen["handlers"]]
    assert kinds == [logging.FileHandler, logging.StreamHandler]
    for h in seen["handlers"]:
        h.close()


def test_configure_logging_stderr_only(monkeypatch):
    seen = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: seen.update(kw))

    configure_logging(Settings(log_file=""))

    assert [type(h) for h in seen["handlers"]] == [logging.StreamHandler]
    assert seen["level"] == logging.INFO
