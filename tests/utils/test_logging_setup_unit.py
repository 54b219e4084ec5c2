#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging


def test_add_common_args_defaults():
    from src.utils.common import add_common_args

    parser = argparse.ArgumentParser()
    add_common_args(parser)
    args = parser.parse_args([])

    assert args.log_level == "INFO"
    assert args.log_file is None


def test_setup_logging_writes_to_explicit_file(tmp_path):
    from src.utils.common import setup_logging

    log_file = tmp_path / "nested" / "run.log"
    setup_logging("DEBUG", str(log_file))
    logging.getLogger("advisories.test").debug("hello")

    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "hello" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_defaults_to_logs_dir(tmp_path, monkeypatch):
    from src.utils.common import setup_logging

    monkeypatch.chdir(tmp_path)
    setup_logging(logging.WARNING)

    assert (tmp_path / "logs" / "advisory-feed.log").exists()
    assert logging.getLogger().level == logging.WARNING


def test_setup_logging_unknown_level_falls_back_to_info(tmp_path):
    from src.utils.common import setup_logging

    setup_logging("chatty", str(tmp_path / "x.log"))
    assert logging.getLogger().level == logging.INFO
