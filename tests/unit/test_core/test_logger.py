# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import json
import logging

import pytest
from terrasphere.core.logger import TRACE, JsonFormatter, Log


def _record(msg="hello", level=logging.INFO, ctx=None):
    rec = logging.LogRecord("terrasphere.test", level, __file__, 10, msg, (), None)
    if ctx is not None:
        rec.ctx = ctx
    return rec


@pytest.mark.unit
class TestLevels:
    @pytest.mark.parametrize(
        "verbose,quiet,level",
        [
            (0, 0, logging.INFO),
            (2, 0, logging.DEBUG),
            (3, 0, TRACE),
            (0, 1, logging.WARNING),
            (3, 2, logging.ERROR),
        ],
    )
    def test_flags(self, verbose, quiet, level):
        assert Log._level_from_flags(verbose, quiet) == level

    def test_setup_replaces_handlers(self, tmp_path):
        name = "terrasphere.test-setup"
        Log.setup(0, str(tmp_path / "x.log"), logger_name=name)
        logger = Log.setup(2, None, logger_name=name)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1


@pytest.mark.unit
class TestJsonFormatter:
    def test_ndjson_with_ctx(self):
        out = json.loads(JsonFormatter().format(_record(ctx={"server": "vc"})))
        assert out["msg"] == "hello"
        assert out["level"] == "INFO"
        assert out["ctx"] == {"server": "vc"}


@pytest.mark.unit
class TestHelpers:
    def test_bind_merges_context(self):
        log = Log.bind(logging.getLogger("terrasphere.test"), server="vc").bind(dc="DC1")
        msg, kwargs = log.process("x", {})
        assert kwargs["extra"]["ctx"] == {"server": "vc", "dc": "DC1"}

    def test_warn_once(self):
        logger = logging.getLogger("terrasphere.test-once")
        assert Log.warn_once(logger, "k-unique-1", "first") is True
        assert Log.warn_once(logger, "k-unique-1", "again") is False
