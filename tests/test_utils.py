"""
Tests for the run-id logging helpers.
"""

import logging

from quantgrid.utils import generate_run_id, get_logger, log_structured


class TestRunId:
    def test_length_and_hex(self):
        run_id = generate_run_id()
        assert len(run_id) == 8
        int(run_id, 16)

    def test_ids_differ(self):
        assert generate_run_id() != generate_run_id()


class TestLogStructured:
    def test_format(self, caplog):
        logger = get_logger("quantgrid.test_utils")
        with caplog.at_level(logging.INFO, logger="quantgrid.test_utils"):
            log_structured(logger, logging.INFO, "Optimizer finished", "3f9c2a1b", agents=162, best="SMA(10/50)")
        assert caplog.messages == ["[3f9c2a1b] Optimizer finished | agents=162 best=SMA(10/50)"]

    def test_none_fields_dropped(self, caplog):
        logger = get_logger("quantgrid.test_utils")
        with caplog.at_level(logging.INFO, logger="quantgrid.test_utils"):
            log_structured(logger, logging.INFO, "Optimizer started", "abc", bars=None)
        assert caplog.messages == ["[abc] Optimizer started"]

    def test_below_level_not_emitted(self, caplog):
        logger = get_logger("quantgrid.test_utils")
        with caplog.at_level(logging.INFO, logger="quantgrid.test_utils"):
            log_structured(logger, logging.DEBUG, "Grid cell done", "abc", score="0.1")
        assert caplog.messages == []
