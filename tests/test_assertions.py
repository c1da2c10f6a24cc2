"""
Unit tests for precondition checks.
"""

import logging

import pytest

from ringfifo.config import AssertMode
from ringfifo.core.assertions import PreconditionError, check_precondition


class TestCheckPrecondition:

    @pytest.mark.parametrize("mode", list(AssertMode))
    def test_holding_condition_passes(self, mode):
        assert check_precondition(True, "unused", mode=mode) is True

    def test_raise_mode(self):
        with pytest.raises(PreconditionError) as exc_info:
            check_precondition(False, "too big", mode=AssertMode.RAISE, operation="fill")
        assert str(exc_info.value) == "too big"
        assert exc_info.value.operation == "fill"

    def test_log_mode(self, caplog):
        with caplog.at_level(logging.ERROR):
            assert check_precondition(False, "empty", mode=AssertMode.LOG, operation="pop") is False
        assert "Precondition failed in pop: empty" in caplog.text

    def test_off_mode_is_silent(self, caplog):
        with caplog.at_level(logging.DEBUG):
            assert check_precondition(False, "empty", mode=AssertMode.OFF) is False
        assert caplog.records == []
