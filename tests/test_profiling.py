"""Tests for tplchain.profiling."""

from __future__ import annotations

import pytest

from tplchain.profiling import Stopwatch


class TestStopwatch:
    def test_start_stop_records_event(self):
        sw = Stopwatch()
        sw.start("render", "Templating")
        assert sw.is_started("render")
        event = sw.stop("render")
        assert event.name == "render"
        assert event.category == "Templating"
        assert event.duration >= 0
        assert sw.events == [event]
        assert not sw.is_started("render")

    def test_stop_without_start_raises(self):
        sw = Stopwatch()
        with pytest.raises(KeyError, match="not started"):
            sw.stop("missing")

    def test_overlapping_spans_with_same_name(self):
        sw = Stopwatch()
        sw.start("render")
        sw.start("render")
        sw.stop("render")
        assert sw.is_started("render")
        sw.stop("render")
        assert not sw.is_started("render")
        assert len(sw.events) == 2

    def test_reset(self):
        sw = Stopwatch()
        sw.start("a")
        sw.stop("a")
        sw.start("b")
        sw.reset()
        assert sw.events == []
        assert not sw.is_started("b")
