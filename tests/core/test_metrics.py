"""
Tests for the bounded MetricsRecorder history.
"""

import pytest

from techdebtsim.sim_manager.core import MetricsRecorder


def _snapshot(reputation=0.0, users=1000, revenue=100.0, quality=50.0, satisfaction=80.0):
    return {
        "product": {"reputation": reputation, "user_count": users, "revenue": revenue},
        "codebase": {"code_quality": quality},
        "team": {"average_satisfaction": satisfaction},
    }


def test_history_is_bounded():
    recorder = MetricsRecorder(maxlen=3)
    for step in range(5):
        recorder.append({"step": step})
    assert len(recorder) == 3
    assert [entry["step"] for entry in recorder.list()] == [2, 3, 4]


def test_list_limit_returns_newest():
    recorder = MetricsRecorder()
    for step in range(4):
        recorder.append({"step": step})
    assert [entry["step"] for entry in recorder.list(limit=2)] == [2, 3]
    assert len(recorder.list(limit=0)) == 4


def test_maxlen_floor():
    assert MetricsRecorder(maxlen=0).maxlen == 1


def test_summary_empty_is_none():
    assert MetricsRecorder().summarize() is None


def test_summary_single_snapshot_has_no_growth():
    recorder = MetricsRecorder()
    recorder.append(_snapshot(reputation=4))
    summary = recorder.summarize()
    assert summary["user_growth_rate"] == 0
    assert summary["average_reputation"] == 4


def test_summary_window_and_cumulative_revenue():
    recorder = MetricsRecorder()
    for index in range(12):
        recorder.append(_snapshot(reputation=index, users=1000 + index * 10, revenue=100.0))

    summary = recorder.summarize(window=10)

    # window covers indexes 2..11
    assert summary["average_reputation"] == pytest.approx(6.5)
    assert summary["user_growth_rate"] == pytest.approx((1110 - 1020) / 10)
    assert summary["average_code_quality"] == 50
    assert summary["average_satisfaction"] == 80
    assert summary["total_revenue"] == pytest.approx(1200)


def test_clear():
    recorder = MetricsRecorder()
    recorder.append(_snapshot())
    recorder.clear()
    assert len(recorder) == 0
