from __future__ import annotations

import random

from posturai.logic.accumulator import SessionAccumulator, accuracy_percent
from posturai.utils.structures import SessionStats


def test_initial_stats():
    assert SessionAccumulator().stats == SessionStats(0, 0, 100)
    assert accuracy_percent(0, 0) == 100


def test_record_counts_violating_frames():
    acc = SessionAccumulator()
    acc.record(False)
    acc.record(True)
    stats = acc.record(True)
    assert stats == SessionStats(total_frames=3, violating_frames=2, accuracy_percent=33)


def test_accuracy_rounds_half_up():
    assert accuracy_percent(8, 3) == 63
    assert accuracy_percent(3, 1) == 67


def test_accuracy_stays_in_range():
    rng = random.Random(7)
    acc = SessionAccumulator()
    for _ in range(500):
        stats = acc.record(rng.random() < 0.4)
        assert 0 <= stats.accuracy_percent <= 100
    assert acc.record(True).total_frames == 501


def test_reset_is_idempotent():
    acc = SessionAccumulator()
    for flag in (True, False, True):
        acc.record(flag)
    acc.reset()
    once = acc.stats
    acc.reset()
    assert acc.stats == once == SessionStats(0, 0, 100)
