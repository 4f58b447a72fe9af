"""Tests for _types module."""
import pytest

from tapengine._types import ManualClock, compare, system_clock


def test_manual_clock():
    clock = ManualClock(1000)
    assert clock() == 1000
    assert clock.advance(1.5) == 2500
    assert clock() == 2500


def test_system_clock_is_epoch_ms():
    assert system_clock() > 1_600_000_000_000


def test_compare_ops():
    assert compare(5, ">=", 5)
    assert compare(5, "<=", 5)
    assert compare(6, ">", 5)
    assert compare(4, "<", 5)
    assert compare(5, "==", 5)
    assert compare(5, "!=", 4)
    assert not compare(4, ">=", 5)


def test_compare_invalid_op():
    with pytest.raises(ValueError, match="Unknown operator"):
        compare(1, "<>", 2)
