"""Unit tests for text fitting and wrapping."""

from __future__ import annotations

import pytest

from pdsflow_io.text_layout import ReportlabMetrics, fit_to_width, wrap


class CharMetrics:
    """Every character is ``size`` points wide."""

    def width(self, text: str, size: float) -> float:
        return len(text) * size


METRICS = CharMetrics()


def test_fit_to_width_keeps_longest_prefix() -> None:
    assert fit_to_width(METRICS, "abcdef", 1, 3) == "abc"
    assert fit_to_width(METRICS, "abc", 1, 10) == "abc"


def test_fit_to_width_handles_empty_and_zero_width() -> None:
    assert fit_to_width(METRICS, "", 7, 100) == ""
    assert fit_to_width(METRICS, "abc", 7, 0) == ""


@pytest.mark.parametrize("text", ["Dela Cruz", "Pamantasan ng Lungsod ng Maynila", "x" * 80])
def test_fit_to_width_is_bounded_and_idempotent(text: str) -> None:
    metrics = ReportlabMetrics()
    fitted = fit_to_width(metrics, text, 7, 60)
    assert metrics.width(fitted, 7) <= 60
    assert text.startswith(fitted)
    assert fit_to_width(metrics, fitted, 7, 60) == fitted


def test_wrap_greedy_lines_preserve_order() -> None:
    lines = wrap(METRICS, "aa bb cc dd", 1, 5)
    assert lines == ["aa bb", "cc dd"]
    for line in lines:
        assert METRICS.width(line, 1) <= 5


def test_wrap_drops_words_past_max_lines() -> None:
    lines = wrap(METRICS, "one two three four five", 1, 4, max_lines=2)
    assert lines == ["one", "two"]


def test_wrap_lets_long_word_overflow() -> None:
    lines = wrap(METRICS, "extraordinarily long", 1, 5)
    assert lines[0] == "extraordinarily"
    assert len(lines) == 2


def test_wrap_blank_text() -> None:
    assert wrap(METRICS, "   ", 1, 10) == []
