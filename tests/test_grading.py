from itertools import permutations
from types import SimpleNamespace

import pytest

from portal.utils.grading import aggregate_components, is_fully_recorded, letter_for, round2


def comp(name, weight, score, max_score=100):
    return SimpleNamespace(name=name, weight=weight, score=score, max_score=max_score)


@pytest.mark.parametrize(
    "total, expected",
    [
        (100, ("A+", 10)),
        (90, ("A+", 10)),
        (89.99, ("A", 9)),
        (85, ("A", 9)),
        (75, ("B+", 7)),
        (50, ("C-", 2)),
        (40, ("D", 1)),
        (39.99, ("F", 0)),
        (0, ("F", 0)),
    ],
)
def test_letter_boundaries(total, expected):
    assert letter_for(total) == expected


def test_full_record_weighted_total():
    summary = aggregate_components([
        comp("midterm", 30, 80),
        comp("final", 50, 90),
        comp("assignment", 20, 18, max_score=20),
    ])
    # 24 + 45 + 18
    assert summary.total_score == 87.0
    assert (summary.grade, summary.grade_point) == ("A", 9)


def test_component_order_does_not_change_total():
    items = [
        comp("midterm", 25, 71.3),
        comp("final", 40, 66.6),
        comp("quiz", 10, 7, max_score=9),
        comp("attendance", 25, 19, max_score=23),
    ]
    totals = {aggregate_components(list(p)).total_score for p in permutations(items)}
    assert len(totals) == 1


def test_partial_record_is_not_normalized():
    summary = aggregate_components([comp("midterm", 30, 100), comp("final", 70, None)])
    assert summary.total_score == 30.0
    assert summary.grade == "F"


def test_nothing_recorded_is_zero_f():
    summary = aggregate_components([])
    assert summary.total_score == 0.0
    assert (summary.grade, summary.grade_point) == ("F", 0)

    summary = aggregate_components([comp("final", 100, None)])
    assert summary.total_score == 0.0


def test_zero_max_score_is_skipped():
    summary = aggregate_components([comp("quiz", 20, 5, max_score=0), comp("final", 80, 50)])
    assert summary.total_score == 40.0


def test_round_half_up():
    assert round2(12.345) == 12.35
    assert round2(2.675) == 2.68
    assert aggregate_components([comp("final", 100, 12.345)]).total_score == 12.35


def test_is_fully_recorded():
    assert not is_fully_recorded([])
    assert not is_fully_recorded([comp("midterm", 30, 10), comp("final", 70, None)])
    assert is_fully_recorded([comp("midterm", 30, 10), comp("final", 70, 0)])
