import random

from portal.utils.gpa import GradeLine, calculate_cgpa, calculate_sgpa, semester_breakdown


LINES = [
    GradeLine(semester_id=1, grade_point=10, credits=4),
    GradeLine(semester_id=1, grade_point=8, credits=3),
    GradeLine(semester_id=2, grade_point=6, credits=4),
]


def test_sgpa_is_credit_weighted():
    # (40 + 24) / 7
    assert calculate_sgpa(LINES[:2]) == 9.14


def test_cgpa_weights_each_semester_by_its_credits():
    # (9.14 * 7 + 6.00 * 4) / 11
    assert calculate_cgpa(LINES) == 8.0


def test_order_does_not_matter():
    shuffled = LINES * 3
    expected = calculate_cgpa(shuffled)
    rng = random.Random(7)
    for _ in range(20):
        rng.shuffle(shuffled)
        assert calculate_cgpa(shuffled) == expected
        assert calculate_sgpa(shuffled) == calculate_sgpa(sorted(shuffled, key=lambda g: g.grade_point))


def test_lines_without_credits_are_left_out():
    lines = LINES + [GradeLine(semester_id=1, grade_point=0, credits=None), GradeLine(semester_id=3, grade_point=0, credits=0)]
    assert calculate_cgpa(lines) == calculate_cgpa(LINES)
    assert 3 not in semester_breakdown(lines)


def test_empty_is_zero():
    assert calculate_sgpa([]) == 0.0
    assert calculate_cgpa([]) == 0.0


def test_semester_breakdown():
    assert semester_breakdown(LINES) == {
        1: {"sgpa": 9.14, "credits": 7},
        2: {"sgpa": 6.0, "credits": 4},
    }
