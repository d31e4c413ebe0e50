from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class GradeLine:
    """One graded course as the GPA roll-up sees it."""
    semester_id: Any
    grade_point: int
    credits: Optional[int]


def _q(d: Decimal) -> Decimal:
    return d.quantize(_CENT, rounding=ROUND_HALF_UP)


def _usable(lines: Iterable[GradeLine]) -> list[GradeLine]:
    # no resolvable credit value -> left out of numerator and denominator
    return [g for g in lines if g.credits and g.grade_point is not None]


def _sgpa(lines: list[GradeLine]) -> tuple[Decimal, int]:
    credits = sum(int(g.credits) for g in lines)
    if credits == 0:
        return Decimal(0), 0
    points = sum(int(g.grade_point) * int(g.credits) for g in lines)
    return _q(Decimal(points) / Decimal(credits)), credits


def calculate_sgpa(lines: Iterable[GradeLine]) -> float:
    sgpa, _ = _sgpa(_usable(lines))
    return float(sgpa)


def calculate_cgpa(lines: Iterable[GradeLine]) -> float:
    by_semester = defaultdict(list)
    for g in _usable(lines):
        by_semester[g.semester_id].append(g)

    weighted = Decimal(0)
    total_credits = 0
    for semester_lines in by_semester.values():
        sgpa, credits = _sgpa(semester_lines)
        weighted += sgpa * credits
        total_credits += credits

    if total_credits == 0:
        return 0.0
    return float(_q(weighted / Decimal(total_credits)))


def semester_breakdown(lines: Iterable[GradeLine]) -> dict:
    """{semester_id: {"sgpa", "credits"}} for every semester that has credits."""
    by_semester = defaultdict(list)
    for g in _usable(lines):
        by_semester[g.semester_id].append(g)
    out = {}
    for semester_id, semester_lines in by_semester.items():
        sgpa, credits = _sgpa(semester_lines)
        out[semester_id] = {"sgpa": float(sgpa), "credits": credits}
    return out
