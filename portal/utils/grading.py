from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from fractions import Fraction
from typing import Iterable, Union

Number = Union[int, float, Decimal, Fraction]

COMPONENT_NAMES = ("midterm", "final", "practical", "quiz", "assignment", "project", "attendance")

# inclusive lower bounds, highest first
GRADE_SCALE = (
    (90, "A+", 10),
    (85, "A", 9),
    (80, "A-", 8),
    (75, "B+", 7),
    (70, "B", 6),
    (65, "B-", 5),
    (60, "C+", 4),
    (55, "C", 3),
    (50, "C-", 2),
    (40, "D", 1),
)
FAIL = ("F", 0)

_CENT = Decimal("0.01")


def _exact(v: Number) -> Fraction:
    # str() keeps 89.99 as 89.99 instead of its binary expansion
    if isinstance(v, float):
        return Fraction(str(v))
    return Fraction(v)


def round2(v: Number) -> float:
    """Two-decimal round-half-up."""
    f = _exact(v)
    d = Decimal(f.numerator) / Decimal(f.denominator)
    return float(d.quantize(_CENT, rounding=ROUND_HALF_UP))


def letter_for(total_score: Number) -> tuple[str, int]:
    """Map a 0-100 total to (letter, grade point)."""
    score = _exact(total_score)
    for lower, letter, point in GRADE_SCALE:
        if score >= lower:
            return letter, point
    return FAIL


@dataclass(frozen=True)
class ScoreSummary:
    total_score: float
    grade: str
    grade_point: int


def _recorded(component) -> bool:
    score = getattr(component, "score", None)
    max_score = getattr(component, "max_score", None)
    return score is not None and max_score is not None and max_score > 0


def aggregate_components(components: Iterable) -> ScoreSummary:
    """
    Weighted total of the recorded components of one grade record.

    Each component needs ``weight``, ``score`` (None while unrecorded) and
    ``max_score``. The weighted sum is NOT divided by the weights actually
    recorded: a grade with only a 30% midterm recorded tops out at 30.
    """
    weighted = Fraction(0)
    any_recorded = False
    for c in components:
        if not _recorded(c):
            continue
        any_recorded = True
        percentage = _exact(c.score) / _exact(c.max_score) * 100
        weighted += percentage * _exact(c.weight) / 100

    total = round2(weighted) if any_recorded else 0.0
    letter, point = letter_for(total)
    return ScoreSummary(total_score=total, grade=letter, grade_point=point)


def is_fully_recorded(components: Iterable) -> bool:
    items = list(components)
    return bool(items) and all(_recorded(c) for c in items)
