# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_types.py

"""Value types of the coverage bin engine.

A region (``RangeSet``) is a tuple of inclusive ``(min, max)`` pairs, one per
dimension. A ``Bin`` pairs a region with its action kind and coverage
counters. The enums select the model-level policies.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Sequence, Tuple

Range = Tuple[int, int]
RangeSet = Tuple[Range, ...]

NULL_RANGE: Range = (1, 0)
NULL_RANGE_SET: RangeSet = ()

# percent reported for bins with a negative goal
PERCENT_MAX: float = sys.float_info.max

MAX_CROSS_DIMS = 20


class BinKind(IntEnum):
    """Action taken when a sample lands in a bin.

    The value is the signed amount added to ``Bin.count`` on every hit.
    """

    ILLEGAL = -1
    IGNORE = 0
    COUNT = 1


class WeightMode(IntEnum):
    """Per-bin weighting formula used by random index selection."""

    AT_LEAST = 0
    WEIGHT = 1
    REMAIN = 2
    REMAIN_EXP = 3
    REMAIN_SCALED = 4
    REMAIN_WEIGHT = 5


# modes whose weight_scale must be >= 1.0
SCALED_WEIGHT_MODES = (
    WeightMode.REMAIN_EXP,
    WeightMode.REMAIN_SCALED,
    WeightMode.REMAIN_WEIGHT,
)


class IllegalMode(IntEnum):
    """Severity used when a sample hits an illegal bin."""

    ON = 0
    FAILURE = 1
    OFF = 2


class CountMode(IntEnum):
    """Whether a sample credits only the first matching bin or all of them."""

    FIRST = 0
    ALL = 1


class NextPointMode(IntEnum):
    """Index policy used by next_index()/get_next_point()."""

    RANDOM = 0
    INCREMENT = 1
    MINIMUM = 2


def calc_percent_cov(count: int, goal: int) -> float:
    """Return percent covered for a count against a goal."""
    if goal > 0:
        return count * 100.0 / goal
    if goal == 0:
        return 100.0
    return PERCENT_MAX


def is_null_region(region: RangeSet) -> bool:
    """True for the empty region or any region with an inverted range."""
    return not region or any(lo > hi for lo, hi in region)


def make_region(pairs: Iterable[Sequence[int]]) -> RangeSet:
    """Normalize an iterable of (min, max) pairs into a RangeSet."""
    return tuple((int(lo), int(hi)) for lo, hi in pairs)


def region_contains(outer: RangeSet, inner: RangeSet) -> bool:
    """True if ``inner`` lies entirely within ``outer`` (same dimensions)."""
    if len(outer) != len(inner):
        return False
    return all(
        omin <= imin and imax <= omax
        for (omin, omax), (imin, imax) in zip(outer, inner)
    )


def region_has_point(region: RangeSet, point: Sequence[int]) -> bool:
    """True if ``point`` falls inside ``region`` in every dimension."""
    if len(region) != len(point):
        return False
    return all(lo <= v <= hi for (lo, hi), v in zip(region, point))


def region_str(region: RangeSet) -> str:
    """Human-readable region, e.g. ``(0:3) x (7)``."""
    if not region:
        return "()"
    parts = []
    for lo, hi in region:
        parts.append(f"({lo})" if lo == hi else f"({lo}:{hi})")
    return " x ".join(parts)


@dataclass
class Bin:
    """One region of the value space plus its coverage counters.

    ``count`` of an illegal bin goes negative: every hit subtracts one.
    """

    region: RangeSet
    kind: BinKind = BinKind.COUNT
    count: int = 0
    goal: int = 1
    weight: int = 1
    name: str = ""

    def __post_init__(self) -> None:
        self.region = make_region(self.region)
        self.kind = BinKind(self.kind)

    @property
    def dimensions(self) -> int:
        """Number of dimensions of the region."""
        return len(self.region)

    @property
    def percent_covered(self) -> float:
        """Percent of the goal reached by the current count."""
        return calc_percent_cov(self.count, self.goal)

    def contains(self, point: Sequence[int]) -> bool:
        """True if the sampled point falls in this bin's region."""
        return region_has_point(self.region, point)

    def matches(self, other: Bin) -> bool:
        """True if the two bins are the same bin apart from their counts."""
        return (
            self.region == other.region
            and self.kind == other.kind
            and self.goal == other.goal
            and self.weight == other.weight
            and self.name == other.name
        )

    def copy(self) -> Bin:
        """Return an independent copy."""
        return Bin(
            region=self.region,
            kind=self.kind,
            count=self.count,
            goal=self.goal,
            weight=self.weight,
            name=self.name,
        )
