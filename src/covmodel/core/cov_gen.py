# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_gen.py

"""Pure generators for one-dimensional bin lists.

These never alert: a degenerate request (``min > max``, ``count < 1``, no
values) returns an empty list, which every population operation treats as
"nothing to add".

Example:
    >>> bins = concat_bins(
    ...     make_range(0, 15, count=4),
    ...     make_illegal_range(16, 31),
    ... )
    >>> [b.region for b in bins][:2]
    [((0, 3),), ((4, 7),)]
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .cov_types import Bin, BinKind


def _goal_weight(kind: BinKind, goal: int, weight: int) -> tuple[int, int]:
    if kind == BinKind.COUNT:
        return goal, weight
    return 0, 0


# pylint: disable=too-many-positional-arguments
def make_range(  # pylint: disable=too-many-arguments
    min_val: int,
    max_val: int,
    count: int = 1,
    goal: int = 1,
    weight: int = 1,
    kind: BinKind = BinKind.COUNT,
) -> list[Bin]:
    """Split ``[min_val, max_val]`` into ``count`` contiguous bins.

    When ``count`` exceeds the number of values each value gets its own bin.
    Bins are sized ``remaining_values // remaining_bins`` so the later bins
    absorb any remainder, e.g. 0..9 in 3 bins gives 0..2, 3..5, 6..9.
    """
    if min_val > max_val or count < 1:
        return []
    count = min(count, max_val - min_val + 1)
    goal, weight = _goal_weight(BinKind(kind), goal, weight)
    bins: list[Bin] = []
    cur_min = min_val
    for i in range(1, count + 1):
        span = (max_val - cur_min + 1) // (count - i + 1)
        bins.append(
            Bin(
                region=((cur_min, cur_min + span - 1),),
                kind=kind,
                goal=goal,
                weight=weight,
            )
        )
        cur_min += span
    return bins


def make_discrete(
    values: int | Sequence[int],
    goal: int = 1,
    weight: int = 1,
    kind: BinKind = BinKind.COUNT,
) -> list[Bin]:
    """One single-value bin per value, in the order given."""
    if isinstance(values, int):
        values = [values]
    goal, weight = _goal_weight(BinKind(kind), goal, weight)
    return [
        Bin(region=((v, v),), kind=kind, goal=goal, weight=weight) for v in values
    ]


def make_ignore_range(min_val: int, max_val: int, count: int = 1) -> list[Bin]:
    """Ignore bins over ``[min_val, max_val]``."""
    return make_range(min_val, max_val, count, kind=BinKind.IGNORE)


def make_illegal_range(min_val: int, max_val: int, count: int = 1) -> list[Bin]:
    """Illegal bins over ``[min_val, max_val]``."""
    return make_range(min_val, max_val, count, kind=BinKind.ILLEGAL)


def concat_bins(*lists: Iterable[Bin]) -> list[Bin]:
    """Concatenate bin lists into a new list."""
    out: list[Bin] = []
    for bins in lists:
        out.extend(bins)
    return out
