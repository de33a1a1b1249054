# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_cross.py

"""Cross-product ("crossing") of per-dimension bin lists."""

from __future__ import annotations

import itertools
from typing import Sequence

from .cov_alert import CovFatalError
from .cov_types import MAX_CROSS_DIMS, Bin, BinKind


def active_dims(dims: Sequence[Sequence[Bin]]) -> list[Sequence[Bin]]:
    """Drop trailing empty dimension lists; fatal beyond MAX_CROSS_DIMS."""
    active = list(dims)
    while active and not active[-1]:
        active.pop()
    if len(active) > MAX_CROSS_DIMS:
        raise CovFatalError(
            f"cross: at most {MAX_CROSS_DIMS} dimensions supported, got {len(active)}"
        )
    return active


def cross_kind(combo: Sequence[Bin]) -> BinKind:
    """ILLEGAL if any member is illegal, else IGNORE if any is ignored."""
    kinds = {b.kind for b in combo}
    if BinKind.ILLEGAL in kinds:
        return BinKind.ILLEGAL
    if BinKind.IGNORE in kinds:
        return BinKind.IGNORE
    return BinKind.COUNT


def cross(dims: Sequence[Sequence[Bin]], goal: int = 0, weight: int = 0) -> list[Bin]:
    """Return the cross product of ``dims`` as new bins.

    Combinations are enumerated with the last dimension varying fastest, the
    regions of each combination are concatenated, and count bins take
    ``max(goal, member goals)`` / ``max(weight, member weights)``. Ignore and
    illegal results get a goal and weight of 0. An empty dimension in the
    middle makes the product empty.

    Example:
        >>> bins = cross([make_range(0, 1, 2), make_discrete([7, 8, 9])])
        >>> len(bins), bins[1].region
        (6, ((0, 0), (8, 8)))
    """
    active = active_dims(dims)
    if not active or any(not d for d in active):
        return []
    out: list[Bin] = []
    for combo in itertools.product(*active):
        kind = cross_kind(combo)
        if kind == BinKind.COUNT:
            bin_goal = max(goal, max(b.goal for b in combo))
            bin_weight = max(weight, max(b.weight for b in combo))
        else:
            bin_goal = bin_weight = 0
        region = tuple(r for b in combo for r in b.region)
        out.append(Bin(region=region, kind=kind, goal=bin_goal, weight=bin_weight))
    return out
