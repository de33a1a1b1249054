# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_select.py

"""Coverage metrics and next-index selection for a coverage model.

Only COUNT bins take part in coverage: ignore and illegal bins are never
holes and are never selected as stimulus.

Index policies:
    min_index:  first COUNT bin with the lowest percent covered
    max_index:  first COUNT bin with the highest percent covered
    inc_index:  round-robin over all bins regardless of kind or coverage
    rand_index: weighted random draw over COUNT bins below a ceiling

Random selection ceiling:
    thresholding on:  min_cov + threshold, clipped to the target while the
                      least covered bin is still below the target
    thresholding off: the target while below it, then every bin
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from .cov_alert import AlertLevel
from .cov_types import (
    NULL_RANGE_SET,
    PERCENT_MAX,
    Bin,
    BinKind,
    NextPointMode,
    RangeSet,
    WeightMode,
)

if TYPE_CHECKING:
    from .cov_model import CoverageModel

logger = logging.getLogger(__name__)

# added to the max percent once the target is reached so every bin qualifies
ALL_BINS_MARGIN = 1.0


def _target(model: CoverageModel, target: float | None) -> float:
    return model.cov_target if target is None else target


def _count_bins(model: CoverageModel) -> list[Bin]:
    return [b for b in model.store if b.kind == BinKind.COUNT]


def _require_bins(model: CoverageModel, what: str) -> None:
    if len(model.store) == 0:
        model.fatal(f"{what}: coverage model has no bins")


def scaled_goal(b: Bin, target: float) -> int:
    """Goal of ``b`` scaled to ``target`` percent, rounded up."""
    return math.ceil(target * b.goal / 100.0)


def total_cov_count(model: CoverageModel) -> int:
    """Sum of counts over COUNT bins."""
    return sum(b.count for b in _count_bins(model))


def total_cov_goal(model: CoverageModel, target: float | None = None) -> int:
    """Sum of scaled goals over COUNT bins."""
    t = _target(model, target)
    return sum(scaled_goal(b, t) for b in _count_bins(model))


def percent_covered(model: CoverageModel, target: float | None = None) -> float:
    """Overall percent covered relative to ``target``.

    Each bin contributes at most its scaled goal, so overshooting one bin
    never hides a hole in another. A model without goals is 100% covered.
    """
    t = _target(model, target)
    total_goal = 0
    total_count = 0
    for b in _count_bins(model):
        goal = scaled_goal(b, t)
        total_goal += goal
        total_count += min(b.count, goal)
    if total_goal <= 0:
        return 100.0
    return 100.0 * total_count / total_goal


def get_cov_holes(model: CoverageModel, target: float | None = None) -> list[int]:
    """Indices of COUNT bins below ``target`` percent, in store order."""
    t = _target(model, target)
    return [
        i
        for i, b in enumerate(model.store)
        if b.kind == BinKind.COUNT and b.percent_covered < t
    ]


def count_cov_holes(model: CoverageModel, target: float | None = None) -> int:
    """Number of COUNT bins below ``target`` percent."""
    return len(get_cov_holes(model, target))


def is_covered(model: CoverageModel, target: float | None = None) -> bool:
    """True when no COUNT bin is below ``target`` percent."""
    return count_cov_holes(model, target) == 0


def get_min_cov(model: CoverageModel) -> float:
    """Lowest percent covered over COUNT bins (PERCENT_MAX if none)."""
    return min((b.percent_covered for b in _count_bins(model)), default=PERCENT_MAX)


def get_max_cov(model: CoverageModel) -> float:
    """Highest percent covered over COUNT bins (0.0 if none)."""
    return max((b.percent_covered for b in _count_bins(model)), default=0.0)


def get_min_count(model: CoverageModel) -> int:
    """Lowest count over COUNT bins (0 if none)."""
    return min((b.count for b in _count_bins(model)), default=0)


def get_max_count(model: CoverageModel) -> int:
    """Highest count over COUNT bins (0 if none)."""
    return max((b.count for b in _count_bins(model)), default=0)


def min_index(model: CoverageModel) -> int:
    """First COUNT bin with the lowest percent covered.

    Falls back to the last bin when the model has no COUNT bins.
    """
    _require_bins(model, "min_index")
    index = len(model.store) - 1
    best = PERCENT_MAX
    for i, b in enumerate(model.store):
        if b.kind == BinKind.COUNT and b.percent_covered < best:
            best = b.percent_covered
            index = i
    model.last_index = index
    return index


def max_index(model: CoverageModel) -> int:
    """First COUNT bin with the highest percent covered.

    Falls back to the last bin when the model has no COUNT bins.
    """
    _require_bins(model, "max_index")
    index = len(model.store) - 1
    best = -1.0
    for i, b in enumerate(model.store):
        if b.kind == BinKind.COUNT and b.percent_covered > best:
            best = b.percent_covered
            index = i
    model.last_index = index
    return index


def inc_index(model: CoverageModel) -> int:
    """Return the current round-robin index, then advance it."""
    _require_bins(model, "inc_index")
    n = len(model.store)
    cur = model.last_stim_index % n
    model.last_stim_index = (cur + 1) % n
    model.last_index = cur
    return cur


def bin_weight(b: Bin, ceiling: float, mode: WeightMode, scale: float = 1.0) -> int:
    """Selection weight of bin ``b`` for percent ceiling ``ceiling``."""
    if mode == WeightMode.AT_LEAST:
        return b.goal
    if mode == WeightMode.WEIGHT:
        return b.weight
    if mode == WeightMode.REMAIN:
        return math.ceil(ceiling * b.goal / 100.0) - b.count
    if mode == WeightMode.REMAIN_EXP:
        remain = max(0.0, ceiling * b.goal / 100.0 - b.count)
        return b.weight * math.ceil(remain**scale)
    if mode == WeightMode.REMAIN_SCALED:
        return math.ceil(scale * ceiling * b.goal / 100.0) - b.count
    if mode == WeightMode.REMAIN_WEIGHT:
        return b.weight * (math.ceil(scale * ceiling * b.goal / 100.0) - b.count)
    raise ValueError(f"{mode=}")


def rand_ceiling(model: CoverageModel, target: float) -> float:
    """Percent below which a COUNT bin may be randomly selected."""
    min_cov = get_min_cov(model)
    if model.thresholding:
        ceiling = min_cov + model.threshold
        if min_cov < target:
            ceiling = min(ceiling, target)
        return ceiling
    if min_cov < target:
        return target
    return get_max_cov(model) + ALL_BINS_MARGIN


def rand_index(model: CoverageModel, target: float | None = None) -> int:
    """Draw a bin index weighted toward bins that still need hits."""
    _require_bins(model, "rand_index")
    t = _target(model, target)
    ceiling = rand_ceiling(model, t)
    weights = [
        (
            bin_weight(b, ceiling, model.weight_mode, model.weight_scale)
            if b.kind == BinKind.COUNT and b.percent_covered < ceiling
            else 0
        )
        for b in model.store
    ]
    if sum(w for w in weights if w > 0) <= 0:
        model.alert(
            AlertLevel.ERROR,
            f"rand_index: no bin has a positive weight below {ceiling:.2f}%, "
            "using min_index",
        )
        return min_index(model)
    index = model.rng.weighted_discrete(weights)
    model.last_index = index
    logger.debug("%s: rand_index -> %d (ceiling %.2f%%)", model.name, index, ceiling)
    return index


def next_index(
    model: CoverageModel,
    mode: NextPointMode | None = None,
    target: float | None = None,
) -> int:
    """Dispatch to rand_index, inc_index or min_index."""
    if mode is None:
        mode = model.next_point_mode
    if mode == NextPointMode.INCREMENT:
        return inc_index(model)
    if mode == NextPointMode.MINIMUM:
        return min_index(model)
    return rand_index(model, target)


def hole_bin_val(
    model: CoverageModel, n: int = 1, target: float | None = None
) -> RangeSet:
    """Region of the ``n``-th (1-based) coverage hole.

    When there are fewer than ``n`` holes an ERROR is reported and the region
    of the last bin is returned.
    """
    t = _target(model, target)
    found = 0
    for b in model.store:
        if b.kind == BinKind.COUNT and b.percent_covered < t:
            found += 1
            if found == n:
                return b.region
    model.alert(
        AlertLevel.ERROR,
        f"hole_bin_val: did not find hole {n}, holes found = {found}",
    )
    if len(model.store) == 0:
        return NULL_RANGE_SET
    return model.store[len(model.store) - 1].region
