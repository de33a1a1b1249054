# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_random.py

"""Pseudo-random service used for stimulus selection.

Two ``CovRandom`` instances seeded with the same value and asked for the same
sequence of draws return the same values, which is what makes coverage
driven regressions reproducible.
"""

from __future__ import annotations

import random
from typing import Protocol, Sequence

from covmodel.utils import normalize_seed


class RandomService(Protocol):
    """Random number service consumed by the coverage core."""

    def seed(self, value: int | str) -> int:
        """Reseed the generator and return the normalized seed."""

    def uniform_int(self, lo: int, hi: int) -> int:
        """Return an integer in ``[lo, hi]``."""

    def weighted_discrete(self, weights: Sequence[int]) -> int:
        """Return an index drawn with probability proportional to its weight."""


class CovRandom:
    """``random.Random`` backed implementation of ``RandomService``."""

    def __init__(self, seed: int | str = 0) -> None:
        self.rng = random.Random()
        self.current_seed = 0
        self.seed(seed)

    def seed(self, value: int | str) -> int:
        """Reseed from an int or string; the same input always gives the same
        sequence.
        """
        self.current_seed = normalize_seed(value)
        self.rng.seed(self.current_seed)
        return self.current_seed

    def uniform_int(self, lo: int, hi: int) -> int:
        """Return an integer in ``[lo, hi]``."""
        if lo > hi:
            raise ValueError(f"{lo=} > {hi=}")
        return self.rng.randint(lo, hi)

    def weighted_discrete(self, weights: Sequence[int]) -> int:
        """Return index ``i`` with probability ``weights[i] / sum(weights)``.

        Negative weights count as zero. Raises ValueError when no weight is
        positive.
        """
        total = sum(w for w in weights if w > 0)
        if total <= 0:
            raise ValueError("weighted_discrete: no positive weights")
        pick = self.rng.randrange(total)
        acc = 0
        for i, w in enumerate(weights):
            if w <= 0:
                continue
            acc += w
            if pick < acc:
                return i
        return len(weights) - 1  # pragma: no cover - unreachable
