# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_bin_store.py

"""Ordered, growable bin storage of one coverage model.

Insertion order matters: when sampling in ``CountMode.FIRST`` the earliest
matching bin wins, and with merging enabled an incoming bin is compared
against the most recently inserted bin whose region contains it.

Merge rules (merging enabled), by kind of the containing bin found:

    found COUNT:
        incoming COUNT, same region and name -> counts/goals/weights added
        incoming COUNT, otherwise            -> appended (overlap allowed)
        incoming IGNORE/ILLEGAL              -> appended
    found IGNORE/ILLEGAL:
        incoming COUNT                       -> dropped silently
        incoming IGNORE/ILLEGAL              -> dropped, ERROR alert
    nothing found                            -> appended
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator, NoReturn, Sequence

from .cov_alert import AlertLevel, AlertSink, CovFatalError
from .cov_types import Bin, BinKind, RangeSet, region_contains, region_str

logger = logging.getLogger(__name__)

# capacity grows in multiples of this many bins
BIN_QUANTUM = 2**7


class InsertResult(Enum):
    """Outcome of ``BinStore.insert``."""

    APPENDED = "appended"
    MERGED = "merged"
    SUPPRESSED = "suppressed"
    DROPPED = "dropped"


class BinStore:
    """Bins of one coverage model, all of the same dimension count."""

    def __init__(self, alert_sink: AlertSink, name: str = "") -> None:
        self.alert_sink = alert_sink
        self.name = name
        self.merging: bool = False
        self.dimensions: int = 0
        self.capacity: int = 0
        self._bins: list[Bin] = []

    def __len__(self) -> int:
        return len(self._bins)

    def __iter__(self) -> Iterator[Bin]:
        return iter(self._bins)

    def __getitem__(self, index: int) -> Bin:
        return self._bins[index]

    @property
    def bins(self) -> Sequence[Bin]:
        """Read-only view of the bins in insertion order."""
        return self._bins

    def fatal(self, msg: str) -> NoReturn:
        """Report a FAILURE alert and stop the current operation."""
        self.alert_sink.alert(AlertLevel.FAILURE, msg)
        raise CovFatalError(msg)

    def reserve(self, num_bins: int) -> None:
        """Grow capacity, in whole quanta, to hold at least ``num_bins``."""
        if num_bins <= self.capacity:
            return
        quanta = -(-num_bins // BIN_QUANTUM)
        new_capacity = quanta * BIN_QUANTUM
        logger.debug(
            "%s: bin capacity %d -> %d", self.name, self.capacity, new_capacity
        )
        self.capacity = new_capacity

    def check_dimensions(self, dims: int) -> None:
        """Fix the dimension count on first use, fatal on any later mismatch."""
        if dims <= 0:
            return
        if self.dimensions == 0:
            self.dimensions = dims
            return
        if dims != self.dimensions:
            self.fatal(
                f"cross coverage bins of different dimensions "
                f"prohibited (model has {self.dimensions}, got {dims})"
            )

    def append(self, new_bin: Bin) -> int:
        """Append a bin unconditionally and return its index."""
        self.check_dimensions(new_bin.dimensions)
        self.reserve(len(self._bins) + 1)
        self._bins.append(new_bin)
        return len(self._bins) - 1

    def find_containing(self, region: RangeSet) -> int | None:
        """Index of the most recently inserted bin containing ``region``."""
        for i in range(len(self._bins) - 1, -1, -1):
            if region_contains(self._bins[i].region, region):
                return i
        return None

    def find_exact(self, other: Bin) -> int | None:
        """Index of the first bin equal to ``other`` apart from its count."""
        for i, b in enumerate(self._bins):
            if b.matches(other):
                return i
        return None

    # pylint: disable=too-many-positional-arguments
    def insert(  # pylint: disable=too-many-arguments
        self,
        region: RangeSet,
        kind: BinKind,
        count: int,
        goal: int,
        weight: int,
        name: str = "",
    ) -> InsertResult:
        """Insert one bin following the merge rules of this store."""
        new_bin = Bin(
            region=region, kind=kind, count=count, goal=goal, weight=weight, name=name
        )
        if not self.merging:
            self.append(new_bin)
            return InsertResult.APPENDED

        self.check_dimensions(new_bin.dimensions)
        pos = self.find_containing(new_bin.region)
        if pos is None:
            self.append(new_bin)
            return InsertResult.APPENDED

        found = self._bins[pos]
        if found.kind == BinKind.COUNT:
            if (
                new_bin.kind == BinKind.COUNT
                and found.region == new_bin.region
                and found.name == new_bin.name
            ):
                found.count += new_bin.count
                found.goal += new_bin.goal
                found.weight += new_bin.weight
                logger.debug(
                    "%s: merged %s into bin %d", self.name, region_str(region), pos
                )
                return InsertResult.MERGED
            self.append(new_bin)
            return InsertResult.APPENDED

        if new_bin.kind == BinKind.COUNT:
            logger.debug(
                "%s: count bin %s inside %s bin %d suppressed",
                self.name,
                region_str(new_bin.region),
                found.kind.name,
                pos,
            )
            return InsertResult.SUPPRESSED

        self.alert_sink.alert(
            AlertLevel.ERROR,
            f"{new_bin.kind.name} bin {region_str(new_bin.region)} "
            f"is a subset of prior bin {pos}, bin dropped",
        )
        return InsertResult.DROPPED

    def clear_counts(self) -> None:
        """Zero every bin count, keeping the bins."""
        for b in self._bins:
            b.count = 0

    def clear(self) -> None:
        """Remove all bins and forget the dimension count."""
        self._bins = []
        self.capacity = 0
        self.dimensions = 0
