# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_model.py

"""Coverage model: bins, model-level settings and sampling.

A ``CoverageModel`` owns one ``BinStore`` and the policies that drive it.
Models live in a ``CovModelTable`` and are addressed by ``CovHandle``, so a
collaborator can create a model once and find it again by handle or name.

Typical flow:
    >>> table = default_table()
    >>> h = table.new_model("alu_ops")
    >>> cov = table[h]
    >>> cov.add_cross(make_range(0, 7, 8), make_discrete([0, 1]))
    >>> while not cov.is_covered():
    ...     a, b = cov.get_rand_point()
    ...     drive(a, b)
    ...     cov.record((a, b))

Configuration (YAML, validated by CovModelConfig):
    name: alu_ops
    weight_mode: remain
    count_mode: first
    thresholding: true
    threshold: 20
    seed: regress_42
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable, Iterator, NoReturn, Sequence

import yaml
from pydantic import BaseModel, PositiveFloat, field_validator

from . import cov_db, cov_select
from .cov_alert import AlertLevel, AlertSink, CovFatalError, LoggingAlertSink
from .cov_bin_store import BinStore, InsertResult
from .cov_cross import active_dims, cross
from .cov_random import CovRandom, RandomService
from .cov_sink import NullCovSink, VendorCovSink
from .cov_types import (
    SCALED_WEIGHT_MODES,
    Bin,
    BinKind,
    CountMode,
    IllegalMode,
    NextPointMode,
    RangeSet,
    WeightMode,
    region_str,
)

logger = logging.getLogger(__name__)

_ENUM_FIELDS: dict[str, Any] = {
    "weight_mode": WeightMode,
    "illegal_mode": IllegalMode,
    "count_mode": CountMode,
    "next_point_mode": NextPointMode,
}


class CovModelConfig(BaseModel):
    """Validated model-level settings, typically loaded from YAML."""

    name: str = ""
    weight_mode: WeightMode = WeightMode.AT_LEAST
    weight_scale: PositiveFloat = 1.0
    illegal_mode: IllegalMode = IllegalMode.ON
    count_mode: CountMode = CountMode.FIRST
    threshold: PositiveFloat = 45.0
    thresholding: bool = False
    merging: bool = False
    target: PositiveFloat = 100.0
    seed: int | str | None = None
    next_point_mode: NextPointMode = NextPointMode.RANDOM

    @field_validator(*_ENUM_FIELDS, mode="before")
    @classmethod
    def _enum_by_name(cls, v: Any, info: Any) -> Any:
        """Accept enum members by name, case-insensitively."""
        if isinstance(v, str):
            enum_cls = _ENUM_FIELDS[info.field_name]
            try:
                return enum_cls[v.strip().upper()]
            except KeyError:
                names = ", ".join(m.name.lower() for m in enum_cls)
                raise ValueError(f"{v!r} is not one of: {names}") from None
        return v


def load_cov_config(path: Path | str) -> CovModelConfig:
    """Load and validate a YAML model configuration."""
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    logger.debug("Loaded coverage config %s: %s", path, raw)
    return CovModelConfig.model_validate(raw)


class CoverageModel:  # pylint: disable=too-many-instance-attributes, too-many-public-methods
    """Functional coverage model over an integer value space.

    Collaborators are injected: ``alert_sink`` receives warnings and errors
    (default ``LoggingAlertSink``), ``rng`` drives stimulus selection
    (default ``CovRandom`` seeded from the model name) and ``vendor_sink``
    mirrors bins into a simulator database (default ``NullCovSink``).
    """

    def __init__(
        self,
        name: str = "",
        *,
        alert_sink: AlertSink | None = None,
        rng: RandomService | None = None,
        vendor_sink: VendorCovSink | None = None,
    ) -> None:
        self._name = name
        self.alert_sink: AlertSink = alert_sink or LoggingAlertSink(name)
        self.rng: RandomService = rng or CovRandom()
        self.vendor_sink: VendorCovSink = vendor_sink or NullCovSink()
        self.store = BinStore(self.alert_sink, name)
        self.messages: list[str] = []
        self._vendor_handle: int | None = None
        self._reset_settings()
        self._reset_stats()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self._name!r}, bins={len(self.store)}, "
            f"dimensions={self.store.dimensions})"
        )

    # --- internals -------------------------------------------------------

    def _reset_settings(self) -> None:
        self.weight_mode: WeightMode = WeightMode.AT_LEAST
        self.weight_scale: float = 1.0
        self.illegal_mode: IllegalMode = IllegalMode.ON
        self.count_mode: CountMode = CountMode.FIRST
        self.threshold: float = 45.0
        self.thresholding: bool = False
        self.store.merging = False
        self.cov_target: float = 100.0
        self.next_point_mode: NextPointMode = NextPointMode.RANDOM
        self.seed: int = self.rng.seed(self._name)

    def _reset_stats(self) -> None:
        self.item_count: int = 0
        self.last_index: int = 0
        self.last_stim_index: int = 0
        self.last_point: tuple[int, ...] | None = None

    def alert(self, level: AlertLevel, msg: str) -> None:
        """Forward an alert to the alert sink."""
        self.alert_sink.alert(level, msg)

    def fatal(self, msg: str) -> NoReturn:
        """Report a FAILURE alert and raise CovFatalError."""
        self.alert_sink.alert(AlertLevel.FAILURE, msg)
        raise CovFatalError(msg)

    def _vendor_scope(self, dims: int) -> int:
        if self._vendor_handle is None:
            if dims > 1:
                self._vendor_handle = self.vendor_sink.create_cross_scope(self._name)
            else:
                self._vendor_handle = self.vendor_sink.create_point_scope(self._name)
        return self._vendor_handle

    # pylint: disable=too-many-positional-arguments
    def _insert(  # pylint: disable=too-many-arguments
        self,
        region: RangeSet,
        kind: BinKind,
        count: int,
        goal: int,
        weight: int,
        name: str,
    ) -> InsertResult:
        result = self.store.insert(region, kind, count, goal, weight, name)
        if result == InsertResult.APPENDED:
            handle = self._vendor_scope(len(region))
            self.vendor_sink.add_bin(handle, region, kind, goal, name)
        return result

    def append_bin(self, new_bin: Bin) -> int:
        """Append a bin as-is, bypassing the merge rules."""
        index = self.store.append(new_bin)
        handle = self._vendor_scope(new_bin.dimensions)
        self.vendor_sink.add_bin(
            handle, new_bin.region, new_bin.kind, new_bin.goal, new_bin.name
        )
        return index

    def _hit(self, index: int, point: tuple[int, ...]) -> None:
        b = self.store[index]
        if b.kind == BinKind.ILLEGAL and self.illegal_mode != IllegalMode.OFF:
            level = (
                AlertLevel.FAILURE
                if self.illegal_mode == IllegalMode.FAILURE
                else AlertLevel.ERROR
            )
            self.alert(
                level,
                f"illegal bin {index} {region_str(b.region)} "
                f"hit by point {point}",
            )
        if b.kind == BinKind.IGNORE:
            return
        b.count += int(b.kind)
        if self._vendor_handle is not None:
            self.vendor_sink.inc_bin(self._vendor_handle, index)

    @staticmethod
    def _as_point(point: int | Sequence[int]) -> tuple[int, ...]:
        if isinstance(point, int):
            return (point,)
        return tuple(int(v) for v in point)

    # --- settings --------------------------------------------------------

    @property
    def name(self) -> str:
        """Model name ("" when unnamed)."""
        return self._name

    def set_name(self, name: str) -> None:
        """Rename the model."""
        self._name = name
        self.store.name = name
        if isinstance(self.alert_sink, LoggingAlertSink):
            self.alert_sink.name = name
        if self._vendor_handle is not None:
            self.vendor_sink.set_name(self._vendor_handle, name)

    def set_message(self, text: str) -> None:
        """Replace the model messages with the lines of ``text``."""
        self.messages = text.splitlines()

    def add_message(self, text: str) -> None:
        """Append the lines of ``text`` to the model messages."""
        self.messages.extend(text.splitlines())

    @property
    def merging(self) -> bool:
        """Whether inserted bins merge into identical existing bins."""
        return self.store.merging

    def set_merging(self, enable: bool = True) -> None:
        """Enable or disable merging of inserted bins."""
        self.store.merging = enable

    def set_weight_mode(self, mode: WeightMode, scale: float = 1.0) -> None:
        """Select the random-selection weighting formula.

        The scaled modes (REMAIN_EXP, REMAIN_SCALED, REMAIN_WEIGHT) need
        ``scale >= 1.0``.
        """
        mode = WeightMode(mode)
        if mode in SCALED_WEIGHT_MODES and scale < 1.0:
            self.fatal(
                f"weight scale must be >= 1.0 for {mode.name}, got {scale}"
            )
        if mode == WeightMode.REMAIN_EXP and scale > 2.0:
            self.alert(
                AlertLevel.WARNING,
                f"weight scale {scale} > 2.0 with REMAIN_EXP "
                "can produce very large weights",
            )
        self.weight_mode = mode
        self.weight_scale = scale

    def set_illegal_mode(self, mode: IllegalMode) -> None:
        """Select how illegal-bin hits are reported."""
        self.illegal_mode = IllegalMode(mode)

    def set_count_mode(self, mode: CountMode) -> None:
        """Credit only the first matching bin, or every matching bin."""
        self.count_mode = CountMode(mode)

    def set_cov_threshold(self, percent: float) -> None:
        """Set the threshold percent and enable thresholding."""
        if percent <= 0:
            raise ValueError(f"{percent=}")
        self.threshold = percent
        self.thresholding = True

    def set_thresholding(self, enable: bool = True) -> None:
        """Enable or disable thresholding."""
        self.thresholding = enable

    def set_cov_target(self, percent: float) -> None:
        """Set the default coverage target percent."""
        if percent <= 0:
            raise ValueError(f"{percent=}")
        self.cov_target = percent

    def set_next_point_mode(self, mode: NextPointMode) -> None:
        """Select the default policy of next_index()/get_next_point()."""
        self.next_point_mode = NextPointMode(mode)

    def set_seed(self, value: int | str) -> int:
        """Reseed the model's random service and return the applied seed."""
        self.seed = self.rng.seed(value)
        logger.debug("%s: seed %r -> %d", self._name, value, self.seed)
        return self.seed

    def get_seed(self) -> int:
        """Seed last applied to the random service."""
        return self.seed

    def set_bin_size(self, num_bins: int) -> None:
        """Reserve capacity for ``num_bins`` bins."""
        self.store.reserve(num_bins)

    def configure(self, config: CovModelConfig) -> None:
        """Apply every field of a validated configuration."""
        if config.name:
            self.set_name(config.name)
        self.set_weight_mode(config.weight_mode, config.weight_scale)
        self.set_illegal_mode(config.illegal_mode)
        self.set_count_mode(config.count_mode)
        self.threshold = config.threshold
        self.thresholding = config.thresholding
        self.set_merging(config.merging)
        self.set_cov_target(config.target)
        self.set_next_point_mode(config.next_point_mode)
        if config.seed is not None:
            self.set_seed(config.seed)

    # --- population ------------------------------------------------------

    def add_bins(
        self, bins: Iterable[Bin], *, name: str = "", goal: int = 0, weight: int = 0
    ) -> None:
        """Insert a bin list.

        COUNT bins use ``max(goal, bin.goal)`` and ``max(weight, bin.weight)``;
        ignore and illegal bins always get 0 for both. ``name`` overrides the
        bin's own name when given.
        """
        for b in bins:
            if b.kind == BinKind.COUNT:
                bin_goal = max(goal, b.goal)
                bin_weight = max(weight, b.weight)
            else:
                bin_goal = bin_weight = 0
            self._insert(
                b.region, b.kind, b.count, bin_goal, bin_weight, name or b.name
            )

    def add_cross(
        self, *dims: Sequence[Bin], name: str = "", goal: int = 0, weight: int = 0
    ) -> None:
        """Insert the cross product of up to 20 per-dimension bin lists."""
        try:
            active = active_dims(dims)
        except CovFatalError as exc:
            self.fatal(str(exc))
        if active and all(active):
            self.store.check_dimensions(sum(len(d[0].region) for d in active))
        for b in cross(active, goal, weight):
            self._insert(b.region, b.kind, b.count, b.goal, b.weight, name)

    # --- sampling --------------------------------------------------------

    def record(self, point: int | Sequence[int]) -> None:
        """Credit a sampled point to its matching bin(s).

        A point that matches no bin is simply not counted.
        """
        pt = self._as_point(point)
        if len(self.store) == 0:
            self.fatal("record called on a model with no bins")
        if len(pt) != self.store.dimensions:
            self.fatal(
                f"point {pt} has {len(pt)} values, model has "
                f"{self.store.dimensions} dimensions"
            )
        self.item_count += 1
        first = self.count_mode == CountMode.FIRST
        if (
            first
            and 0 <= self.last_index < len(self.store)
            and self.store[self.last_index].contains(pt)
        ):
            self._hit(self.last_index, pt)
            return
        for i, b in enumerate(self.store):
            if b.contains(pt):
                self._hit(i, pt)
                if first:
                    self.last_index = i
                    return

    def record_last(self) -> None:
        """Record the most recently generated point again."""
        if self.last_point is None:
            self.alert(AlertLevel.ERROR, "record_last before any point")
            return
        self.record(self.last_point)

    # --- query -----------------------------------------------------------

    @property
    def num_bins(self) -> int:
        """Number of bins."""
        return len(self.store)

    @property
    def dimensions(self) -> int:
        """Dimension count (0 until the first bin is added)."""
        return self.store.dimensions

    @property
    def bins(self) -> Sequence[Bin]:
        """Read-only view of the bins in insertion order."""
        return self.store.bins

    def get_bin(self, index: int) -> Bin:
        """Copy of bin ``index``."""
        return self.store[index].copy()

    def get_bin_val(self, index: int) -> RangeSet:
        """Region of bin ``index``."""
        return self.store[index].region

    def bin_name(self, index: int) -> str:
        """Name of bin ``index``."""
        return self.store[index].name

    @property
    def error_count(self) -> int:
        """Total number of illegal-bin hits."""
        return -sum(b.count for b in self.store if b.kind == BinKind.ILLEGAL)

    def total_cov_count(self) -> int:
        """Sum of counts over COUNT bins."""
        return cov_select.total_cov_count(self)

    def total_cov_goal(self, target: float | None = None) -> int:
        """Sum of scaled goals over COUNT bins."""
        return cov_select.total_cov_goal(self, target)

    def percent_covered(self, target: float | None = None) -> float:
        """Overall percent covered relative to ``target``."""
        return cov_select.percent_covered(self, target)

    def is_covered(self, target: float | None = None) -> bool:
        """True when no COUNT bin is below ``target``."""
        return cov_select.is_covered(self, target)

    def count_cov_holes(self, target: float | None = None) -> int:
        """Number of COUNT bins below ``target``."""
        return cov_select.count_cov_holes(self, target)

    def get_cov_holes(self, target: float | None = None) -> list[Bin]:
        """Copies of the COUNT bins below ``target``."""
        return [self.store[i].copy() for i in cov_select.get_cov_holes(self, target)]

    def hole_bin_val(self, n: int = 1, target: float | None = None) -> RangeSet:
        """Region of the ``n``-th coverage hole."""
        return cov_select.hole_bin_val(self, n, target)

    def get_min_cov(self) -> float:
        """Lowest percent covered over COUNT bins."""
        return cov_select.get_min_cov(self)

    def get_max_cov(self) -> float:
        """Highest percent covered over COUNT bins."""
        return cov_select.get_max_cov(self)

    def get_min_count(self) -> int:
        """Lowest count over COUNT bins."""
        return cov_select.get_min_count(self)

    def get_max_count(self) -> int:
        """Highest count over COUNT bins."""
        return cov_select.get_max_count(self)

    def min_index(self) -> int:
        """Index of the least covered COUNT bin."""
        return cov_select.min_index(self)

    def max_index(self) -> int:
        """Index of the most covered COUNT bin."""
        return cov_select.max_index(self)

    def inc_index(self) -> int:
        """Round-robin bin index."""
        return cov_select.inc_index(self)

    def rand_index(self, target: float | None = None) -> int:
        """Weighted random index of a bin that still needs hits."""
        return cov_select.rand_index(self, target)

    def next_index(
        self, mode: NextPointMode | None = None, target: float | None = None
    ) -> int:
        """Index chosen by ``mode`` (default: next_point_mode)."""
        return cov_select.next_index(self, mode, target)

    def get_last_bin_val(self) -> RangeSet:
        """Region of the last selected or matched bin."""
        return self.store[self.last_index].region

    def get_rand_bin_val(self, target: float | None = None) -> RangeSet:
        """Region of a randomly selected bin."""
        return self.store[self.rand_index(target)].region

    def get_inc_bin_val(self) -> RangeSet:
        """Region of the next round-robin bin."""
        return self.store[self.inc_index()].region

    def get_min_bin_val(self) -> RangeSet:
        """Region of the least covered bin."""
        return self.store[self.min_index()].region

    def get_max_bin_val(self) -> RangeSet:
        """Region of the most covered bin."""
        return self.store[self.max_index()].region

    def get_next_bin_val(
        self, mode: NextPointMode | None = None, target: float | None = None
    ) -> RangeSet:
        """Region of the bin chosen by ``mode``."""
        return self.store[self.next_index(mode, target)].region

    def region_to_point(self, region: RangeSet) -> tuple[int, ...]:
        """Draw a uniform point inside ``region`` and remember it."""
        point = tuple(self.rng.uniform_int(lo, hi) for lo, hi in region)
        self.last_point = point
        return point

    def get_rand_point(self, target: float | None = None) -> tuple[int, ...]:
        """Random point inside a randomly selected bin."""
        return self.region_to_point(self.get_rand_bin_val(target))

    def get_inc_point(self) -> tuple[int, ...]:
        """Random point inside the next round-robin bin."""
        return self.region_to_point(self.get_inc_bin_val())

    def get_min_point(self) -> tuple[int, ...]:
        """Random point inside the least covered bin."""
        return self.region_to_point(self.get_min_bin_val())

    def get_max_point(self) -> tuple[int, ...]:
        """Random point inside the most covered bin."""
        return self.region_to_point(self.get_max_bin_val())

    def get_next_point(
        self, mode: NextPointMode | None = None, target: float | None = None
    ) -> tuple[int, ...]:
        """Random point inside the bin chosen by ``mode``."""
        return self.region_to_point(self.get_next_bin_val(mode, target))

    def compare(self, other: CoverageModel) -> bool:
        """True if both models hold the same bins with the same counts."""
        same = True
        if len(self.store) != len(other.store):
            logger.info(
                "compare: %s has %d bins, %s has %d bins",
                self._name,
                len(self.store),
                other.name,
                len(other.store),
            )
            same = False
        for i, (a, b) in enumerate(zip(self.store, other.store)):
            if not a.matches(b) or a.count != b.count:
                logger.info("compare: bin %d differs: %s != %s", i, a, b)
                same = False
        if not same:
            self.alert(AlertLevel.ERROR, f"compare: {self._name} != {other.name}")
        return same

    # --- persistence -----------------------------------------------------

    def write_database(self, path: Path | str) -> None:
        """Write settings, messages and bins to a database file."""
        cov_db.write_database(self, path)

    def read_database(self, path: Path | str, merge: bool = False) -> None:
        """Read a database file, merging into the current bins if ``merge``."""
        cov_db.read_database(self, path, merge)

    # --- lifecycle -------------------------------------------------------

    def clear_cov(self) -> None:
        """Zero all counts and selection state, keeping bins and settings."""
        self.store.clear_counts()
        self._reset_stats()

    def clear(self) -> None:
        """Remove bins and messages and restore default settings."""
        self.store.clear()
        self.messages = []
        self._vendor_handle = None
        self._reset_settings()
        self._reset_stats()
        logger.debug("%s: cleared", self._name)


@dataclass(frozen=True)
class CovHandle:
    """Opaque reference to a model inside a ``CovModelTable``."""

    table_id: int
    index: int


class CovModelTable:
    """Growable arena of coverage models addressed by handle."""

    _ids = itertools.count()

    def __init__(self) -> None:
        self.table_id = next(CovModelTable._ids)
        self._models: list[CoverageModel] = []

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[CoverageModel]:
        return iter(self._models)

    def __getitem__(self, handle: CovHandle) -> CoverageModel:
        if handle.table_id != self.table_id or not 0 <= handle.index < len(
            self._models
        ):
            raise KeyError(f"unknown coverage model handle {handle}")
        return self._models[handle.index]

    def new_model(self, name: str = "", **kwargs: Any) -> CovHandle:
        """Create a model and return its handle."""
        self._models.append(CoverageModel(name, **kwargs))
        handle = CovHandle(self.table_id, len(self._models) - 1)
        logger.debug("new coverage model %r -> %s", name, handle)
        return handle

    def handles(self) -> list[CovHandle]:
        """Handles of all models in creation order."""
        return [CovHandle(self.table_id, i) for i in range(len(self._models))]

    def find(self, name: str) -> CovHandle | None:
        """Handle of the first model named ``name``, or None."""
        for i, m in enumerate(self._models):
            if m.name == name:
                return CovHandle(self.table_id, i)
        return None

    def deallocate(self, handle: CovHandle) -> None:
        """Clear a model; its handle stays valid."""
        self[handle].clear()


@lru_cache(maxsize=1)
def default_table() -> CovModelTable:
    """Process-wide model table (cached)."""
    return CovModelTable()
