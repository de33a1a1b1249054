# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_sink.py

"""Pass-through sinks for simulator-native coverage databases.

A coverage model mirrors its bins and hits into a ``VendorCovSink``. The
model never depends on what the sink returns, so ``NullCovSink`` is always a
valid choice. ``RecordingCovSink`` keeps everything in memory and can dump
it as YAML, which is handy for post-processing without a simulator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import yaml

from .cov_types import BinKind, RangeSet

logger = logging.getLogger(__name__)


class VendorCovSink(Protocol):
    """Interface of a simulator coverage binding."""

    def create_point_scope(self, name: str) -> int:
        """Create a single-dimension coverage scope and return its handle."""

    def create_cross_scope(self, name: str) -> int:
        """Create a multi-dimension coverage scope and return its handle."""

    def set_name(self, handle: int, name: str) -> None:
        """Rename a scope."""

    # pylint: disable=too-many-positional-arguments
    def add_bin(  # pylint: disable=too-many-arguments
        self, handle: int, region: RangeSet, kind: BinKind, goal: int, name: str
    ) -> None:
        """Declare a bin inside a scope."""

    def inc_bin(self, handle: int, index: int) -> None:
        """Credit one hit to bin ``index`` of a scope."""


class NullCovSink:
    """Sink that ignores everything."""

    def create_point_scope(self, name: str) -> int:  # pylint: disable=unused-argument
        return 0

    def create_cross_scope(self, name: str) -> int:  # pylint: disable=unused-argument
        return 0

    def set_name(self, handle: int, name: str) -> None:
        pass

    # pylint: disable=too-many-positional-arguments
    def add_bin(  # pylint: disable=too-many-arguments
        self, handle: int, region: RangeSet, kind: BinKind, goal: int, name: str
    ) -> None:
        pass

    def inc_bin(self, handle: int, index: int) -> None:
        pass


@dataclass
class _Scope:
    name: str
    cross: bool
    bins: list[dict[str, Any]] = field(default_factory=list)


class RecordingCovSink:
    """Sink that records scopes, bins and hits in memory."""

    def __init__(self) -> None:
        self.scopes: list[_Scope] = []

    def _new_scope(self, name: str, cross: bool) -> int:
        self.scopes.append(_Scope(name=name, cross=cross))
        logger.debug("created %s scope %r", "cross" if cross else "point", name)
        return len(self.scopes) - 1

    def create_point_scope(self, name: str) -> int:
        return self._new_scope(name, cross=False)

    def create_cross_scope(self, name: str) -> int:
        return self._new_scope(name, cross=True)

    def set_name(self, handle: int, name: str) -> None:
        self.scopes[handle].name = name

    # pylint: disable=too-many-positional-arguments
    def add_bin(  # pylint: disable=too-many-arguments
        self, handle: int, region: RangeSet, kind: BinKind, goal: int, name: str
    ) -> None:
        self.scopes[handle].bins.append(
            {
                "name": name,
                "kind": BinKind(kind).name,
                "region": [list(r) for r in region],
                "goal": goal,
                "hits": 0,
            }
        )

    def inc_bin(self, handle: int, index: int) -> None:
        self.scopes[handle].bins[index]["hits"] += 1

    def to_dict(self) -> dict[str, Any]:
        """Return all recorded scopes keyed by scope name."""
        return {
            s.name: {"cross": s.cross, "bins": [dict(b) for b in s.bins]}
            for s in self.scopes
        }

    def export_to_yaml(self, path: Path | str) -> None:
        """Write the recorded scopes to a YAML file."""
        Path(path).write_text(
            yaml.safe_dump(self.to_dict(), sort_keys=False), encoding="utf-8"
        )
        logger.debug("Vendor coverage YAML written to %s", path)
