# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_report.py

"""Human-readable coverage reports: tables, YAML summary and plot."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

import yaml
from tabulate import tabulate

from covmodel.utils import PlotLine, ensure_dir, iso_utc

from .cov_types import PERCENT_MAX, Bin, BinKind, region_str

if TYPE_CHECKING:
    from .cov_model import CoverageModel

logger = logging.getLogger(__name__)

# bins with a negative goal report PERCENT_MAX
PLOT_PERCENT_CLIP = 1000.0

HEADERS = ["Index", "Name", "Kind", "Region", "Count", "Goal", "Weight", "Percent"]


def _percent(b: Bin) -> str:
    if b.kind != BinKind.COUNT:
        return "-"
    pct = b.percent_covered
    return "max" if pct == PERCENT_MAX else f"{pct:.2f}"


def _rows(items: Iterable[tuple[int, Bin]]) -> list[list[object]]:
    return [
        [
            i,
            b.name,
            b.kind.name,
            region_str(b.region),
            b.count,
            b.goal,
            b.weight,
            _percent(b),
        ]
        for i, b in items
    ]


def _table(rows: list[list[object]]) -> str:
    # percent cells are preformatted strings
    return tabulate(rows, headers=HEADERS, tablefmt="github", disable_numparse=True)


def format_bins(model: CoverageModel) -> str:
    """Table of every bin of ``model``."""
    return _table(_rows(enumerate(model.bins)))


def format_cov_holes(model: CoverageModel, target: float | None = None) -> str:
    """Table of the COUNT bins of ``model`` below ``target`` percent."""
    t = model.cov_target if target is None else target
    holes = [
        (i, b)
        for i, b in enumerate(model.bins)
        if b.kind == BinKind.COUNT and b.percent_covered < t
    ]
    return _table(_rows(holes))


def summary_line(model: CoverageModel, target: float | None = None) -> str:
    """One-line coverage summary."""
    return (
        f"{model.name or '<unnamed>'}: {model.percent_covered(target):.2f}% covered, "
        f"{model.count_cov_holes(target)} holes, {model.num_bins} bins, "
        f"{model.error_count} illegal hits"
    )


def write_bins(model: CoverageModel, path: Path | str) -> Path:
    """Write the bin table plus a summary line to ``path``."""
    path = Path(path)
    ensure_dir(path.parent, True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        print(format_bins(model), file=f)
        print(file=f)
        print(summary_line(model), file=f)
    logger.info("Saved table: %s", path)
    return path


def summary(model: CoverageModel, target: float | None = None) -> dict[str, Any]:
    """Plain-data summary of ``model`` suitable for YAML."""
    t = model.cov_target if target is None else target
    return {
        "name": model.name,
        "timestamp": iso_utc(),
        "target": t,
        "percent_covered": round(model.percent_covered(t), 4),
        "covered": model.is_covered(t),
        "holes": model.count_cov_holes(t),
        "item_count": model.item_count,
        "error_count": model.error_count,
        "bins": [
            {
                "name": b.name,
                "kind": b.kind.name,
                "region": [list(r) for r in b.region],
                "count": b.count,
                "goal": b.goal,
                "weight": b.weight,
            }
            for b in model.bins
        ],
    }


def export_to_yaml(
    model: CoverageModel, path: Path | str, target: float | None = None
) -> Path:
    """Write ``summary(model, target)`` as YAML."""
    path = Path(path)
    ensure_dir(path.parent, True)
    path.write_text(
        yaml.safe_dump(summary(model, target), sort_keys=False), encoding="utf-8"
    )
    logger.info("Coverage YAML written to %s", path)
    return path


def plot_coverage(model: CoverageModel, outdir: Path | str, name: str = "") -> Path:
    """Save a line plot of percent covered per COUNT bin."""
    xs: list[float] = []
    ys: list[float] = []
    for i, b in enumerate(model.bins):
        if b.kind == BinKind.COUNT:
            xs.append(i)
            ys.append(min(b.percent_covered, PLOT_PERCENT_CLIP))
    title = f"Coverage of {model.name}" if model.name else "Coverage"
    p = PlotLine(outdir, title, "Bin index", "Percent covered")
    p.add_line(xs, ys, label="Percent covered", color="blue", marker="o")
    p.add_line(
        xs, [model.cov_target] * len(xs), label="Target", color="red", linestyle="--"
    )
    return p.save(f"{name or model.name or 'coverage'}_plot")
