# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/tools/cov_report_tool.py

"""covdb: merge coverage databases and report coverage.

The first database is read into a fresh model and every further database is
merged into it, so bins present in all runs accumulate their counts.

Exit status:
    0  every COUNT bin reached the target
    1  coverage holes remain
    2  a database could not be read or written
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from covmodel.core.cov_alert import CovFatalError
from covmodel.core.cov_model import CoverageModel
from covmodel.core.cov_report import (
    export_to_yaml,
    format_bins,
    format_cov_holes,
    plot_coverage,
    summary_line,
    write_bins,
)
from covmodel.utils import configure_logger, ensure_dir, green, red

logger = logging.getLogger(__name__)

EXIT_COVERED = 0
EXIT_HOLES = 1
EXIT_FATAL = 2


def _positive_float(s: str) -> float:
    v = float(s)
    if v <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {s}")
    return v


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the coverage database tool.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    ap = argparse.ArgumentParser(
        description="Coverage database merge and report",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    ap.add_argument("db", nargs="+", help="coverage database file(s)")
    ap.add_argument(
        "--target",
        type=_positive_float,
        default=None,
        help="coverage target percent (default: the database's target)",
    )
    ap.add_argument("--outdir", help="output directory for table, YAML and plot")
    ap.add_argument("--merge-out", help="write the merged database to this file")
    ap.add_argument("--yaml", action="store_true", help="write a YAML summary")
    ap.add_argument("--plot", action="store_true", help="save a coverage plot")
    ap.add_argument("--holes", action="store_true", help="list coverage holes only")
    ap.add_argument(
        "--verbosity",
        choices=["critical", "error", "warning", "info", "debug"],
        default="info",
        help="logging level",
    )
    return ap.parse_args(argv)


def _load(paths: Sequence[str]) -> CoverageModel:
    """Read the first database fresh and merge the rest in order."""
    model = CoverageModel()
    for i, db in enumerate(paths):
        model.read_database(db, merge=i > 0)
    return model


def main(argv: Sequence[str] | None = None) -> int:
    """Merge the given databases, print the report and return the exit status."""
    args = parse_args(argv)
    outdir = ensure_dir(args.outdir, True) if args.outdir else None
    configure_logger(args.verbosity, outdir / "covdb.log" if outdir else None)

    try:
        model = _load(args.db)
        if args.merge_out:
            model.write_database(args.merge_out)
    except CovFatalError as exc:
        logger.error(red(f"covdb: {exc}"))
        return EXIT_FATAL

    target = args.target
    print(format_cov_holes(model, target) if args.holes else format_bins(model))
    print(summary_line(model, target))

    name = model.name or "coverage"
    if outdir is not None:
        write_bins(model, outdir / f"{name}_bins.txt")
    if args.yaml:
        export_to_yaml(model, (outdir or Path(".")) / f"{name}_coverage.yaml", target)
    if args.plot:
        plot_coverage(model, outdir or Path("."), name)

    if model.is_covered(target):
        logger.info(green(f"{name}: covered ({len(args.db)} database(s))"))
        return EXIT_COVERED
    logger.info(
        red(f"{name}: {model.count_cov_holes(target)} coverage hole(s) remain")
    )
    return EXIT_HOLES


if __name__ == "__main__":
    raise SystemExit(main())
