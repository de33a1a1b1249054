# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/utils.py

"""Utility functions shared by the coverage core, reports and the covdb CLI."""

from __future__ import annotations

import hashlib
import logging
import re
import time
from os import PathLike
from pathlib import Path
from typing import Sequence, Union

import matplotlib.pyplot as plt

RED = "\033[31m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RESET = "\033[0m"

SEED_MASK = 0xFFFF_FFFF

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_ANSI_ESCAPE = re.compile(r"\033\[[0-9;]*m")


class NoColorFormatter(logging.Formatter):
    """Formatter for log files: alert colors are stripped."""

    def format(self, record: logging.LogRecord) -> str:
        return _ANSI_ESCAPE.sub("", super().format(record))


class PlotLine:
    """Line plot of one or more series over a shared x axis, saved to outdir."""

    def __init__(
        self,
        outdir: Union[str, Path],
        title: str = "",
        xlabel: str = "",
        ylabel: str = "",
        figsize: tuple[int, int] = (10, 6),
    ):
        self.outdir = ensure_dir(outdir, True)
        self.title = title
        self.xlabel = xlabel
        self.ylabel = ylabel
        self.fig, self.ax = plt.subplots(figsize=figsize)

    def add_line(
        self, xs: Sequence[float], ys: Sequence[float], label: str, **style: str
    ) -> None:
        """Add a labeled series; ``style`` is passed through to ``Axes.plot``."""
        self.ax.plot(xs, ys, label=label, linewidth=2.0, **style)

    def save(self, filename: str, fmt: str = "png") -> Path:
        """Label, save and close the figure; return the file path."""
        self.ax.set_xlabel(self.xlabel)
        self.ax.set_ylabel(self.ylabel)
        if self.title:
            self.ax.set_title(self.title)
        self.ax.grid(True)
        if self.ax.get_legend_handles_labels()[0]:
            self.ax.legend()
        self.fig.tight_layout()
        path = self.outdir / f"{filename}.{fmt}"
        self.fig.savefig(path)
        plt.close(self.fig)
        logging.debug("Saved plot: %s", path)
        return path


def configure_logger(
    verbosity: str = "info", log_file: Path | None = None
) -> logging.Logger:
    """Send root logging to the console and, if given, to ``log_file``.

    Console output keeps the alert colors; the file copy is plain text.
    Existing root handlers are replaced so repeated calls do not duplicate
    output.

    Returns:
        The ``covmodel`` package logger
    """
    level = verbosity.upper()
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handlers: list[tuple[logging.Handler, logging.Formatter]] = [
        (logging.StreamHandler(), logging.Formatter(LOG_FORMAT, LOG_DATEFMT))
    ]
    if log_file:
        handlers.append(
            (
                logging.FileHandler(log_file, mode="w", encoding="utf-8"),
                NoColorFormatter(LOG_FORMAT, LOG_DATEFMT),
            )
        )
    for handler, formatter in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    return logging.getLogger("covmodel")


def ensure_dir(
    d: Union[str, Path, PathLike[str]], make_if_not_exists: bool = False
) -> Path:
    """Return absolute path if directory exists, optionally create it."""
    path = Path(d)
    if not path.exists():
        if make_if_not_exists:
            path.mkdir(parents=True, exist_ok=True)
            logging.info("Created directory: %s", path)
        else:
            raise FileNotFoundError(f"Directory does not exist: {path}")
    if not path.is_dir():
        raise NotADirectoryError(f"Not a directory: {path}")
    return path.resolve()


def green(s: str) -> str:
    """Wrap text in green ANSI escape codes."""
    return f"{GREEN}{s}{RESET}"


def iso_utc() -> str:
    """Return current time in ISO8601 Z format (UTC)."""
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def normalize_seed(s: int | str) -> int:
    """
    Normalize an integer or string seed to a 32-bit integer.
    Numeric strings (decimal or 0x...) are used as numbers, any other string
    is hashed so that the same text always yields the same seed.
    """
    if isinstance(s, int):
        return s & SEED_MASK
    try:
        return int(s.strip(), 0) & SEED_MASK
    except ValueError:
        digest = hashlib.sha1(s.encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "big")


def red(s: str) -> str:
    """Wrap text in red ANSI escape codes."""
    return f"{RED}{s}{RESET}"


def yellow(s: str) -> str:
    """Wrap text in yellow ANSI escape codes."""
    return f"{YELLOW}{s}{RESET}"
