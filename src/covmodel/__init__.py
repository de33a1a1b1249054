# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/__init__.py

"""covmodel: functional coverage models for constrained-random verification.

A coverage model partitions an integer value space into bins, counts the
sampled values that land in each bin and steers stimulus generation toward
the bins that still need hits.

Main Components:

core:
    The coverage bin engine:
    - Bin generators (ranges, discrete values, ignore/illegal ranges)
    - Bin storage with merge/suppress rules
    - Cross-product bins over up to 20 dimensions
    - Coverage metrics and weighted random/incremental/minimum selection
    - Line-oriented database format with merge-on-read
    - Tabulated/YAML/plot reports

tools:
    Command-line tools (``covdb``: merge and report coverage databases)

dv:
    pyuvm subscriber that feeds sampled transactions into a model

utils:
    Common utilities used across the package
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

try:
    __version__ = pkg_version("covmodel")
except PackageNotFoundError:
    __version__ = "0+local"
