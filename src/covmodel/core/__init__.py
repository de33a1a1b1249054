# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/__init__.py

"""Coverage bin engine.

Modules:
- cov_types: Bin, region helpers and policy enums
- cov_alert: alert levels, exceptions and the logging alert sink
- cov_random: injected random service
- cov_sink: simulator coverage sink interface
- cov_gen: pure bin-list generators
- cov_bin_store: ordered bin storage and merge rules
- cov_cross: cross-product bin generation
- cov_select: coverage metrics and index selection
- cov_model: CoverageModel, its configuration and the model table
- cov_db: database read/write
- cov_report: tables, YAML summary and plot
"""

from __future__ import annotations

from covmodel import __version__

from . import cov_db, cov_report, cov_select
from .cov_alert import (
    AlertLevel,
    AlertSink,
    CovDbError,
    CovError,
    CovFatalError,
    LoggingAlertSink,
)
from .cov_bin_store import BinStore, InsertResult
from .cov_cross import cross
from .cov_gen import (
    concat_bins,
    make_discrete,
    make_ignore_range,
    make_illegal_range,
    make_range,
)
from .cov_model import (
    CovHandle,
    CovModelConfig,
    CovModelTable,
    CoverageModel,
    default_table,
    load_cov_config,
)
from .cov_random import CovRandom, RandomService
from .cov_sink import NullCovSink, RecordingCovSink, VendorCovSink
from .cov_types import (
    Bin,
    BinKind,
    CountMode,
    IllegalMode,
    NextPointMode,
    RangeSet,
    WeightMode,
)

__all__ = (
    "AlertLevel",
    "AlertSink",
    "Bin",
    "BinKind",
    "BinStore",
    "CountMode",
    "CovDbError",
    "CovError",
    "CovFatalError",
    "CovHandle",
    "CovModelConfig",
    "CovModelTable",
    "CovRandom",
    "CoverageModel",
    "IllegalMode",
    "InsertResult",
    "LoggingAlertSink",
    "NextPointMode",
    "NullCovSink",
    "RandomService",
    "RangeSet",
    "RecordingCovSink",
    "VendorCovSink",
    "WeightMode",
    "concat_bins",
    "cov_db",
    "cov_report",
    "cov_select",
    "cross",
    "default_table",
    "load_cov_config",
    "make_discrete",
    "make_ignore_range",
    "make_illegal_range",
    "make_range",
    "__version__",
)
