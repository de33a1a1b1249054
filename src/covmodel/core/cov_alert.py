# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_alert.py

"""Alert levels, exceptions and the alert sink used by coverage models.

The core reports every noteworthy condition to an ``AlertSink`` as a
``(level, message)`` pair. Fatal conditions are reported at ``FAILURE`` and
then raised as ``CovFatalError`` so the current operation stops.

Error Handling:
    CovError: Base class for all coverage errors
    CovFatalError: Model is unusable for the failed operation
    CovDbError: Database read/write failure naming the failing field
"""

from __future__ import annotations

import logging
from collections import Counter
from enum import IntEnum
from typing import Protocol

from covmodel.utils import red, yellow

logger = logging.getLogger(__name__)


class AlertLevel(IntEnum):
    """Alert severities. FAILURE is the fatal severity."""

    WARNING = 0
    ERROR = 1
    FAILURE = 2


class CovError(Exception):
    """Base class for coverage model errors."""


class CovFatalError(CovError):
    """Raised after a FAILURE alert for conditions that stop an operation."""


class CovDbError(CovFatalError):
    """Raised when a coverage database cannot be read or written."""


class AlertSink(Protocol):  # pylint: disable=too-few-public-methods
    """Receiver of alerts raised by a coverage model."""

    def alert(self, level: AlertLevel, message: str) -> None:
        """Handle one alert."""


class LoggingAlertSink:
    """Alert sink that logs every alert and keeps per-level counts.

    Example:
        >>> sink = LoggingAlertSink("cpu_cov")
        >>> sink.alert(AlertLevel.ERROR, "bin dropped")
        >>> sink.alert_count(AlertLevel.ERROR)
        1
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self.counts: Counter[AlertLevel] = Counter()

    def alert(self, level: AlertLevel, message: str) -> None:
        """Log the alert at the matching logging level and count it."""
        self.counts[level] += 1
        prefix = f"{self.name}: " if self.name else ""
        if level == AlertLevel.WARNING:
            logger.warning(yellow(f"{prefix}{message}"))
        elif level == AlertLevel.ERROR:
            logger.error(red(f"{prefix}{message}"))
        else:
            logger.critical(red(f"{prefix}{message}"))

    def alert_count(self, level: AlertLevel) -> int:
        """Number of alerts seen at ``level``."""
        return self.counts[level]

    @property
    def total(self) -> int:
        """Number of alerts seen at any level."""
        return sum(self.counts.values())
