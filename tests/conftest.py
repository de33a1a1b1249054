# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: tests/conftest.py

"""Shared fixtures for covmodel tests."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

# pylint: disable=wrong-import-position
import pytest  # noqa: E402

from covmodel.core.cov_alert import AlertLevel  # noqa: E402
from covmodel.core.cov_model import CoverageModel  # noqa: E402


class ListAlertSink:
    """Alert sink that keeps every alert for inspection."""

    def __init__(self) -> None:
        self.alerts: list[tuple[AlertLevel, str]] = []

    def alert(self, level: AlertLevel, message: str) -> None:
        self.alerts.append((level, message))

    def levels(self) -> list[AlertLevel]:
        return [level for level, _ in self.alerts]


class FixedRandom:
    """Random service that records the weights it is given."""

    def __init__(self, pick: int = 0) -> None:
        self.pick = pick
        self.weights: list[list[int]] = []

    def seed(self, value: int | str) -> int:  # pylint: disable=unused-argument
        return 0

    def uniform_int(self, lo: int, hi: int) -> int:  # pylint: disable=unused-argument
        return lo

    def weighted_discrete(self, weights) -> int:
        self.weights.append(list(weights))
        return self.pick


@pytest.fixture
def fixed() -> FixedRandom:
    return FixedRandom(pick=2)


@pytest.fixture
def alerts() -> ListAlertSink:
    return ListAlertSink()


@pytest.fixture
def model(alerts: ListAlertSink) -> CoverageModel:
    return CoverageModel("test_model", alert_sink=alerts)
