# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: tests/test_cov_subscriber.py

"""Tests for the pyuvm coverage subscriber (no simulator needed)."""

from __future__ import annotations

import logging

import pytest
import yaml

pytest.importorskip("pyuvm")

# pylint: disable=wrong-import-position
from covmodel.core.cov_gen import make_discrete, make_range  # noqa: E402
from covmodel.core.cov_model import CoverageModel, default_table  # noqa: E402
from covmodel.dv import CovModelSubscriber, utils_dv  # noqa: E402


class AluCoverage(CovModelSubscriber[tuple]):
    """Crosses operand range with opcode."""

    def build_bins(self, model: CoverageModel) -> None:
        model.add_cross(make_range(0, 255, 4), make_discrete([0, 1]))

    def to_point(self, tt: tuple) -> tuple:
        return tt


def _subscriber(tmp_path, enabled: bool = True) -> AluCoverage:
    # skip uvm_component construction, which needs a running test
    sub = object.__new__(AluCoverage)
    sub.logger = logging.getLogger("alu_cov")
    sub.model = CoverageModel("alu_cov")
    sub.build_bins(sub.model)
    sub.db_path = str(tmp_path / "alu.covdb")
    sub.yaml_path = str(tmp_path / "alu.yaml")
    sub._coverage_en = enabled  # pylint: disable=protected-access
    return sub


def test_write_records_transactions(tmp_path):
    sub = _subscriber(tmp_path)
    sub.write((10, 1))
    sub.write((200, 0))
    assert sub.model.item_count == 2
    assert sub.model.total_cov_count() == 2


def test_disabled_subscriber_ignores_transactions(tmp_path):
    sub = _subscriber(tmp_path, enabled=False)
    sub.write((10, 1))
    assert sub.model.item_count == 0


def test_report_coverage_writes_outputs(tmp_path, caplog):
    sub = _subscriber(tmp_path)
    sub.write((10, 1))
    with caplog.at_level(logging.INFO, logger="alu_cov"):
        sub.report_coverage()
    assert "alu_cov: 12.50% covered" in caplog.text
    data = yaml.safe_load((tmp_path / "alu.yaml").read_text(encoding="utf-8"))
    assert data["holes"] == 7
    fresh = CoverageModel()
    fresh.read_database(tmp_path / "alu.covdb")
    assert fresh.compare(sub.model)


class CountingCoverage(AluCoverage):
    """Counts build_bins calls."""

    calls = 0

    def build_bins(self, model: CoverageModel) -> None:
        CountingCoverage.calls += 1
        super().build_bins(model)


def _bare(cls, model: CoverageModel):
    sub = object.__new__(cls)
    sub.logger = logging.getLogger("alu_cov")
    sub.model = model
    sub._coverage_en = True  # pylint: disable=protected-access
    return sub


def test_shared_model_found_by_name():
    a = AluCoverage.shared_model("shared_alu_cov")
    b = AluCoverage.shared_model("shared_alu_cov")
    assert a is b
    table = default_table()
    assert table[table.find("shared_alu_cov")] is a
    assert AluCoverage.shared_model("other_alu_cov") is not a


def test_build_phase_populates_shared_model_once():
    model = CountingCoverage.shared_model("build_once_cov")
    first = _bare(CountingCoverage, model)
    second = _bare(CountingCoverage, model)
    CountingCoverage.calls = 0
    first.build_phase()
    second.build_phase()
    assert CountingCoverage.calls == 1
    assert model.num_bins == 8
    second.write((10, 1))
    assert first.model.total_cov_count() == 1


def test_end_of_elaboration_reads_coverage_en(monkeypatch):
    sub = _bare(AluCoverage, CoverageModel("elab_cov"))
    monkeypatch.setattr(utils_dv, "uvm_config_db_get_try", lambda comp, key: False)
    sub.end_of_elaboration_phase()
    assert not sub._coverage_en  # pylint: disable=protected-access
    monkeypatch.setattr(utils_dv, "uvm_config_db_get_try", lambda comp, key: None)
    sub.end_of_elaboration_phase()
    assert not sub._coverage_en  # pylint: disable=protected-access
