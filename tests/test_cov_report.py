# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: tests/test_cov_report.py

"""Tests for tabulated, YAML and plot reports."""

from __future__ import annotations

import pytest
import yaml

from covmodel.core.cov_gen import make_illegal_range, make_range
from covmodel.core.cov_model import CoverageModel
from covmodel.core.cov_report import (
    export_to_yaml,
    format_bins,
    format_cov_holes,
    plot_coverage,
    summary_line,
    write_bins,
)
from covmodel.core.cov_sink import RecordingCovSink


@pytest.fixture
def report_model() -> CoverageModel:
    m = CoverageModel("rpt")
    m.add_bins(make_range(0, 9, 2, goal=2) + make_illegal_range(10, 11))
    m.record(1)
    m.record(2)
    m.record(7)
    return m


def test_format_bins(report_model):
    table = format_bins(report_model)
    assert "| Region" in table
    assert "(0:4)" in table
    assert "ILLEGAL" in table
    assert "100.00" in table
    assert len(table.splitlines()) == 2 + report_model.num_bins


def test_format_cov_holes(report_model):
    holes = format_cov_holes(report_model)
    assert "(5:9)" in holes
    assert "(0:4)" not in holes
    assert "(0:4)" in format_cov_holes(report_model, target=200)


def test_summary_line(report_model):
    line = summary_line(report_model)
    assert line.startswith("rpt: 75.00% covered, 1 holes, 3 bins")


def test_write_bins(tmp_path, report_model):
    path = write_bins(report_model, tmp_path / "sub" / "rpt_bins.txt")
    text = path.read_text(encoding="utf-8")
    assert "(10:11)" in text
    assert text.rstrip().endswith("0 illegal hits")


def test_export_to_yaml(tmp_path, report_model):
    path = export_to_yaml(report_model, tmp_path / "rpt.yaml")
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["name"] == "rpt"
    assert data["percent_covered"] == 75.0
    assert data["covered"] is False
    assert data["holes"] == 1
    assert data["item_count"] == 3
    assert data["bins"][0] == {
        "name": "",
        "kind": "COUNT",
        "region": [[0, 4]],
        "count": 2,
        "goal": 2,
        "weight": 1,
    }


def test_plot_coverage(tmp_path, report_model):
    path = plot_coverage(report_model, tmp_path)
    assert path.name == "rpt_plot.png"
    assert path.stat().st_size > 0


def test_recording_sink_yaml(tmp_path):
    sink = RecordingCovSink()
    m = CoverageModel("vendor", vendor_sink=sink)
    m.add_bins(make_range(0, 3, 2))
    m.record(0)
    path = tmp_path / "vendor.yaml"
    sink.export_to_yaml(path)
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert data["vendor"]["bins"][0]["hits"] == 1
    assert data["vendor"]["bins"][1]["region"] == [[2, 3]]
