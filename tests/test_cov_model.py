# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: tests/test_cov_model.py

"""Tests for CoverageModel settings, population, sampling and the model table."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from covmodel.core.cov_alert import AlertLevel, CovFatalError, LoggingAlertSink
from covmodel.core.cov_gen import (
    make_discrete,
    make_ignore_range,
    make_illegal_range,
    make_range,
)
from covmodel.core.cov_model import (
    CovModelConfig,
    CovModelTable,
    CoverageModel,
    default_table,
    load_cov_config,
)
from covmodel.core.cov_sink import RecordingCovSink
from covmodel.core.cov_types import (
    Bin,
    BinKind,
    CountMode,
    IllegalMode,
    NextPointMode,
    WeightMode,
)
from covmodel.utils import normalize_seed


def test_defaults(model):
    assert model.weight_mode == WeightMode.AT_LEAST
    assert model.weight_scale == 1.0
    assert model.illegal_mode == IllegalMode.ON
    assert model.count_mode == CountMode.FIRST
    assert model.threshold == 45.0
    assert not model.thresholding
    assert not model.merging
    assert model.cov_target == 100.0
    assert model.next_point_mode == NextPointMode.RANDOM
    assert model.get_seed() == normalize_seed("test_model")
    assert model.dimensions == 0


def test_weight_scale_validation(model, alerts):
    with pytest.raises(CovFatalError):
        model.set_weight_mode(WeightMode.REMAIN_SCALED, 0.5)
    assert model.weight_mode == WeightMode.AT_LEAST
    model.set_weight_mode(WeightMode.REMAIN_EXP, 3.0)
    assert model.weight_mode == WeightMode.REMAIN_EXP
    assert alerts.levels() == [AlertLevel.FAILURE, AlertLevel.WARNING]


def test_setter_values_are_checked(model):
    with pytest.raises(ValueError):
        model.set_cov_threshold(0)
    with pytest.raises(ValueError):
        model.set_cov_target(-5)
    model.set_cov_threshold(10)
    assert model.thresholding
    assert model.threshold == 10


def test_seed_forms(model):
    assert model.set_seed(1234) == 1234
    assert model.set_seed("0x20") == 32
    assert model.get_seed() == 32
    assert model.set_seed("nightly") == normalize_seed("nightly")


def test_same_seed_same_points():
    def points(seed):
        m = CoverageModel("seeded")
        m.add_cross(make_range(0, 255, 8), make_range(0, 15, 4))
        m.set_seed(seed)
        out = []
        for _ in range(25):
            p = m.get_rand_point()
            m.record(p)
            out.append(p)
        return out

    assert points("run_a") == points("run_a")
    assert CoverageModel("x").get_seed() == CoverageModel("x").get_seed()


def test_add_bins_reconciles_goal_and_weight(model):
    model.add_bins(make_range(0, 9, 2, goal=3) + make_illegal_range(10, 19), goal=5)
    assert [model.get_bin(i).goal for i in range(3)] == [5, 5, 0]
    model.add_bins(make_discrete([20], goal=7, weight=2), goal=5, name="hi")
    b = model.get_bin(3)
    assert (b.goal, b.weight, b.name) == (7, 2, "hi")


def test_get_bin_returns_a_copy(model):
    model.add_bins(make_discrete([1]))
    model.get_bin(0).count = 99
    assert model.bins[0].count == 0


def test_record_counts_first_match(model):
    model.add_bins(make_range(0, 9, 5))
    for v in (0, 1, 4, 9, 42):
        model.record(v)
    assert [b.count for b in model.bins] == [2, 0, 1, 0, 1]
    assert model.item_count == 5
    # every sample but 42 matched a bin
    assert sum(b.count for b in model.bins) == 4


def test_record_illegal_bin(model, alerts):
    model.add_bins(make_discrete([5], goal=0, weight=0, kind=BinKind.ILLEGAL))
    model.record([5])
    assert model.bins[0].count == -1
    model.record([3])
    assert model.bins[0].count == -1
    assert model.error_count == 1
    assert model.item_count == 2
    assert alerts.levels() == [AlertLevel.ERROR]


@pytest.mark.parametrize(
    ("mode", "expected"),
    [
        (IllegalMode.ON, [AlertLevel.ERROR]),
        (IllegalMode.FAILURE, [AlertLevel.FAILURE]),
        (IllegalMode.OFF, []),
    ],
)
def test_illegal_modes(model, alerts, mode, expected):
    model.add_bins(make_range(0, 9) + make_illegal_range(10, 19))
    model.set_illegal_mode(mode)
    model.record(12)
    assert model.bins[1].count == -1
    assert alerts.levels() == expected


def test_ignore_bins_are_not_counted(model):
    model.add_bins(make_ignore_range(0, 4) + make_range(0, 9))
    model.record(3)
    assert [b.count for b in model.bins] == [0, 0]
    model.record(7)
    assert [b.count for b in model.bins] == [0, 1]


def test_count_mode_all_credits_every_match(model):
    model.add_bins(make_range(0, 9) + make_range(5, 5))
    model.set_count_mode(CountMode.ALL)
    model.record(5)
    model.record(2)
    assert [b.count for b in model.bins] == [2, 1]


def test_first_match_fast_path_uses_last_index(model):
    model.add_bins(make_range(0, 9) + make_range(5, 5))
    model.record(5)
    assert [b.count for b in model.bins] == [1, 0]
    model.inc_index()
    model.inc_index()
    assert model.last_index == 1
    # the last selected bin is checked before the scan
    model.record(5)
    assert [b.count for b in model.bins] == [1, 1]
    model.record(3)
    assert [b.count for b in model.bins] == [2, 1]
    assert model.last_index == 0


def test_record_wrong_dimension_is_fatal(model):
    with pytest.raises(CovFatalError):
        model.record(1)
    model.add_cross(make_range(0, 3), make_range(0, 3))
    with pytest.raises(CovFatalError):
        model.record(1)
    assert model.item_count == 0


def test_record_last(model, alerts):
    model.record_last()
    assert alerts.levels() == [AlertLevel.ERROR]
    model.add_bins(make_range(0, 99, 4))
    point = model.get_rand_point()
    model.record_last()
    model.record(point)
    assert model.bins[model.last_index].count == 2


def test_merging_idempotence(model):
    model.set_merging()
    model.add_bins([Bin(region=((3, 3),), count=2)], name="x")
    model.add_bins([Bin(region=((3, 3),), count=5)], name="x")
    assert model.num_bins == 1
    assert model.bins[0].count == 7


def test_subset_suppression(model):
    model.set_merging()
    model.add_bins(make_illegal_range(0, 9))
    before = model.get_bin(0)
    model.add_bins(make_range(2, 5, 2))
    assert model.num_bins == 1
    assert model.get_bin(0) == before


def test_names_and_messages(model):
    model.set_message("first\nsecond")
    model.add_message("third")
    assert model.messages == ["first", "second", "third"]
    model.set_message("only")
    assert model.messages == ["only"]
    model.set_name("renamed")
    assert model.name == "renamed"
    assert model.store.name == "renamed"


def test_clear_cov_and_clear(model):
    model.add_bins(make_range(0, 9, 2))
    model.set_cov_target(80)
    model.set_message("hello")
    model.record(1)
    model.clear_cov()
    assert [b.count for b in model.bins] == [0, 0]
    assert model.cov_target == 80
    assert model.item_count == 0
    model.clear()
    assert model.num_bins == 0
    assert model.dimensions == 0
    assert model.cov_target == 100.0
    assert not model.messages
    assert model.name == "test_model"
    model.add_cross(make_range(0, 1), make_range(0, 1))
    assert model.dimensions == 2


def test_compare(alerts):
    a = CoverageModel("a", alert_sink=alerts)
    b = CoverageModel("b", alert_sink=alerts)
    for m in (a, b):
        m.add_bins(make_range(0, 9, 3))
        m.record(4)
    assert a.compare(b)
    b.record(0)
    assert not a.compare(b)
    assert alerts.levels() == [AlertLevel.ERROR]


def test_vendor_sink_mirrors_bins_and_hits():
    sink = RecordingCovSink()
    point = CoverageModel("point", vendor_sink=sink)
    point.add_bins(make_range(0, 9, 2))
    point.record(7)
    crossed = CoverageModel("crossed", vendor_sink=sink)
    crossed.add_cross(make_range(0, 1, 2), make_discrete([5]))
    crossed.set_name("crossed2")
    data = sink.to_dict()
    assert data["point"]["cross"] is False
    assert [b["hits"] for b in data["point"]["bins"]] == [0, 1]
    assert data["crossed2"]["cross"] is True
    assert len(data["crossed2"]["bins"]) == 2


def test_logging_alert_sink(caplog):
    sink = LoggingAlertSink("cov")
    m = CoverageModel("cov", alert_sink=sink)
    m.add_bins(make_illegal_range(0, 9))
    with caplog.at_level(logging.WARNING):
        m.record(3)
    assert sink.alert_count(AlertLevel.ERROR) == 1
    assert sink.total == 1
    assert "cov: illegal bin 0" in caplog.text


def test_config_from_yaml(tmp_path, alerts):
    path = tmp_path / "cov.yaml"
    path.write_text(
        "name: from_yaml\n"
        "weight_mode: Remain_Weight\n"
        "weight_scale: 1.5\n"
        "count_mode: all\n"
        "illegal_mode: \"off\"\n"
        "thresholding: true\n"
        "threshold: 20\n"
        "target: 90\n"
        "merging: true\n"
        "seed: regress_42\n"
        "next_point_mode: increment\n",
        encoding="utf-8",
    )
    cfg = load_cov_config(path)
    m = CoverageModel(alert_sink=alerts)
    m.configure(cfg)
    assert m.name == "from_yaml"
    assert (m.weight_mode, m.weight_scale) == (WeightMode.REMAIN_WEIGHT, 1.5)
    assert m.count_mode == CountMode.ALL
    assert m.illegal_mode == IllegalMode.OFF
    assert (m.thresholding, m.threshold, m.cov_target) == (True, 20, 90)
    assert m.merging
    assert m.get_seed() == normalize_seed("regress_42")
    assert m.next_point_mode == NextPointMode.INCREMENT


def test_config_rejects_bad_values():
    with pytest.raises(ValidationError):
        CovModelConfig.model_validate({"weight_mode": "sometimes"})
    with pytest.raises(ValidationError):
        CovModelConfig.model_validate({"target": 0})
    assert CovModelConfig.model_validate({"count_mode": 1}).count_mode == CountMode.ALL


def test_model_table():
    table = CovModelTable()
    h1 = table.new_model("one")
    h2 = table.new_model("two")
    assert len(table) == 2
    assert table[h2].name == "two"
    assert table.find("one") == h1
    assert table.find("three") is None
    assert table.handles() == [h1, h2]
    assert [m.name for m in table] == ["one", "two"]
    with pytest.raises(KeyError):
        _ = CovModelTable()[h1]
    table[h1].add_bins(make_range(0, 3))
    table.deallocate(h1)
    assert table[h1].num_bins == 0
    assert default_table() is default_table()
