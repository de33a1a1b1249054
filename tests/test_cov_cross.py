# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: tests/test_cov_cross.py

"""Tests for cross-product bin generation."""

from __future__ import annotations

import math

import pytest

from covmodel.core.cov_alert import AlertLevel, CovFatalError
from covmodel.core.cov_cross import active_dims, cross
from covmodel.core.cov_gen import (
    make_discrete,
    make_ignore_range,
    make_illegal_range,
    make_range,
)
from covmodel.core.cov_types import BinKind


@pytest.mark.parametrize("n", range(2, 10))
def test_cross_length_is_product_of_dimension_lengths(n):
    dims = [make_range(0, 9, (i % 3) + 1) for i in range(n)]
    bins = cross(dims)
    assert len(bins) == math.prod(len(d) for d in dims)
    assert all(b.dimensions == n for b in bins)


def test_cross_order_last_dimension_fastest():
    bins = cross([make_range(0, 1, 2), make_discrete([7, 8, 9])])
    assert [b.region for b in bins][:4] == [
        ((0, 0), (7, 7)),
        ((0, 0), (8, 8)),
        ((0, 0), (9, 9)),
        ((1, 1), (7, 7)),
    ]


def test_cross_kind_precedence():
    bins = cross(
        [make_discrete([0]), make_ignore_range(1, 1) + make_illegal_range(2, 2)]
    )
    assert [b.kind for b in bins] == [BinKind.IGNORE, BinKind.ILLEGAL]
    assert all(b.goal == 0 and b.weight == 0 for b in bins)
    mixed = cross([make_illegal_range(0, 0), make_ignore_range(1, 1)])
    assert mixed[0].kind == BinKind.ILLEGAL


def test_cross_goal_and_weight_take_maximum():
    (b,) = cross(
        [make_discrete([1], goal=3, weight=2), make_discrete([2], goal=5)], goal=4
    )
    assert (b.goal, b.weight) == (5, 2)
    (b,) = cross([make_discrete([1]), make_discrete([2])], goal=4, weight=6)
    assert (b.goal, b.weight) == (4, 6)


def test_trailing_empty_dimensions_are_dropped():
    assert len(active_dims([make_range(0, 1, 2), make_discrete([3]), [], []])) == 2
    assert len(cross([make_range(0, 1, 2), [], make_discrete([3])])) == 0
    assert not cross([])


def test_more_than_twenty_dimensions_is_fatal(model, alerts):
    dims = [make_discrete([0])] * 21
    with pytest.raises(CovFatalError):
        cross(dims)
    with pytest.raises(CovFatalError):
        model.add_cross(*dims)
    assert alerts.levels() == [AlertLevel.FAILURE]


def test_add_cross_inserts_into_model(model):
    model.add_cross(make_range(0, 7, 2), make_discrete([1, 2]), [], name="alu")
    assert model.num_bins == 4
    assert model.dimensions == 2
    assert {model.bin_name(i) for i in range(4)} == {"alu"}


def test_add_cross_dimension_mismatch_is_fatal(model):
    model.add_cross(make_range(0, 7, 2), make_discrete([1, 2]))
    with pytest.raises(CovFatalError, match="different dimensions"):
        model.add_cross(make_range(0, 7, 2), make_discrete([1]), make_discrete([3]))
    with pytest.raises(CovFatalError):
        model.add_bins(make_range(0, 3))
    assert model.num_bins == 4
