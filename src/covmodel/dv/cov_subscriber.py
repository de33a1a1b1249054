# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/dv/cov_subscriber.py

"""Functional coverage subscriber backed by a CoverageModel (pyuvm)."""

from __future__ import annotations

import os
from typing import Generic, Sequence, TypeVar

import pyuvm

from covmodel.core.cov_model import CoverageModel, default_table
from covmodel.core.cov_report import export_to_yaml, format_cov_holes, summary_line

from . import utils_dv

T = TypeVar("T")


class CovModelSubscriber(pyuvm.uvm_subscriber, Generic[T]):
    """Coverage subscriber that records monitor transactions into a model.

    The model is looked up by name in ``default_table()`` (created on first
    use), so several subscribers with the same ``model_name`` share bins.

    Usage Pattern:
        1. Subclass CovModelSubscriber
        2. Override build_bins() to add bins to an empty model
        3. Override to_point() to turn a transaction into a sample point

    Configuration (via config_db):
        coverage_en (bool): Enable coverage collection (default: True)

    Environment Variables:
        COV_DB: Path to write the coverage database (optional)
        COV_YAML: Path to write the coverage YAML summary (optional)

    Example:
        >>> class AluCoverage(CovModelSubscriber[AluItem]):
        ...     def build_bins(self, model):
        ...         model.add_cross(make_range(0, 255, 8), make_discrete([0, 1, 2, 3]))
        ...     def to_point(self, tt):
        ...         return (tt.a, tt.op)
    """

    model_name: str = ""

    def __init__(self, name: str, parent: pyuvm.uvm_component | None) -> None:
        super().__init__(name, parent)
        utils_dv.configure_component_logger(self)
        self.db_path: str | None = os.getenv("COV_DB")
        self.yaml_path: str | None = os.getenv("COV_YAML")
        self._coverage_en: bool = True
        self.model: CoverageModel = self.shared_model(self.model_name or name)

    @classmethod
    def shared_model(cls, name: str) -> CoverageModel:
        """Model called ``name`` in ``default_table()``, created on first use."""
        table = default_table()
        handle = table.find(name) or table.new_model(name)
        return table[handle]

    def build_phase(self) -> None:
        """Populate the model unless another subscriber already did."""
        super().build_phase()
        if self.model.num_bins == 0:
            self.build_bins(self.model)
            self.logger.debug("%s: %d bins", self.model.name, self.model.num_bins)

    def end_of_elaboration_phase(self) -> None:
        """Cache coverage_en."""
        self.logger.debug("end_of_elaboration_phase begin")
        super().end_of_elaboration_phase()
        cvrg = utils_dv.uvm_config_db_get_try(self, "coverage_en")
        if isinstance(cvrg, bool):
            self._coverage_en = cvrg
        self.logger.debug("end_of_elaboration_phase end")

    def build_bins(self, model: CoverageModel) -> None:  # pragma: no cover - hook
        """Override in subclasses to add bins."""
        raise NotImplementedError("Override in subclass to add bins")

    def to_point(self, tt: T) -> int | Sequence[int]:  # pragma: no cover - hook
        """Override in subclasses to map a transaction to a sample point."""
        raise NotImplementedError("Override in subclass to return a sample point")

    def write(self, tt: T) -> None:
        """Receive a transaction from a monitor and record it."""
        if not self._coverage_en:
            return
        self.model.record(self.to_point(tt))

    def report_coverage(self) -> None:
        """Log the summary and holes and write the requested outputs."""
        self.logger.info(summary_line(self.model))
        for line in format_cov_holes(self.model).splitlines():
            self.logger.debug(line)
        if self.db_path:
            self.model.write_database(self.db_path)
        if self.yaml_path:
            export_to_yaml(self.model, self.yaml_path)

    def report_phase(self) -> None:
        """Emit the coverage report at end of sim."""
        self.logger.debug("report_phase begin")
        super().report_phase()
        if not self._coverage_en:
            return
        self.report_coverage()
        self.logger.debug("report_phase end")
