# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/dv/__init__.py

"""pyuvm glue for coverage models.

- CovModelSubscriber: uvm_subscriber that records transactions into a model
- utils_dv: config_db and logger helpers
"""

from __future__ import annotations

from covmodel import __version__

from . import utils_dv
from .cov_subscriber import CovModelSubscriber

__all__ = (
    "CovModelSubscriber",
    "utils_dv",
    "__version__",
)
