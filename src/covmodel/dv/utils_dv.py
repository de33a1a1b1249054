# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/dv/utils_dv.py

"""pyuvm helpers used by the coverage subscriber.

Functions:
    uvm_config_db(): Return cached config DB instance
    uvm_config_db_get_try(): Get config value or None if missing
    desired_log_level(): Get log level from COCOTB_LOG_LEVEL env var
    configure_component_logger(): Configure logger for UVM component
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, cast

import pyuvm
from pyuvm import error_classes


def desired_log_level(default: int = logging.INFO) -> int:
    """Return the level named by COCOTB_LOG_LEVEL, or ``default``."""
    name = (os.getenv("COCOTB_LOG_LEVEL") or "").upper()
    return getattr(logging, name, default) if name else default


def configure_component_logger(comp: pyuvm.uvm_component) -> None:
    """Apply the desired log level to a component."""
    comp.set_logging_level(desired_log_level())


@lru_cache(maxsize=1)
def uvm_config_db() -> Any:
    """Return pyuvm's config DB object (cached)."""
    if hasattr(pyuvm, "ConfigDB") and callable(getattr(pyuvm, "ConfigDB")):
        return getattr(pyuvm, "ConfigDB")()
    return getattr(pyuvm, "uvm_config_db")()


def uvm_config_db_get_try(
    comp: pyuvm.uvm_component, key: str, inst: str = ""
) -> Any | None:
    """Return the config value for ``key`` or None when it was never set."""
    if inst == "*":
        inst = ""
    try:
        return cast(Any, uvm_config_db().get(comp, inst, key))
    except error_classes.UVMConfigItemNotFound:
        return None
