# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/tools/__init__.py

"""Coverage tools package.

Command-line tools:
- covdb: Merge coverage databases and report bins, holes and totals
"""
