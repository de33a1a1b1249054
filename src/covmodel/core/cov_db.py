# SPDX-FileCopyrightText: 2025 Hugh Walsh
#
# SPDX-License-Identifier: MIT

# This file: src/covmodel/core/cov_db.py

"""Line-oriented text database of one coverage model.

Document layout (fields space separated):

    <model name | Coverage_Model_Not_Named>
    seed threshold illegal_mode weight_mode weight_scale count_mode thresholding target merging
    message_count
    <message_count raw message lines>
    dimensions bin_count
    kind count goal weight percent min1 max1 [min2 max2 ...] name_length name
    ...

Enums are written as their integer values and booleans as ``true``/``false``
(``1``/``0`` are accepted on read). The stored percent is informational:
it must parse but is recomputed from count and goal. Blank lines and lines
starting with ``#`` are skipped everywhere except inside the message block.

The whole document is parsed before the model is touched, so a malformed
file never leaves half-applied bins behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn, TypeVar

from covmodel.utils import SEED_MASK

from .cov_alert import AlertLevel, CovDbError
from .cov_types import (
    SCALED_WEIGHT_MODES,
    Bin,
    BinKind,
    CountMode,
    IllegalMode,
    WeightMode,
)

if TYPE_CHECKING:
    from .cov_model import CoverageModel

logger = logging.getLogger(__name__)

COMMENT_MARKER = "#"
UNNAMED_MODEL = "Coverage_Model_Not_Named"

_TRUE = ("true", "1")
_FALSE = ("false", "0")

E = TypeVar("E", bound=IntEnum)


@dataclass
class _DbImage:  # pylint: disable=too-many-instance-attributes
    """Everything read from one database document."""

    name: str = ""
    seed: int = 0
    threshold: float = 45.0
    illegal_mode: IllegalMode = IllegalMode.ON
    weight_mode: WeightMode = WeightMode.AT_LEAST
    weight_scale: float = 1.0
    count_mode: CountMode = CountMode.FIRST
    thresholding: bool = False
    target: float = 100.0
    merging: bool = False
    messages: list[str] = field(default_factory=list)
    dimensions: int = 0
    bins: list[Bin] = field(default_factory=list)


class _Fields:
    """Cursor over the space separated fields of one line."""

    def __init__(self, text: str, lineno: int, path: Path) -> None:
        self.text = text
        self.lineno = lineno
        self.path = path
        self.pos = 0

    def error(self, what: str, detail: str) -> NoReturn:
        raise CovDbError(f"{self.path}:{self.lineno}: bad {what}: {detail}")

    def _token(self, what: str) -> str:
        n = len(self.text)
        while self.pos < n and self.text[self.pos].isspace():
            self.pos += 1
        start = self.pos
        while self.pos < n and not self.text[self.pos].isspace():
            self.pos += 1
        if start == self.pos:
            self.error(what, "missing")
        return self.text[start : self.pos]

    def take_int(self, what: str) -> int:
        tok = self._token(what)
        try:
            return int(tok)
        except ValueError:
            self.error(what, f"{tok!r} is not an integer")

    def take_float(self, what: str) -> float:
        tok = self._token(what)
        try:
            return float(tok)
        except ValueError:
            self.error(what, f"{tok!r} is not a number")

    def take_bool(self, what: str) -> bool:
        tok = self._token(what).lower()
        if tok in _TRUE:
            return True
        if tok in _FALSE:
            return False
        self.error(what, f"{tok!r} is not a boolean")

    def take_enum(self, enum_cls: type[E], what: str) -> E:
        value = self.take_int(what)
        try:
            return enum_cls(value)
        except ValueError:
            self.error(what, f"{value} is not a valid {enum_cls.__name__}")

    def take_chars(self, count: int, what: str) -> str:
        """Exactly ``count`` characters after one separating space."""
        if count == 0:
            return ""
        if self.pos >= len(self.text) or self.text[self.pos] != " ":
            self.error(what, "missing separator")
        start = self.pos + 1
        end = start + count
        if end > len(self.text):
            self.error(what, f"expected {count} characters")
        self.pos = end
        return self.text[start:end]


class _LineReader:
    """Hands out the meaningful lines of a database document in order."""

    def __init__(self, path: Path, text: str) -> None:
        self.path = path
        # only "\n" ends a line; bin names may hold other line breaks
        self.lines = [line.removesuffix("\r") for line in text.split("\n")]
        self.index = 0

    def _eof(self, what: str) -> NoReturn:
        raise CovDbError(f"{self.path}: unexpected end of file reading {what}")

    def raw_line(self, what: str) -> str:
        if self.index >= len(self.lines):
            self._eof(what)
        line = self.lines[self.index]
        self.index += 1
        return line

    def next_line(self, what: str) -> tuple[str, int]:
        """Next non-blank, non-comment line and its 1-based number."""
        while self.index < len(self.lines):
            line = self.lines[self.index]
            self.index += 1
            stripped = line.strip()
            if stripped and not stripped.startswith(COMMENT_MARKER):
                return line, self.index
        self._eof(what)

    def fields(self, what: str) -> _Fields:
        line, lineno = self.next_line(what)
        return _Fields(line, lineno, self.path)


def _parse(path: Path) -> _DbImage:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CovDbError(f"{path}: cannot read database: {exc}") from exc

    reader = _LineReader(path, text)
    image = _DbImage()

    line, _ = reader.next_line("model name")
    image.name = "" if line == UNNAMED_MODEL else line

    f = reader.fields("settings")
    image.seed = f.take_int("seed")
    image.threshold = f.take_float("threshold")
    if image.threshold <= 0:
        f.error("threshold", f"{image.threshold} is not positive")
    image.illegal_mode = f.take_enum(IllegalMode, "illegal mode")
    image.weight_mode = f.take_enum(WeightMode, "weight mode")
    image.weight_scale = f.take_float("weight scale")
    if image.weight_mode in SCALED_WEIGHT_MODES and image.weight_scale < 1.0:
        f.error(
            "weight scale",
            f"{image.weight_scale} < 1.0 with {image.weight_mode.name}",
        )
    image.count_mode = f.take_enum(CountMode, "count mode")
    image.thresholding = f.take_bool("thresholding enable")
    image.target = f.take_float("target percent")
    if image.target <= 0:
        f.error("target percent", f"{image.target} is not positive")
    image.merging = f.take_bool("merging enable")

    f = reader.fields("message count")
    message_count = f.take_int("message count")
    if message_count < 0:
        f.error("message count", f"{message_count} is negative")
    image.messages = [reader.raw_line("message") for _ in range(message_count)]

    f = reader.fields("dimensions")
    image.dimensions = f.take_int("dimensions")
    if image.dimensions < 1:
        f.error("dimensions", f"{image.dimensions} < 1")
    bin_count = f.take_int("binCount")
    if bin_count < 1:
        f.error("binCount", f"{bin_count} < 1")

    for i in range(bin_count):
        f = reader.fields(f"bin {i}")
        kind = f.take_enum(BinKind, "bin kind")
        count = f.take_int("bin count")
        goal = f.take_int("bin goal")
        weight = f.take_int("bin weight")
        f.take_float("bin percent covered")
        region = tuple(
            (f.take_int(f"bin min{d + 1}"), f.take_int(f"bin max{d + 1}"))
            for d in range(image.dimensions)
        )
        name_length = f.take_int("bin name length")
        if name_length < 0:
            f.error("bin name length", f"{name_length} is negative")
        bin_name = f.take_chars(name_length, "bin name")
        image.bins.append(
            Bin(
                region=region,
                kind=kind,
                count=count,
                goal=goal,
                weight=weight,
                name=bin_name,
            )
        )
    return image


def _fail(model: CoverageModel, exc: CovDbError) -> NoReturn:
    model.alert(AlertLevel.FAILURE, str(exc))
    raise exc


def _apply_settings(model: CoverageModel, image: _DbImage) -> None:
    if image.name and not model.name:
        model.set_name(image.name)
    model.set_seed(image.seed)
    model.threshold = image.threshold
    model.thresholding = image.thresholding
    model.set_illegal_mode(image.illegal_mode)
    model.set_weight_mode(image.weight_mode, image.weight_scale)
    model.set_count_mode(image.count_mode)
    model.set_cov_target(image.target)
    model.set_merging(image.merging)
    model.messages = list(image.messages)


def read_database(
    model: CoverageModel, path: Path | str, merge: bool = False
) -> None:
    """Load a database into ``model``.

    With ``merge=False`` the model is cleared first and takes the settings,
    messages and bins of the file. With ``merge=True`` settings and messages
    are kept; a file bin that matches an existing bin (region, kind, goal,
    weight and name) adds its count to it and any other bin is appended.
    A malformed file raises CovDbError; a merge leaves the model unchanged.
    """
    path = Path(path)
    logger.debug("Reading coverage database %s (merge=%s)", path, merge)
    if not merge:
        model.clear()
    try:
        image = _parse(path)
    except CovDbError as exc:
        _fail(model, exc)

    if model.num_bins and image.dimensions != model.dimensions:
        _fail(
            model,
            CovDbError(
                f"{path}: database has {image.dimensions} dimensions, "
                f"model has {model.dimensions}"
            ),
        )

    if merge:
        merged = 0
        for b in image.bins:
            pos = model.store.find_exact(b)
            if pos is None:
                model.append_bin(b)
            else:
                model.store[pos].count += b.count
                merged += 1
        logger.info(
            "Merged coverage database %s: %d bins merged, %d appended",
            path,
            merged,
            len(image.bins) - merged,
        )
        return

    _apply_settings(model, image)
    model.set_bin_size(len(image.bins))
    for b in image.bins:
        model.append_bin(b)
    logger.info("Read coverage database %s (%d bins)", path, len(image.bins))


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _bin_line(b: Bin) -> str:
    parts = [
        str(int(b.kind)),
        str(b.count),
        str(b.goal),
        str(b.weight),
        f"{b.percent_covered:g}",
    ]
    for lo, hi in b.region:
        parts += [str(lo), str(hi)]
    parts.append(str(len(b.name)))
    return " ".join(parts) + (f" {b.name}" if b.name else "")


def write_database(model: CoverageModel, path: Path | str) -> None:
    """Write settings, messages and bins of ``model`` to ``path``.

    A fresh seed is drawn from the model's generator and applied before it is
    stored, so a model read back from the file continues the same stimulus
    sequence as the writer instead of restarting it.
    """
    path = Path(path)
    if model.num_bins == 0:
        _fail(model, CovDbError(f"{path}: cannot write a model with no bins"))
    model.set_seed(model.rng.uniform_int(0, SEED_MASK))

    lines = [
        model.name or UNNAMED_MODEL,
        " ".join(
            [
                str(model.get_seed()),
                repr(float(model.threshold)),
                str(int(model.illegal_mode)),
                str(int(model.weight_mode)),
                repr(float(model.weight_scale)),
                str(int(model.count_mode)),
                _bool(model.thresholding),
                repr(float(model.cov_target)),
                _bool(model.merging),
            ]
        ),
        str(len(model.messages)),
        *model.messages,
        f"{model.dimensions} {model.num_bins}",
        *(_bin_line(b) for b in model.bins),
    ]
    try:
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as exc:
        _fail(model, CovDbError(f"{path}: cannot write database: {exc}"))
    logger.info("Wrote coverage database %s (%d bins)", path, model.num_bins)
