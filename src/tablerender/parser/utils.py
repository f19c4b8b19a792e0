from __future__ import annotations

import logging
import re
from typing import Iterable

logger = logging.getLogger(__name__)

WIDTH_STYLE_RE = re.compile(r"width: *[0-9]+[^;]+")
WIDTH_TRAILING_ZEROES_RE = re.compile(r"\.?0+(%|em)")


def index_to_col(index: int) -> str:
    if index < 1:
        raise ValueError("Column index must be >= 1")
    result: list[str] = []
    value = index
    while value > 0:
        value, rem = divmod(value - 1, 26)
        result.append(chr(65 + rem))
    return "".join(reversed(result))


def rowcol_to_coord(row: int, col: int) -> str:
    if row < 1 or col < 1:
        raise ValueError("row/col must be >= 1")
    return f"{index_to_col(col)}{row}"


def range_ref(start_row: int, start_col: int, end_row: int, end_col: int) -> str:
    """1-based inclusive rectangle as an ``A1:B2`` reference."""
    return f"{rowcol_to_coord(start_row, start_col)}:{rowcol_to_coord(end_row, end_col)}"


def iter_cells_in_rect(row: int, col: int, rowspan: int, colspan: int) -> Iterable[tuple[int, int]]:
    for r in range(row, row + max(rowspan, 1)):
        for c in range(col, col + max(colspan, 1)):
            yield r, c


def convert_width(
    style: str,
    *,
    units: str = "",
    ignore: str = "",
    table_width: int = 0,
    em_height: float = 0.0,
    file_name: str = "",
) -> str:
    """Extract the ``width`` of an inline style, converting pixels to ``%`` or ``em``."""
    if units == "auto":
        return ""
    match = WIDTH_STYLE_RE.search(style or "")
    width = match.group(0) if match else ""
    width = width.replace("width:", "").strip(" ")
    if ignore:
        width = width.replace(ignore, "")
    if not width.endswith("px"):
        return width

    if units == "%" and table_width > 0:
        pixels = _parse_pixels(width, file_name)
        if pixels is not None:
            width = "%.1f%%" % (pixels / table_width * 100.0)
    elif units == "em" and em_height > 0:
        pixels = _parse_pixels(width, file_name)
        if pixels is not None:
            width = "%.2fem" % (pixels / em_height)
    return WIDTH_TRAILING_ZEROES_RE.sub(r"\1", width)


def _parse_pixels(width: str, file_name: str) -> int | None:
    try:
        return int(width.strip("px"))
    except ValueError:
        logger.error("width not parsable as an integer", extra={"file_name": file_name, "width": width})
        return None
