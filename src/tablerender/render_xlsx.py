from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, NamedStyle
from openpyxl.styles.numbers import BUILTIN_FORMATS
from openpyxl.worksheet.worksheet import Worksheet

from .model import (
    ALIGN_BOTTOM,
    ALIGN_CENTER,
    ALIGN_JUSTIFY,
    ALIGN_LEFT,
    ALIGN_MIDDLE,
    ALIGN_RIGHT,
    ALIGN_TOP,
    RenderRequest,
)
from .parser.utils import range_ref
from .render_html import NOTES_TEXT, SOURCE_TEXT, UNITS_TEXT
from .table_model import TableModel, build_table_model

logger = logging.getLogger(__name__)

SHEET_NAME = "Sheet1"
DEFAULT_STYLE = "Normal"

INTEGER_RE = re.compile(r"^[1-9][0-9]*$")
FLOAT_RE = re.compile(r"^[0-9]*\.[0-9]+$")
DECIMAL_PLACES_RE = re.compile(r"\.[0-9]+")

FORMAT_GENERAL = 0
FORMAT_INT = 1
FORMAT_FLOAT_2DP = 2
FORMAT_FLOAT_1DP = "0.0"
FORMAT_FLOAT_3DP = "0.000"

# Bottom is the spreadsheet default and is left unset.
XLSX_ALIGNMENTS = {
    ALIGN_TOP: "top",
    ALIGN_MIDDLE: "center",
    ALIGN_BOTTOM: "",
    ALIGN_LEFT: "left",
    ALIGN_CENTER: "center",
    ALIGN_RIGHT: "right",
    ALIGN_JUSTIFY: "justify",
}


@dataclass(slots=True, frozen=True)
class CellStyle:
    number_format: int = FORMAT_GENERAL
    custom_number_format: str = ""
    horizontal: str = ""
    vertical: str = ""
    wrap_text: bool = False
    bold: bool = False

    @property
    def format_code(self) -> str:
        return self.custom_number_format or BUILTIN_FORMATS[self.number_format]


TITLE_STYLE = CellStyle(bold=True)


@dataclass(slots=True)
class SpreadsheetModel:
    request: RenderRequest
    table: TableModel
    workbook: Workbook
    sheet: Worksheet
    styles: dict[CellStyle, str] = field(default_factory=dict)
    current_row: int = 0
    first_data_row: int = 0


def render_xlsx(request: RenderRequest) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_NAME
    model = SpreadsheetModel(
        request=request,
        table=build_table_model(request),
        workbook=workbook,
        sheet=sheet,
    )

    _insert_titles(model)
    _insert_data(model)
    _insert_units(model)
    _insert_source(model)
    _insert_footnotes(model)
    _merge_cells(model)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def parse_value_and_format(value: str) -> tuple[Any, CellStyle]:
    """Convert ``value`` to int/float where it looks numeric, with a matching number format."""
    text = value.strip()
    if INTEGER_RE.match(text):
        return int(text), CellStyle(number_format=FORMAT_INT)
    if FLOAT_RE.match(text):
        places = len(DECIMAL_PLACES_RE.search(text).group(0)) - 1
        if places == 1:
            style = CellStyle(custom_number_format=FORMAT_FLOAT_1DP)
        elif places == 2:
            style = CellStyle(number_format=FORMAT_FLOAT_2DP)
        elif places == 3:
            style = CellStyle(custom_number_format=FORMAT_FLOAT_3DP)
        else:
            style = CellStyle(number_format=FORMAT_GENERAL)
        return float(text), style
    return value, CellStyle()


def cell_value_and_style(table: TableModel, row: int, col: int) -> tuple[Any, CellStyle]:
    value, style = parse_value_and_format(table.request.data[row][col])
    effective = table.resolve(row, col)
    return value, CellStyle(
        number_format=style.number_format,
        custom_number_format=style.custom_number_format,
        horizontal=XLSX_ALIGNMENTS.get(effective.align, ""),
        vertical=XLSX_ALIGNMENTS.get(effective.vertical_align, ""),
        wrap_text=effective.heading,
        bold=effective.heading,
    )


def _style_name(model: SpreadsheetModel, style: CellStyle) -> str:
    name = model.styles.get(style)
    if name is not None:
        return name
    name = f"table-style-{len(model.styles) + 1}"
    try:
        named = NamedStyle(
            name=name,
            font=Font(bold=style.bold),
            alignment=Alignment(
                horizontal=style.horizontal or None,
                vertical=style.vertical or None,
                wrap_text=style.wrap_text or None,
            ),
            number_format=style.format_code,
        )
        model.workbook.add_named_style(named)
    except (ValueError, TypeError, KeyError) as exc:
        logger.error(
            "unable to create a new style for the spreadsheet",
            extra={"file_name": model.request.filename, "style": repr(style), "error": str(exc)},
        )
        return DEFAULT_STYLE
    model.styles[style] = name
    return name


def _set_cell(model: SpreadsheetModel, row: int, col: int, value: Any, style: CellStyle | None = None) -> None:
    """Write to the 0-based ``row``/``col``; empty strings leave the cell blank."""
    if isinstance(value, str) and ILLEGAL_CHARACTERS_RE.search(value):
        logger.warning(
            "removed characters not allowed in a worksheet",
            extra={"file_name": model.request.filename, "row": row, "col": col},
        )
        value = ILLEGAL_CHARACTERS_RE.sub("", value)
    cell = model.sheet.cell(row=row + 1, column=col + 1, value=None if value == "" else value)
    if style is not None:
        cell.style = _style_name(model, style)


def _insert_titles(model: SpreadsheetModel) -> None:
    _set_cell(model, model.current_row, 0, model.request.title, TITLE_STYLE)
    model.current_row += 1
    _set_cell(model, model.current_row, 0, model.request.subtitle, TITLE_STYLE)
    model.current_row += 1


def _insert_data(model: SpreadsheetModel) -> None:
    table = model.table
    model.first_data_row = model.current_row + 1
    for row_idx, values in enumerate(model.request.data):
        model.current_row += 1
        for col_idx in range(len(values)):
            if not table.is_visible(row_idx, col_idx):
                continue
            value, style = cell_value_and_style(table, row_idx, col_idx)
            _set_cell(model, model.current_row, col_idx, value, style)
    model.current_row += 1


def _insert_units(model: SpreadsheetModel) -> None:
    if model.request.units:
        model.current_row += 1
        _set_cell(model, model.current_row, 0, UNITS_TEXT)
        _set_cell(model, model.current_row, 1, model.request.units)


def _insert_source(model: SpreadsheetModel) -> None:
    if model.request.source:
        model.current_row += 1
        _set_cell(model, model.current_row, 0, SOURCE_TEXT)
        _set_cell(model, model.current_row, 1, model.request.source)


def _insert_footnotes(model: SpreadsheetModel) -> None:
    if not model.request.footnotes:
        return
    model.current_row += 1
    _set_cell(model, model.current_row, 0, NOTES_TEXT)
    for number, note in enumerate(model.request.footnotes, start=1):
        model.current_row += 1
        _set_cell(model, model.current_row, 0, f"{number}.")
        _set_cell(model, model.current_row, 1, note)


def _merge_cells(model: SpreadsheetModel) -> None:
    for fmt in model.request.cell_formats:
        if not fmt.is_merge:
            continue
        top = fmt.row + model.first_data_row + 1
        left = fmt.column + 1
        bottom = top + max(fmt.rowspan, 1) - 1
        right = left + max(fmt.colspan, 1) - 1
        try:
            ref = range_ref(top, left, bottom, right)
        except ValueError as exc:
            logger.error(
                "unable to merge cells",
                extra={"file_name": model.request.filename, "cell_format": fmt.to_dict(), "error": str(exc)},
            )
            continue
        model.sheet.merge_cells(ref)
