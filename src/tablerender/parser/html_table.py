from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.builder import ParserRejectedMarkup

from ..errors import TableParseError
from ..model import CellFormat, ColumnFormat, ParseRequest, ParseResponse, RenderRequest, RowFormat
from ..render_html import render_html_text
from .utils import convert_width

logger = logging.getLogger(__name__)

TABLE_TYPE = "table"
TABLE_VERSION = "2"


@dataclass(slots=True)
class ParseModel:
    """Values derived once from the source table and reused by every format pass."""

    request: ParseRequest
    table: Tag
    cells: list[list[Tag]] = field(default_factory=list)
    row_classes: list[Counter[str]] = field(default_factory=list)
    column_classes: list[Counter[str]] = field(default_factory=list)
    align_map: dict[str, str] = field(default_factory=dict)
    valign_map: dict[str, str] = field(default_factory=dict)


def parse_html(request: ParseRequest) -> bytes:
    response = parse_table(request)
    return (json.dumps(response.to_dict(), ensure_ascii=False) + "\n").encode("utf-8")


def parse_table(request: ParseRequest) -> ParseResponse:
    table = parse_table_node(request.table_html)
    model = build_parse_model(request, table)

    row_formats = create_row_formats(model)
    column_formats = create_column_formats(model)
    result = RenderRequest(
        title=request.title,
        subtitle=request.subtitle,
        source=request.source,
        units=request.units,
        table_type=TABLE_TYPE,
        table_version=TABLE_VERSION,
        filename=request.filename,
        keep_headers_together=request.keep_headers_together,
        data=[[cell.get_text() for cell in row] for row in model.cells],
        row_formats=[row_formats[idx] for idx in sorted(row_formats)],
        column_formats=[column_formats[idx] for idx in sorted(column_formats)],
        cell_formats=create_cell_formats(model, row_formats, column_formats),
        footnotes=list(request.footnotes),
    )
    return ParseResponse(json=result, preview_html=render_html_text(result))


def parse_table_node(table_html: str) -> Tag:
    try:
        soup = BeautifulSoup(table_html, "html.parser")
    except (ParserRejectedMarkup, AssertionError) as exc:
        logger.error("unable to parse table_html to a table element", extra={"error": str(exc)})
        raise TableParseError(str(exc)) from exc

    nodes = [
        node
        for node in soup.contents
        if isinstance(node, Tag) or (type(node) is NavigableString and node.strip())
    ]
    if len(nodes) != 1:
        logger.error("table_html could not be parsed into a single element", extra={"node_count": len(nodes)})
        raise TableParseError("table_html could not be parsed into a single element")
    node = nodes[0]
    if not isinstance(node, Tag) or node.name != "table":
        logger.error("table_html could not be parsed into a table element")
        raise TableParseError("table_html could not be parsed into a table element")
    return node


def build_parse_model(request: ParseRequest, table: Tag) -> ParseModel:
    model = ParseModel(request=request, table=table)
    model.cells = _collect_cells(table, request.ignore_first_row, request.ignore_first_column)
    model.row_classes, model.column_classes = _tally_classes(model.cells)
    model.align_map = request.alignment_classes.horizontal_map()
    model.valign_map = request.alignment_classes.vertical_map()
    return model


def _collect_cells(table: Tag, ignore_first_row: bool, ignore_first_column: bool) -> list[list[Tag]]:
    rows = table.find_all("tr")
    if ignore_first_row:
        rows = rows[1:]
    cells: list[list[Tag]] = []
    for row in rows:
        columns = row.find_all(["td", "th"])
        if ignore_first_column:
            columns = columns[1:]
        cells.append(list(columns))
    return cells


def _classes(cell: Tag) -> list[str]:
    value = cell.get("class") or []
    if isinstance(value, str):
        value = value.split()
    return [name for name in value if name]


def _tally_classes(cells: list[list[Tag]]) -> tuple[list[Counter[str]], list[Counter[str]]]:
    row_classes: list[Counter[str]] = []
    column_classes: list[Counter[str]] = []
    for row in cells:
        tally: Counter[str] = Counter()
        for col_idx, cell in enumerate(row):
            while len(column_classes) <= col_idx:
                column_classes.append(Counter())
            for name in _classes(cell):
                tally[name] += 1
                column_classes[col_idx][name] += 1
        row_classes.append(tally)
    return row_classes, column_classes


def create_row_formats(model: ParseModel) -> dict[int, RowFormat]:
    formats: dict[int, RowFormat] = {}
    for idx, tally in enumerate(model.row_classes):
        width = len(model.cells[idx])
        for name, count in tally.items():
            if count == width and name in model.valign_map:
                formats.setdefault(idx, RowFormat(row=idx)).vertical_align = model.valign_map[name]
    for idx in range(model.request.header_rows):
        formats.setdefault(idx, RowFormat(row=idx)).heading = True
    return formats


def create_column_formats(model: ParseModel) -> dict[int, ColumnFormat]:
    formats: dict[int, ColumnFormat] = {}
    row_count = len(model.cells)
    for idx, tally in enumerate(model.column_classes):
        for name, count in tally.items():
            if count == row_count and name in model.align_map:
                formats.setdefault(idx, ColumnFormat(column=idx)).align = model.align_map[name]

    # <col span> is not expanded; each col element is one column.
    columns = model.table.find_all("col")
    if columns and model.request.ignore_first_column:
        columns = columns[1:]
    request = model.request
    for idx, col in enumerate(columns):
        width = convert_width(
            str(col.get("style") or ""),
            units=request.cell_size_units,
            ignore=request.column_width_to_ignore,
            table_width=request.current_table_width,
            em_height=request.single_em_height,
            file_name=request.filename,
        )
        if width:
            formats.setdefault(idx, ColumnFormat(column=idx)).width = width

    for idx in range(request.header_cols):
        formats.setdefault(idx, ColumnFormat(column=idx)).heading = True
    return formats


def create_cell_formats(
    model: ParseModel,
    row_formats: dict[int, RowFormat],
    column_formats: dict[int, ColumnFormat],
) -> list[CellFormat]:
    formats: list[CellFormat] = []
    for row_idx, row in enumerate(model.cells):
        row_valign = row_formats[row_idx].vertical_align if row_idx in row_formats else ""
        for col_idx, cell in enumerate(row):
            column_align = column_formats[col_idx].align if col_idx in column_formats else ""
            fmt = CellFormat(row=row_idx, column=col_idx)
            has_data = False

            colspan = _span(cell, "colspan")
            if colspan > 1:
                fmt.colspan = colspan
                has_data = True
            rowspan = _span(cell, "rowspan")
            if rowspan > 1:
                fmt.rowspan = rowspan
                has_data = True

            for name in _classes(cell):
                valign = model.valign_map.get(name, "")
                if valign and valign != row_valign:
                    fmt.vertical_align = valign
                    has_data = True
                align = model.align_map.get(name, "")
                if align and align != column_align:
                    fmt.align = align
                    has_data = True

            if has_data:
                formats.append(fmt)
    return formats


def _span(cell: Tag, name: str) -> int:
    value = cell.get(name)
    if value is None:
        return 0
    try:
        return int(str(value).strip())
    except ValueError:
        return 0
