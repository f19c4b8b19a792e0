from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .model import CellFormat, ColumnFormat, RenderRequest, RowFormat
from .parser.utils import iter_cells_in_rect

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CellModel:
    skip: bool = False
    colspan: int = 0
    rowspan: int = 0
    align: str = ""
    vertical_align: str = ""


@dataclass(slots=True, frozen=True)
class EffectiveCellStyle:
    align: str
    vertical_align: str
    heading: bool
    row_heading: bool
    column_heading: bool
    colspan: int
    rowspan: int
    skip: bool


EMPTY_CELL = CellModel()


@dataclass(slots=True)
class TableModel:
    """Dense row/column formats plus the sparse cell overrides of one request."""

    request: RenderRequest
    columns: list[ColumnFormat] = field(default_factory=list)
    rows: list[RowFormat] = field(default_factory=list)
    cells: dict[tuple[int, int], CellModel] = field(default_factory=dict)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def cell(self, row: int, col: int) -> CellModel:
        return self.cells.get((row, col), EMPTY_CELL)

    def column(self, col: int) -> ColumnFormat:
        if 0 <= col < len(self.columns):
            return self.columns[col]
        return ColumnFormat(column=col)

    def row(self, row: int) -> RowFormat:
        if 0 <= row < len(self.rows):
            return self.rows[row]
        return RowFormat(row=row)

    def is_visible(self, row: int, col: int) -> bool:
        return not self.cell(row, col).skip

    def resolve(self, row: int, col: int) -> EffectiveCellStyle:
        cell = self.cell(row, col)
        row_format = self.row(row)
        column_format = self.column(col)
        return EffectiveCellStyle(
            align=cell.align or column_format.align,
            vertical_align=cell.vertical_align or row_format.vertical_align,
            heading=row_format.heading or column_format.heading,
            row_heading=row_format.heading,
            column_heading=column_format.heading,
            colspan=cell.colspan,
            rowspan=cell.rowspan,
            skip=cell.skip,
        )


def build_table_model(request: RenderRequest) -> TableModel:
    return TableModel(
        request=request,
        columns=_index_column_formats(request),
        rows=_index_row_formats(request),
        cells=_build_cell_models(request.cell_formats),
    )


def _index_column_formats(request: RenderRequest) -> list[ColumnFormat]:
    count = max((len(row) for row in request.data), default=0)
    columns = [ColumnFormat(column=i) for i in range(count)]
    for fmt in request.column_formats:
        if fmt.column < 0 or fmt.column >= count:
            logger.info(
                "ColumnFormat specified for non-existent column",
                extra={"file_name": request.filename, "column_format": fmt.to_dict(), "column_count": count},
            )
            continue
        columns[fmt.column] = fmt
    return columns


def _index_row_formats(request: RenderRequest) -> list[RowFormat]:
    count = len(request.data)
    rows = [RowFormat(row=i) for i in range(count)]
    for fmt in request.row_formats:
        if fmt.row < 0 or fmt.row >= count:
            logger.info(
                "RowFormat specified for non-existent row",
                extra={"file_name": request.filename, "row_format": fmt.to_dict(), "row_count": count},
            )
            continue
        rows[fmt.row] = fmt
    return rows


def _build_cell_models(formats: list[CellFormat]) -> dict[tuple[int, int], CellModel]:
    cells: dict[tuple[int, int], CellModel] = {}
    for fmt in formats:
        anchor = cells.setdefault((fmt.row, fmt.column), CellModel())
        anchor.colspan = fmt.colspan
        anchor.rowspan = fmt.rowspan
        anchor.align = fmt.align
        anchor.vertical_align = fmt.vertical_align
        if not fmt.is_merge:
            continue
        for pos in iter_cells_in_rect(fmt.row, fmt.column, fmt.rowspan, fmt.colspan):
            if pos != (fmt.row, fmt.column):
                cells.setdefault(pos, CellModel()).skip = True
    return cells
