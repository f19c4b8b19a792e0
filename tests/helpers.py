from __future__ import annotations

import csv
import io

from bs4 import BeautifulSoup, Tag
from openpyxl import load_workbook
from openpyxl.worksheet.worksheet import Worksheet

from tablerender.model import CellFormat, ColumnFormat, RenderRequest, RowFormat


def parse_figure(markup: bytes | str) -> Tag:
    text = markup.decode("utf-8") if isinstance(markup, bytes) else markup
    soup = BeautifulSoup(text, "html.parser")
    figure = soup.find("figure")
    assert figure is not None, text
    return figure


def load_sheet(content: bytes) -> Worksheet:
    workbook = load_workbook(io.BytesIO(content))
    return workbook["Sheet1"]


def read_csv(content: bytes) -> list[list[str]]:
    return list(csv.reader(io.StringIO(content.decode("utf-8"), newline="")))


def make_request(
    data: list[list[str]],
    *,
    rows: list[RowFormat] | None = None,
    columns: list[ColumnFormat] | None = None,
    cells: list[CellFormat] | None = None,
    footnotes: list[str] | None = None,
    **fields,
) -> RenderRequest:
    return RenderRequest(
        data=data,
        row_formats=rows or [],
        column_formats=columns or [],
        cell_formats=cells or [],
        footnotes=footnotes or [],
        **fields,
    )


def grid(rows: int, cols: int) -> list[list[str]]:
    return [[f"r{r}c{c}" for c in range(cols)] for r in range(rows)]
