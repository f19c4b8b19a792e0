from __future__ import annotations

import csv
import io
import logging
from typing import Any, TextIO

from .errors import RenderError
from .model import RenderRequest
from .render_html import NOTES_TEXT, SOURCE_TEXT, UNITS_TEXT
from .table_model import TableModel, build_table_model

logger = logging.getLogger(__name__)


def render_csv(request: RenderRequest) -> bytes:
    buffer = io.StringIO(newline="")
    write_csv(request, buffer)
    return buffer.getvalue().encode("utf-8")


def write_csv(request: RenderRequest, stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    model = build_table_model(request)

    _write_row(writer, [request.title], "unable to write title to csv", title=request.title)
    _write_row(writer, [request.subtitle], "unable to write subtitle to csv", subtitle=request.subtitle)
    _write_empty_line(writer)

    _write_data(writer, model)
    _write_empty_line(writer)

    if request.units:
        _write_row(writer, [UNITS_TEXT, request.units], "unable to write units", units=request.units)
    if request.source:
        _write_row(writer, [SOURCE_TEXT, request.source], "unable to write source", source=request.source)
    if request.footnotes:
        _write_row(writer, [NOTES_TEXT], "unable to write notes header")
        for number, note in enumerate(request.footnotes, start=1):
            _write_row(writer, [f"{number}.", note], "unable to write notes", notes=number)


def _write_data(writer: Any, model: TableModel) -> None:
    for row_idx, values in enumerate(model.request.data):
        out = [value if model.is_visible(row_idx, col_idx) else "" for col_idx, value in enumerate(values)]
        _write_row(writer, out, "unable to write row", row=row_idx)


def _write_empty_line(writer: Any) -> None:
    _write_row(writer, [], "unable to write empty line to csv")


def _write_row(writer: Any, values: list[str], message: str, **context: Any) -> None:
    try:
        writer.writerow(values)
    except (OSError, ValueError, csv.Error) as exc:
        logger.error(message, extra={**context, "error": str(exc)})
        raise RenderError(f"{message}: {exc}") from exc
