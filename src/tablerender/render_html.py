from __future__ import annotations

import logging
import re

from bs4.builder import ParserRejectedMarkup

from .htmltree import Element, Node, Text, element, import_fragment, serialize
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
from .table_model import TableModel, build_table_model

logger = logging.getLogger(__name__)

SOURCE_TEXT = "Source: "
UNITS_TEXT = "Units: "
NOTES_TEXT = "Notes"
FOOTNOTE_HIDDEN_TEXT = "Footnote "

CSS_ALIGNMENT_CLASSES = {
    ALIGN_TOP: "align-top",
    ALIGN_MIDDLE: "align-middle",
    ALIGN_BOTTOM: "align-bottom",
    ALIGN_LEFT: "align-left",
    ALIGN_CENTER: "align-center",
    ALIGN_RIGHT: "align-right",
    ALIGN_JUSTIFY: "align-justify",
}

TOKEN_RE = re.compile(r"(\n|\[[0-9]+\])")
FOOTNOTE_RE = re.compile(r"\[([0-9]+)\]")


def render_html(request: RenderRequest) -> bytes:
    return render_html_text(request).encode("utf-8")


def render_html_text(request: RenderRequest) -> str:
    return serialize(build_figure(request)) + "\n"


def build_figure(request: RenderRequest) -> Element:
    model = build_table_model(request)
    figure = element("figure", "\n", class_="figure", id=table_id(request))

    table = _table(request)
    figure.append_child(table)
    _add_column_group(model, table)
    _add_rows(model, table)

    figure.append_child(_footer(request), Text("\n"))
    return figure


def table_id(request: RenderRequest) -> str:
    return f"table-{request.filename}"


def footnote_id(request: RenderRequest, number: int) -> str:
    return f"{table_id(request)}-note-{number}"


def alignment_class(align: str) -> str:
    return CSS_ALIGNMENT_CLASSES.get(align, "")


def _table(request: RenderRequest) -> Element:
    table = element("table", "\n", class_="table")
    if request.title or request.subtitle:
        caption = element("caption", class_="table__caption")
        caption.append_child(*text_nodes(request, request.title))
        if request.subtitle:
            subtitle = element("span", class_="table__subtitle")
            subtitle.append_child(*text_nodes(request, request.subtitle))
            caption.append_child(element("br"), subtitle)
        table.append_child(caption, Text("\n"))
    return table


def _add_column_group(model: TableModel, table: Element) -> None:
    if not model.request.column_formats:
        return
    colgroup = element("colgroup")
    for column in model.columns:
        col = element("col")
        if column.width:
            col.with_attribute("style", f"width: {column.width}")
        colgroup.append_child(col)
    table.append_child(colgroup, Text("\n"))


def _add_rows(model: TableModel, table: Element) -> None:
    request = model.request
    for row_idx, values in enumerate(request.data):
        row_format = model.row(row_idx)
        tr = element("tr")
        if row_format.heading:
            tr.append_class("table__header-row")
            if request.keep_headers_together:
                tr.append_class("table__nowrap")
        if row_format.vertical_align:
            tr.append_class(alignment_class(row_format.vertical_align))
        if row_format.height:
            tr.with_attribute("style", f"height: {row_format.height}")
        for col_idx, value in enumerate(values):
            cell = _table_cell(model, value, row_idx, col_idx)
            if cell is not None:
                tr.append_child(cell)
        table.append_child(tr, Text("\n"))


def _table_cell(model: TableModel, value: str, row_idx: int, col_idx: int) -> Element | None:
    cell = model.cell(row_idx, col_idx)
    if cell.skip:
        return None
    request = model.request
    column = model.column(col_idx)
    has_content = len(value) > 0

    if model.row(row_idx).heading and has_content:
        node = element("th", scope="colgroup" if cell.colspan > 1 else "col")
    elif column.heading and has_content:
        node = element("th", scope="rowgroup" if cell.rowspan > 1 else "row")
        if request.keep_headers_together:
            node.append_class("table__nowrap")
    else:
        node = element("td")
    node.append_child(*cell_nodes(request, value))

    if cell.colspan > 1:
        node.with_attribute("colspan", str(cell.colspan))
    if cell.rowspan > 1:
        node.with_attribute("rowspan", str(cell.rowspan))
    node.append_class(alignment_class(cell.align or column.align))
    node.append_class(alignment_class(cell.vertical_align))
    return node


def _footer(request: RenderRequest) -> Element:
    footer = element("footer", "\n", class_="figure__footer")
    if request.units:
        units = element("p", class_="figure__units")
        units.append_child(*text_nodes(request, UNITS_TEXT + request.units))
        footer.append_child(units, Text("\n"))
    if request.source:
        source = element("p", class_="figure__source")
        source.append_child(*text_nodes(request, SOURCE_TEXT + request.source))
        footer.append_child(source, Text("\n"))
    if request.footnotes:
        footer.append_child(element("p", NOTES_TEXT, class_="figure__notes"), Text("\n"))
        notes = element("ol", "\n", class_="figure__footnotes")
        for number, note in enumerate(request.footnotes, start=1):
            item = element("li", id=footnote_id(request, number), class_="figure__footnote-item")
            item.append_child(*text_nodes(request, note))
            notes.append_child(item, Text("\n"))
        footer.append_child(notes, Text("\n"))
    return footer


def _footnote_number(request: RenderRequest, token: str) -> int | None:
    match = FOOTNOTE_RE.fullmatch(token)
    if not match or match.group(1) != str(int(match.group(1))):
        return None
    number = int(match.group(1))
    if 1 <= number <= len(request.footnotes):
        return number
    return None


def footnote_link(request: RenderRequest, number: int) -> Element:
    return element(
        "a",
        element("span", FOOTNOTE_HIDDEN_TEXT, class_="visuallyhidden"),
        str(number),
        href=f"#{footnote_id(request, number)}",
        class_="footnote__link",
    )


def text_nodes(request: RenderRequest, value: str) -> list[Node]:
    """Plain text with newlines as ``<br/>`` and known ``[n]`` markers as footnote links."""
    nodes: list[Node] = []
    for token in TOKEN_RE.split(value):
        if not token:
            continue
        if token == "\n":
            nodes.append(element("br"))
            continue
        number = _footnote_number(request, token)
        if number is None:
            nodes.append(Text(token))
        else:
            nodes.append(footnote_link(request, number))
    return nodes


def cell_nodes(request: RenderRequest, value: str) -> list[Node]:
    """Cell text which may carry its own markup."""
    markup = value.replace("\n", "<br/>")
    markup = FOOTNOTE_RE.sub(lambda match: _footnote_markup(request, match), markup)
    try:
        return import_fragment(markup)
    except (ParserRejectedMarkup, AssertionError) as exc:
        logger.error("unable to parse value", extra={"value": value, "error": str(exc)})
        return [Text(value)]


def _footnote_markup(request: RenderRequest, match: re.Match[str]) -> str:
    number = _footnote_number(request, match.group(0))
    if number is None:
        return match.group(0)
    return serialize(footnote_link(request, number))
