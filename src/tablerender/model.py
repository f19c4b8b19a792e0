from __future__ import annotations

import logging
from dataclasses import field
from typing import Annotated, Any, Callable

from pydantic import BeforeValidator, ConfigDict, Field, StrictBool, StrictInt, StrictStr, TypeAdapter, ValidationError
from pydantic.dataclasses import dataclass

from .errors import MissingFieldsError, NoDataError, RequestParseError

logger = logging.getLogger(__name__)

ALIGN_TOP = "Top"
ALIGN_MIDDLE = "Middle"
ALIGN_BOTTOM = "Bottom"
ALIGN_LEFT = "Left"
ALIGN_CENTER = "Center"
ALIGN_RIGHT = "Right"
ALIGN_JUSTIFY = "Justify"

VERTICAL_ALIGNMENTS = (ALIGN_TOP, ALIGN_MIDDLE, ALIGN_BOTTOM)
HORIZONTAL_ALIGNMENTS = (ALIGN_LEFT, ALIGN_CENTER, ALIGN_RIGHT, ALIGN_JUSTIFY)

SIZE_UNITS = ("%", "em", "auto", "")

# Wire names differ from attribute names (``col``, ``type``); both are accepted.
WIRE_CONFIG = ConfigDict(populate_by_name=True)


def _null_as(empty: Callable[[], Any]) -> BeforeValidator:
    """JSON ``null`` decodes to the field's zero value."""
    return BeforeValidator(lambda value: empty() if value is None else value)


Str = Annotated[StrictStr, _null_as(str)]
Bool = Annotated[StrictBool, _null_as(bool)]
Int = Annotated[StrictInt, _null_as(int)]
Float = Annotated[float, _null_as(float)]
StrList = Annotated[list[StrictStr], _null_as(list)]
Grid = Annotated[list[StrList], _null_as(list)]


@dataclass(slots=True, config=WIRE_CONFIG)
class RowFormat:
    row: Int = 0
    vertical_align: Str = ""
    heading: Bool = False
    height: Str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"row": self.row}
        if self.vertical_align:
            out["vertical_align"] = self.vertical_align
        if self.heading:
            out["heading"] = True
        if self.height:
            out["height"] = self.height
        return out


@dataclass(slots=True, config=WIRE_CONFIG)
class ColumnFormat:
    column: Int = Field(default=0, alias="col")
    align: Str = ""
    heading: Bool = False
    width: Str = ""

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"col": self.column}
        if self.align:
            out["align"] = self.align
        if self.heading:
            out["heading"] = True
        if self.width:
            out["width"] = self.width
        return out


@dataclass(slots=True, config=WIRE_CONFIG)
class CellFormat:
    row: Int = 0
    column: Int = Field(default=0, alias="col")
    align: Str = ""
    vertical_align: Str = ""
    rowspan: Int = 0
    colspan: Int = 0

    @property
    def is_merge(self) -> bool:
        return self.rowspan > 1 or self.colspan > 1

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"row": self.row, "col": self.column}
        if self.align:
            out["align"] = self.align
        if self.vertical_align:
            out["vertical_align"] = self.vertical_align
        if self.rowspan:
            out["rowspan"] = self.rowspan
        if self.colspan:
            out["colspan"] = self.colspan
        return out


@dataclass(slots=True, config=WIRE_CONFIG)
class RenderRequest:
    title: Str = ""
    subtitle: Str = ""
    source: Str = ""
    units: Str = ""
    table_type: Str = Field(default="", alias="type")
    table_version: Str = Field(default="", alias="type_version")
    filename: Str = ""
    keep_headers_together: Bool = False
    data: Grid = field(default_factory=list)
    row_formats: Annotated[list[RowFormat], _null_as(list)] = field(default_factory=list)
    column_formats: Annotated[list[ColumnFormat], _null_as(list)] = field(default_factory=list)
    cell_formats: Annotated[list[CellFormat], _null_as(list)] = field(default_factory=list)
    footnotes: StrList = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in (
            ("title", self.title),
            ("subtitle", self.subtitle),
            ("source", self.source),
            ("type", self.table_type),
            ("type_version", self.table_version),
            ("filename", self.filename),
            ("units", self.units),
        ):
            if value:
                out[key] = value
        out["keep_headers_together"] = self.keep_headers_together
        out["row_formats"] = [fmt.to_dict() for fmt in self.row_formats]
        out["column_formats"] = [fmt.to_dict() for fmt in self.column_formats]
        out["cell_formats"] = [fmt.to_dict() for fmt in self.cell_formats]
        out["data"] = [list(row) for row in self.data]
        out["footnotes"] = list(self.footnotes)
        return out


@dataclass(slots=True)
class ParseAlignments:
    top: Str = ""
    middle: Str = ""
    bottom: Str = ""
    left: Str = ""
    center: Str = ""
    right: Str = ""
    justify: Str = ""

    def horizontal_map(self) -> dict[str, str]:
        pairs = {
            self.left: ALIGN_LEFT,
            self.center: ALIGN_CENTER,
            self.right: ALIGN_RIGHT,
            self.justify: ALIGN_JUSTIFY,
        }
        pairs.pop("", None)
        return pairs

    def vertical_map(self) -> dict[str, str]:
        pairs = {
            self.bottom: ALIGN_BOTTOM,
            self.middle: ALIGN_MIDDLE,
            self.top: ALIGN_TOP,
        }
        pairs.pop("", None)
        return pairs


@dataclass(slots=True)
class ParseRequest:
    table_html: Str = ""
    title: Str = ""
    subtitle: Str = ""
    source: Str = ""
    units: Str = ""
    filename: Str = ""
    keep_headers_together: Bool = False
    footnotes: StrList = field(default_factory=list)
    ignore_first_row: Bool = False
    ignore_first_column: Bool = False
    header_rows: Int = 0
    header_cols: Int = 0
    current_table_width: Int = 0
    current_table_height: Int = 0
    single_em_height: Float = 0.0
    cell_size_units: Str = ""
    column_width_to_ignore: Str = ""
    alignment_classes: Annotated[ParseAlignments, _null_as(ParseAlignments)] = field(default_factory=ParseAlignments)

    def validate(self) -> None:
        missing: list[str] = []
        if not self.table_html:
            missing.append("table_html")

        units = self.cell_size_units
        if units == "%" and self.current_table_width <= 0:
            logger.info(
                "cell_size_units is '%' but current_table_width is not specified - cannot convert from px",
                extra={"file_name": self.filename},
            )
        elif units == "em" and self.single_em_height <= 0:
            logger.info(
                "cell_size_units is 'em' but single_em_height is not specified - cannot convert from px",
                extra={"file_name": self.filename},
            )
        elif units not in SIZE_UNITS:
            logger.info("unknown size unit specified for width", extra={"file_name": self.filename, "unit": units})

        if missing:
            raise MissingFieldsError(missing)


@dataclass(slots=True)
class ParseResponse:
    json: RenderRequest
    preview_html: str

    def to_dict(self) -> dict[str, Any]:
        return {"json": self.json.to_dict(), "preview_html": self.preview_html}


RENDER_REQUEST_ADAPTER = TypeAdapter(RenderRequest)
PARSE_REQUEST_ADAPTER = TypeAdapter(ParseRequest)


def load_render_request(body: bytes | str) -> RenderRequest:
    request = _validate_body(RENDER_REQUEST_ADAPTER, body)
    # Checked last, like every other decode failure; only ``{}`` is two bytes long.
    if len(body) == 2:
        raise NoDataError()
    return request


def load_parse_request(body: bytes | str) -> ParseRequest:
    request = _validate_body(PARSE_REQUEST_ADAPTER, body)
    request.validate()
    return request


def _validate_body(adapter: TypeAdapter[Any], body: bytes | str) -> Any:
    try:
        return adapter.validate_json(body)
    except ValidationError as exc:
        logger.error(
            "error unmarshalling JSON",
            extra={"error_count": exc.error_count(), "errors": exc.errors(include_url=False, include_input=False)},
        )
        raise RequestParseError(str(exc)) from exc
