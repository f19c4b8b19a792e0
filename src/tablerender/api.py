from __future__ import annotations

import logging
from typing import Callable

from .errors import UnknownRenderTypeError
from .model import ParseRequest, RenderRequest, load_parse_request, load_render_request
from .parser.html_table import parse_html
from .render_csv import render_csv
from .render_html import render_html
from .render_xlsx import render_xlsx

logger = logging.getLogger(__name__)

CONTENT_HTML = "text/html"
CONTENT_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CONTENT_CSV = "text/csv"
CONTENT_JSON = "application/json"

RENDERERS: dict[str, tuple[Callable[[RenderRequest], bytes], str]] = {
    "html": (render_html, CONTENT_HTML),
    "xlsx": (render_xlsx, CONTENT_XLSX),
    "csv": (render_csv, CONTENT_CSV),
}


def render_table(request: RenderRequest, render_type: str) -> tuple[bytes, str]:
    """Render ``request`` as ``html``, ``xlsx`` or ``csv``; returns the body and its content type."""
    try:
        renderer, content_type = RENDERERS[render_type]
    except KeyError:
        logger.error("unknown render type", extra={"render_type": render_type})
        raise UnknownRenderTypeError(render_type) from None
    return renderer(request), content_type


def render_table_bytes(body: bytes | str, render_type: str) -> tuple[bytes, str]:
    return render_table(load_render_request(body), render_type)


def parse_table_html(request: ParseRequest) -> bytes:
    return parse_html(request)


def parse_table_html_bytes(body: bytes | str) -> bytes:
    return parse_table_html(load_parse_request(body))
