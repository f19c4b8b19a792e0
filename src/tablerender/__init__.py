__version__ = "1.0.0"

from .api import parse_table_html, render_table
from .model import ParseRequest, RenderRequest, load_parse_request, load_render_request

__all__ = [
    "ParseRequest",
    "RenderRequest",
    "load_parse_request",
    "load_render_request",
    "parse_table_html",
    "render_table",
]
