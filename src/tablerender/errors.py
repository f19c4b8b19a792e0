from __future__ import annotations

INVALID_BODY = "Bad request - Invalid request body"
MISSING_DATA = "Bad request - Missing data in body"
INTERNAL_ERROR = "Failed to process the request due to an internal error"
UNKNOWN_RENDER_TYPE = "Unknown render type"


class TableRendererError(Exception):
    """Base error. ``public_message`` is safe to return to the caller."""

    status_code = 500
    public_message = INTERNAL_ERROR

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail or self.public_message


class BodyReadError(TableRendererError):
    status_code = 400
    public_message = INVALID_BODY


class RequestParseError(TableRendererError):
    status_code = 400
    public_message = INVALID_BODY


class NoDataError(TableRendererError):
    status_code = 400
    public_message = MISSING_DATA


class MissingFieldsError(TableRendererError):
    status_code = 400

    def __init__(self, fields: list[str]) -> None:
        self.fields = list(fields)
        self.public_message = f"Bad request - Missing mandatory fields: {', '.join(self.fields)}"
        super().__init__(self.public_message)


class TableParseError(TableRendererError):
    status_code = 400
    public_message = "Bad request - table_html is not a single table element"


class UnknownRenderTypeError(TableRendererError):
    status_code = 404
    public_message = UNKNOWN_RENDER_TYPE


class RenderError(TableRendererError):
    status_code = 500
    public_message = INTERNAL_ERROR
