from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from tablerender import api
from tests.helpers import load_sheet, parse_figure, read_csv

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def test_render_html(client: TestClient, example_request_bytes: bytes) -> None:
    response = client.post("/render/html", content=example_request_bytes)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    figure = parse_figure(response.content)
    assert len(figure.find("table").find_all("tr")) == 5
    assert response.headers["x-request-id"]


def test_render_csv(client: TestClient, example_request_bytes: bytes) -> None:
    response = client.post("/render/csv", content=example_request_bytes)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert read_csv(response.content)[0] == ["Mid-year population estimates"]


def test_render_xlsx(client: TestClient, example_request_bytes: bytes) -> None:
    response = client.post("/render/xlsx", content=example_request_bytes)

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_CONTENT_TYPE
    assert load_sheet(response.content)["A4"].value == "Area"


def test_unknown_render_type(client: TestClient, example_request_bytes: bytes) -> None:
    response = client.post("/render/pdf", content=example_request_bytes)

    assert response.status_code == 404
    assert response.text == "Unknown render type\n"


def test_body_is_validated_before_render_type(client: TestClient) -> None:
    response = client.post("/render/pdf", content=b"not json")

    assert response.status_code == 400
    assert response.text == "Bad request - Invalid request body\n"


@pytest.mark.parametrize(
    ("body", "message"),
    [
        (b"not json", "Bad request - Invalid request body\n"),
        (b'{"data": 5}', "Bad request - Invalid request body\n"),
        (b"{}", "Bad request - Missing data in body\n"),
    ],
)
def test_render_rejects_bad_bodies(client: TestClient, body: bytes, message: str) -> None:
    response = client.post("/render/html", content=body)

    assert response.status_code == 400
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == message


def test_render_failure_is_internal_error(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    def explode(request):
        raise RuntimeError("boom")

    monkeypatch.setitem(api.RENDERERS, "html", (explode, api.CONTENT_HTML))
    response = client.post("/render/html", content=b'{"data": [["a"]]}')

    assert response.status_code == 500
    assert response.text == "Failed to process the request due to an internal error\n"
    assert "boom" not in response.text


def test_parse_html(client: TestClient) -> None:
    body = {"table_html": "<table><tr><td>x</td></tr></table>", "filename": "f"}
    response = client.post("/parse/html", content=json.dumps(body))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    payload = response.json()
    assert payload["json"]["data"] == [["x"]]
    assert payload["json"]["filename"] == "f"
    assert "<table" in payload["preview_html"]


def test_parse_requires_table_html(client: TestClient) -> None:
    response = client.post("/parse/html", content=b"{}")

    assert response.status_code == 400
    assert response.text == "Bad request - Missing mandatory fields: table_html\n"


def test_parse_rejects_non_table(client: TestClient) -> None:
    response = client.post("/parse/html", content=json.dumps({"table_html": "<div></div>"}))

    assert response.status_code == 400
    assert response.text == "Bad request - table_html is not a single table element\n"


def test_parse_then_render_roundtrip(client: TestClient) -> None:
    body = {
        "table_html": '<table><tr><td class="r">1.5</td><td>b</td></tr><tr><td class="r">2</td><td>d</td></tr></table>',
        "alignment_classes": {"right": "r"},
        "header_cols": 1,
    }
    parsed = client.post("/parse/html", content=json.dumps(body)).json()["json"]
    assert parsed["column_formats"] == [{"col": 0, "align": "Right", "heading": True}]

    response = client.post("/render/xlsx", content=json.dumps(parsed))
    sheet = load_sheet(response.content)
    assert sheet["A4"].value == pytest.approx(1.5)
    assert sheet["A4"].alignment.horizontal == "right"
    assert sheet["A4"].font.bold


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "OK", "version": "test"}


def test_cors_preflight(client: TestClient) -> None:
    response = client.options(
        "/render/html",
        headers={
            "Origin": "https://example.org",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "https://example.org"
    assert "POST" in response.headers["access-control-allow-methods"]


def test_cors_rejects_unknown_origin(client: TestClient) -> None:
    response = client.get("/health", headers={"Origin": "https://elsewhere.example"})

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


def test_render_xlsx_with_control_characters(client: TestClient) -> None:
    response = client.post("/render/xlsx", content=b'{"data": [["a\\u0001b"]]}')

    assert response.status_code == 200
    assert load_sheet(response.content)["A4"].value == "ab"
