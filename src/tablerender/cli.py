from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .api import RENDERERS, parse_table_html_bytes, render_table_bytes
from .config import get_settings
from .errors import TableRendererError
from .logs import setup_logging

EXIT_CLIENT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render JSON table descriptions to HTML/CSV/XLSX, or parse HTML tables")
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Render a table request JSON file")
    render.add_argument("input", type=Path, help="Input render request (.json)")
    render.add_argument("-o", "--output", type=Path, required=True, help="Output path")
    render.add_argument(
        "--format",
        choices=sorted(RENDERERS),
        help="Output format (defaults to the output file suffix)",
    )

    parse = subparsers.add_parser("parse", help="Parse an HTML table described by a parse request JSON file")
    parse.add_argument("input", type=Path, help="Input parse request (.json)")
    parse.add_argument("-o", "--output", type=Path, required=True, help="Output path")

    serve = subparsers.add_parser("serve", help="Run the HTTP service")
    serve.add_argument("--host", help="Bind host (defaults to BIND_ADDR)")
    serve.add_argument("--port", type=int, help="Bind port (defaults to BIND_ADDR)")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    if args.command == "serve":
        return _serve(args.host, args.port)

    try:
        if args.command == "render":
            render_type = args.format or args.output.suffix.lstrip(".").lower()
            content, _ = render_table_bytes(args.input.read_bytes(), render_type)
        else:
            content = parse_table_html_bytes(args.input.read_bytes())
    except TableRendererError as exc:
        print(exc.public_message, file=sys.stderr)
        return EXIT_CLIENT_ERROR if exc.status_code < 500 else 1

    args.output.write_bytes(content)
    return 0


def _serve(host: str | None, port: int | None) -> int:
    import uvicorn

    from .server import create_app

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=host or settings.bind_host,
        port=port or settings.bind_port,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
