from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import json
import typer
from graphql import print_schema
from rich.console import Console
from rich.table import Table

from restgraph.domain.models import RequestOptions
from restgraph.errors import RestGraphError
from restgraph.logging_config import configure_logging
from restgraph.schema_builder import create_schema, endpoints_from_document, join_n_create_schema
from restgraph.settings import get_settings


app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
err_console = Console(stderr=True)


async def _no_backend(_context: Any, request_options: RequestOptions) -> Any:
    raise RuntimeError(
        f"No backend configured for {request_options.method.upper()} {request_options.path}"
    )


@app.callback()
def main_callback() -> None:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)


def _document_path(doc: str) -> Path:
    path = Path(doc).expanduser().resolve()
    if not path.exists():
        raise typer.BadParameter(f"API description does not exist: {path}")
    if not path.is_file():
        raise typer.BadParameter(f"API description is not a file: {path}")
    return path


def _parse_namespaces(entries: List[str]) -> dict[str, Path]:
    out: dict[str, Path] = {}
    for entry in entries:
        name, sep, doc = entry.partition("=")
        if not sep or not name.strip() or not doc.strip():
            raise typer.BadParameter(f"Namespace must look like NAME=FILE, got: {entry}")
        out[name.strip()] = _document_path(doc.strip())
    return out


@app.command()
def endpoints(
    doc: str = typer.Argument(..., help="Path to a Swagger 2 / OpenAPI 3 JSON document"),
    format: str = typer.Option("table", help="Output format: table|json"),
) -> None:
    path = _document_path(doc)
    try:
        found = endpoints_from_document(path)
    except RestGraphError as e:
        err_console.print(f"[bold red]error:[/bold red] {e}")
        raise typer.Exit(code=1)

    rows = [
        {
            "operation_id": ep.operation_id,
            "method": ep.method.upper(),
            "path": ep.path,
            "kind": "mutation" if ep.mutation else "query",
            "arguments": [p.arg_name for p in ep.parameters],
        }
        for ep in sorted(found.values(), key=lambda e: e.operation_id)
    ]

    if format.lower() == "json":
        typer.echo(json.dumps(rows, indent=2))
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("OPERATION", no_wrap=True)
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("KIND", no_wrap=True)
    table.add_column("ARGS")

    for r in rows:
        table.add_row(r["operation_id"], r["method"], r["path"], r["kind"], ", ".join(r["arguments"]))

    console.print(f"[bold]Document:[/bold] {path}")
    console.print(f"[bold]Endpoints:[/bold] {len(rows)}")
    console.print(table)


@app.command()
def sdl(
    doc: Optional[str] = typer.Argument(None, help="Path to a Swagger 2 / OpenAPI 3 JSON document"),
    namespace: List[str] = typer.Option(
        [], "--namespace", "-n", help="Join mode: NAME=FILE, repeatable (replaces DOC)"
    ),
    out: Optional[str] = typer.Option(None, help="Output path (default: print to stdout)"),
) -> None:
    if doc and namespace:
        raise typer.BadParameter("Pass either DOC or --namespace entries, not both")
    if not doc and not namespace:
        raise typer.BadParameter("Pass a DOC or at least one --namespace NAME=FILE")

    try:
        if namespace:
            schema = join_n_create_schema(_parse_namespaces(namespace), _no_backend)
        else:
            schema = create_schema(_document_path(doc), _no_backend)
    except RestGraphError as e:
        err_console.print(f"[bold red]error:[/bold red] {e}")
        raise typer.Exit(code=1)

    text = print_schema(schema)
    if out:
        out_path = Path(out).expanduser()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        console.print(f"[bold green]Wrote[/bold green] SDL to: {out_path}")
    else:
        # plain print: rich markup would mangle [Type] list syntax
        typer.echo(text)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
