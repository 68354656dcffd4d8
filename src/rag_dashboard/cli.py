"""Command line interface of the RAG dashboard."""

import json
import os
from pathlib import Path
from typing import Optional

import typer
import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from typing_extensions import Annotated

from rag_dashboard.clients.rag_api import RagApiClient
from rag_dashboard.config import API_URL_ENV, DashboardConfig, local_api_url
from rag_dashboard.errors import DashboardError
from rag_dashboard.models.component import UIComponent
from rag_dashboard.models.tool_result import ToolResult
from rag_dashboard.ui.validation import load_components

app = typer.Typer(help="RAG Dashboard CLI")

SCHEMA_MODELS = {
    "ui_component": UIComponent,
    "tool_result": ToolResult,
}


@app.command("serve")
def serve(
    host: Annotated[
        Optional[str], typer.Option(help="Interface to bind to")
    ] = None,
    port: Annotated[Optional[int], typer.Option(help="Port to listen on")] = None,
):
    """Starts the API server with the dashboard mounted."""
    from rag_dashboard.app import main

    config = DashboardConfig.from_env()
    overrides = {}
    if host:
        overrides["server_name"] = host
    if port:
        overrides["server_port"] = port
        if not os.environ.get(API_URL_ENV):
            overrides["api_url"] = local_api_url(port)
    main(config.model_copy(update=overrides) if overrides else config)


@app.command("search")
def search(
    query: Annotated[str, typer.Argument(help="Natural language query")],
    count: Annotated[int, typer.Option(help="Number of results")] = 5,
    threshold: Annotated[
        float, typer.Option(help="Minimum similarity between 0 and 1")
    ] = 0.0,
    doc_type: Annotated[
        Optional[str], typer.Option(help="Only search this document type")
    ] = None,
    api_url: Annotated[
        Optional[str], typer.Option(help="Base URL of a running server")
    ] = None,
):
    """Runs a semantic search against a running server."""
    config = DashboardConfig.from_env()
    client = RagApiClient(api_url or config.api_url, timeout=config.request_timeout)
    try:
        response = client.search(
            query, match_count=count, match_threshold=threshold, doc_type=doc_type
        )
    except DashboardError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    if not response.data:
        typer.echo("No relevant results found.")
        return
    for result in response.data:
        article = f" {result.article_no}" if result.article_no else ""
        typer.echo(
            f"[{result.similarity * 100:.0f}%] {result.source}{article}: {result.content}"
        )


@app.command("validate")
def validate(
    file_path: Annotated[
        Path, typer.Argument(help="JSON or YAML component tree or tool result")
    ],
    strict: Annotated[
        bool, typer.Option(help="Also check properties against each kind")
    ] = False,
):
    """Validates a UI component tree or a tool result file."""
    if not file_path.exists():
        typer.echo(f"Error: File not found: {file_path}", err=True)
        raise typer.Exit(code=1)

    try:
        with open(file_path, "r") as f:
            payload = yaml.safe_load(f)
    except yaml.YAMLError as e:
        typer.echo(f"Error parsing file: {str(e)}", err=True)
        raise typer.Exit(code=1)

    components, result = load_components(payload, strict=strict)
    if not result.valid:
        for error in result.errors:
            typer.echo(f"Validation Error: {error}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"{file_path} is valid ({len(components)} component(s)).")


@app.command("schema")
def schema(
    output: Annotated[
        Optional[Path], typer.Option(help="Directory to write schema files to")
    ] = None,
):
    """Exports JSON schemas of the component and tool result formats."""
    for name, model in SCHEMA_MODELS.items():
        document = model.model_json_schema()
        try:
            Draft202012Validator.check_schema(document)
        except SchemaError as e:
            typer.echo(f"Error: invalid schema for {name}: {e.message}", err=True)
            raise typer.Exit(code=1)

        text = json.dumps(document, indent=2)
        if output is None:
            typer.echo(text)
            continue
        output.mkdir(parents=True, exist_ok=True)
        path = output / f"{name}.schema.json"
        path.write_text(text + "\n")
        typer.echo(f"Wrote {path}")


if __name__ == "__main__":
    app()
