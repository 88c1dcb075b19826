"""Main CLI application.

This is the entry point for the mockseed CLI.
"""

from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from mockseed import configure_logging
from mockseed.cli.common import (
    ELECTRIC_PURPLE,
    NEON_CYAN,
    console,
    create_table,
    error,
    format_method,
    info,
    print_json,
    success,
    truncate,
)
from mockseed.config import get_settings
from mockseed.errors import MockSeedError, SchemaLoadError
from mockseed.providers import OpenAPIItemProvider
from mockseed.state import MockState

app = typer.Typer(
    name="mockseed",
    help="mockseed - deterministic mock API data",
    add_completion=False,
    no_args_is_help=True,
)

SpecArg = Annotated[Path, typer.Argument(help="OpenAPI / Swagger document (YAML or JSON)")]
ModelArg = Annotated[str, typer.Argument(help="Component schema name")]
SeedOpt = Annotated[str | None, typer.Option("--seed", "-s", help="Seed (defaults to settings)")]
LimitOpt = Annotated[int | None, typer.Option("--limit", "-l", help="Items per window")]
TotalOpt = Annotated[int | None, typer.Option("--total", "-t", help="Collection size")]


def load_document(path: Path) -> dict[str, Any]:
    """Read an OpenAPI document. YAML loading also covers JSON."""
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise SchemaLoadError(str(path), str(e)) from e
    try:
        document = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SchemaLoadError(str(path), f"invalid YAML/JSON: {e}") from e
    if not isinstance(document, dict):
        raise SchemaLoadError(str(path), "document root is not a mapping")
    return document


@app.callback()
def configure() -> None:
    """mockseed - deterministic mock API data."""
    configure_logging(get_settings().log_level)


def _provider(state: MockState, spec: Path, model: str) -> OpenAPIItemProvider:
    return state.openapi_provider(load_document(spec), model)


def _seed(seed: str | None) -> str | int:
    return get_settings().default_seed if seed is None else seed


@app.command()
def sample(
    spec: SpecArg,
    model: ModelArg,
    seed: SeedOpt = None,
    index: Annotated[int, typer.Option("--index", "-i", help="Item position")] = 0,
) -> None:
    """Print one generated item as JSON."""
    try:
        provider = _provider(MockState(), spec, model)
        print_json(provider.generate_item(index, _seed(seed)))
    except MockSeedError as e:
        error(e.message)
        raise typer.Exit(1) from e


@app.command()
def page(
    spec: SpecArg,
    model: ModelArg,
    page_number: Annotated[int, typer.Option("--page", "-p", help="1-based page")] = 1,
    limit: LimitOpt = None,
    total: TotalOpt = None,
    seed: SeedOpt = None,
) -> None:
    """Print a page window as JSON."""
    try:
        state = MockState()
        provider = _provider(state, spec, model)
        window = state.page_manager.get_paged_response(
            provider, page=page_number, limit=limit, total=total, seed=_seed(seed)
        )
        print_json(window.to_dict())
    except MockSeedError as e:
        error(e.message)
        raise typer.Exit(1) from e


@app.command()
def cursor(
    spec: SpecArg,
    model: ModelArg,
    cursor_token: Annotated[
        str | None, typer.Option("--cursor", "-c", help="Cursor from a previous window")
    ] = None,
    limit: LimitOpt = None,
    total: TotalOpt = None,
    seed: SeedOpt = None,
    backward: Annotated[bool, typer.Option("--backward", "-b", help="Page backward")] = False,
) -> None:
    """Print a cursor window as JSON."""
    try:
        state = MockState()
        provider = _provider(state, spec, model)
        window = state.cursor_manager.get_cursor_page(
            provider,
            cursor=cursor_token,
            limit=limit,
            total=total,
            seed=_seed(seed),
            is_backward=backward,
        )
        print_json(window.to_dict())
    except MockSeedError as e:
        error(e.message)
        raise typer.Exit(1) from e


@app.command()
def scan(
    package: Annotated[Path, typer.Argument(help="Generated client package root")],
) -> None:
    """Show the endpoints and models recovered from a client package."""
    try:
        scanned = MockState().client_package(package)
    except MockSeedError as e:
        error(e.message)
        raise typer.Exit(1) from e

    console.print(
        f"\n[{ELECTRIC_PURPLE}]{scanned.name}[/{ELECTRIC_PURPLE}]"
        f" [{NEON_CYAN}]{scanned.version or ''}[/{NEON_CYAN}]\n"
    )

    endpoints = create_table("Endpoints", "Method", "Path", "Operation", "Response")
    for endpoint in scanned.endpoints:
        endpoints.add_row(
            format_method(endpoint.method),
            endpoint.path,
            endpoint.operation_id,
            truncate(endpoint.response_type, 40),
        )
    console.print(endpoints)

    models = create_table("Models", "Model", "Kind", "Fields")
    for name, schema in sorted(scanned.models.items()):
        if schema.is_enum:
            models.add_row(name, "enum", str(len(schema.enum_values)))
        else:
            models.add_row(name, "record", str(len(schema.fields)))
    console.print(models)

    if not scanned.endpoints:
        info("No endpoints recognised")
    success(f"{len(scanned.endpoints)} endpoints, {len(scanned.models)} models")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
