"""
Command-line interface for NewsForge.

Usage:
    newsforge fetch --user-id 1            # Fetch all active sources of a user
    newsforge add-source --user-id 1 ...   # Register a source
    newsforge sources --user-id 1          # List a user's sources
    newsforge models                       # List AI models across providers
    newsforge generate "prompt" --model X  # Route a generation request
    newsforge init-db                      # Initialize database
    newsforge serve                        # Start the API server
"""

import asyncio
import json
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import click

from newsforge.ai.errors import ProviderError, ProviderNotFoundError
from newsforge.ai.registry import build_provider_registry
from newsforge.ai.schemas import AIRequestOptions
from newsforge.config.settings import get_settings
from newsforge.ingestion.errors import ConfigError
from newsforge.ingestion.registry import build_adapter_registry
from newsforge.observability.logging import setup_logging
from newsforge.observability.metrics import get_metrics
from newsforge.services.fetch_coordinator import FetchCoordinator, RunResult
from newsforge.sources.service import SourcesService


@asynccontextmanager
async def _open_stores() -> AsyncIterator[tuple[Any, Any, Any]]:
    """Yield (sources, runs, items) stores for the configured backend."""
    if get_settings().storage_backend == "memory":
        from newsforge.storage.memory import InMemoryStore

        store = InMemoryStore()
        yield store, store, store
        return

    from newsforge.runs.repository import RunsRepository
    from newsforge.sources.repository import SourcesRepository
    from newsforge.storage.database import Database
    from newsforge.storage.repository import RawItemRepository

    db = Database()
    await db.connect()
    try:
        yield SourcesRepository(db), RunsRepository(db), RawItemRepository(db)
    finally:
        await db.close()


def _echo_run_result(result: RunResult) -> None:
    click.echo(f"\nRun {result.run_id} completed in {result.duration} ms")
    click.echo("-" * 40)
    click.echo(f"  sources:    {result.total_sources}")
    click.echo(click.style(f"  successful: {result.successful_sources}", fg="green"))
    if result.failed_sources:
        click.echo(click.style(f"  failed:     {result.failed_sources}", fg="red"))
    click.echo(f"  items:      {result.total_items}")
    for error in result.errors:
        label = f"[{error.error_kind}] " if error.error_kind else ""
        click.echo(click.style(f"  ✗ {error.source_name} ({error.source_kind}): {label}{error.error}", fg="red"))


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--memory", is_flag=True, help="Use the in-memory store instead of PostgreSQL")
def main(debug: bool, memory: bool) -> None:
    """NewsForge - Multi-source headline collection and AI routing."""
    if debug:
        os.environ["LOG_LEVEL"] = "DEBUG"
    if memory:
        os.environ["STORAGE_BACKEND"] = "memory"
    if debug or memory:
        get_settings.cache_clear()

    setup_logging()


@main.command()
@click.option("--user-id", required=True, type=int, help="Owner of the sources to fetch")
@click.option(
    "--sources-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON list of {name, kind, config} to register before fetching",
)
@click.option("--metrics/--no-metrics", default=False, help="Enable metrics server")
def fetch(user_id: int, sources_file: Path | None, metrics: bool) -> None:
    """Fetch all active sources of a user once."""
    if metrics:
        get_metrics().start_server(port=get_settings().metrics_port)

    async def run() -> RunResult:
        async with _open_stores() as (sources, runs, items):
            if sources_file is not None:
                service = SourcesService(sources)
                for entry in json.loads(sources_file.read_text()):
                    await service.create_source(
                        user_id=user_id,
                        name=entry["name"],
                        kind=entry["kind"],
                        config=entry.get("config", {}),
                    )

            providers = build_provider_registry() if get_settings().video_analysis_model else None
            coordinator = FetchCoordinator(
                adapters=build_adapter_registry(providers=providers),
                sources=sources,
                runs=runs,
                items=items,
            )
            return await coordinator.run_fetch_for_all_sources(user_id)

    try:
        result = asyncio.run(run())
    except ConfigError as e:
        raise click.ClickException(f"Invalid sources file: {e}")

    _echo_run_result(result)


@main.command("add-source")
@click.option("--user-id", required=True, type=int)
@click.option("--name", required=True)
@click.option(
    "--kind",
    required=True,
    type=click.Choice(["feed", "mailbox", "paper-index-a", "paper-index-b", "video"]),
)
@click.option("--config", "config_json", default="{}", help="Source config as JSON")
def add_source(user_id: int, name: str, kind: str, config_json: str) -> None:
    """Register a source for a user."""
    try:
        config = json.loads(config_json)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--config")

    async def run():
        async with _open_stores() as (sources, _, _):
            return await SourcesService(sources).create_source(
                user_id=user_id, name=name, kind=kind, config=config
            )

    try:
        source = asyncio.run(run())
    except ConfigError as e:
        raise click.ClickException(str(e))

    click.echo(f"Created {source.kind.value} source {source.id}: {source.name}")


@main.command("sources")
@click.option("--user-id", required=True, type=int)
@click.option("--active-only", is_flag=True, help="Only active sources")
def list_sources(user_id: int, active_only: bool) -> None:
    """List a user's sources."""

    async def run():
        async with _open_stores() as (sources, _, _):
            return await SourcesService(sources).list_sources(user_id, active_only=active_only)

    rows = asyncio.run(run())
    if not rows:
        click.echo("No sources")
        return
    for s in rows:
        state = "active" if s.is_active else "inactive"
        click.echo(f"  {s.id:>4}  {s.kind.value:<14} {state:<8} {s.name}")


@main.command()
@click.option("--provider", "provider_id", default=None, help="Restrict to one provider")
def models(provider_id: str | None) -> None:
    """List models across AI providers."""
    registry = build_provider_registry()

    async def run():
        return await registry.get_all_models(provider_id=provider_id)

    found = asyncio.run(run())
    if not found:
        click.echo("No models available")
        return
    for m in found:
        where = "local" if m.is_local else "remote"
        click.echo(f"  {m.provider_id:<10} {m.id:<40} {where}")


@main.command()
@click.argument("prompt")
@click.option("--model", "model_id", required=True, help="Model id")
@click.option("--provider", "provider_id", default=None, help="Explicit provider id")
@click.option("--system", "system_prompt", default=None, help="System prompt")
@click.option("--temperature", type=float, default=None)
@click.option("--max-tokens", type=int, default=None)
@click.option("--json", "json_mode", is_flag=True, help="Request JSON output")
def generate(
    prompt: str,
    model_id: str,
    provider_id: str | None,
    system_prompt: str | None,
    temperature: float | None,
    max_tokens: int | None,
    json_mode: bool,
) -> None:
    """Generate text with the resolved AI provider."""
    registry = build_provider_registry()
    options = AIRequestOptions(
        model_id=model_id,
        prompt=prompt,
        system_prompt=system_prompt,
        temperature=temperature,
        max_tokens=max_tokens,
        json_mode=json_mode,
    )

    try:
        response = asyncio.run(registry.generate(options, provider_id=provider_id))
    except (ProviderNotFoundError, ProviderError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    click.echo(response.content)
    if response.usage is not None:
        click.echo(
            f"\n[{response.model}] tokens: {response.usage.prompt_tokens} in, "
            f"{response.usage.completion_tokens} out",
            err=True,
        )


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from newsforge.storage.database import Database
    from newsforge.storage.schema import init_schema

    async def run():
        db = Database()
        await db.connect()
        try:
            await init_schema(db)
        finally:
            await db.close()

        click.echo("Database initialized successfully")

    asyncio.run(run())


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics-port", default=None, type=int, help="Metrics server port")
def serve(host: str | None, port: int | None, reload: bool, metrics_port: int | None) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    metrics_port = metrics_port or settings.metrics_port

    get_metrics().start_server(port=metrics_port)

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"Metrics available on http://localhost:{metrics_port}/metrics")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "newsforge.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
