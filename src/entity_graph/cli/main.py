from __future__ import annotations

import logging
from pathlib import Path

import click
import httpx
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from entity_graph.settings import settings

console = Console()


def _configure_logging() -> None:
    level = (settings.log_level or "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _fail(e: Exception) -> None:
    stage = getattr(e, "stage", "run")
    console.print(f"[red]{stage} failed:[/red] {escape(str(e))}")
    raise SystemExit(1)


# --- collaborators (module level so tests can swap them) ---


def build_oracles():
    from entity_graph.clients import HttpOracleClient

    people = HttpOracleClient(
        settings.people_url, api_key=settings.api_key, timeout_s=settings.oracle_timeout_s
    )
    places = HttpOracleClient(
        settings.places_url, api_key=settings.api_key, timeout_s=settings.oracle_timeout_s
    )
    return people, places


def build_relational_client():
    from entity_graph.clients import HttpRelationalClient

    return HttpRelationalClient(
        settings.database_url, api_key=settings.api_key, timeout_s=settings.database_timeout_s
    )


def build_backend():
    from entity_graph.graph.neo4j_store import Neo4jConfig, Neo4jGraphBackend

    if not settings.neo4j_uri:
        return None
    cfg = Neo4jConfig(
        uri=settings.neo4j_uri,
        user=settings.neo4j_user,
        password=settings.neo4j_password,
        database=settings.neo4j_database,
        ready_timeout_s=settings.neo4j_ready_timeout_s,
        max_hops=settings.neo4j_max_hops,
    )
    return Neo4jGraphBackend(cfg)


def build_sink():
    from entity_graph.clients import ReportClient

    return ReportClient(settings.base_url, api_key=settings.api_key)


def fetch_note(url: str) -> str:
    from entity_graph.http import HttpClientFactory

    with HttpClientFactory.client() as c:
        r = c.get(url)
        r.raise_for_status()
        return r.text


def _submit(task: str, answer) -> None:
    from entity_graph.errors import EntityGraphError

    sink = build_sink()
    try:
        reply = sink.report(task, answer)
    except EntityGraphError as e:
        _fail(e)
    finally:
        sink.close()
    console.print(Panel(escape(str(reply)), title=f"report: {task}"))


@click.group()
def cli():
    """Entity graph resolution: oracle discovery and connection paths."""
    _configure_logging()


@cli.command()
def version():
    """Print the package version."""
    from entity_graph import __version__

    click.echo(__version__)


@cli.command()
@click.option("--note-file", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None)
@click.option("--note-url", default=None, help="Defaults to ENTITY_GRAPH_NOTE_URL")
@click.option("--target", default="BARBARA", show_default=True, help="Person whose new location is sought")
@click.option("--pair", nargs=2, default=("ALEKSANDER", "BARBARA"), show_default=True)
@click.option("--companion", default="RAFAL", show_default=True)
@click.option("--seed-person", "seed_persons", multiple=True, help="Always-queued person (repeatable)")
@click.option("--max-iterations", type=int, default=None)
@click.option("--submit", is_flag=True, help="Report the found location")
@click.option("--task", default="loop", show_default=True)
def discover(note_file, note_url, target, pair, companion, seed_persons, max_iterations, submit, task):
    """Discover the people/places graph and locate TARGET."""
    from entity_graph.discovery import DiscoveryConfig, DiscoveryEngine
    from entity_graph.discovery.engine import DEFAULT_SEED_PERSONS, seeds_from_note
    from entity_graph.errors import EntityGraphError

    if note_file:
        note = note_file.read_text(encoding="utf-8")
    else:
        url = note_url or settings.note_url
        try:
            note = fetch_note(url)
        except httpx.HTTPError as e:
            _fail(EntityGraphError(f"cannot fetch note from {url}: {e}", stage="discovery"))
    seeds = seeds_from_note(note, seed_persons=seed_persons or DEFAULT_SEED_PERSONS)

    config = DiscoveryConfig(
        max_iterations=max_iterations or settings.max_iterations,
        min_person_len=settings.min_person_len,
    )
    people, places = build_oracles()
    try:
        run = DiscoveryEngine(people, places, config).run(seeds, target)
    finally:
        people.close()
        places.close()

    s = run.summary(pair=tuple(pair), companion=companion)
    table = Table(title="Discovery summary")
    table.add_column("Question", style="cyan")
    table.add_column("Answer", style="white", overflow="fold")
    table.add_row(f"New location of {s.target}", s.target_location or "(none)")
    table.add_row(f"Places with {pair[0]} and {pair[1]}", ", ".join(s.places_with_pair) or "(none)")
    table.add_row("Third associate (hypothesis)", s.third_associate or "(undetermined)")
    table.add_row(f"Seen with {companion}", ", ".join(s.seen_with) or "(none)")
    table.add_row("Iterations / queries", f"{s.iterations} / {s.queries}")
    console.print(table)

    if s.target_location is None:
        console.print(f"[yellow]discovery: no new location found for {s.target}; nothing submitted[/yellow]")
        return
    if submit:
        _submit(task, s.target_location)


@cli.command()
@click.option("--start", "starts", multiple=True, default=("Rafał", "Rafal"), show_default=True)
@click.option("--goal", "goals", multiple=True, default=("Barbara",), show_default=True)
@click.option("--neo4j/--no-neo4j", "use_backend", default=True, help="Cross-check with Neo4j if configured")
@click.option("--require-neo4j", is_flag=True, help="Neo4j path is the answer; its failure is fatal")
@click.option("--submit", is_flag=True, help="Report the path")
@click.option("--task", default="connections", show_default=True)
def connections(starts, goals, use_backend, require_neo4j, submit, task):
    """Shortest chain of acquaintances between two people."""
    from entity_graph.errors import EntityGraphError
    from entity_graph.graph import ConnectionPathfinder
    from entity_graph.tabular import JsonSnapshotCache, TabularGraphBuilder

    backend = build_backend() if (use_backend or require_neo4j) else None
    if require_neo4j and backend is None:
        _fail(ValueError("--require-neo4j needs ENTITY_GRAPH_NEO4J_URI"))
    cache = JsonSnapshotCache(settings.cache_dir) if settings.cache_dir else None
    client = build_relational_client()

    try:
        builder = TabularGraphBuilder(client, cache=cache)
        users = builder.build_users()
        edges = builder.build_connections(users)
        console.print(f"users: {len(users)}, connections: {len(edges)}")

        finder = ConnectionPathfinder(users, edges, backend=backend, backend_required=require_neo4j)
        result = finder.find(starts, goals)
    except EntityGraphError as e:
        _fail(e)
    finally:
        client.close()
        if backend is not None:
            backend.close()

    if not result:
        console.print(f"[red]path_search failed:[/red] no path from {starts[0]} to {goals[0]}")
        raise SystemExit(1)

    console.print(Panel(escape(result.answer), title=f"path ({result.source}, {len(result.ids) - 1} hops)"))
    if submit:
        _submit(task, result.answer)


def app() -> None:
    cli()


if __name__ == "__main__":
    app()
