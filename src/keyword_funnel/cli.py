"""CLI commands for the keyword pipeline using Typer."""

import asyncio
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from keyword_funnel.clients.suggest_client import create_suggest_client
from keyword_funnel.clients.webhook_client import WebhookError, create_webhook_exporter
from keyword_funnel.config import Settings, get_settings
from keyword_funnel.core.keyword_store import KeywordNotFoundError
from keyword_funnel.core.normalizer import KeywordImportError, MissingColumnsError, TabularNormalizer
from keyword_funnel.core.workflow import NoProjectSelectedError, TierSession
from keyword_funnel.models.keyword import ContextParameters, KeywordRecord, KeywordStats
from keyword_funnel.services.enricher import NullEnricher, SuggestionEnricher
from keyword_funnel.storage.project_repository import (
    JsonProjectRepository,
    PersistenceError,
    ProjectNotFoundError,
    create_project_repository,
)
from keyword_funnel.utils.logging import setup_logging


app = typer.Typer(
    name="keyword-funnel",
    help="Keyword import, funnel metrics and webhook export CLI tool",
    no_args_is_help=True,
)

console = Console()


def _bootstrap(settings: Settings) -> JsonProjectRepository:
    """Prepare directories and logging, return the project repository."""
    settings.ensure_directories()
    setup_logging(level=settings.log_level.upper(), log_file=settings.logs_dir / "keyword_funnel.log")
    return create_project_repository(settings.projects_file)


def _create_enricher(settings: Settings) -> SuggestionEnricher:
    if not settings.suggestions_enabled:
        return NullEnricher()
    return SuggestionEnricher(
        source=create_suggest_client(
            base_url=settings.suggest_base_url,
            timeout=settings.suggest_timeout,
        ),
        limit=settings.suggest_limit,
        timeout=settings.suggest_timeout * 2,
        max_concurrency=settings.suggest_concurrency,
    )


def _project_id(project: str, settings: Settings) -> str:
    return project or settings.current_project_id


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Report pipeline errors once and exit with status 1."""
    try:
        yield
    except MissingColumnsError as exc:
        console.print(f"[red]Required columns not found: {', '.join(exc.missing)}[/red]")
        if exc.headers:
            console.print(f"[dim]Headers in file: {', '.join(exc.headers)}[/dim]")
        console.print("[yellow]Hint: expected columns like Keyword, Search Volume and KD.[/yellow]")
        raise typer.Exit(1)
    except KeywordImportError as exc:
        console.print(f"[red]Import failed: {exc}[/red]")
        raise typer.Exit(1)
    except NoProjectSelectedError:
        console.print("[red]No project selected[/red]")
        console.print("[dim]Pass --project or set CURRENT_PROJECT_ID[/dim]")
        raise typer.Exit(1)
    except ProjectNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    except KeywordNotFoundError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    except WebhookError as exc:
        console.print(f"[red]{exc}[/red]")
        if exc.status_code is not None:
            console.print(f"[dim]Last status code: {exc.status_code}[/dim]")
        if exc.cause is not None:
            console.print(f"[dim]Last error: {exc.cause}[/dim]")
        raise typer.Exit(1)
    except PersistenceError as exc:
        console.print(f"[red]Storage error: {exc}[/red]")
        raise typer.Exit(1)
    except ValidationError as exc:
        console.print(f"[red]Invalid value: {exc.errors()[0]['msg']}[/red]")
        raise typer.Exit(1)


def _spinner(description: str) -> Progress:
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
    progress.add_task(description, total=None)
    return progress


def _format_currency(value: int) -> str:
    return f"€{value:,.0f}"


def _display_stats(stats: KeywordStats) -> None:
    console.print(
        f"[bold]Total volume:[/bold] {stats.total_volume:,}   "
        f"[bold]Avg. KD:[/bold] {stats.avg_difficulty}   "
        f"[bold]Pot. traffic:[/bold] {stats.total_traffic:,}   "
        f"[bold]Pot. revenue:[/bold] {_format_currency(stats.total_revenue)}"
    )


def _display_keywords(records: list[KeywordRecord]) -> None:
    """Display keywords in a table."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Keyword", style="green")
    table.add_column("Volume", justify="right")
    table.add_column("KD", justify="right")
    table.add_column("KGR", justify="right")
    table.add_column("Auto Suggest", max_width=40)
    table.add_column("Content Type")
    table.add_column("Search Intent")
    table.add_column("Funnel Stage")
    table.add_column("Priority", justify="right")
    table.add_column("Pot. Traffic", justify="right")
    table.add_column("Pot. Conv.", justify="right")
    table.add_column("Pot. Revenue", justify="right")

    for kw in records:
        table.add_row(
            kw.keyword,
            f"{kw.volume:,}",
            str(kw.difficulty),
            f"{kw.kgr:.2f}" if kw.kgr is not None else "-",
            ", ".join(kw.auto_suggestions) or "-",
            kw.content_type or "-",
            kw.search_intent or "-",
            kw.funnel_stage or "-",
            str(kw.priority) if kw.priority else "-",
            f"{kw.potential_traffic:,}" if kw.potential_traffic else "-",
            f"{kw.potential_conversions:,}" if kw.potential_conversions else "-",
            _format_currency(kw.potential_revenue) if kw.potential_revenue else "-",
        )

    console.print(table)


# --- Project Commands ---


@app.command("create-project")
def create_project(
    name: str = typer.Argument(..., help="Project name"),
    conversion_rate: Optional[float] = typer.Option(None, "--conversion-rate", help="Conversion rate (%)"),
    aov: Optional[float] = typer.Option(None, "--aov", help="Average order value"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Locale, e.g. pt-PT"),
):
    """Create a new project."""
    settings = get_settings()
    repository = _bootstrap(settings)

    async def run():
        with _handle_errors():
            context = ContextParameters(
                conversion_rate=settings.default_conversion_rate if conversion_rate is None else conversion_rate,
                average_order_value=settings.default_average_order_value if aov is None else aov,
                language=language or settings.default_language,
            )
            project = await repository.create_project(name, context)
        console.print(f"[green]Project created:[/green] {project.name}")
        console.print(f"  ID: {project.id}")
        console.print(f"[dim]Set CURRENT_PROJECT_ID={project.id} to select it[/dim]")

    asyncio.run(run())


@app.command()
def projects():
    """List projects."""
    settings = get_settings()
    repository = _bootstrap(settings)

    async def run():
        with _handle_errors():
            items = await repository.list_projects()

        if not items:
            console.print("[yellow]No projects yet[/yellow]")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="green")
        table.add_column("Conv. %", justify="right")
        table.add_column("AOV", justify="right")
        table.add_column("Language")
        table.add_column("Tiers")
        for project in items:
            marker = " *" if project.id == settings.current_project_id else ""
            table.add_row(
                project.id,
                project.name + marker,
                f"{project.context.conversion_rate:g}",
                f"{project.context.average_order_value:g}",
                project.context.language,
                ", ".join(f"{key} ({len(project.data[key])})" for key in project.tier_keys) or "-",
            )
        console.print(table)

    asyncio.run(run())


@app.command("set-context")
def set_context(
    tier: str = typer.Option("1", "--tier", "-t", help="Tier to display after recompute"),
    conversion_rate: Optional[float] = typer.Option(None, "--conversion-rate", help="Conversion rate (%)"),
    aov: Optional[float] = typer.Option(None, "--aov", help="Average order value"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Locale, e.g. pt-PT"),
    project: str = typer.Option("", "--project", "-p", help="Project id"),
):
    """Update the project context and recompute funnel metrics."""
    settings = get_settings()
    repository = _bootstrap(settings)

    async def run():
        with _handle_errors():
            session = await TierSession.open(repository, _project_id(project, settings), tier)
            updates = {}
            if conversion_rate is not None:
                updates["conversion_rate"] = conversion_rate
            if aov is not None:
                updates["average_order_value"] = aov
            if language:
                updates["language"] = language
            if not updates:
                console.print("[yellow]Nothing to update[/yellow]")
                return

            context = ContextParameters.model_validate(
                {**session.context.model_dump(), **updates}
            )
            await session.apply_context(context)

        console.print("[green]Context updated, metrics recomputed[/green]")
        _display_stats(session.stats())

    asyncio.run(run())


# --- Keyword Commands ---


@app.command("import")
def import_keywords(
    tier: str = typer.Argument(..., help="Tier number or key, e.g. 1 or tier1Keywords"),
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="CSV file"),
    replace: bool = typer.Option(False, "--replace", help="Clear the tier before importing"),
    delimiter: Optional[str] = typer.Option(None, "--delimiter", "-d", help="Field delimiter"),
    project: str = typer.Option("", "--project", "-p", help="Project id"),
):
    """Import keywords from a CSV export into a tier."""
    settings = get_settings()
    repository = _bootstrap(settings)
    normalizer = TabularNormalizer(delimiter=delimiter or settings.import_delimiter)

    async def run():
        with _handle_errors():
            raw_text = await normalizer.read_file(file)
            session = await TierSession.open(
                repository,
                _project_id(project, settings),
                tier,
                enricher=_create_enricher(settings),
                normalizer=normalizer,
            )
            with _spinner(f"Importing {file.name} into {session.tier_key}..."):
                summary = await session.import_text(raw_text, replace=replace)

        console.print(f"[green]{summary.imported} keywords imported successfully[/green]")
        console.print(
            f"[dim]{summary.replaced} replaced, {summary.enriched} with suggestions, "
            f"{summary.total} in tier[/dim]"
        )
        _display_stats(session.stats())

    asyncio.run(run())


@app.command()
def show(
    tier: str = typer.Argument(..., help="Tier number or key"),
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum rows to display"),
    project: str = typer.Option("", "--project", "-p", help="Project id"),
):
    """Show the keywords and statistics of a tier."""
    settings = get_settings()
    repository = _bootstrap(settings)

    async def run():
        with _handle_errors():
            session = await TierSession.open(repository, _project_id(project, settings), tier)

        records = session.store.records
        console.print(f"\n[bold]{session.project_name} / {session.tier_key}[/bold]")
        _display_stats(session.stats())
        if not records:
            console.print("[yellow]No keywords in this tier[/yellow]")
            return
        _display_keywords(records[:limit])
        if len(records) > limit:
            console.print(f"  ... and {len(records) - limit} more")

    asyncio.run(run())


@app.command()
def suggestions(
    tier: str = typer.Argument(..., help="Tier number or key"),
    keyword: str = typer.Argument(..., help="Keyword to update"),
    text: str = typer.Argument(..., help="Comma-separated suggestions"),
    project: str = typer.Option("", "--project", "-p", help="Project id"),
):
    """Replace the auto-suggestions of one keyword."""
    settings = get_settings()
    repository = _bootstrap(settings)

    async def run():
        with _handle_errors():
            session = await TierSession.open(repository, _project_id(project, settings), tier)
            record = await session.update_suggestions(keyword, text)

        console.print(f"[green]Updated suggestions for '{record.keyword}'[/green]")
        console.print(f"[dim]{', '.join(record.auto_suggestions) or '(none)'}[/dim]")

    asyncio.run(run())


@app.command()
def export(
    tier: str = typer.Argument(..., help="Tier number or key"),
    keywords: Optional[list[str]] = typer.Option(None, "--keyword", "-k", help="Keyword to export (repeatable)"),
    export_all: bool = typer.Option(False, "--all", help="Export every keyword in the tier"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="AI model override"),
    project: str = typer.Option("", "--project", "-p", help="Project id"),
):
    """Send selected keywords to the automation webhook."""
    settings = get_settings()
    repository = _bootstrap(settings)

    if not keywords and not export_all:
        console.print("[red]Select keywords with --keyword or use --all[/red]")
        raise typer.Exit(1)

    exporter = create_webhook_exporter(
        url=settings.webhook_url,
        ai_model=settings.ai_model,
        max_attempts=settings.webhook_max_attempts,
        base_delay=settings.webhook_base_delay,
        timeout=settings.webhook_timeout,
    )

    async def run():
        with _handle_errors():
            session = await TierSession.open(repository, _project_id(project, settings), tier)
            if export_all:
                session.toggle_all(True)
            for kw in keywords or []:
                if not session.selection.contains(kw):
                    session.toggle(kw)

            selected = session.selected_records()
            with _spinner(f"Sending {len(selected)} keywords to webhook..."):
                attempts = await session.export_selected(exporter, ai_model=model)

        console.print(f"[green]Webhook sent successfully[/green] [dim](attempts: {attempts})[/dim]")

    asyncio.run(run())


# --- Entry Point ---


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
