"""Typer CLI application for Search Detective.

Provides commands for running geo-targeted keyword research, browsing and
managing saved research, exporting CSVs, market summaries, and managing
industries and the Keywords Everywhere API key.
"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from search_detective.exceptions import ResearchError, describe_error
from search_detective.modules.keyword_research import ResearchRecord, RunState
from search_detective.modules.keyword_research.classifier import HIGH, LOW, MEDIUM
from search_detective.utils.helpers import format_currency, format_number, mask_secret, parse_city_list

console = Console()
app = typer.Typer(
    name="search-detective",
    help="Search Detective -- geo-targeted keyword research for local service businesses.",
    add_completion=False,
    no_args_is_help=True,
)

_STATE_LABELS = {
    RunState.IDLE: "Preparing research...",
    RunState.GENERATING: "Generating keyword phrases...",
    RunState.FETCHING: "Fetching search volume from Keywords Everywhere...",
    RunState.CLASSIFYING: "Classifying opportunities...",
    RunState.PERSISTED: "Saved.",
    RunState.FAILED: "Research failed.",
}

_OPPORTUNITY_STYLES = {HIGH: "green", MEDIUM: "yellow", LOW: "red"}

ConfigOption = typer.Option("config/settings.yaml", "--config", "-c", help="Path to settings YAML.")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging.")


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level and format."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context."""
    return asyncio.run(coro)


def _get_app(config_path: str):
    """Lazy-import and return an initialised SearchDetective instance."""
    from search_detective.app import SearchDetective
    instance = SearchDetective(config_path=config_path)
    instance.initialize()
    return instance


def _fail(message: str) -> None:
    console.print(f"[red]✘ {escape(message)}[/red]")
    raise typer.Exit(code=1)


def _load_record(sd, research_id: int) -> ResearchRecord:
    record = sd.get_research(research_id)
    if record is None:
        _fail(f"Research {research_id} not found.")
    return record


def _print_results(record: ResearchRecord, limit: Optional[int] = None) -> None:
    """Pretty-print a research run's keyword table using Rich."""
    title = record.title or f"{record.industry} in {', '.join(record.cities)}"
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Keyword", style="cyan", min_width=30)
    table.add_column("Volume", justify="right")
    table.add_column("CPC", justify="right")
    table.add_column("Competition", justify="right")
    table.add_column("Opportunity")

    rows = record.results if limit is None else record.results[:limit]
    for r in rows:
        style = _OPPORTUNITY_STYLES.get(r.opportunity, "white")
        table.add_row(
            r.keyword,
            format_number(r.search_volume),
            f"${r.cpc:.2f}",
            f"{r.competition}%",
            f"[{style}]{r.opportunity}[/{style}]",
        )
    console.print(table)
    if limit is not None and len(record.results) > limit:
        console.print(f"... {len(record.results) - limit} more (use 'show {record.id}').")


# ------------------------------------------------------------------
# research
# ------------------------------------------------------------------
@app.command()
def research(
    industry: str = typer.Argument(..., help="Industry name (see 'industries')."),
    cities: str = typer.Argument(..., help="Comma-separated cities, e.g. 'Boise, Reno'."),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Optional title for this research."),
    limit: int = typer.Option(25, "--limit", "-n", help="Rows to display (0 = all)."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Run keyword research for an industry across one or more cities."""
    _setup_logging(verbose)
    city_list = parse_city_list(cities)
    console.print(Panel(f"[bold cyan]Keyword Research: {industry} in {', '.join(city_list)}[/bold cyan]"))
    sd = _get_app(config)

    with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=console) as progress:
        task_id = progress.add_task(description=_STATE_LABELS[RunState.IDLE], total=None)

        def on_state(state: RunState) -> None:
            progress.update(task_id, description=_STATE_LABELS[state])

        try:
            record = _run_async(sd.run_research(industry, city_list, title=title, on_state=on_state))
        except ResearchError as exc:
            progress.stop()
            _fail(describe_error(exc))

    _print_results(record, limit=limit or None)
    console.print(
        f"[green]✔[/green] Research {record.id} saved: "
        f"{len(record.results)} phrases, {len(record.keywords_with_volume)} with search volume."
    )


# ------------------------------------------------------------------
# history / show / rename / delete
# ------------------------------------------------------------------
@app.command()
def history(
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """List saved research, newest first."""
    _setup_logging(verbose)
    sd = _get_app(config)
    records = sd.list_research()
    if not records:
        console.print("[yellow]No research saved yet.[/yellow]")
        return

    table = Table(title="Research History", show_header=True, header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Industry")
    table.add_column("Cities")
    table.add_column("Phrases", justify="right")
    table.add_column("With Volume", justify="right")
    table.add_column("Created")
    for rec in records:
        table.add_row(
            str(rec.id),
            rec.title or "-",
            rec.industry,
            ", ".join(rec.cities),
            str(len(rec.results)),
            str(len(rec.keywords_with_volume)),
            rec.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def show(
    research_id: int = typer.Argument(..., help="Research ID."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show every keyword of a saved research."""
    _setup_logging(verbose)
    sd = _get_app(config)
    _print_results(_load_record(sd, research_id))


@app.command()
def rename(
    research_id: int = typer.Argument(..., help="Research ID."),
    title: str = typer.Argument(..., help="New title (empty string clears it)."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Rename a saved research."""
    _setup_logging(verbose)
    sd = _get_app(config)
    record = sd.rename_research(research_id, title)
    if record is None:
        _fail(f"Research {research_id} not found.")
    console.print(f"[green]✔[/green] Research {research_id} renamed to {record.title or '(untitled)'}.")


@app.command()
def delete(
    research_id: int = typer.Argument(..., help="Research ID."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Delete a saved research."""
    _setup_logging(verbose)
    sd = _get_app(config)
    if not yes and not typer.confirm(f"Delete research {research_id}?"):
        raise typer.Exit(code=0)
    if not sd.delete_research(research_id):
        _fail(f"Research {research_id} not found.")
    console.print(f"[green]✔[/green] Research {research_id} deleted.")


# ------------------------------------------------------------------
# export / summary / tam
# ------------------------------------------------------------------
@app.command()
def export(
    research_id: int = typer.Argument(..., help="Research ID."),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="CSV path (default: export dir)."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Export a saved research to CSV."""
    _setup_logging(verbose)
    sd = _get_app(config)
    path = sd.export_csv(research_id, output)
    if path is None:
        _fail(f"Research {research_id} not found.")
    console.print(f"[green]✔[/green] Exported to {path}")


@app.command()
def summary(
    research_id: int = typer.Argument(..., help="Research ID."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Business value summary for a saved research."""
    _setup_logging(verbose)
    sd = _get_app(config)
    data = sd.market_summary(research_id)
    if data is None:
        _fail(f"Research {research_id} not found.")

    console.print(Panel(f"[bold cyan]Business Value Summary: {data['industry']} in {', '.join(data['cities'])}[/bold cyan]"))
    table = Table(show_header=False)
    table.add_column("Metric", style="cyan", min_width=28)
    table.add_column("Value", justify="right")
    table.add_row("Total monthly searches", format_number(data["total_monthly_searches"]))
    table.add_row("High-opportunity keywords", str(data["high_opportunity_count"]))
    table.add_row("Monthly ad budget", format_currency(data["monthly_ad_budget"]))
    table.add_row("SEO content targets", str(data["content_target_count"]))
    table.add_row("Keywords with volume", str(data["keywords_with_volume"]))
    table.add_row("Keywords without volume", str(data["keywords_without_volume"]))
    table.add_row("Average search volume", format_number(data["avg_search_volume"]))
    table.add_row("Average CPC", f"${data['avg_cpc']:.2f}")
    console.print(table)

    if data["primary_keywords"]:
        console.print("\n[bold]Primary keywords[/bold]")
        for kw in data["primary_keywords"]:
            console.print(f"  {kw['keyword']} ({format_number(kw['searchVolume'])}/mo, ${kw['cpc']:.2f})")
    if data["insights"]:
        console.print("\n[bold]Insights[/bold]")
        for line in data["insights"]:
            console.print(f"  • {line}")


@app.command()
def tam(
    research_id: int = typer.Argument(..., help="Research ID."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Total addressable market estimate (HVAC research only)."""
    _setup_logging(verbose)
    sd = _get_app(config)
    data = sd.estimate_tam(research_id)
    if data is None:
        _fail(f"Research {research_id} not found.")
    if not data["available"]:
        console.print(f"[yellow]{data['note']}[/yellow]")
        return

    table = Table(title="Total Addressable Market", show_header=False)
    table.add_column("Metric", style="cyan", min_width=28)
    table.add_column("Value", justify="right")
    table.add_row("Monthly searches", format_number(data["monthly_searches"]))
    table.add_row("Annual searches", format_number(data["annual_searches"]))
    table.add_row("Annual leads", format_number(data["annual_leads"]))
    table.add_row("Total addressable market", format_currency(data["total_addressable_market"]))
    table.add_row("Realistic capture", format_currency(data["realistic_capture"]))
    console.print(table)


# ------------------------------------------------------------------
# API key
# ------------------------------------------------------------------
@app.command(name="test-key")
def test_key(
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Key to test (default: configured key)."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Validate a Keywords Everywhere API key."""
    _setup_logging(verbose)
    sd = _get_app(config)
    try:
        check = _run_async(sd.test_credential(key))
    except ResearchError as exc:
        _fail(describe_error(exc))
    if not check.valid:
        _fail(check.message)
    credits = "" if check.credits_remaining is None else f" ({format_number(check.credits_remaining)} credits left)"
    console.print(f"[green]✔[/green] {check.message}{credits}")


@app.command(name="set-key")
def set_key(
    key: str = typer.Argument("", help="API key to store (omit with --clear)."),
    clear: bool = typer.Option(False, "--clear", help="Remove the stored key."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Store the Keywords Everywhere API key in settings."""
    _setup_logging(verbose)
    if not clear and not key.strip():
        _fail("Provide a key or pass --clear.")
    sd = _get_app(config)
    sd.settings.set_api_key(None if clear else key)
    if clear:
        console.print("[green]✔[/green] Stored API key removed.")
    else:
        console.print(f"[green]✔[/green] Stored API key {mask_secret(key.strip())}.")


# ------------------------------------------------------------------
# industries
# ------------------------------------------------------------------
@app.command()
def industries(
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """List industries and their base keywords."""
    _setup_logging(verbose)
    sd = _get_app(config)
    table = Table(title="Industries", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Label")
    table.add_column("Keywords", justify="right")
    table.add_column("Sample", max_width=60)
    for ind in sd.catalog.list_all():
        table.add_row(ind.name, ind.label, str(len(ind.keywords)), ", ".join(ind.keywords[:3]))
    console.print(table)


@app.command(name="add-industry")
def add_industry(
    name: str = typer.Argument(..., help="Short name, e.g. 'roofing'."),
    label: str = typer.Argument(..., help="Display label, e.g. 'Roofing'."),
    keywords: str = typer.Option(..., "--keywords", "-k", help="Comma-separated base keywords."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Add an industry with its base keywords."""
    _setup_logging(verbose)
    sd = _get_app(config)
    try:
        industry = sd.catalog.create(name, label, [k.strip() for k in keywords.split(",")])
    except ValueError as exc:
        _fail(str(exc))
    console.print(f"[green]✔[/green] Industry {industry.name!r} added with {len(industry.keywords)} keywords.")


@app.command(name="remove-industry")
def remove_industry(
    name: str = typer.Argument(..., help="Industry name."),
    config: str = ConfigOption,
    verbose: bool = VerboseOption,
) -> None:
    """Remove an industry."""
    _setup_logging(verbose)
    sd = _get_app(config)
    industry = sd.catalog.get_by_name(name)
    if industry is None:
        _fail(f"Industry {name!r} not found.")
    sd.catalog.delete(industry.id)
    console.print(f"[green]✔[/green] Industry {name!r} removed.")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
