"""Command-line interface for the training insights engine."""

import json
import logging
import sys
from datetime import datetime, timedelta, timezone

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import config
from .db import Database, SignalStore
from .db.mappers import objective_from_dict, subjective_from_dict
from .domain import FitnessTest, Goal, JournalEntry, Significance
from .errors import TrainingInsightsError
from .analysis import PatternAnalysisService
from .fitness_testing import FitnessTesting
from .goals import GoalManager
from .journal import TrainingJournal

console = Console()

SIGNIFICANCE_STYLE = {
    Significance.HIGH: "bold green",
    Significance.MEDIUM: "yellow",
    Significance.LOW: "dim",
}


def parse_date(value: str) -> datetime:
    """Parse YYYY-MM-DD or an ISO timestamp into naive UTC."""
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise click.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def fail(message: str):
    console.print(f"[red]❌ {message}[/red]")
    sys.exit(1)


def get_store() -> SignalStore:
    db = Database()
    db.create_tables()
    return SignalStore(db)


def print_patterns(patterns, title: str):
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("#", style="black")
    table.add_column("Variables")
    table.add_column("r", justify="right")
    table.add_column("Lag", justify="right")
    table.add_column("n", justify="right")
    table.add_column("Confidence", justify="right", style="magenta")
    table.add_column("Significance")
    table.add_column("Insight")

    for pattern in patterns:
        style = SIGNIFICANCE_STYLE[pattern.significance]
        variables = " vs ".join(pattern.variables) if pattern.analysis_type == "correlation" \
            else f"{pattern.variables[0]} (trend)"
        table.add_row(
            str(pattern.rank),
            variables,
            f"{pattern.correlation:+.2f}",
            f"{pattern.lag_days}d",
            str(pattern.sample_size),
            f"{pattern.confidence:.0f}",
            f"[{style}]{pattern.significance.value}[/{style}]",
            pattern.insight,
        )
    console.print(table)

    console.print("\n[bold]💡 Recommendations:[/bold]")
    for pattern in patterns:
        console.print(f"  {pattern.rank}. {pattern.recommendation}")


@click.group()
def cli():
    """Training signal correlation and insight tool."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def init_db():
    """Create database tables."""
    try:
        config.validate()
    except ValueError as e:
        fail(f"Configuration Error: {e}")
    get_store()
    console.print(f"[green]✅ Database ready at {config.DATABASE_URL}[/green]")


@cli.group()
def journal():
    """Training journal entries."""
    pass


@journal.command("add")
@click.option("--user-id", required=True, help="Owner of the entry")
@click.option("--file", "path", type=click.Path(exists=True, dir_okay=False), required=True,
              help="JSON file with date, title, content, tags, objective and subjective sections")
@click.option("--no-analyze", is_flag=True, help="Store the entry without running pattern analysis")
def journal_add(user_id, path, no_analyze):
    """Add a journal entry from a JSON file."""
    with open(path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except ValueError as e:
            fail(f"Invalid JSON in {path}: {e}")
    if not isinstance(data, dict):
        fail(f"{path} must contain a JSON object")

    try:
        entry = JournalEntry(
            user_id=user_id,
            date=parse_date(data["date"]) if data.get("date") else datetime.utcnow(),
            title=data.get("title", ""),
            content=data.get("content", ""),
            tags=data.get("tags", []),
            objective=objective_from_dict(data.get("objective")),
            subjective=subjective_from_dict(data.get("subjective")),
        )
        store = get_store()
        stored = TrainingJournal(store=store).create_entry(entry, analyze=not no_analyze)
    except TrainingInsightsError as e:
        fail(str(e))

    console.print(f"[green]✅ Stored entry {stored.id} ({stored.date:%Y-%m-%d})[/green]")
    if not no_analyze:
        patterns = PatternAnalysisService(store=store).get_latest_patterns(user_id)
        if patterns:
            print_patterns(patterns, "Latest Patterns")


@journal.command("search")
@click.option("--user-id", required=True)
@click.option("--keywords", help="Match in title or content")
@click.option("--tag", "tags", multiple=True, help="Required tag (repeatable)")
@click.option("--days", type=int, help="Only the last N days")
@click.option("--min-rpe", type=float)
@click.option("--max-rpe", type=float)
@click.option("--min-mood", type=float)
@click.option("--max-mood", type=float)
def journal_search(user_id, keywords, tags, days, min_rpe, max_rpe, min_mood, max_mood):
    """Search journal entries."""
    date_range = None
    if days:
        now = datetime.utcnow()
        date_range = (now - timedelta(days=days), now)
    rpe_range = (min_rpe if min_rpe is not None else 0, max_rpe if max_rpe is not None else 10) \
        if min_rpe is not None or max_rpe is not None else None
    mood_range = (min_mood if min_mood is not None else 1, max_mood if max_mood is not None else 10) \
        if min_mood is not None or max_mood is not None else None

    try:
        entries = TrainingJournal(store=get_store()).search_entries(
            user_id, keywords=keywords, tags=tags, date_range=date_range,
            rpe_range=rpe_range, mood_range=mood_range,
        )
    except TrainingInsightsError as e:
        fail(str(e))

    if not entries:
        console.print("[yellow]No matching entries.[/yellow]")
        return

    table = Table(title=f"Journal Entries ({len(entries)})", box=box.ROUNDED)
    table.add_column("Date", style="black")
    table.add_column("Title")
    table.add_column("Tags", style="yellow")
    table.add_column("RPE", justify="right")
    table.add_column("Mood", justify="right")
    for entry in entries:
        rpe = entry.objective.workout.rpe if entry.objective.workout else None
        table.add_row(
            entry.date.strftime("%Y-%m-%d"),
            entry.title[:40] if entry.title else "N/A",
            ", ".join(entry.tags),
            f"{rpe:.1f}" if rpe is not None else "N/A",
            f"{entry.subjective.mood:.0f}" if entry.subjective.mood is not None else "N/A",
        )
    console.print(table)


@cli.group()
def test():
    """Fitness tests."""
    pass


@test.command("add")
@click.option("--user-id", required=True)
@click.option("--name", required=True, help="Test name, e.g. back_squat_1rm")
@click.option("--value", type=float, required=True, help="Primary result")
@click.option("--unit", default="", help="Unit of the primary result")
@click.option("--category", default="strength",
              type=click.Choice(["strength", "power", "endurance", "body_composition", "flexibility", "balance"]))
@click.option("--date", "date_str", help="Test date (YYYY-MM-DD), defaults to now")
def test_add(user_id, name, value, unit, category, date_str):
    """Record a fitness test result."""
    try:
        fitness_test = FitnessTest(
            user_id=user_id,
            date=parse_date(date_str) if date_str else datetime.utcnow(),
            test_name=name,
            primary_value=value,
            primary_unit=unit,
            category=category,
        )
        stored = FitnessTesting(store=get_store()).record_test(fitness_test)
    except TrainingInsightsError as e:
        fail(str(e))
    console.print(f"[green]✅ Recorded {stored.test_name}: {stored.primary_value}{stored.primary_unit}[/green]")


@test.command("history")
@click.option("--user-id", required=True)
@click.option("--name", help="Only this test")
def test_history(user_id, name):
    """Show fitness test history."""
    tests = FitnessTesting(store=get_store()).get_test_history(user_id, test_name=name)
    if not tests:
        console.print("[yellow]No fitness tests recorded.[/yellow]")
        return
    table = Table(title="Fitness Tests", box=box.ROUNDED)
    table.add_column("Date", style="black")
    table.add_column("Test")
    table.add_column("Category", style="yellow")
    table.add_column("Result", justify="right", style="green")
    for item in tests:
        table.add_row(item.date.strftime("%Y-%m-%d"), item.test_name, item.category,
                      f"{item.primary_value:g} {item.primary_unit}")
    console.print(table)


@cli.command()
@click.option("--user-id", required=True)
@click.option("--days", default=None, type=int, help="Analysis window in days")
def analyze(user_id, days):
    """Run pattern analysis and store the results."""
    window = days or config.ANALYSIS_WINDOW_DAYS
    console.print(Panel.fit(f"📊 Pattern Analysis ({window} days)", style="bold blue"))
    try:
        service = PatternAnalysisService(store=get_store(), window_days=window)
        with console.status("[black]Correlating signals...[/black]"):
            patterns = service.analyze_patterns(user_id)
    except TrainingInsightsError as e:
        fail(f"Analysis failed: {e}")

    if not patterns:
        console.print("[yellow]No significant patterns yet. Keep logging![/yellow]")
        return
    print_patterns(patterns, "Patterns")


@cli.command()
@click.option("--user-id", required=True)
def patterns(user_id):
    """Show the most recent stored pattern analysis."""
    latest = PatternAnalysisService(store=get_store()).get_latest_patterns(user_id)
    if not latest:
        console.print("[yellow]No stored patterns.[/yellow]")
        return
    print_patterns(latest, f"Patterns ({latest[0].created_at:%Y-%m-%d %H:%M})")


@cli.group()
def goal():
    """Goals and success probability."""
    pass


@goal.command("create")
@click.option("--user-id", required=True)
@click.option("--title", required=True)
@click.option("--target", type=float, required=True)
@click.option("--current", type=float, default=0.0)
@click.option("--unit", default="")
@click.option("--deadline", "deadline_str", required=True, help="YYYY-MM-DD")
@click.option("--category", default="performance",
              type=click.Choice(["performance", "body_composition", "skill", "competitive"]))
def goal_create(user_id, title, target, current, unit, deadline_str, category):
    """Create a goal."""
    try:
        created = GoalManager(store=get_store()).create_goal(Goal(
            user_id=user_id,
            title=title,
            target_value=target,
            current_value=current,
            unit=unit,
            deadline=parse_date(deadline_str),
            category=category,
        ))
    except TrainingInsightsError as e:
        fail(str(e))
    console.print(f"[green]✅ Goal {created.id} created, success probability "
                  f"{created.success_probability:.0f}%[/green]")


@goal.command("progress")
@click.option("--goal-id", type=int, required=True)
@click.option("--value", type=float, required=True)
def goal_progress(goal_id, value):
    """Record a new value for a goal."""
    try:
        projection = GoalManager(store=get_store()).record_progress(goal_id, value)
    except TrainingInsightsError as e:
        fail(str(e))
    pace = "ahead of" if projection.ahead_of_pace else "behind or on"
    console.print(f"[green]✅ Progress saved, {pace} pace, success probability "
                  f"{projection.success_probability:.0f}%[/green]")


@goal.command("show")
@click.option("--user-id", required=True)
def goal_show(user_id):
    """List goals with their pace projection."""
    manager = GoalManager(store=get_store())
    goals = manager.get_user_goals(user_id)
    if not goals:
        console.print("[yellow]No goals.[/yellow]")
        return

    table = Table(title="Goals", box=box.ROUNDED)
    table.add_column("ID", style="black")
    table.add_column("Title")
    table.add_column("Progress", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Rate/week", justify="right")
    table.add_column("Success", justify="right", style="green")
    table.add_column("Status", style="yellow")
    for item in goals:
        projection = manager.project(item.id)
        rate = f"{projection.daily_rate * 7:+.2f}" if projection.daily_rate is not None else "N/A"
        table.add_row(
            str(item.id),
            item.title,
            f"{projection.current_value:g}/{item.target_value:g} {item.unit}",
            f"{projection.time_progress:.0%}",
            rate,
            f"{projection.success_probability:.0f}%",
            item.status,
        )
    console.print(table)
    console.print("[dim]Success probability is a pace heuristic (progress vs. elapsed time), "
                  "not a statistical forecast.[/dim]")


if __name__ == "__main__":
    cli()
