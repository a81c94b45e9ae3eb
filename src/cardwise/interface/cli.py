"""cardwise CLI: stacks, cards, study sessions and stats."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from cardwise.application.config import AppConfig, resolve_config
from cardwise.application.scheduling.engine import validate_quality
from cardwise.consts import VERSION
from cardwise.domain.exceptions import CardwiseError, InvalidQualityError
from cardwise.domain.review.models import Difficulty

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cardwise: spaced-repetition study tracker for flashcard stacks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Subgroups
# ---------------------------------------------------------------------------

stack_app = typer.Typer(help="Manage flashcard stacks.", no_args_is_help=True)
card_app = typer.Typer(help="Manage cards.", no_args_is_help=True)
study_app = typer.Typer(help="Run study sessions.", no_args_is_help=True)
stats_app = typer.Typer(help="Study statistics.", no_args_is_help=True)
config_app = typer.Typer(help="Manage cardwise configuration.")

app.add_typer(stack_app, name="stack")
app.add_typer(card_app, name="card")
app.add_typer(study_app, name="study")
app.add_typer(stats_app, name="stats")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve_with_overrides(ctx: typer.Context, **overrides: Any) -> AppConfig:
    obj = ctx.find_root().obj or {}
    overrides.setdefault("data_file", obj.get("data_file"))
    overrides.setdefault("verbose", obj.get("verbose") or None)
    config = resolve_config(overrides)
    _apply_verbosity(config.verbose)
    return config


def _apply_verbosity(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.getLogger("cardwise").setLevel(level)


def _now() -> datetime:
    return datetime.now(UTC)


def _run(coro: Any) -> Any:
    """Run a service coroutine, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except CardwiseError as e:
        typer.secho(f"Error: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


def _json_default(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return str(value)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=_json_default))


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity; -vv enables debug logs."
        ),
    ] = 0,
    data_file: Annotated[
        Path | None, typer.Option("--data-file", help="YAML store to read and write.")
    ] = None,
):
    """Global settings for cardwise."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["data_file"] = data_file


# ---------------------------------------------------------------------------
# Stack commands
# ---------------------------------------------------------------------------


@stack_app.command("create")
def stack_create(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Stack title.")],
    category: Annotated[str, typer.Option(help="Stack category.")] = "General",
    description: Annotated[str | None, typer.Option(help="Optional description.")] = None,
    tag: Annotated[list[str] | None, typer.Option("--tag", help="Tag; repeatable.")] = None,
):
    """Create an empty stack."""
    from cardwise.application.factory import get_deck_service, get_repository

    config = _resolve_with_overrides(ctx)
    decks = get_deck_service(get_repository(config))
    stack = _run(
        decks.create_stack(title, _now(), category=category, description=description, tags=tag)
    )
    typer.secho(f"Created stack '{stack.title}' ({stack.id})", fg="green")


@stack_app.command("list")
def stack_list(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List stacks with their counters."""
    from cardwise.application.factory import get_deck_service, get_repository

    config = _resolve_with_overrides(ctx)
    stacks = _run(get_deck_service(get_repository(config)).list_stacks())

    if json_output:
        _echo_json(
            [
                {
                    "id": s.id,
                    "title": s.title,
                    "category": s.category,
                    "cards": s.card_count,
                    **asdict(s.stats),
                }
                for s in stacks
            ]
        )
        return

    if not stacks:
        typer.secho("No stacks yet.", fg="yellow")
        return
    for s in stacks:
        typer.echo(
            f"{s.id}  {s.title}  cards={s.card_count}  "
            f"reviewed={s.stats.total_reviewed}  score={s.stats.average_score_percent}%"
        )


@stack_app.command("check")
def stack_check(
    ctx: typer.Context,
    stack_id: Annotated[str, typer.Argument(help="Stack to check.")],
):
    """Compare stack counters with the tallies of its cards."""
    from cardwise.application.factory import get_repository, get_study_service

    config = _resolve_with_overrides(ctx)
    service = get_study_service(config, get_repository(config))
    report = _run(service.check_drift(stack_id))

    typer.echo(
        f"Stored: {report.stored.total_reviewed} reviews  "
        f"Cards: {report.recomputed.total_reviewed} reviews"
    )
    if report.has_drift:
        typer.secho(
            f"Drift: total {report.total_delta:+d}, correct {report.correct_delta:+d}, "
            f"incorrect {report.incorrect_delta:+d}",
            fg="yellow",
        )
        raise typer.Exit(1)
    typer.secho("Counters consistent.", fg="green")


# ---------------------------------------------------------------------------
# Card commands
# ---------------------------------------------------------------------------


@card_app.command("add")
def card_add(
    ctx: typer.Context,
    stack_id: Annotated[str, typer.Argument(help="Stack to add the card to.")],
    front: Annotated[str, typer.Argument(help="Question side.")],
    back: Annotated[str, typer.Argument(help="Answer side.")],
    difficulty: Annotated[
        Difficulty, typer.Option(help="Difficulty label.")
    ] = Difficulty.MEDIUM,
):
    """Add a card to a stack."""
    from cardwise.application.factory import get_deck_service, get_repository

    config = _resolve_with_overrides(ctx)
    decks = get_deck_service(get_repository(config))
    card = _run(decks.add_card(stack_id, front, back, _now(), difficulty=difficulty))
    typer.secho(f"Added card {card.id}", fg="green")


# ---------------------------------------------------------------------------
# Study commands
# ---------------------------------------------------------------------------


@study_app.command("due")
def study_due(
    ctx: typer.Context,
    stack_id: Annotated[str, typer.Argument(help="Stack to study.")],
    limit: Annotated[int | None, typer.Option(help="Maximum cards in the batch.", min=1)] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the cards due for review, unseen cards first."""
    from cardwise.application.factory import get_repository, get_study_service

    config = _resolve_with_overrides(ctx)
    service = get_study_service(config, get_repository(config))
    cards = _run(service.get_due_cards(stack_id, _now(), limit=limit))

    if json_output:
        _echo_json(
            [
                {
                    "id": c.id,
                    "front": c.front,
                    "back": c.back,
                    "difficulty": c.difficulty,
                    "next_review_at": c.review.next_review_at,
                    "times_reviewed": c.review.times_reviewed,
                }
                for c in cards
            ]
        )
        return

    if not cards:
        typer.secho("Nothing due. Come back later.", fg="green")
        return

    typer.echo(f"Due cards: {len(cards)}")
    for c in cards:
        when = c.review.next_review_at.date().isoformat() if c.review.next_review_at else "new"
        typer.echo(f"  {c.id}  [{when}]  {c.front}")


@study_app.command("review")
def study_review(
    ctx: typer.Context,
    card_id: Annotated[str, typer.Argument(help="Card that was answered.")],
    quality: Annotated[int, typer.Argument(help="Recall quality, 0 (blackout) to 5 (perfect).")],
):
    """Record an answer and reschedule the card."""
    from cardwise.application.factory import get_repository, get_study_service

    try:
        validate_quality(quality)
    except InvalidQualityError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(2) from e

    config = _resolve_with_overrides(ctx)
    service = get_study_service(config, get_repository(config))
    outcome = _run(service.submit_review(card_id, quality, _now()))

    review = outcome.card.review
    verdict = "correct" if outcome.was_correct else "incorrect"
    typer.secho(
        f"Recorded {verdict}. Next review in {review.interval_days} day(s) "
        f"on {review.next_review_at.date().isoformat()}",
        fg="green" if outcome.was_correct else "yellow",
    )
    typer.echo(
        f"Stack '{outcome.stack.title}': {outcome.stack.stats.average_score_percent}% "
        f"over {outcome.stack.stats.total_reviewed} reviews"
    )


# ---------------------------------------------------------------------------
# Stats commands
# ---------------------------------------------------------------------------


@stats_app.command("overview")
def stats_overview(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Totals, accuracy, streak and most studied stacks."""
    from cardwise.application.factory import get_repository, get_stats_service

    config = _resolve_with_overrides(ctx)
    service = get_stats_service(config, get_repository(config))
    today = _now().astimezone(config.tz).date()
    overview = _run(service.get_overview(today))

    if json_output:
        _echo_json(asdict(overview))
        return

    typer.echo(
        f"Stacks: {overview.total_stacks}  Cards: {overview.total_cards}  "
        f"Reviews: {overview.total_reviews}"
    )
    typer.echo(f"Accuracy: {overview.overall_accuracy}%  Streak: {overview.study_streak} day(s)")
    if overview.most_studied_stacks:
        typer.echo("Most studied:")
        for s in overview.most_studied_stacks:
            typer.echo(f"  {s.title}  {s.total_reviewed} reviews  {s.average_score_percent}%")


@stats_app.command("streak")
def stats_streak(ctx: typer.Context):
    """Consecutive days studied, counting today or yesterday."""
    from cardwise.application.factory import get_repository, get_stats_service

    config = _resolve_with_overrides(ctx)
    service = get_stats_service(config, get_repository(config))
    today = _now().astimezone(config.tz).date()
    streak = _run(service.get_streak(today))
    typer.echo(f"Streak: {streak} day(s)")


@stats_app.command("history")
def stats_history(
    ctx: typer.Context,
    days: Annotated[int | None, typer.Option(help="Window in days.", min=1)] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Stacks grouped by the day they were last studied."""
    from cardwise.application.factory import get_repository, get_stats_service

    config = _resolve_with_overrides(ctx, history_days=days)
    service = get_stats_service(config, get_repository(config))
    today = _now().astimezone(config.tz).date()
    history = _run(service.get_study_history(today, days=config.history_days))

    if json_output:
        _echo_json([asdict(h) for h in history])
        return

    if not history:
        typer.secho(f"No study activity in the last {config.history_days} days.", fg="yellow")
        return
    for h in history:
        typer.echo(
            f"{h.date.isoformat()}  stacks={h.stacks_studied}  "
            f"correct={h.correct_answers}  incorrect={h.incorrect_answers}"
        )


@stats_app.command("cards")
def stats_cards(
    ctx: typer.Context,
    stack_id: Annotated[str, typer.Argument(help="Stack to report on.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Per-card accuracy, mastery level and due status."""
    from cardwise.application.factory import get_repository, get_stats_service

    config = _resolve_with_overrides(ctx)
    service = get_stats_service(config, get_repository(config))
    metrics = _run(service.get_card_metrics(stack_id, _now()))

    if json_output:
        _echo_json([asdict(m) for m in metrics])
        return

    if not metrics:
        typer.secho("No cards in this stack.", fg="yellow")
        return
    for m in metrics:
        due = "due" if m.is_due else f"in {-m.days_overdue}d"
        typer.echo(
            f"{m.card_id}  {m.accuracy}%  {m.mastery_level.value}  "
            f"reviews={m.times_reviewed}  {due}  {m.front}"
        )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _resolve_with_overrides(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@app.command()
def version():
    """Print the cardwise version."""
    typer.echo(VERSION)
