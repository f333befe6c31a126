"""CLI entry point for theme newsletters."""

import asyncio
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

import typer

from theme_newsletter.adapters.email import ResendTransport
from theme_newsletter.adapters.llm import ClaudeContentGenerator
from theme_newsletter.adapters.search import FeedSearchService
from theme_newsletter.adapters.store import YamlThemeStore
from theme_newsletter.config import Settings, get_settings
from theme_newsletter.core import RunReport, ThemeStoreError, next_delivery_date, should_deliver_on
from theme_newsletter.logging_config import setup_logging
from theme_newsletter.use_cases import EmailDispatcher, NewsletterGenerator, NewsletterRunner

app = typer.Typer(help="Generate and deliver scheduled theme newsletters.")

DATE_OPTION = typer.Option(None, "--date", help="Evaluate schedules for this date (YYYY-MM-DD)")
CONFIG_OPTION = typer.Option(Path("config.yaml"), "--config", help="Path to config.yaml")


@app.command()
def run(
    run_date: Optional[str] = DATE_OPTION,
    skip_schedule_check: bool = typer.Option(
        False, "--skip-schedule-check", envvar="SKIP_SCHEDULE_CHECK",
        help="Deliver every theme regardless of its schedule",
    ),
    config: Path = CONFIG_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Generate newsletters for due themes and email subscribers."""
    settings = get_settings(config)
    setup_logging("DEBUG" if verbose else settings.logging.level, settings.logging.json)

    missing = settings.missing_credentials()
    if missing:
        typer.echo(f"Missing required environment variables: {', '.join(missing)}", err=True)
        raise typer.Exit(code=1)

    now = _resolve_now(run_date)

    print("\n" + "=" * 60)
    print("THEME NEWSLETTER")
    print("=" * 60)
    print(f"Run time: {now.isoformat()}")
    if skip_schedule_check:
        print("Schedule check is DISABLED (manual override)")

    try:
        report = asyncio.run(_build_runner(settings).run(now, skip_schedule_check))
    except ThemeStoreError as e:
        typer.echo(f"Fatal error: {e}", err=True)
        raise typer.Exit(code=1)

    print_summary(report)


@app.command()
def schedule(
    run_date: Optional[str] = DATE_OPTION,
    config: Path = CONFIG_OPTION,
) -> None:
    """Show each theme's schedule and when it is next due."""
    settings = get_settings(config)
    setup_logging(settings.logging.level, settings.logging.json)
    today = _resolve_now(run_date).date()

    store = YamlThemeStore(settings.themes_file)
    try:
        themes = asyncio.run(store.list_themes())
    except ThemeStoreError as e:
        typer.echo(f"Fatal error: {e}", err=True)
        raise typer.Exit(code=1)

    print(f"\nFound {len(themes)} theme(s):\n")
    for theme in themes:
        last = theme.last_delivered_at.isoformat() if theme.last_delivered_at else "(never)"
        due = should_deliver_on(theme.schedule, today, theme.last_delivered_at)
        upcoming = next_delivery_date(theme.schedule, today, theme.last_delivered_at)
        print(f"ID: {theme.id}")
        print(f"  Title: {theme.title}")
        print(f"  Schedule: {theme.schedule or '(no schedule - delivers daily)'}")
        print(f"  Last Delivered: {last}")
        print(f"  Due today: {'yes' if due else 'no'}")
        print(f"  Next delivery: {upcoming.isoformat() if upcoming else '(none within 62 days)'}")
        print()

    print(f"Today is: {today.strftime('%A')} ({today.isoformat()})")


def print_summary(report: RunReport) -> None:
    """Print execution summary."""
    summary = report.summary

    print("\n" + "=" * 60)
    print("EXECUTION SUMMARY")
    print("=" * 60)
    print(f"Total themes processed: {summary.total_themes}")
    print(f"Successful generations: {summary.success_count}")
    print(f"Successful email sends: {sum(1 for r in report.send_results if r.success_count > 0)}")
    if report.skipped_theme_ids:
        print(f"Not scheduled today: {', '.join(report.skipped_theme_ids)}")

    if summary.failed_theme_ids:
        print(f"\nFailed themes: {', '.join(summary.failed_theme_ids)}")

    if report.errors:
        print("\nErrors:")
        for index, error in enumerate(report.errors, 1):
            print(f"  {index}. {error}")

    print(f"\nTotal emails sent: {report.emails_sent}")
    print("=" * 60 + "\n")


def _build_runner(settings: Settings) -> NewsletterRunner:
    store = YamlThemeStore(settings.themes_file)

    generator = NewsletterGenerator(
        search_service=FeedSearchService(
            feeds=settings.search.feeds,
            keywords=settings.search.keywords,
            max_results=settings.search.max_results,
        ),
        content_generator=ClaudeContentGenerator(settings),
        max_retry_count=settings.generation.max_retry_count,
        retry_delay=settings.generation.retry_delay,
    )

    dispatcher = EmailDispatcher(
        transport=ResendTransport(settings.resend_api_key),
        theme_store=store,
        from_email=settings.from_email,
        batch_size=settings.dispatch.batch_size,
        rate_limit_delay=settings.dispatch.rate_limit_delay,
        max_rate_limit_retries=settings.dispatch.max_rate_limit_retries,
        rate_limit_retry_delay=settings.dispatch.rate_limit_retry_delay,
    )

    return NewsletterRunner(theme_store=store, generator=generator, dispatcher=dispatcher)


def _resolve_now(run_date: Optional[str]) -> datetime:
    if run_date is None:
        return datetime.now(timezone.utc)
    try:
        parsed = date.fromisoformat(run_date)
    except ValueError:
        raise typer.BadParameter(f"Invalid date: {run_date}", param_hint="--date")
    return datetime.combine(parsed, datetime.now(timezone.utc).timetz())


if __name__ == "__main__":
    app()
