"""Date placeholders for theme prompt templates.

Supported placeholders:

* ``{{period}}`` - e.g. ``2024年12月9日から2024年12月16日まで``
* ``{{today}}`` - e.g. ``2024年12月16日``
* ``{{days}}`` - days since the last delivery, e.g. ``7``

Unknown placeholders are left untouched.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

DEFAULT_LOOKBACK = timedelta(days=7)


@dataclass(frozen=True)
class PromptVariables:
    """Values substituted into a prompt template."""

    period: str
    today: str
    days: str


def format_date_japanese(value: Union[date, datetime]) -> str:
    return f"{value.year}年{value.month}月{value.day}日"


def generate_prompt_variables(
    last_delivered_at: Optional[Union[date, datetime]],
    current: Union[date, datetime],
) -> PromptVariables:
    """Build prompt variables for the period since the last delivery.

    Without a previous delivery the period covers the last seven days.
    """
    start = last_delivered_at if last_delivered_at is not None else current - DEFAULT_LOOKBACK
    today = format_date_japanese(current)
    return PromptVariables(
        period=f"{format_date_japanese(start)}から{today}まで",
        today=today,
        days=str(_days_between(start, current)),
    )


def replace_prompt_variables(
    template: str,
    last_delivered_at: Optional[Union[date, datetime]],
    current: Union[date, datetime],
) -> str:
    """Replace every date placeholder in the template."""
    variables = generate_prompt_variables(last_delivered_at, current)
    return (
        template.replace("{{period}}", variables.period)
        .replace("{{today}}", variables.today)
        .replace("{{days}}", variables.days)
    )


def _days_between(start: Union[date, datetime], end: Union[date, datetime]) -> int:
    if isinstance(start, datetime) and isinstance(end, datetime):
        if (start.tzinfo is None) == (end.tzinfo is None):
            return round((end - start) / timedelta(days=1))
    return (_as_date(end) - _as_date(start)).days


def _as_date(value: Union[date, datetime]) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
