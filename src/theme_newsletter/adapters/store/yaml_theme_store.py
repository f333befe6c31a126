"""Theme store backed by a single YAML document."""

import logging
import re
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Optional

import yaml

from theme_newsletter.core import Subscriber, Theme, ThemeStore, ThemeStoreError

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: Any) -> bool:
    """Check if a value looks like an email address."""
    return isinstance(email, str) and bool(EMAIL_REGEX.match(email))


class YamlThemeStore(ThemeStore):
    """Read themes and subscribers from a YAML file.

    Expected layout::

        themes:
          ai-news:
            title: AI News
            prompt: "Summarize AI news for {{period}}"
            schedule: weekly:monday
            last_delivered_at: 2024-12-09T09:00:00+00:00
            subscribers:
              - alice@example.com
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    async def list_themes(self) -> list[Theme]:
        """Return themes that have both a title and a prompt."""
        themes: list[Theme] = []

        for theme_id, data in self._load_themes().items():
            data = data or {}
            if not isinstance(data, dict):
                logger.warning("Skipping theme %s: entry is not a mapping", theme_id)
                continue

            title = data.get("title")
            prompt = data.get("prompt")

            if not (isinstance(title, str) and title and isinstance(prompt, str) and prompt):
                logger.info("Skipping theme %s without title or prompt", theme_id)
                continue

            schedule = data.get("schedule")
            themes.append(Theme(
                id=theme_id,
                title=title,
                prompt=prompt,
                schedule=schedule if isinstance(schedule, str) else None,
                last_delivered_at=self._parse_timestamp(data.get("last_delivered_at")),
            ))

        return themes

    async def get_subscribers(self, theme_id: str) -> list[Subscriber]:
        """Return subscribers with valid addresses, in file order.

        Raises:
            ThemeStoreError: if the theme entry or its subscriber list is malformed.
        """
        data = self._load_themes().get(theme_id) or {}
        if not isinstance(data, dict):
            raise ThemeStoreError(f"Theme {theme_id} is not a mapping")

        addresses = data.get("subscribers") or []
        if not isinstance(addresses, list):
            raise ThemeStoreError(f"Subscribers of theme {theme_id} must be a list")

        subscribers = [Subscriber(mailto=a) for a in addresses if is_valid_email(a)]

        skipped = len(addresses) - len(subscribers)
        if skipped:
            logger.warning("Skipped %d invalid address(es) for theme %s", skipped, theme_id)

        return subscribers

    async def record_delivered(self, theme_id: str, delivered_at: datetime) -> None:
        """Write `last_delivered_at` for a theme back to the file."""
        document = self._load_document()
        themes = self._themes_of(document)

        # YAML keys such as `42:` load as ints; write back under the original key
        key = next((k for k in themes if str(k) == theme_id), None)
        if key is None:
            raise ThemeStoreError(f"Unknown theme: {theme_id}")

        entry = themes[key] or {}
        if not isinstance(entry, dict):
            raise ThemeStoreError(f"Theme {theme_id} is not a mapping")
        entry["last_delivered_at"] = delivered_at.isoformat()
        themes[key] = entry

        try:
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.dump(document, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise ThemeStoreError(f"Failed to update theme {theme_id}: {e}") from e

    def _load_themes(self) -> dict[str, Any]:
        """Theme entries keyed by their id as a string."""
        return {str(k): v for k, v in self._themes_of(self._load_document()).items()}

    def _themes_of(self, document: dict) -> dict:
        themes = document.get("themes") or {}
        if not isinstance(themes, dict):
            raise ThemeStoreError(f"'themes' must be a mapping in {self.path}")
        return themes

    def _load_document(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ThemeStoreError(f"Failed to fetch themes: {e}") from e

        if not isinstance(document, dict):
            raise ThemeStoreError(f"Unexpected document in {self.path}")
        return document

    def _parse_timestamp(self, value: Any) -> Optional[datetime]:
        """PyYAML already turns ISO timestamps into datetimes; strings are a fallback."""
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, str) and value:
            try:
                return datetime.fromisoformat(value)
            except ValueError:
                logger.warning("Ignoring malformed last_delivered_at: %s", value)
        return None
