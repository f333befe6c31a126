"""Business logic use cases."""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from theme_newsletter.core import (
    BatchSendResponse,
    ContentGenerator,
    EmailMessage,
    EmailTransport,
    GeneratedContent,
    GenerationFailure,
    GenerationResult,
    GenerationSuccess,
    RateLimitedError,
    RetryExhaustedError,
    RetryPolicy,
    RunReport,
    SearchResponse,
    SearchService,
    SendResult,
    Theme,
    ThemeStore,
    replace_prompt_variables,
    should_deliver_on,
)
from theme_newsletter.core.retry import Sleep

logger = logging.getLogger(__name__)


class NewsletterGenerator:
    """Search and synthesize the newsletter of one theme.

    Every failure is returned as a `GenerationFailure`; nothing raised by the
    search service or the content generator escapes `generate_for_theme`.
    """

    def __init__(
        self,
        search_service: SearchService,
        content_generator: ContentGenerator,
        max_retry_count: int = 3,
        retry_delay: float = 1.0,
        sleep: Optional[Sleep] = None,
    ) -> None:
        self.search_service = search_service
        self.content_generator = content_generator
        self.search_retry = RetryPolicy.linear(max_retry_count, retry_delay)
        self.sleep = sleep or asyncio.sleep

    async def generate_for_theme(
        self, theme: Theme, prompt: Optional[str] = None
    ) -> GenerationResult:
        """Generate content for a theme.

        Args:
            theme: Theme to generate for
            prompt: Resolved prompt; defaults to the theme's raw prompt
        """
        prompt = theme.prompt if prompt is None else prompt

        if not prompt or not prompt.strip():
            return GenerationFailure(theme.id, f"Theme {theme.id} has empty prompt")

        async def search() -> SearchResponse:
            return await self.search_service.search(prompt)

        try:
            response = await self.search_retry.call(
                search, sleep=self.sleep, label=f"Web search for {theme.id}"
            )
        except RetryExhaustedError as e:
            return GenerationFailure(
                theme.id,
                f"Web search failed after {e.attempts} retries: {e.last_error}",
            )

        if not response.results:
            return GenerationFailure(theme.id, f"No search results found for theme {theme.id}")

        try:
            content = await self.content_generator.generate(prompt, response.results)
        except Exception as e:
            return GenerationFailure(theme.id, f"Content generation failed: {e}")

        return GenerationSuccess(theme.id, content)


class EmailDispatcher:
    """Send generated content to every subscriber of a theme in batches."""

    def __init__(
        self,
        transport: EmailTransport,
        theme_store: ThemeStore,
        from_email: str,
        batch_size: int = 100,
        rate_limit_delay: float = 0.5,
        max_rate_limit_retries: int = 3,
        rate_limit_retry_delay: float = 1.0,
        sleep: Optional[Sleep] = None,
    ) -> None:
        if not from_email or not from_email.strip():
            raise ValueError("FROM_EMAIL is required")
        if batch_size < 1:
            raise ValueError("batch_size must be positive")

        self.transport = transport
        self.theme_store = theme_store
        self.from_email = from_email
        self.batch_size = batch_size
        self.rate_limit_delay = rate_limit_delay
        self.batch_retry = RetryPolicy.exponential(max_rate_limit_retries + 1, rate_limit_retry_delay)
        self.sleep = sleep or asyncio.sleep

    async def send(self, theme_id: str, content: GeneratedContent) -> SendResult:
        """Send newsletter to all subscribers of a theme."""
        result = SendResult(theme_id=theme_id)

        try:
            subscribers = await self.theme_store.get_subscribers(theme_id)
        except Exception as e:
            logger.error("Failed to fetch subscribers for theme %s: %s", theme_id, e)
            result.errors.append(f"Failed to fetch subscribers: {e}")
            return result

        if not subscribers:
            logger.warning("No subscribers found for theme %s", theme_id)
            result.errors.append(f"No subscribers found for theme {theme_id}")
            return result

        result.total_recipients = len(subscribers)
        batches = split_into_batches([s.mailto for s in subscribers], self.batch_size)

        for index, batch in enumerate(batches, 1):
            logger.info("Sending batch %d/%d (%d recipients) for theme %s",
                        index, len(batches), len(batch), theme_id)
            success_count, failed, errors = await self._send_batch(index, batch, content)
            result.success_count += success_count
            result.failed_recipients.extend(failed)
            result.errors.extend(errors)

            # Pace the provider between batches, not after the last one
            if index < len(batches):
                await self.sleep(self.rate_limit_delay)

        return result

    async def _send_batch(
        self, index: int, emails: list[str], content: GeneratedContent
    ) -> tuple[int, list[str], list[str]]:
        """Send one batch, retrying only on rate limits.

        Returns:
            Tuple of (success_count, failed_recipients, errors)
        """
        messages = [
            EmailMessage(
                from_address=self.from_email,
                to=email,
                subject=content.subject,
                html=content.html_body,
                text=content.text_body,
            )
            for email in emails
        ]

        async def attempt() -> BatchSendResponse:
            response = await self.transport.send_batch(messages)
            if response.error is not None and response.error.rate_limited:
                raise RateLimitedError(response.error.message)
            return response

        try:
            response = await self.batch_retry.call(
                attempt,
                retry_if=lambda e: isinstance(e, RateLimitedError),
                sleep=self.sleep,
                label=f"Batch {index}",
            )
        except RetryExhaustedError as e:
            logger.warning("Batch %d still rate limited after %d attempts", index, e.attempts)
            return 0, list(emails), [f"Batch send failed: {e.last_error}"]
        except Exception as e:
            logger.error("Batch %d raised: %s", index, e)
            return 0, list(emails), [f"Batch send exception: {e}"]

        if response.error is not None:
            return 0, list(emails), [f"Batch send failed: {response.error.message}"]

        success_count = 0
        failed: list[str] = []
        for position, email in enumerate(emails):
            message_id = (
                response.message_ids[position] if position < len(response.message_ids) else None
            )
            if message_id:
                success_count += 1
            else:
                failed.append(email)

        errors = [f"Batch {index}: {len(failed)} recipient(s) not accepted"] if failed else []
        return success_count, failed, errors


class NewsletterRunner:
    """Run generation and dispatch for every due theme, one theme at a time."""

    def __init__(
        self,
        theme_store: ThemeStore,
        generator: NewsletterGenerator,
        dispatcher: EmailDispatcher,
    ) -> None:
        self.theme_store = theme_store
        self.generator = generator
        self.dispatcher = dispatcher

    def select_due_themes(
        self, themes: list[Theme], now: datetime, skip_schedule_check: bool = False
    ) -> tuple[list[Theme], list[Theme]]:
        """Split themes by schedule.

        Returns:
            Tuple of (due_themes, skipped_themes)
        """
        if skip_schedule_check:
            return list(themes), []

        due: list[Theme] = []
        skipped: list[Theme] = []
        for theme in themes:
            if should_deliver_on(theme.schedule, now, theme.last_delivered_at):
                due.append(theme)
            else:
                logger.info("Skipping theme %s (schedule: %s)", theme.id, theme.schedule or "none")
                skipped.append(theme)
        return due, skipped

    async def run(self, now: datetime, skip_schedule_check: bool = False) -> RunReport:
        """Process all due themes.

        Raises:
            ThemeStoreError: if the theme list cannot be fetched. Failures of a
                single theme are recorded in the report instead.
        """
        themes = await self.theme_store.list_themes()
        report = RunReport()

        due, skipped = self.select_due_themes(themes, now, skip_schedule_check)
        report.skipped_theme_ids = [t.id for t in skipped]
        logger.info("%d of %d theme(s) due for delivery", len(due), len(themes))

        for theme in due:
            await self._run_theme(theme, now, report)

        return report

    async def _run_theme(self, theme: Theme, now: datetime, report: RunReport) -> None:
        logger.info("Processing theme: %s", theme.id)
        prompt = replace_prompt_variables(theme.prompt, theme.last_delivered_at, now)

        generation = await self.generator.generate_for_theme(theme, prompt)
        report.generation_results.append(generation)

        if not generation.success:
            logger.warning("Theme %s failed: %s", theme.id, generation.error)
            report.errors.append(f"[{theme.id}] Generation failed: {generation.error}")
            return

        send_result = await self.dispatcher.send(theme.id, generation.content)
        report.send_results.append(send_result)
        report.errors.extend(f"[{theme.id}] {error}" for error in send_result.errors)
        logger.info("Theme %s: %d/%d emails sent",
                    theme.id, send_result.success_count, send_result.total_recipients)

        if send_result.success_count == 0:
            return

        try:
            await self.theme_store.record_delivered(theme.id, now)
            report.delivered_theme_ids.append(theme.id)
        except Exception as e:
            logger.error("Failed to record delivery for theme %s: %s", theme.id, e)
            report.errors.append(f"[{theme.id}] Failed to record delivery: {e}")


def split_into_batches(items: list[str], batch_size: int) -> list[list[str]]:
    """Split a list into consecutive batches, preserving order."""
    return [items[i:i + batch_size] for i in range(0, len(items), batch_size)]
