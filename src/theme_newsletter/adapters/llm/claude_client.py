"""Claude API client for newsletter synthesis."""

import asyncio
import json
import logging
import re
from typing import Optional

import httpx

from theme_newsletter.config import Settings
from theme_newsletter.core import (
    ContentGenerationError,
    ContentGenerator,
    GeneratedContent,
    RetryExhaustedError,
    RetryPolicy,
    SearchResult,
)
from theme_newsletter.core.retry import Sleep

logger = logging.getLogger(__name__)


class ClaudeAPIError(ContentGenerationError):
    """Messages API answered with a non-200 status."""

    def __init__(self, status_code: int, message: str, retry_after: Optional[float] = None) -> None:
        self.status_code = status_code
        self.retry_after = retry_after
        super().__init__(f"Claude API error {status_code}: {message}")

    @property
    def retryable(self) -> bool:
        return self.status_code == 429 or self.status_code >= 500


class ClaudeContentGenerator(ContentGenerator):
    """Claude API client implementation.

    Rate limits (429), server errors (5xx) and network errors are retried
    with exponential backoff; a Retry-After header overrides the backoff.
    Other statuses fail on the first attempt.
    """

    def __init__(self, settings: Settings, sleep: Optional[Sleep] = None) -> None:
        self.settings = settings
        self.api_key = settings.anthropic_api_key
        self.model = settings.claude_model
        self.max_tokens = settings.claude_max_tokens
        self.temperature = settings.claude_temperature
        self.base_url = "https://api.anthropic.com/v1"
        self.retry = RetryPolicy.exponential(
            settings.claude_max_retries, settings.claude_initial_retry_delay
        )
        self.request_delay = settings.claude_request_delay
        self.sleep = sleep or asyncio.sleep
        self._last_request_time = 0.0

    async def generate(self, prompt: str, results: list[SearchResult]) -> GeneratedContent:
        """Generate newsletter content from search results."""
        prompt_template = self.settings.prompts.newsletter.get("user", "")
        system_prompt = self.settings.prompts.newsletter.get("system", "")

        results_data = [
            {"title": r.title, "snippet": r.snippet, "url": r.url}
            for r in results
        ]

        user_prompt = prompt_template.format(
            prompt=prompt,
            results_json=json.dumps(results_data, ensure_ascii=False, indent=2),
            count=len(results_data),
        )

        response = await self._call_api(prompt=user_prompt, system=system_prompt)
        json_text = self._extract_json(response)

        try:
            data = json.loads(json_text)
            content = GeneratedContent(
                subject=str(data["subject"]).strip(),
                html_body=str(data["html_body"]),
                text_body=str(data["text_body"]),
            )
        except (json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Claude returned invalid JSON (%s): %s", type(e).__name__, response[:200])
            raise ContentGenerationError(f"Failed to parse response: {str(e)[:100]}") from e

        if not content.subject:
            raise ContentGenerationError("Generated newsletter has an empty subject")

        return content

    async def _call_api(self, prompt: str, system: str) -> str:
        """Send one message, retrying transient failures.

        Raises:
            ClaudeAPIError: non-retryable status, or the last retryable one.
            httpx.RequestError: network failure on the last attempt.
        """
        try:
            return await self.retry.call(
                lambda: self._post_message(prompt, system),
                retry_if=_is_transient,
                sleep=self.sleep,
                label="Claude API call",
                delay_hint=lambda e: getattr(e, "retry_after", None),
            )
        except RetryExhaustedError as e:
            raise e.last_error from e

    async def _post_message(self, prompt: str, system: str) -> str:
        # Minimum spacing between requests
        elapsed = asyncio.get_event_loop().time() - self._last_request_time
        if elapsed < self.request_delay:
            await self.sleep(self.request_delay - elapsed)

        async with httpx.AsyncClient(timeout=120.0) as client:
            response = await client.post(
                f"{self.base_url}/messages",
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": "2023-06-01",
                    "content-type": "application/json",
                },
                json={
                    "model": self.model,
                    "max_tokens": self.max_tokens,
                    "temperature": self.temperature,
                    "system": system,
                    "messages": [{"role": "user", "content": prompt}],
                },
            )
        self._last_request_time = asyncio.get_event_loop().time()

        if response.status_code == 200:
            return response.json()["content"][0]["text"]

        raise ClaudeAPIError(
            response.status_code,
            _error_message(response),
            retry_after=self._parse_retry_after(response),
        )

    def _parse_retry_after(self, response: httpx.Response) -> Optional[float]:
        """Seconds requested by the Retry-After header, if usable."""
        value = response.headers.get("retry-after")
        if not value:
            return None
        try:
            return max(float(value), 0.0)
        except ValueError:
            return None

    def _fix_json(self, text: str) -> str:
        """Try to fix common JSON issues."""
        # Remove trailing commas before } or ]
        return re.sub(r',(\s*[}\]])', r'\1', text)

    def _extract_json(self, text: str) -> str:
        """Extract JSON object from markdown code block or raw text."""
        code_block_match = re.search(r'```(?:json)?\s*\n(.*?)\n```', text, re.DOTALL)
        if code_block_match:
            return self._fix_json(code_block_match.group(1).strip())

        # Outermost braces; the HTML body may itself contain braces
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            candidate = self._fix_json(text[start:end + 1])
            try:
                json.loads(candidate)
                return candidate
            except json.JSONDecodeError:
                pass

        return self._fix_json(text.strip())


def _is_transient(error: Exception) -> bool:
    if isinstance(error, ClaudeAPIError):
        return error.retryable
    return isinstance(error, httpx.RequestError)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message", ""))
    return str(body)[:200]
