"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


@dataclass
class Theme:
    """Newsletter theme as read from the theme store."""

    id: str
    title: str
    prompt: str
    schedule: Optional[str] = None
    last_delivered_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Theme id cannot be empty")


@dataclass(frozen=True)
class Subscriber:
    """Validated recipient of one theme."""

    mailto: str


@dataclass(frozen=True)
class SearchResult:
    """Single hit returned by the search service."""

    title: str
    snippet: str
    url: str


@dataclass
class SearchResponse:
    """Search service answer."""

    results: list[SearchResult] = field(default_factory=list)


@dataclass(frozen=True)
class GeneratedContent:
    """Newsletter body produced once per theme per run."""

    subject: str
    html_body: str
    text_body: str


@dataclass(frozen=True)
class GenerationSuccess:
    """Theme produced content."""

    theme_id: str
    content: GeneratedContent
    success = True


@dataclass(frozen=True)
class GenerationFailure:
    """Theme failed to produce content."""

    theme_id: str
    error: str
    success = False


GenerationResult = Union[GenerationSuccess, GenerationFailure]


@dataclass(frozen=True)
class EmailMessage:
    """One outbound email handed to the transport."""

    from_address: str
    to: str
    subject: str
    html: str
    text: str


@dataclass(frozen=True)
class TransportFailure:
    """Error reported by the email transport for a whole batch."""

    message: str
    status_code: Optional[int] = None

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429


@dataclass(frozen=True)
class BatchSendResponse:
    """Transport answer for one batch.

    `message_ids` is positional: entry *i* belongs to message *i* of the
    batch, `None` when the provider did not accept that message.
    """

    message_ids: list[Optional[str]] = field(default_factory=list)
    error: Optional[TransportFailure] = None


@dataclass
class SendResult:
    """Aggregate outcome of dispatching one theme."""

    theme_id: str
    total_recipients: int = 0
    success_count: int = 0
    failed_recipients: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ExecutionSummary:
    """Counts for one run over all due themes."""

    total_themes: int
    success_count: int
    failure_count: int
    failed_theme_ids: list[str]


@dataclass
class RunReport:
    """Everything a run produced."""

    generation_results: list[GenerationResult] = field(default_factory=list)
    send_results: list[SendResult] = field(default_factory=list)
    skipped_theme_ids: list[str] = field(default_factory=list)
    delivered_theme_ids: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def summary(self) -> ExecutionSummary:
        failed = [r.theme_id for r in self.generation_results if not r.success]
        return ExecutionSummary(
            total_themes=len(self.generation_results),
            success_count=len(self.generation_results) - len(failed),
            failure_count=len(failed),
            failed_theme_ids=failed,
        )

    @property
    def emails_sent(self) -> int:
        return sum(r.success_count for r in self.send_results)
