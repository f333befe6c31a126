"""Core domain layer."""

from theme_newsletter.core.entities import (
    BatchSendResponse,
    EmailMessage,
    ExecutionSummary,
    GeneratedContent,
    GenerationFailure,
    GenerationResult,
    GenerationSuccess,
    RunReport,
    SearchResponse,
    SearchResult,
    SendResult,
    Subscriber,
    Theme,
    TransportFailure,
)
from theme_newsletter.core.errors import (
    ContentGenerationError,
    NewsletterError,
    RateLimitedError,
    RetryExhaustedError,
    ScheduleParseError,
    SearchError,
    ThemeStoreError,
)
from theme_newsletter.core.interfaces import (
    ContentGenerator,
    EmailTransport,
    SearchService,
    ThemeStore,
)
from theme_newsletter.core.prompt_variables import (
    PromptVariables,
    generate_prompt_variables,
    replace_prompt_variables,
)
from theme_newsletter.core.retry import RetryPolicy
from theme_newsletter.core.schedule import (
    Biweekly,
    CadenceSpec,
    Monthly,
    Weekly,
    next_delivery_date,
    parse_schedule,
    should_deliver_on,
)

__all__ = [
    "Theme",
    "Subscriber",
    "SearchResult",
    "SearchResponse",
    "GeneratedContent",
    "GenerationSuccess",
    "GenerationFailure",
    "GenerationResult",
    "EmailMessage",
    "TransportFailure",
    "BatchSendResponse",
    "SendResult",
    "ExecutionSummary",
    "RunReport",
    "NewsletterError",
    "ScheduleParseError",
    "ThemeStoreError",
    "SearchError",
    "ContentGenerationError",
    "RateLimitedError",
    "RetryExhaustedError",
    "ThemeStore",
    "SearchService",
    "ContentGenerator",
    "EmailTransport",
    "PromptVariables",
    "generate_prompt_variables",
    "replace_prompt_variables",
    "RetryPolicy",
    "Weekly",
    "Biweekly",
    "Monthly",
    "CadenceSpec",
    "parse_schedule",
    "should_deliver_on",
    "next_delivery_date",
]
