"""Exceptions raised by the newsletter engine."""


class NewsletterError(Exception):
    """Base class for newsletter errors."""


class ScheduleParseError(NewsletterError, ValueError):
    """Schedule string does not follow `<kind>:<value>`."""

    def __init__(self, schedule: object, reason: str) -> None:
        self.schedule = schedule
        self.reason = reason
        super().__init__(f"Invalid schedule {schedule!r}: {reason}")


class ThemeStoreError(NewsletterError):
    """Theme store could not be read or updated."""


class SearchError(NewsletterError):
    """Search backend failed to answer."""


class ContentGenerationError(NewsletterError):
    """Content generator returned nothing usable."""


class RateLimitedError(NewsletterError):
    """Provider asked us to slow down."""


class RetryExhaustedError(NewsletterError):
    """All attempts of a retry policy failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
