"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from datetime import datetime

from theme_newsletter.core.entities import (
    BatchSendResponse,
    EmailMessage,
    GeneratedContent,
    SearchResponse,
    SearchResult,
    Subscriber,
    Theme,
)


class ThemeStore(ABC):
    """Interface for reading themes and subscribers."""

    @abstractmethod
    async def list_themes(self) -> list[Theme]:
        """Return every configured theme."""
        pass

    @abstractmethod
    async def get_subscribers(self, theme_id: str) -> list[Subscriber]:
        """Return subscribers of a theme with syntactically valid addresses."""
        pass

    @abstractmethod
    async def record_delivered(self, theme_id: str, delivered_at: datetime) -> None:
        """Persist the last delivery timestamp of a theme."""
        pass


class SearchService(ABC):
    """Interface for gathering source material."""

    @abstractmethod
    async def search(self, query: str) -> SearchResponse:
        """Search for material matching the query."""
        pass


class ContentGenerator(ABC):
    """Interface for synthesizing the newsletter body."""

    @abstractmethod
    async def generate(self, prompt: str, results: list[SearchResult]) -> GeneratedContent:
        """Generate newsletter content from search results."""
        pass


class EmailTransport(ABC):
    """Interface for outbound email."""

    @abstractmethod
    async def send_batch(self, messages: list[EmailMessage]) -> BatchSendResponse:
        """Send a batch of messages in one provider call."""
        pass
