"""Search service adapters."""

from theme_newsletter.adapters.search.feed_search import FeedSearchService

__all__ = ["FeedSearchService"]
