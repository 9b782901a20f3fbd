"""Consumers of ingested content: sitemap, RSS feed and related posts."""

from .feed import feed_items, render_feed
from .related import related_posts
from .sitemap import SitemapEntry, render_sitemap, sitemap_entries, sitemap_urls

__all__ = [
    "SitemapEntry",
    "feed_items",
    "related_posts",
    "render_feed",
    "render_sitemap",
    "sitemap_entries",
    "sitemap_urls",
]
