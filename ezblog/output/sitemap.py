"""
Sitemap generation.

The sitemap lists the static routes plus every published post and page.
It reads a single ContentResult and never fails on a degraded one: with
``source`` "none" or "error" only the static routes are emitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from ..config import SiteConfig, get_site_url
from ..core.types import ContentResult
from .templating import template_env


@dataclass(frozen=True)
class SitemapEntry:
    """Light metadata for one published post."""
    slug: str
    published_at: datetime


def sitemap_entries(result: ContentResult) -> list[SitemapEntry]:
    """Published posts as (slug, published_at), newest first."""
    return [
        SitemapEntry(slug=post.slug, published_at=post.published_at)
        for post in result.published_posts()
        if post.published_at is not None
    ]


def sitemap_urls(result: ContentResult, site_url: str, now: datetime) -> list[dict[str, str]]:
    """Build the ``<url>`` rows of the sitemap."""
    today = now.date().isoformat()
    urls = [
        {"loc": site_url, "lastmod": today, "changefreq": "daily", "priority": "1.0"},
        {"loc": f"{site_url}/blog", "lastmod": today, "changefreq": "daily", "priority": "0.8"},
    ]
    for post in result.published_posts():
        urls.append(
            {
                "loc": f"{site_url}/blog/{post.slug}",
                "lastmod": post.updated_at.date().isoformat(),
                "changefreq": "weekly",
                "priority": "0.7",
            }
        )
    for page in result.published_pages():
        urls.append(
            {
                "loc": f"{site_url}/{page.slug}",
                "lastmod": page.updated_at.date().isoformat(),
                "changefreq": "monthly",
                "priority": "0.5",
            }
        )
    return urls


def render_sitemap(result: ContentResult, site: SiteConfig, now: datetime | None = None) -> str:
    """Render the sitemap XML document."""
    now = now or datetime.now(timezone.utc)
    template = template_env().get_template("sitemap.xml")
    return template.render(urls=sitemap_urls(result, get_site_url(site), now))
