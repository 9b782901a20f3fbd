"""
RSS 2.0 feed generation.

Items are the published posts in canonical order. A ContentResult tagged
"none" or "error" yields a valid channel with no items.
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Any

from ..config import SiteConfig, get_site_url
from ..core.types import ContentResult
from .templating import template_env


def feed_items(result: ContentResult, site_url: str) -> list[dict[str, Any]]:
    items = []
    for post in result.published_posts():
        items.append(
            {
                "title": post.title,
                "link": f"{site_url}/blog/{post.slug}",
                "pub_date": format_datetime(post.published_at or post.updated_at, usegmt=True),
                "description": post.summary,
                "tags": list(post.tags),
            }
        )
    return items


def render_feed(result: ContentResult, site: SiteConfig, now: datetime | None = None) -> str:
    """Render the RSS document for the site."""
    now = now or datetime.now(timezone.utc)
    site_url = get_site_url(site)
    template = template_env().get_template("feed.xml")
    return template.render(
        title=site.title,
        description=site.description,
        language=site.language,
        site_url=site_url,
        last_build_date=format_datetime(now, usegmt=True),
        items=feed_items(result, site_url),
    )
