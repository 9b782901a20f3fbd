from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from ..core.types import Post


TAG_MATCH_SCORE = 3

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def related_posts(current: Post, posts: Iterable[Post], limit: int = 3) -> list[Post]:
    """Pick other published posts sharing tags with ``current``.

    Each shared tag (case-insensitive) is worth TAG_MATCH_SCORE points; ties
    go to the more recent post. Posts without shared tags still fill the
    list so a post page always has suggestions.
    """
    current_tags = {tag.lower() for tag in current.tags}
    scored = []
    for post in posts:
        if post.id == current.id or not post.is_published:
            continue
        score = sum(TAG_MATCH_SCORE for tag in post.tags if tag.lower() in current_tags)
        scored.append((score, post.published_at or _EPOCH, post))

    scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
    return [post for _, _, post in scored[:limit]]
