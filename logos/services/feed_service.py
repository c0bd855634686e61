"""
Feed service: RSS 2.0 rendering of the newest published posts.
"""
from datetime import datetime, timezone
from email.utils import format_datetime
from html import escape

from sqlalchemy.ext.asyncio import AsyncSession

from logos.config import settings
from logos.models import Post
from logos.services.post_service import recent_published_posts


def _rfc2822(value: datetime) -> str:
    # SQLite hands back naive timestamps; they are stored as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return format_datetime(value)


def _render_item(post: Post, base_url: str) -> str:
    link = f"{base_url}/post/{post.slug}"
    categories = "".join(
        f"\n      <category>{escape(tag.name)}</category>" for tag in post.tags
    )
    return f"""
    <item>
      <title>{escape(post.title)}</title>
      <link>{escape(link)}</link>
      <guid isPermaLink="true">{escape(link)}</guid>
      <description>{escape(post.summary)}</description>
      <content:encoded>{escape(post.content)}</content:encoded>
      <pubDate>{_rfc2822(post.created_at)}</pubDate>{categories}
    </item>"""


async def build_rss(db: AsyncSession, limit: int | None = None) -> str:
    """Return the RSS document for the latest *limit* published posts."""
    posts = await recent_published_posts(db, limit or settings.RSS_ITEM_LIMIT)
    base_url = settings.BLOG_URL.rstrip("/")
    items = "".join(_render_item(p, base_url) for p in posts)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>{escape(settings.BLOG_TITLE)}</title>
    <link>{escape(base_url)}</link>
    <description>{escape(settings.BLOG_DESCRIPTION)}</description>
    <language>en</language>
    <generator>Logos Blog</generator>
    <lastBuildDate>{format_datetime(datetime.now(timezone.utc))}</lastBuildDate>{items}
  </channel>
</rss>
"""
