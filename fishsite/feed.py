from __future__ import annotations

import html
from typing import Iterable

from .records import Post
from .render import RenderedBodies
from .utils import join_url, rfc822_date

CDATA_END = "]]>"


def cdata(text: str) -> str:
    # A literal "]]>" cannot appear inside one section, so split it across two.
    return "<![CDATA[" + text.replace(CDATA_END, "]]]]><![CDATA[>") + "]]>"


def post_link(site_url: str, post: Post, posts_path: str = "posts") -> str:
    return join_url(site_url, f"{posts_path.strip('/')}/{post.slug}.html")


def build_feed(
    posts: Iterable[Post],
    rendered_bodies: RenderedBodies,
    *,
    title: str,
    link: str,
    description: str,
    site_url: str,
    language: str = "en",
    ttl: int = 15,
    posts_path: str = "posts",
) -> str:
    """RSS 2.0 document with one full-content item per visible post, in the given order."""
    items = []
    for post in posts:
        if post.hidden:
            continue
        url = post_link(site_url, post, posts_path)
        items.append(
            "\n".join(
                [
                    "<item>",
                    f"<title>{html.escape(post.title)}</title>",
                    f"<description>{cdata(rendered_bodies.get(post.slug))}</description>",
                    f"<link>{html.escape(url)}</link>",
                    f"<guid>{html.escape(url)}</guid>",
                    f"<pubDate>{rfc822_date(post.pub_date)}</pubDate>",
                    "</item>",
                ]
            )
        )
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0">',
        "<channel>",
        f"<title>{html.escape(title)}</title>",
        f"<link>{html.escape(link)}</link>",
        f"<description>{html.escape(description)}</description>",
        f"<language>{html.escape(language)}</language>",
        f"<ttl>{int(ttl)}</ttl>",
    ]
    lines.extend(items)
    lines.extend(["</channel>", "</rss>"])
    return "\n".join(lines) + "\n"
