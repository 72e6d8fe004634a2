"""Shared pytest fixtures for fishsite tests."""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Callable

import pytest

from fishsite.cli import parse_args

MARKDOWN_TEMPLATE = "<h1>{{ title }}</h1>\n<main>{{ content }}</main>\n"
POST_TEMPLATE = "<title>{{ title }}</title>\n<article>{{ content }}</article>\n"


def write_file(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def post_text(title: str, date: str | None = None, tags: list[str] | None = None, extra: str = "") -> str:
    lines = ["---", f"title: {title}"]
    if date is not None:
        lines.append(f"published-date: {date}")
    if tags is not None:
        lines.append(f"tags: [{', '.join(tags)}]")
    if extra:
        lines.append(extra)
    lines.append("---")
    lines.append(f"Body of *{title}*.")
    return "\n".join(lines) + "\n"


@pytest.fixture
def posts_dir(tmp_path: Path) -> Path:
    """Four visible posts (one undated) and one hidden post."""
    directory = tmp_path / "posts"
    write_file(directory / "newer.md", post_text("Newer", "2024-06-01T09:00:00", ["rust", "web"]))
    write_file(directory / "older.md", post_text("Older", "2024-01-01T09:00:00", ["python", "rust"]))
    write_file(directory / "oldest.md", post_text("Oldest", "2023-12-01T09:00:00", ["web", "zig"]))
    write_file(directory / "undated.md", post_text("Undated", tags=["misc"]))
    write_file(
        directory / "secret.md",
        post_text("Secret", "2025-01-01T09:00:00", ["hidden-tag"], extra="hide: true"),
    )
    return directory


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """A complete, small site source tree."""
    src = tmp_path / "src"
    write_file(src / "markdown-template.html", MARKDOWN_TEMPLATE)
    write_file(src / "post-template.html", POST_TEMPLATE)
    write_file(
        src / "index.html",
        "{% for post in posts %}[{{ post.slug }}]{% endfor %}\n"
        "{% for project in projects %}<{{ project.slug }}>{% endfor %}\n"
        "rev={{ git_hash }}\n",
    )
    write_file(src / "other.md", "---\ntitle: Other\n---\nSome *text*.\n")
    write_file(src / "untitled.md", "No frontmatter here.\n")
    write_file(src / "style.css", "body { color: black; }\n")
    write_file(src / "favicon.svg", "<svg xmlns='http://www.w3.org/2000/svg'/>\n")
    write_file(src / "components" / "header.html", "<header>{{ posts|length }} posts</header>\n")
    write_file(src / "components" / "footer.html", "<footer>{{ site.name }}</footer>\n")
    write_file(src / "fonts" / "body.woff2", "not really a font")
    write_file(
        src / "posts" / "index.html",
        "{{ header_html }}"
        "{% for tag in all_tags %}{{ tag }}={{ tag_counts[tag] }};{% endfor %}\n"
        "{% for post in posts %}[{{ post.slug }}]{% endfor %}\n",
    )
    write_file(src / "posts" / "newer.md", post_text("Newer", "2024-06-01T09:00:00", ["rust", "web"]))
    write_file(src / "posts" / "older.md", post_text("Older", "2024-01-01T09:00:00", ["python", "rust"]))
    write_file(src / "posts" / "oldest.md", post_text("Oldest", "2023-12-01T09:00:00", ["web", "zig"]))
    write_file(
        src / "posts" / "secret.md",
        post_text("Secret", "2025-01-01T09:00:00", ["hidden-tag"], extra="hide: true"),
    )
    write_file(src / "projects" / "alpha.md", "---\ntitle: Alpha\npriority: 2\n---\nAlpha project.\n")
    write_file(src / "projects" / "beta.md", "---\ntitle: Beta\npriority: 1\n---\nBeta project.\n")
    return src


@pytest.fixture
def make_args(tmp_path: Path) -> Callable[..., argparse.Namespace]:
    """Parse build arguments for a temp site with external steps off by default."""

    def factory(*extra: str) -> argparse.Namespace:
        argv = [
            "--config",
            str(tmp_path / "missing-config.toml"),
            "--source",
            str(tmp_path / "src"),
            "--output",
            str(tmp_path / "dist"),
            "--site-name",
            "Example",
            "--site-description",
            "Example blog",
            "--site-url",
            "https://example.org",
            "--no-external-steps",
            "--no-clean",
        ]
        argv.extend(extra)
        return parse_args(argv)

    return factory
