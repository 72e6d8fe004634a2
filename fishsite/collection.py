from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .content import parse_front_matter, read_source
from .records import Post, Project, build_post, build_project
from .utils import warn


@dataclass(frozen=True)
class Site:
    posts: tuple[Post, ...] = ()
    projects: tuple[Project, ...] = ()
    tags: tuple[str, ...] = ()
    tag_counts: dict[str, int] = field(default_factory=dict)


def markdown_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted(
        (path for path in directory.glob("*.md") if path.is_file()),
        key=lambda p: p.name,
    )


def read_documents(directory: Path) -> Iterator[tuple[Path, Optional[dict]]]:
    """Frontmatter of each Markdown file. Unreadable files are reported and left out."""
    for path in markdown_files(directory):
        try:
            text = read_source(path)
        except (OSError, UnicodeDecodeError) as exc:
            warn(f"skipping {path}: {exc}")
            continue
        meta, _ = parse_front_matter(text)
        yield path, meta


def sort_posts(posts: Iterable[Post]) -> list[Post]:
    """Most recent first. Posts sharing a timestamp keep their input order."""
    return sorted(posts, key=lambda post: post.pub_date, reverse=True)


def load_posts(directory: Path) -> list[Post]:
    posts = [build_post(path, meta) for path, meta in read_documents(directory)]
    return sort_posts(post for post in posts if not post.hidden)


def collect_tags(posts: Iterable[Post]) -> list[str]:
    seen: dict[str, None] = {}
    for post in posts:
        for tag in post.tags:
            seen.setdefault(tag, None)
    return list(seen)


def count_tags(posts: Iterable[Post]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for post in posts:
        for tag in post.tags:
            counts[tag] = counts.get(tag, 0) + 1
    return counts


def sort_projects(projects: Iterable[Project]) -> list[Project]:
    """Ascending priority; projects without one go last, ties keep input order."""
    return sorted(
        projects,
        key=lambda project: (project.priority is None, project.priority or 0),
    )


def load_projects(directory: Path) -> list[Project]:
    projects = []
    for path, meta in read_documents(directory):
        if meta is None:
            continue
        projects.append(build_project(path, meta))
    return sort_projects(projects)


def load_site(posts_dir: Path, projects_dir: Path) -> Site:
    posts = load_posts(posts_dir)
    return Site(
        posts=tuple(posts),
        projects=tuple(load_projects(projects_dir)),
        tags=tuple(collect_tags(posts)),
        tag_counts=count_tags(posts),
    )
