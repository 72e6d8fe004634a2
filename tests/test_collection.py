"""Tests for loading, filtering and ordering posts and projects."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

from tests.conftest import post_text, write_file

from fishsite.collection import (
    collect_tags,
    count_tags,
    load_posts,
    load_projects,
    load_site,
    sort_posts,
)
from fishsite.records import EARLIEST, build_post


class TestLoadPosts:
    def test_descending_by_publish_date(self, posts_dir: Path) -> None:
        posts = load_posts(posts_dir)
        assert [post.slug for post in posts] == ["newer", "older", "oldest", "undated"]

    def test_example_ordering_with_hidden_post(self, tmp_path: Path) -> None:
        directory = tmp_path / "posts"
        write_file(directory / "a.md", post_text("A", "2024-01-01"))
        write_file(directory / "b.md", post_text("B", "2024-06-01"))
        write_file(directory / "c.md", post_text("C", "2023-12-01"))
        write_file(directory / "d.md", post_text("D", "2024-03-01", extra="hide: true"))
        dates = [post.pub_date.date() for post in load_posts(directory)]
        assert dates == [dt.date(2024, 6, 1), dt.date(2024, 1, 1), dt.date(2023, 12, 1)]

    def test_undated_post_sorts_last(self, posts_dir: Path) -> None:
        posts = load_posts(posts_dir)
        assert posts[-1].slug == "undated"
        assert posts[-1].pub_date == EARLIEST

    def test_hidden_posts_are_dropped(self, posts_dir: Path) -> None:
        posts = load_posts(posts_dir)
        assert "secret" not in [post.slug for post in posts]
        assert all(not post.hidden for post in posts)

    def test_only_markdown_directly_inside(self, posts_dir: Path) -> None:
        write_file(posts_dir / "notes.txt", "ignored")
        write_file(posts_dir / "drafts" / "draft.md", post_text("Draft", "2030-01-01T00:00:00"))
        slugs = [post.slug for post in load_posts(posts_dir)]
        assert "draft" not in slugs
        assert "notes" not in slugs

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        assert load_posts(tmp_path / "nope") == []

    def test_post_without_frontmatter_still_loads(self, tmp_path: Path) -> None:
        write_file(tmp_path / "plain.md", "Just text.\n")
        posts = load_posts(tmp_path)
        assert len(posts) == 1
        assert posts[0].title == "null"

    def test_undecodable_file_is_left_out(self, posts_dir: Path, capsys) -> None:
        (posts_dir / "broken.md").write_bytes(b"---\ntitle: Broken\n---\n\xff\xfe\n")
        slugs = [post.slug for post in load_posts(posts_dir)]
        assert slugs == ["newer", "older", "oldest", "undated"]
        assert "broken.md" in capsys.readouterr().err

    def test_ties_keep_file_name_order(self, tmp_path: Path) -> None:
        for name in ("b", "a", "c"):
            write_file(tmp_path / f"{name}.md", post_text(name.upper(), "2024-01-01T00:00:00"))
        assert [post.slug for post in load_posts(tmp_path)] == ["a", "b", "c"]


class TestSortPosts:
    def test_sort_is_descending(self) -> None:
        early = build_post(Path("early.md"), {"published-date": "2020-01-01T00:00:00"})
        late = build_post(Path("late.md"), {"published-date": "2022-01-01T00:00:00"})
        undated = build_post(Path("undated.md"), {})
        assert sort_posts([undated, early, late]) == [late, early, undated]


class TestTags:
    def test_distinct_tags_in_first_appearance_order(self, posts_dir: Path) -> None:
        posts = load_posts(posts_dir)
        assert collect_tags(posts) == ["rust", "web", "python", "zig", "misc"]

    def test_each_tag_once(self, posts_dir: Path) -> None:
        tags = collect_tags(load_posts(posts_dir))
        assert len(tags) == len(set(tags))

    def test_counts_raw_occurrences(self, posts_dir: Path) -> None:
        counts = count_tags(load_posts(posts_dir))
        assert counts == {"rust": 2, "web": 2, "python": 1, "zig": 1, "misc": 1}

    def test_count_sum_equals_post_tag_pairs(self, posts_dir: Path) -> None:
        posts = load_posts(posts_dir)
        assert sum(count_tags(posts).values()) == sum(len(post.tags) for post in posts)

    def test_hidden_post_tags_are_excluded(self, posts_dir: Path) -> None:
        posts = load_posts(posts_dir)
        assert "hidden-tag" not in collect_tags(posts)
        assert "hidden-tag" not in count_tags(posts)


class TestLoadProjects:
    def test_ascending_priority_with_unprioritized_last(self, tmp_path: Path) -> None:
        write_file(tmp_path / "a.md", "---\ntitle: A\npriority: 2\n---\n")
        write_file(tmp_path / "b.md", "---\ntitle: B\npriority: 1\n---\n")
        write_file(tmp_path / "c.md", "---\ntitle: C\n---\n")
        write_file(tmp_path / "e.md", "---\ntitle: E\npriority: 1\n---\n")
        projects = load_projects(tmp_path)
        assert [project.slug for project in projects] == ["b", "e", "a", "c"]

    def test_files_without_frontmatter_are_skipped(self, tmp_path: Path) -> None:
        write_file(tmp_path / "a.md", "---\ntitle: A\n---\n")
        write_file(tmp_path / "plain.md", "No frontmatter.\n")
        assert [project.slug for project in load_projects(tmp_path)] == ["a"]

    def test_keeps_raw_frontmatter(self, tmp_path: Path) -> None:
        write_file(tmp_path / "a.md", "---\ntitle: A\ntype: library\ndocs: https://docs\n---\n")
        (project,) = load_projects(tmp_path)
        assert project["type"] == "library"
        assert project["docs"] == "https://docs"
        assert project["path"] == tmp_path / "a.md"


class TestLoadSite:
    def test_bundles_collections(self, tmp_path: Path, posts_dir: Path) -> None:
        write_file(tmp_path / "projects" / "x.md", "---\ntitle: X\n---\n")
        site = load_site(posts_dir, tmp_path / "projects")
        assert [post.slug for post in site.posts] == ["newer", "older", "oldest", "undated"]
        assert [project.slug for project in site.projects] == ["x"]
        assert site.tags == ("rust", "web", "python", "zig", "misc")
        assert site.tag_counts["rust"] == 2

    def test_missing_directories(self, tmp_path: Path) -> None:
        site = load_site(tmp_path / "posts", tmp_path / "projects")
        assert site.posts == ()
        assert site.projects == ()
        assert site.tags == ()
        assert site.tag_counts == {}
