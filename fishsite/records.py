"""Typed records built from raw frontmatter mappings.

Every field is extracted on its own: a missing key or a value of the wrong
type falls back to that field's default and never invalidates the record.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

from .utils import parse_bool

MISSING_TEXT = "null"
EARLIEST = dt.datetime.min


def as_str(value: object, default: Optional[str] = MISSING_TEXT) -> Optional[str]:
    return value if isinstance(value, str) else default


def as_str_list(value: object) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value]


def as_bool(value: object) -> bool:
    return parse_bool(value)


def as_int(value: object) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def as_datetime(value: object) -> Optional[dt.datetime]:
    """Accept ISO date-time strings, ISO dates, and YAML date/datetime values.

    Offset-aware values are converted to UTC and made naive so every post is
    ordered on the same axis.
    """
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, dt.date):
        parsed = dt.datetime.combine(value, dt.time())
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = dt.datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(dt.timezone.utc).replace(tzinfo=None)
        except OverflowError:
            return None
    return parsed


@dataclass(frozen=True)
class Post:
    source: Optional[Path]
    title: str = MISSING_TEXT
    description: str = MISSING_TEXT
    tags: tuple[str, ...] = ()
    pub_date: dt.datetime = EARLIEST
    edit_date: Optional[dt.datetime] = None
    comment_did: Optional[str] = None
    hidden: bool = False

    @property
    def slug(self) -> Optional[str]:
        return self.source.stem if self.source is not None else None

    @property
    def has_pub_date(self) -> bool:
        return self.pub_date != EARLIEST

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "slug": self.slug,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "pub_date": self.pub_date,
            "edit_date": self.edit_date,
            "comment_did": self.comment_did,
            "hidden": self.hidden,
        }


@dataclass(frozen=True)
class Project:
    path: Path
    frontmatter: Mapping[str, Any] = field(default_factory=dict)
    priority: Optional[int] = None

    @property
    def slug(self) -> str:
        return self.path.stem

    def __getitem__(self, key: str) -> Any:
        if key == "path":
            return self.path
        if key == "priority":
            return self.priority
        return self.frontmatter[key]

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default


def build_post(source: Optional[Path], frontmatter: Optional[Mapping[str, Any]]) -> Post:
    meta = frontmatter or {}
    return Post(
        source=source,
        title=as_str(meta.get("title")),
        description=as_str(meta.get("description")),
        tags=tuple(as_str_list(meta.get("tags"))),
        pub_date=as_datetime(meta.get("published-date")) or EARLIEST,
        edit_date=as_datetime(meta.get("updated-date")),
        comment_did=as_str(meta.get("comment-did"), default=None),
        hidden=as_bool(meta.get("hide")),
    )


def build_project(path: Path, frontmatter: Mapping[str, Any]) -> Project:
    return Project(
        path=path,
        frontmatter=dict(frontmatter),
        priority=as_int(frontmatter.get("priority")),
    )
