from __future__ import annotations

import html
import re
import shutil
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional
from urllib.parse import quote

from jinja2 import ChainableUndefined, FileSystemLoader, Template
from jinja2.sandbox import SandboxedEnvironment

from .collection import Site
from .records import MISSING_TEXT
from .utils import iso_date, rfc822_date

HEADER_TEMPLATE = "header.html"
FOOTER_TEMPLATE = "footer.html"


def render_null(value: object) -> object:
    return MISSING_TEXT if value is None else value


def tag_class(tag: object) -> str:
    """Tag as a single CSS class token: whitespace runs become dashes."""
    return re.sub(r"\s+", "-", str(tag).strip())


def tag_link(tag: object, posts_url: str = "/posts") -> str:
    name = html.escape(str(tag), quote=True)
    css = html.escape(tag_class(tag), quote=True)
    query = html.escape(quote(str(tag)), quote=True)
    return (
        f'<a href="{posts_url}?tag={query}" class="post-tag-button-{css}">'
        f'<svg class="icon-small"><use href="/tabler.svg#tabler-tag" /></svg>{name}</a>'
    )


def tag_button(tag: object) -> str:
    name = html.escape(str(tag), quote=True)
    css = html.escape(tag_class(tag), quote=True)
    return (
        f"<a href=\"javascript:setFilterTag('{name}')\" class=\"post-tag-button-{css}\">"
        f'<svg class="icon-small"><use href="/tabler.svg#tabler-tag" /></svg>{name}</a>'
    )


def make_environment(search_path: Optional[Path] = None) -> SandboxedEnvironment:
    loader = FileSystemLoader(str(search_path)) if search_path is not None else None
    env = SandboxedEnvironment(
        loader=loader,
        undefined=ChainableUndefined,
        finalize=render_null,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.filters["tag_link"] = tag_link
    env.filters["tag_button"] = tag_button
    env.filters["tag_class"] = tag_class
    env.filters["iso_date"] = iso_date
    env.filters["rfc822"] = rfc822_date
    return env


DEFAULT_ENVIRONMENT = make_environment()


def compile_template(template_source: str, env: Optional[SandboxedEnvironment] = None) -> Template:
    env = env or DEFAULT_ENVIRONMENT
    return env.from_string(template_source)


def render(
    template_source: str,
    context: Mapping[str, Any],
    env: Optional[SandboxedEnvironment] = None,
) -> str:
    return compile_template(template_source, env).render(dict(context))


@dataclass(frozen=True)
class Revision:
    short: str = ""
    long: str = ""


@dataclass(frozen=True)
class GlobalContext:
    """Data shared by every render in one build. Built once, never mutated."""

    posts: tuple = ()
    projects: tuple = ()
    all_tags: tuple = ()
    tag_counts: Mapping[str, int] = field(default_factory=dict)
    git_hash: str = ""
    long_git_hash: str = ""
    header_html: str = ""
    footer_html: str = ""
    site: Mapping[str, Any] = field(default_factory=dict)

    def as_mapping(self) -> Mapping[str, Any]:
        return MappingProxyType(
            {
                "posts": self.posts,
                "projects": self.projects,
                "all_tags": self.all_tags,
                "tag_counts": dict(self.tag_counts),
                "git_hash": self.git_hash,
                "long_git_hash": self.long_git_hash,
                "header_html": self.header_html,
                "footer_html": self.footer_html,
                "site": dict(self.site),
            }
        )


def render_fragment(path: Path, context: Mapping[str, Any], env: SandboxedEnvironment) -> str:
    if not path.is_file():
        return ""
    return render(read_template(path), context, env)


def build_global_context(
    site: Site,
    revision: Revision,
    components_dir: Path,
    site_meta: Mapping[str, Any],
    env: Optional[SandboxedEnvironment] = None,
) -> GlobalContext:
    """Aggregate first, then render the shared header/footer against that data."""
    env = env or DEFAULT_ENVIRONMENT
    base = GlobalContext(
        posts=site.posts,
        projects=site.projects,
        all_tags=site.tags,
        tag_counts=dict(site.tag_counts),
        git_hash=revision.short,
        long_git_hash=revision.long,
        site=dict(site_meta),
    )
    partial = base.as_mapping()
    return replace(
        base,
        header_html=render_fragment(components_dir / HEADER_TEMPLATE, partial, env),
        footer_html=render_fragment(components_dir / FOOTER_TEMPLATE, partial, env),
    )


def render_page(
    template: Template,
    global_context: GlobalContext,
    page_context: Mapping[str, Any],
) -> str:
    """Per-page scope: the page's own values layered over the global context."""
    context = dict(global_context.as_mapping())
    context.update(page_context)
    return template.render(context)


class RenderedBodies:
    """Post slug to the HTML body rendered for that post's page."""

    def __init__(self) -> None:
        self._bodies: dict[str, str] = {}

    def record(self, slug: str, body: str) -> None:
        self._bodies[slug] = body

    def get(self, slug: Optional[str], default: str = "") -> str:
        if slug is None:
            return default
        return self._bodies.get(slug, default)

    def __contains__(self, slug: object) -> bool:
        return slug in self._bodies

    def __len__(self) -> int:
        return len(self._bodies)


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def copy_file(source: Path, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(source, dest)
