from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from jinja2 import Template, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from .content import parse_front_matter, read_source, render_markdown
from .records import Post, as_str, build_post
from .render import GlobalContext, RenderedBodies, copy_file, read_template, render_page, write_text
from .utils import warn

PAGE_FIELDS = ("title", "description", "source", "docs", "type")


@dataclass
class BuildReport:
    pages: list[Path] = field(default_factory=list)
    assets: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        warn(message)
        self.warnings.append(message)


@dataclass
class PageSettings:
    """What the source walk needs to know about the site layout."""

    env: SandboxedEnvironment
    global_context: GlobalContext
    bodies: RenderedBodies
    markdown_template: str = "markdown-template.html"
    post_template: str = "post-template.html"
    posts_dir: str = "posts"
    highlight: bool = False


def markdown_page_context(meta: Optional[dict], html_content: str, toc: str) -> dict[str, Any]:
    meta = meta or {}
    context: dict[str, Any] = {name: as_str(meta.get(name), default=None) for name in PAGE_FIELDS}
    context.update({"frontmatter": meta, "content": html_content, "toc": toc})
    return context


def post_page_context(post: Post, html_content: str, toc: str) -> dict[str, Any]:
    context = post.to_dict()
    context.update({"post": post, "content": html_content, "toc": toc})
    return context


def read_page_source(md_file: Path, dest: Path, report: BuildReport) -> Optional[str]:
    try:
        return read_source(md_file)
    except (OSError, UnicodeDecodeError) as exc:
        report.warn(f"skipping {md_file}: {exc}")
        report.skipped.append(dest)
        return None


def build_markdown_page(
    md_file: Path, dest: Path, template: Template, settings: PageSettings, report: BuildReport
) -> None:
    text = read_page_source(md_file, dest, report)
    if text is None:
        return
    meta, body = parse_front_matter(text)
    html_content, toc = render_markdown(body, highlight=settings.highlight)
    context = markdown_page_context(meta, html_content, toc)
    write_page(dest, template, context, settings, report)


def build_post_page(
    md_file: Path, dest: Path, template: Template, settings: PageSettings, report: BuildReport
) -> Optional[Post]:
    text = read_page_source(md_file, dest, report)
    if text is None:
        return None
    meta, body = parse_front_matter(text)
    post = build_post(md_file, meta)
    html_content, toc = render_markdown(body, highlight=settings.highlight)
    settings.bodies.record(post.slug, html_content)
    write_page(dest, template, post_page_context(post, html_content, toc), settings, report)
    return post


def build_html_page(source: Path, dest: Path, settings: PageSettings, report: BuildReport) -> None:
    try:
        template = settings.env.from_string(read_template(source))
    except (TemplateError, OSError, UnicodeDecodeError) as exc:
        report.warn(f"skipping {source}: {exc}")
        report.skipped.append(dest)
        return
    write_page(dest, template, {}, settings, report)


def write_page(
    dest: Path,
    template: Template,
    context: dict[str, Any],
    settings: PageSettings,
    report: BuildReport,
) -> None:
    try:
        text = render_page(template, settings.global_context, context)
    except Exception as exc:
        report.warn(f"skipping {dest.name}: {exc}")
        report.skipped.append(dest)
        return
    write_text(dest, text)
    report.pages.append(dest)


def build_tree(
    source_dir: Path,
    output_dir: Path,
    settings: PageSettings,
    report: BuildReport,
    markdown_template: Template,
    post_template: Optional[Template] = None,
    relative: Path = Path("."),
) -> None:
    """Render one source directory into the output tree, then its subdirectories.

    A directory may carry its own Markdown template (same file name as the
    site-wide one) which then applies to it and everything below it.
    """
    current = source_dir / relative
    local_template = current / settings.markdown_template
    if relative != Path(".") and local_template.is_file():
        try:
            markdown_template = settings.env.from_string(read_template(local_template))
        except (TemplateError, OSError, UnicodeDecodeError) as exc:
            report.warn(f"ignoring {local_template}: {exc}")

    is_posts_dir = relative == Path(settings.posts_dir) and post_template is not None
    reserved = {settings.markdown_template}
    if relative == Path(".") or is_posts_dir:
        reserved.add(settings.post_template)

    output_resolved = output_dir.resolve()
    entries = sorted(
        (entry for entry in current.iterdir() if entry.resolve() != output_resolved),
        key=lambda p: p.name,
    )
    for entry in entries:
        if entry.is_dir() or entry.name in reserved:
            continue
        rel = relative / entry.name
        if entry.suffix == ".md":
            dest = output_dir / rel.with_suffix(".html")
            if is_posts_dir:
                build_post_page(entry, dest, post_template, settings, report)
            else:
                build_markdown_page(entry, dest, markdown_template, settings, report)
        elif entry.suffix == ".html":
            build_html_page(entry, output_dir / rel, settings, report)
        else:
            dest = output_dir / rel
            copy_file(entry, dest)
            report.assets.append(dest)

    for entry in entries:
        if entry.is_dir():
            build_tree(
                source_dir,
                output_dir,
                settings,
                report,
                markdown_template,
                post_template,
                relative / entry.name,
            )
