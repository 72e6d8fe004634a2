from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Callable, Optional, Sequence

from jinja2 import Template, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from .assets import (
    AssetError,
    convert_favicon,
    download,
    lookup_revision,
    write_cname,
    write_highlight_css,
)
from .collection import load_site
from .config import load_config
from .feed import build_feed
from .pages import BuildReport, PageSettings, build_tree
from .render import (
    RenderedBodies,
    Revision,
    build_global_context,
    make_environment,
    read_template,
    write_text,
)
from .utils import clean_output_dir, join_url, parse_bool, parse_int, write_nojekyll

FEED_TTL = 15
HIGHLIGHT_CSS = "highlight.css"
ICON_SPRITE_URL = "https://cdn.jsdelivr.net/npm/@tabler/icons-sprite@latest/dist/tabler-sprite.svg"


def fail(message: str) -> None:
    print(message, file=sys.stderr)
    sys.exit(1)


def load_template(path: Path, env: SandboxedEnvironment) -> Template:
    if not path.is_file():
        fail(f"Template not found: {path}")
    try:
        return env.from_string(read_template(path))
    except TemplateError as exc:
        fail(f"Invalid template {path}: {exc}")


def post_template_path(source_dir: Path, posts_dir: Path, name: str) -> Path:
    local = posts_dir / name
    return local if local.is_file() else source_dir / name


def run_step(report: BuildReport, step: Callable[..., Path], *args: object) -> Optional[Path]:
    try:
        artifact = step(*args)
    except AssetError as exc:
        report.warn(str(exc))
        return None
    report.assets.append(artifact)
    return artifact


def site_url_for(args: argparse.Namespace) -> str:
    site_url = (args.site_url or "").strip()
    custom_domain = (args.custom_domain or "").strip()
    if not site_url and custom_domain:
        site_url = f"https://{custom_domain}"
    return site_url.rstrip("/")


def build_site(args: argparse.Namespace) -> BuildReport:
    source_dir = Path(args.source)
    output_dir = Path(args.output)
    project_root = Path.cwd()

    if not source_dir.is_dir():
        fail(f"Source directory not found: {source_dir}")

    env = make_environment(source_dir)
    posts_dir = source_dir / args.posts_dir
    markdown_template = load_template(source_dir / args.markdown_template, env)
    post_template = None
    if posts_dir.is_dir():
        post_template = load_template(post_template_path(source_dir, posts_dir, args.post_template), env)

    if args.clean:
        clean_output_dir(output_dir, project_root)
    output_dir.mkdir(parents=True, exist_ok=True)

    report = BuildReport()
    external = parse_bool(args.external_steps)

    revision = Revision()
    if external:
        try:
            revision = lookup_revision(source_dir)
        except AssetError as exc:
            report.warn(f"revision lookup failed: {exc}")

    site = load_site(posts_dir, source_dir / args.projects_dir)
    site_url = site_url_for(args)
    site_meta = {
        "name": args.site_name,
        "description": args.site_description,
        "url": site_url,
        "language": args.language,
    }
    global_context = build_global_context(
        site, revision, source_dir / args.components_dir, site_meta, env
    )

    bodies = RenderedBodies()
    settings = PageSettings(
        env=env,
        global_context=global_context,
        bodies=bodies,
        markdown_template=args.markdown_template,
        post_template=args.post_template,
        posts_dir=args.posts_dir,
        highlight=parse_bool(args.highlight),
    )
    build_tree(source_dir, output_dir, settings, report, markdown_template, post_template)

    if args.enable_rss:
        feed = build_feed(
            site.posts,
            bodies,
            title=args.site_name,
            link=join_url(site_url, args.posts_dir),
            description=args.site_description,
            site_url=site_url,
            language=args.language,
            ttl=args.feed_ttl,
            posts_path=args.posts_dir,
        )
        feed_path = output_dir / args.feed_file
        write_text(feed_path, feed)
        report.assets.append(feed_path)

    if settings.highlight:
        run_step(report, write_highlight_css, output_dir / HIGHLIGHT_CSS, args.pygments_style)

    if external:
        if args.favicon_source:
            run_step(
                report,
                convert_favicon,
                source_dir / args.favicon_source,
                output_dir / "favicon.ico",
                args.favicon_sizes,
            )
        if args.icon_sprite_url:
            run_step(report, download, args.icon_sprite_url, output_dir / args.icon_sprite_file)

    custom_domain = (args.custom_domain or "").strip()
    if custom_domain:
        report.assets.append(write_cname(output_dir, custom_domain))
    if args.write_nojekyll:
        write_nojekyll(output_dir)

    return report


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = load_config(Path(pre_args.config))

    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        value = cfg_value(key, default)
        return default if value is None else str(value)

    def cfg_bool(key: str, default: bool) -> bool:
        value = cfg_value(key, default)
        return parse_bool(value) if value is not None else default

    def cfg_int(key: str, default: int) -> int:
        value = cfg_value(key, default)
        return parse_int(value, default)

    parser = argparse.ArgumentParser(description="Static site generator for a personal blog.")
    parser.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--source", default=cfg_str("source", "src"), help="Site source directory.")
    parser.add_argument("--output", default=cfg_str("output", "dist"), help="Output directory for the site.")
    parser.add_argument("--site-name", default=cfg_str("site_name", "My Blog"), help="Site and feed title.")
    parser.add_argument(
        "--site-description",
        default=cfg_str("site_description", "My Blog"),
        help="Site and feed description.",
    )
    parser.add_argument(
        "--site-url",
        default=cfg_str("site_url", ""),
        help="Public site URL used for feed links.",
    )
    parser.add_argument(
        "--custom-domain",
        default=cfg_str("custom_domain", ""),
        help="Custom domain to write into CNAME.",
    )
    parser.add_argument("--language", default=cfg_str("language", "en"), help="Feed language code.")
    parser.add_argument(
        "--feed-ttl",
        default=cfg_int("feed_ttl", FEED_TTL),
        type=int,
        help="Feed time-to-live in minutes.",
    )
    parser.add_argument("--feed-file", default=cfg_str("feed_file", "rss.xml"), help="Feed file name.")
    parser.add_argument(
        "--enable-rss",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_rss", True),
        help="Generate the RSS feed.",
    )
    parser.add_argument("--posts-dir", default=cfg_str("posts_dir", "posts"), help="Posts directory inside the source.")
    parser.add_argument(
        "--projects-dir",
        default=cfg_str("projects_dir", "projects"),
        help="Projects directory inside the source.",
    )
    parser.add_argument(
        "--components-dir",
        default=cfg_str("components_dir", "components"),
        help="Directory holding header.html and footer.html fragments.",
    )
    parser.add_argument(
        "--markdown-template",
        default=cfg_str("markdown_template", "markdown-template.html"),
        help="Template wrapping Markdown pages.",
    )
    parser.add_argument(
        "--post-template",
        default=cfg_str("post_template", "post-template.html"),
        help="Template wrapping posts.",
    )
    parser.add_argument(
        "--highlight",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("highlight", False),
        help="Highlight code blocks with Pygments and write highlight.css.",
    )
    parser.add_argument(
        "--pygments-style",
        default=cfg_str("pygments_style", "default"),
        help="Pygments style used for highlight.css.",
    )
    parser.add_argument(
        "--external-steps",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("external_steps", True),
        help="Run git, ImageMagick and network steps.",
    )
    parser.add_argument(
        "--favicon-source",
        default=cfg_str("favicon_source", ""),
        help="Image converted into favicon.ico.",
    )
    parser.add_argument(
        "--favicon-sizes",
        default=cfg_str("favicon_sizes", "512,16,32"),
        help="Icon sizes embedded into favicon.ico.",
    )
    parser.add_argument(
        "--icon-sprite-url",
        default=cfg_str("icon_sprite_url", ICON_SPRITE_URL),
        help="URL of the icon sprite to download (empty to skip).",
    )
    parser.add_argument(
        "--icon-sprite-file",
        default=cfg_str("icon_sprite_file", "tabler.svg"),
        help="File name for the downloaded icon sprite.",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", True),
        help="Clean output directory before build.",
    )
    parser.add_argument(
        "--write-nojekyll",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("write_nojekyll", True),
        help="Write .nojekyll in the output directory.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    start = time.perf_counter()
    report = build_site(args)
    elapsed = time.perf_counter() - start
    print(
        f"Built {len(report.pages)} pages and {len(report.assets)} assets "
        f"in {elapsed:.2f}s ({len(report.warnings)} warnings)."
    )
    print(f"Site generated in: {args.output}")
