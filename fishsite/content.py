from __future__ import annotations

from pathlib import Path

import markdown
import yaml

from .utils import warn

FRONT_MATTER_FENCE = "---"
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc"]


def read_source(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def parse_front_matter(text: str) -> tuple[dict | None, str]:
    """Split a document into its YAML frontmatter mapping and the body.

    Returns ``(None, text)`` when the document has no frontmatter block. A
    block that is not valid YAML, or whose top level is not a mapping, is
    reported as a warning and yields ``(None, body)`` so the page still builds.
    """
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_FENCE:
        return None, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONT_MATTER_FENCE:
            end = i
            break
    if end is None:
        return None, clean_text

    body = "\n".join(lines[end + 1 :])
    block = "\n".join(lines[1:end])
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        warn(f"invalid frontmatter: {exc}")
        return None, body
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        warn(f"frontmatter must be a mapping, got {type(data).__name__}")
        return None, body
    return {str(key): value for key, value in data.items()}, body


def render_markdown(body: str, highlight: bool = False) -> tuple[str, str]:
    extensions = list(MARKDOWN_EXTENSIONS)
    extension_configs = {}
    if highlight:
        extensions.append("codehilite")
        extension_configs["codehilite"] = {"guess_lang": False, "css_class": "codehilite"}
    md = markdown.Markdown(extensions=extensions, extension_configs=extension_configs)
    html_content = md.convert(body)
    toc_html = md.toc
    md.reset()
    return html_content, toc_html
