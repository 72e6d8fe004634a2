"""Build steps that hand work to tools outside the generator.

Each step produces a single artifact and raises ``AssetError`` when it cannot;
the caller reports that as a warning and moves on to the next step.
"""

from __future__ import annotations

import subprocess
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional, Sequence

from pygments.formatters import HtmlFormatter
from pygments.util import ClassNotFound

from .render import Revision, write_text

DOWNLOAD_TIMEOUT = 30
USER_AGENT = "fishsite/1.0"


class AssetError(Exception):
    pass


def run_command(args: Sequence[str], cwd: Optional[Path] = None) -> str:
    try:
        result = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as exc:
        raise AssetError(f"command not found: {args[0]}") from exc
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip()
        message = f"command failed ({exc.returncode}): {' '.join(args)}"
        raise AssetError(f"{message}: {detail}" if detail else message) from exc
    return result.stdout.strip()


def lookup_revision(repo_dir: Path) -> Revision:
    short = run_command(["git", "rev-parse", "--short", "HEAD"], cwd=repo_dir)
    long = run_command(["git", "rev-parse", "HEAD"], cwd=repo_dir)
    return Revision(short=short, long=long)


def convert_favicon(source: Path, dest: Path, sizes: str = "512,16,32") -> Path:
    if not source.is_file():
        raise AssetError(f"favicon source not found: {source}")
    dest.parent.mkdir(parents=True, exist_ok=True)
    run_command(
        [
            "magick",
            "-background",
            "transparent",
            str(source),
            "-define",
            f"icon:auto-resize={sizes}",
            str(dest),
        ]
    )
    return dest


def download(url: str, dest: Path) -> Path:
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=DOWNLOAD_TIMEOUT) as resp:
            data = resp.read()
    except (urllib.error.URLError, OSError) as exc:
        raise AssetError(f"download failed for {url}: {exc}") from exc
    dest.parent.mkdir(parents=True, exist_ok=True)
    dest.write_bytes(data)
    return dest


def write_highlight_css(dest: Path, style: str = "default") -> Path:
    try:
        formatter = HtmlFormatter(style=style, cssclass="codehilite")
    except ClassNotFound as exc:
        raise AssetError(f"unknown pygments style: {style}") from exc
    write_text(dest, formatter.get_style_defs(".codehilite") + "\n")
    return dest


def write_cname(output_dir: Path, domain: str) -> Path:
    dest = output_dir / "CNAME"
    write_text(dest, domain.strip())
    return dest
