from __future__ import annotations

import re
import shutil
from pathlib import Path

from .errors import CatalogError

TAG_RE = re.compile(r"<[^>]+>")
PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
TEMPLATES_DIR = Path(__file__).parent / "templates"
LAYOUT_OVERRIDE_DIR = "_layouts"
INCLUDE_OVERRIDE_DIR = "_includes"


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def render_template(template: str, **context: str) -> str:
    # one pass, so inserted values are never expanded again
    return PLACEHOLDER_RE.sub(lambda match: context.get(match.group(1), match.group(0)), template)


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def load_templates(source: Path) -> dict:
    templates = {"base": read_template(TEMPLATES_DIR / "base.html"), "layouts": {}, "includes": {}}
    for kind, override_dir in (("layouts", LAYOUT_OVERRIDE_DIR), ("includes", INCLUDE_OVERRIDE_DIR)):
        for path in sorted((TEMPLATES_DIR / kind).glob("*.html")):
            templates[kind][path.stem] = read_template(path)
        site_dir = source / override_dir
        if site_dir.is_dir():
            for path in sorted(site_dir.glob("*.html")):
                templates[kind][path.stem.replace("-", "_")] = read_template(path)
    if "default" not in templates["layouts"]:
        raise CatalogError("Layout 'default' is missing")
    return templates


def template_paths(source: Path) -> list[Path]:
    paths = [p for p in TEMPLATES_DIR.rglob("*.html")]
    for override_dir in (LAYOUT_OVERRIDE_DIR, INCLUDE_OVERRIDE_DIR):
        site_dir = source / override_dir
        if site_dir.is_dir():
            paths.extend(site_dir.glob("*.html"))
    return paths


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def copy_static(files: list[Path], source: Path, output_dir: Path) -> list[str]:
    written = []
    for item in files:
        rel = item.relative_to(source)
        dest = output_dir / rel
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(item, dest)
        written.append(rel.as_posix())
    return written
