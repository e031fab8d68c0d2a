from __future__ import annotations

from pathlib import Path

from .collections import collection_dir
from .content import ARTICLE_SECTIONS, parse_front_matter, serialize_document, slugify, split_title
from .errors import CatalogError
from .schema import ARTICLES, validate_front_matter

SECTION_HINTS = {
    "Context": "_Write the context here._",
    "Problem": "_Write the problem here._",
    "Overview": "_Write the overview here._",
    "Implementation details": "_Write the implementation details here._",
    "Testing": "_Write how it is tested here._",
    "References": "_Write the references here._",
}


def article_title(title: str, language: str) -> str:
    name, suffix = split_title(title)
    if suffix:
        return title.strip()
    return f"{name} [{language}]"


def article_slug(title: str) -> str:
    name, _ = split_title(title)
    return slugify(name)


def article_template(
    title: str, language: str, project_name: str, project_key: str, home_page: str, tags: list[str]
) -> str:
    meta = {
        "title": article_title(title, language),
        "layout": "default",
        "status": "DRAFT",
        "language": language,
        "project": {"name": project_name, "key": project_key, "home-page": home_page},
        "tags": sorted({tag.strip().lower() for tag in tags if tag.strip()}),
    }
    sections = [f"## {name}\n\n{SECTION_HINTS[name]}\n" for name in ARTICLE_SECTIONS]
    return serialize_document(meta, "\n" + "\n".join(sections))


def create_article(
    source: Path,
    title: str,
    language: str,
    project_name: str,
    project_key: str,
    home_page: str,
    tags: list[str],
) -> Path:
    path = collection_dir(source, ARTICLES) / f"{article_slug(title)}.md"
    if path.exists():
        raise CatalogError(f"Refusing to overwrite existing article: {path}")
    text = article_template(title, language, project_name, project_key, home_page, tags)
    meta, body = parse_front_matter(text)
    problems = validate_front_matter(meta, ARTICLES, body)
    if problems:
        raise CatalogError(f"Invalid article metadata: {'; '.join(problems)}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path
