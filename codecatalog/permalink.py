from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Optional

from .config import DEFAULT_PERMALINK, PAGE_PERMALINK
from .content import slugify
from .errors import PermalinkError

OUTPUT_EXT = ".html"
PLACEHOLDER_RE = re.compile(r":([a-z_]+)")
PLACEHOLDERS = ("collection", "path", "name", "slug", "title", "output_ext")


def permalink_variables(collection: Optional[str], path: str, meta: Optional[dict] = None) -> dict:
    name = PurePosixPath(path).name if path else ""
    title = (meta or {}).get("title")
    return {
        "collection": collection or "",
        "path": path,
        "name": name,
        "slug": slugify(name) if name else "",
        "title": slugify(title) if isinstance(title, str) and title.strip() else name,
        "output_ext": OUTPUT_EXT,
    }


def expand_permalink(template: str, variables: dict) -> str:
    if not template.startswith("/"):
        raise PermalinkError(f"permalink must start with '/': {template}")

    def repl(match: re.Match) -> str:
        word = match.group(1)
        if word not in PLACEHOLDERS:
            raise PermalinkError(f"unknown permalink placeholder ':{word}' in {template}")
        return str(variables[word])

    url = PLACEHOLDER_RE.sub(repl, template)
    url = re.sub(r"/{2,}", "/", url)
    return url


def resolve_permalink(
    template: Optional[str], collection: Optional[str], path: str, meta: Optional[dict] = None
) -> str:
    variables = permalink_variables(collection, path, meta)
    override = (meta or {}).get("permalink")
    candidates = []
    if isinstance(override, str) and override.strip():
        candidates.append(override.strip())
    if template:
        candidates.append(template)
    candidates.append(DEFAULT_PERMALINK if collection else PAGE_PERMALINK)
    for candidate in candidates:
        try:
            url = expand_permalink(candidate, variables)
        except PermalinkError:
            continue
        if collection is None and path == "index" and candidate == PAGE_PERMALINK:
            return "/"
        if collection is None and path.endswith("/index") and candidate == PAGE_PERMALINK:
            return "/" + path[: -len("index")]
        return url
    raise PermalinkError(f"no usable permalink for {path}")


def url_to_output_path(url: str) -> str:
    rel = url.lstrip("/")
    if not rel or url.endswith("/"):
        return f"{rel}index.html"
    if PurePosixPath(rel).suffix:
        return rel
    return f"{rel}{OUTPUT_EXT}"
