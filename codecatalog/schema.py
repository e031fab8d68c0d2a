"""Front-matter models for catalog documents and articles."""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Annotated, Any, Literal, Optional, get_args

from pydantic import (
    AfterValidator,
    BaseModel,
    Field,
    HttpUrl,
    StrictInt,
    StringConstraints,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .content import extract_title, missing_sections, parse_timestamp, slugify, split_title

ARTICLES = "articles"
Status = Literal["DRAFT", "PUBLISHED"]
ArticleLayout = Literal["default", "post"]
STATUSES = get_args(Status)
ARTICLE_LAYOUTS = get_args(ArticleLayout)
PROJECT_KEY_PATTERN = r"^[a-z0-9-]+$"
GITHUB_REPO_RE = re.compile(r"^https?://github\.com/(?P<repo>[^/\s]+/[^/\s#?]+)", re.IGNORECASE)
FALLBACKS = {"layout": "default", "status": "DRAFT", "language": "Unknown"}

Text = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _lowercase_tag(tag: str) -> str:
    if tag != tag.lower():
        raise ValueError(f"tag '{tag}' must be lowercase")
    return tag


Tag = Annotated[Text, AfterValidator(_lowercase_tag)]


class Project(BaseModel):
    model_config = {"extra": "allow"}

    name: Text
    key: str = Field(pattern=PROJECT_KEY_PATTERN)
    home_page: HttpUrl = Field(alias="home-page")


class DocumentFrontMatter(BaseModel):
    """Keys every page and collection document needs."""

    model_config = {"extra": "allow"}

    title: Text
    layout: Text


class ArticleFrontMatter(DocumentFrontMatter):
    """Front matter of a file in the articles collection.

    The body is passed in the validation context so that a PUBLISHED
    article can be checked for placeholder sections.
    """

    layout: ArticleLayout
    status: Status
    language: Text
    project: Project
    tags: Optional[list[Tag]] = None
    nav_order: Optional[StrictInt] = None
    last_modified_date: Any = None
    related: Optional[list[str]] = None

    @field_validator("tags")
    @classmethod
    def _unique_tags(cls, tags: Optional[list[str]]) -> Optional[list[str]]:
        seen = set()
        for tag in tags or []:
            if tag in seen:
                raise ValueError(f"duplicate tag '{tag}'")
            seen.add(tag)
        return tags

    @field_validator("last_modified_date")
    @classmethod
    def _timestamp(cls, value: Any) -> Any:
        if value is not None and parse_timestamp(value) is None:
            raise ValueError(f"'last_modified_date' is not a valid timestamp: {value!r}")
        return value

    @model_validator(mode="after")
    def _published_sections(self, info: ValidationInfo) -> "ArticleFrontMatter":
        if self.status == "PUBLISHED":
            body = (info.context or {}).get("body", "")
            missing = missing_sections(body)
            if missing:
                raise ValueError(f"published article has placeholder or missing sections: {', '.join(missing)}")
        return self


def front_matter_model(collection: Optional[str]) -> type[DocumentFrontMatter]:
    return ArticleFrontMatter if collection == ARTICLES else DocumentFrontMatter


def front_matter_errors(meta: dict, collection: Optional[str], body: str = "") -> list[dict]:
    try:
        front_matter_model(collection).model_validate(meta, context={"body": body})
    except ValidationError as exc:
        return exc.errors()
    return []


def _location(loc: tuple) -> str:
    text = ""
    for part in loc:
        if isinstance(part, int):
            text += f"[{part}]"
        else:
            text += f".{part}" if text else str(part)
    return text


def describe_error(error: dict) -> str:
    field = _location(error["loc"])
    kind = error["type"]
    value = error.get("input")
    ctx = error.get("ctx") or {}
    if kind == "value_error":
        return str(ctx.get("error", error["msg"]))
    if not field:
        return error["msg"]
    if kind == "missing":
        return f"missing required key '{field}'"
    if kind in ("string_type", "string_too_short"):
        return f"'{field}' must be a non-empty string"
    if kind == "literal_error":
        return f"'{field}' must be {ctx['expected']}, got {value!r}"
    if kind == "string_pattern_mismatch":
        return f"'{field}' must match {ctx['pattern']}, got {value!r}"
    if kind.startswith("url"):
        return f"'{field}' must be an http(s) URL, got {value!r}"
    if kind == "int_type":
        return f"'{field}' must be an integer"
    if kind == "list_type":
        return f"'{field}' must be a list of strings"
    if kind in ("model_type", "model_attributes_type", "dict_type"):
        return f"'{field}' must be a mapping"
    return f"'{field}': {error['msg']}"


def validate_front_matter(meta: dict, collection: Optional[str], body: str = "") -> list[str]:
    return [describe_error(error) for error in front_matter_errors(meta, collection, body)]


def _is_text(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def lint_article(meta: dict, citations: list[dict]) -> list[str]:
    warnings = []
    title = meta.get("title")
    language = meta.get("language")
    if _is_text(title) and _is_text(language):
        _, suffix = split_title(title)
        if suffix and suffix.lower() != language.strip().lower():
            warnings.append(f"title suffix [{suffix}] does not match language '{language}'")
    project = meta.get("project")
    home_page = project.get("home-page") if isinstance(project, dict) else None
    match = GITHUB_REPO_RE.match(home_page) if _is_text(home_page) else None
    if match:
        repo = match.group("repo").lower()
        if repo.endswith(".git"):
            repo = repo[:-4]
        outside = sorted({item["repo"] for item in citations if item["repo"].lower() != repo})
        for other in outside:
            warnings.append(f"code citation points outside the project repository: {other}")
    return warnings


def _fix_project(project: object, failed: set[tuple]) -> Optional[dict]:
    if not isinstance(project, dict) or ("project",) in failed or ("project", "name") in failed:
        return None
    project = dict(project)
    if ("project", "key") in failed:
        key = project.get("key")
        project["key"] = slugify(key if _is_text(key) else project["name"])
    if ("project", "home-page") in failed:
        project["home-page"] = ""
    return project


def _clean_tags(tags: object) -> list[str]:
    if not isinstance(tags, list):
        return []
    cleaned = []
    for tag in tags:
        if tag is None:
            continue
        tag = str(tag).strip().lower()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def apply_defaults(meta: dict, collection: Optional[str], path: str, body: str) -> dict:
    """Return a copy of ``meta`` with every field that failed validation replaced.

    A project without a usable name is dropped, so the article lands in no
    project index.
    """
    fixed = dict(meta)
    failed = {tuple(error["loc"][:2]) for error in front_matter_errors(meta, collection, body) if error["loc"]}
    fields = {loc[0] for loc in failed}

    if "title" in fields:
        fixed["title"] = extract_title({}, body, fallback=PurePosixPath(path).name)
    for field, value in FALLBACKS.items():
        if field in fields:
            fixed[field] = value

    if "project" in fields:
        project = _fix_project(fixed.get("project"), failed)
        if project is None:
            fixed.pop("project", None)
        else:
            fixed["project"] = project
    if "tags" in fields:
        fixed["tags"] = _clean_tags(fixed.get("tags"))
    for field in ("nav_order", "last_modified_date"):
        if field in fields:
            fixed.pop(field, None)
    if "related" in fields:
        related = fixed.get("related")
        if isinstance(related, list):
            fixed["related"] = [str(item) for item in related if item is not None]
        else:
            fixed.pop("related", None)
    return fixed
