from __future__ import annotations

import datetime as dt
import html as html_lib
import re
from pathlib import Path
from typing import Optional

import yaml

from .errors import FrontMatterSyntaxError

FRONT_MATTER_DELIM = "---"
ARTICLE_SECTIONS = ("Context", "Problem", "Overview", "Implementation details", "Testing", "References")

FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(`{3,}|~{3,})")
HEADING_RE = re.compile(r"^(?P<level>#{1,3})[ \t]+(?P<text>.+?)[ \t#]*$")
COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
PLACEHOLDER_RE = re.compile(
    r"^(?:todo|tbd|tba|\.\.\.|…|lorem ipsum.*|\[(?:placeholder|todo|tbd)[^\]]*\]|_write .* here\._?)[.:!]?$",
    re.IGNORECASE,
)
TITLE_LANGUAGE_RE = re.compile(r"^(?P<name>.*?)\s*\[(?P<language>[^\]]+)\]\s*$")
CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]")
WORD_RE = re.compile(r"[A-Za-z0-9]+(?:'[A-Za-z0-9]+)?")
TIMESTAMP_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M %z", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M")


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "page"


def language_slug(language: str) -> str:
    return slugify(language.replace("+", "p").replace("#", "sharp"))


def split_front_matter(text: str) -> tuple[Optional[str], str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIM:
        return None, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONT_MATTER_DELIM:
            end = i
            break
    if end is None:
        return None, clean_text

    raw = "\n".join(lines[1:end])
    body = "\n".join(lines[end + 1 :])
    return raw, body


def parse_front_matter(text: str) -> tuple[Optional[dict], str]:
    raw, body = split_front_matter(text)
    if raw is None:
        return None, body
    try:
        meta = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise FrontMatterSyntaxError(f"invalid YAML in front matter: {exc}") from exc
    if meta is None:
        return {}, body
    if not isinstance(meta, dict):
        raise FrontMatterSyntaxError("front matter must be a mapping")
    return meta, body


def dump_front_matter(meta: dict) -> str:
    return yaml.safe_dump(meta, sort_keys=False, allow_unicode=True, default_flow_style=False)


def serialize_document(meta: dict, body: str) -> str:
    return f"{FRONT_MATTER_DELIM}\n{dump_front_matter(meta)}{FRONT_MATTER_DELIM}\n{body}"


def extract_title(meta: dict, body: str, fallback: str = "Untitled") -> str:
    title = meta.get("title")
    if isinstance(title, str) and title.strip():
        return title.strip()
    for line in body.splitlines():
        stripped = line.strip()
        if stripped.startswith("# "):
            return stripped[2:].strip() or fallback
        if stripped:
            break
    return fallback


def split_title(title: str) -> tuple[str, str]:
    match = TITLE_LANGUAGE_RE.match(title)
    if not match:
        return title.strip(), ""
    return match.group("name").strip(), match.group("language").strip()


def extract_sections(body: str) -> dict[str, str]:
    sections: dict[str, list[str]] = {}
    current = None
    in_fence = False
    fence_marker = ""
    for line in body.splitlines():
        fence_match = FENCE_RE.match(line)
        if fence_match:
            marker = fence_match.group(2)
            if not in_fence:
                in_fence = True
                fence_marker = marker
            elif marker[0] == fence_marker[0] and len(marker) >= len(fence_marker):
                in_fence = False
                fence_marker = ""
        elif not in_fence:
            heading = HEADING_RE.match(line)
            if heading:
                current = heading.group("text").strip().lower()
                sections.setdefault(current, [])
                continue
        if current is not None:
            sections[current].append(line)
    return {name: "\n".join(lines).strip() for name, lines in sections.items()}


def is_placeholder(text: str) -> bool:
    text = COMMENT_RE.sub("", text or "")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    if not lines:
        return True
    return all(PLACEHOLDER_RE.match(line.lstrip("-*+> ").strip()) for line in lines)


def missing_sections(body: str, required: tuple[str, ...] = ARTICLE_SECTIONS) -> list[str]:
    sections = extract_sections(body)
    missing = []
    for name in required:
        text = sections.get(name.lower())
        if text is None or is_placeholder(text):
            missing.append(name)
    return missing


def parse_timestamp(value: object) -> Optional[dt.datetime]:
    if value is None:
        return None
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return dt.datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in TIMESTAMP_FORMATS:
        try:
            return dt.datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def count_words(text: str) -> int:
    text = html_lib.unescape(text)
    cjk_count = len(CJK_RE.findall(text))
    text = CJK_RE.sub(" ", text)
    word_count = len(WORD_RE.findall(text))
    return cjk_count + word_count


def read_document(path: Path) -> tuple[Optional[dict], str]:
    return parse_front_matter(path.read_text(encoding="utf-8"))
