from __future__ import annotations

from typing import Optional

from .content import language_slug


def article_sort_key(doc: dict) -> tuple:
    nav_order = doc["meta"].get("nav_order")
    title = str(doc["meta"].get("title", "")).lower()
    if isinstance(nav_order, int) and not isinstance(nav_order, bool):
        return (0, nav_order, title, doc["path"])
    return (1, 0, title, doc["path"])


def sort_articles(articles: list[dict]) -> list[dict]:
    return sorted(articles, key=article_sort_key)


def project_of(doc: dict) -> Optional[dict]:
    project = doc["meta"].get("project")
    if not isinstance(project, dict) or not project.get("key"):
        return None
    return project


def check_project_consistency(articles: list[dict]) -> list[tuple[dict, str]]:
    by_key: dict[str, tuple] = {}
    by_name: dict[str, tuple] = {}
    conflicts = []
    for doc in articles:
        project = project_of(doc)
        if project is None:
            continue
        key = project["key"]
        name = project.get("name")
        home_page = project.get("home-page")
        first = by_key.get(key)
        if first is None:
            by_key[key] = (name, home_page, doc["source"])
        elif (name, home_page) != first[:2]:
            conflicts.append(
                (
                    doc,
                    f"project.key '{key}' is '{first[0]}' ({first[1]}) in {first[2]} "
                    f"but '{name}' ({home_page}) here",
                )
            )
            continue
        other = by_name.get(name)
        if other is None:
            by_name[name] = (key, doc["source"])
        elif other[0] != key:
            conflicts.append((doc, f"project '{name}' uses key '{other[0]}' in {other[1]} but '{key}' here"))
    return conflicts


def build_tag_index(articles: list[dict]) -> dict[str, list[str]]:
    index: dict[str, list[str]] = {}
    for doc in sort_articles(articles):
        for tag in doc["meta"].get("tags") or []:
            index.setdefault(tag, [])
            if doc["path"] not in index[tag]:
                index[tag].append(doc["path"])
    return dict(sorted(index.items()))


def tag_slugs(tags: list[str]) -> dict[str, str]:
    """Map each tag to a URL slug that no other tag uses.

    Tags whose slug is the tag itself keep it; the rest get a numeric suffix
    when their slug is already taken.
    """
    slugs: dict[str, str] = {}
    used: set[str] = set()
    for tag in sorted(tags, key=lambda tag: language_slug(tag) != tag):
        base = language_slug(tag)
        slug = base
        suffix = 1
        while slug in used:
            slug = f"{base}-{suffix}"
            suffix += 1
        used.add(slug)
        slugs[tag] = slug
    return slugs


def build_project_index(articles: list[dict]) -> dict[str, dict]:
    index: dict[str, dict] = {}
    for doc in sort_articles(articles):
        project = project_of(doc)
        if project is None:
            continue
        entry = index.setdefault(
            project["key"],
            {"name": project.get("name", ""), "home-page": project.get("home-page", ""), "articles": []},
        )
        entry["articles"].append(doc["path"])
    return dict(sorted(index.items()))


def build_language_index(articles: list[dict]) -> dict[str, dict]:
    index: dict[str, dict] = {}
    for doc in sort_articles(articles):
        language = doc["meta"].get("language")
        if not isinstance(language, str) or not language.strip():
            continue
        entry = index.setdefault(language_slug(language), {"name": language.strip(), "articles": []})
        entry["articles"].append(doc["path"])
    return dict(sorted(index.items()))


def build_indexes(articles: list[dict]) -> dict:
    return {
        "tags": build_tag_index(articles),
        "projects": build_project_index(articles),
        "languages": build_language_index(articles),
    }


def normalize_reference(ref: str, site_url: str = "", baseurl: str = "") -> str:
    ref = ref.strip()
    if site_url and ref.startswith(site_url):
        ref = ref[len(site_url) :] or "/"
    if baseurl and ref.startswith(baseurl + "/"):
        ref = ref[len(baseurl) :]
    return ref.split("#", 1)[0]


def resolve_related(
    doc: dict, by_id: dict[str, dict], by_url: dict[str, dict], site_url: str = "", baseurl: str = ""
) -> list[tuple[Optional[dict], str]]:
    entries: list[tuple[Optional[dict], str]] = []
    seen = {doc["path"]}
    for ref in doc["meta"].get("related") or []:
        key = normalize_reference(ref, site_url, baseurl)
        target = by_id.get(key.strip("/")) if not key.startswith("/") else None
        if target is None:
            target = by_url.get(key) or by_url.get(key.rstrip("/") + "/")
        if target is None:
            entries.append((None, ref))
            continue
        if target["path"] in seen:
            continue
        seen.add(target["path"])
        entries.append((target, ref))

    project = project_of(doc)
    if project is not None:
        siblings = [
            other
            for other in by_id.values()
            if other["path"] not in seen and (project_of(other) or {}).get("key") == project["key"]
        ]
        for other in sort_articles(siblings):
            seen.add(other["path"])
            entries.append((other, other["path"]))
    return entries
