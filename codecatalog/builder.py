from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Optional

from .cache import (
    LOCK_NAME,
    LOCK_VERSION,
    hash_config,
    hash_paths,
    list_files,
    load_lock,
    remove_stale_outputs,
    source_hashes,
    unchanged,
    write_lock,
)
from .collections import assign_permalinks, claim, discover, is_written
from .config import collection_settings, unsupported_plugins
from .content import read_document
from .errors import BuildReport, FrontMatterSyntaxError
from .indexes import build_indexes, check_project_consistency, tag_slugs
from .markup import convert_markdown
from .pages import build_404, build_document_page, build_feed, build_listing_page, build_site_index, render_listing
from .permalink import resolve_permalink, url_to_output_path
from .render import copy_static, load_templates, template_paths, write_text
from .schema import ARTICLES, apply_defaults, lint_article, validate_front_matter
from .utils import clean_output_dir

INDEXED_COLLECTIONS = ("tags", "projects", "languages")
FEED_PLUGIN = "jekyll-feed"
PACKAGE_DIR = Path(__file__).parent


def resolve_destination(source: Path, config: dict) -> Path:
    destination = Path(config["destination"] or "_site")
    if not destination.is_absolute():
        destination = source / destination
    return destination


def load_document(doc: dict, report: BuildReport, lenient: bool) -> bool:
    source = doc["source"]
    try:
        meta, body = read_document(doc["file"])
    except (OSError, UnicodeDecodeError) as exc:
        report.error(source, f"cannot read file: {exc}")
        return False
    except FrontMatterSyntaxError as exc:
        report.error(source, str(exc))
        return False

    if meta is None:
        if not lenient:
            report.error(source, "missing front matter")
            return False
        meta = {}
    problems = validate_front_matter(meta, doc["collection"], body)
    if problems:
        if not lenient:
            for problem in problems:
                report.error(source, problem)
            return False
        for problem in problems:
            report.warn(source, problem)
        meta = apply_defaults(meta, doc["collection"], doc["path"], body)
        doc["needs_review"] = True
        report.flag_review(source)

    doc["meta"] = meta
    doc["body"] = body
    doc["rendered"] = convert_markdown(body)
    return True


def load_site(
    source: Path,
    config: dict,
    report: BuildReport,
    lenient: Optional[bool] = None,
    drafts: bool = False,
    discovered: Optional[tuple[list[dict], list[Path]]] = None,
) -> dict:
    if lenient is None:
        lenient = not config["strict_front_matter"]
    destination = resolve_destination(source, config)
    documents, static_files = discovered or discover(source, config, destination)
    for name in unsupported_plugins(config):
        report.warn("_config.yml", f"plugin '{name}' is not supported and was ignored")

    accepted = [doc for doc in documents if load_document(doc, report, lenient)]

    # published articles define a project before drafts do
    articles = [doc for doc in accepted if doc["collection"] == ARTICLES]
    articles.sort(key=lambda doc: doc["meta"].get("status") != "PUBLISHED")
    for doc, message in check_project_consistency(articles):
        if lenient:
            report.warn(doc["source"], message)
            continue
        report.error(doc["source"], message)
        accepted.remove(doc)

    if not drafts:
        accepted = [
            doc for doc in accepted if doc["collection"] != ARTICLES or doc["meta"].get("status") != "DRAFT"
        ]

    claimed = assign_permalinks(accepted, config)
    for file in static_files:
        rel = file.relative_to(source).as_posix()
        claim(claimed, rel, "/" + rel, rel)

    articles = [doc for doc in accepted if doc["collection"] == ARTICLES]
    for doc in articles:
        for warning in lint_article(doc["meta"], doc["rendered"]["citations"]):
            report.warn(doc["source"], warning)

    site = {
        "config": config,
        "source": source,
        "destination": destination,
        "report": report,
        "templates": load_templates(source),
        "documents": accepted,
        "articles": articles,
        "static_files": static_files,
        "by_id": {doc["path"]: doc for doc in articles},
        "by_url": {doc["url"]: doc for doc in accepted},
        "indexes": build_indexes(articles),
    }
    plan_generated_pages(site, claimed)
    return site


def plan_generated_pages(site: dict, claimed: dict[str, str]) -> None:
    config = site["config"]
    owners = {doc["output"]: doc for doc in site["documents"] if is_written(doc, config)}
    pages = []
    nav = []
    for name, settings in config["collections"].items():
        if not settings["output"]:
            continue
        info = collection_settings(config, name)
        url = resolve_permalink(settings["permalink"], name, "")
        pages.append({"kind": "listing", "collection": name, "key": None, "title": info["label"], "url": url})
        if not info["nav_exclude"]:
            nav.append({"label": info["label"], "url": url})
        if name not in INDEXED_COLLECTIONS:
            continue
        index = site["indexes"][name]
        slugs = tag_slugs(list(index)) if name == "tags" else {key: key for key in index}
        for key, entry in index.items():
            slug = slugs[key]
            title = key if name == "tags" else entry["name"]
            page_url = resolve_permalink(settings["permalink"], name, slug)
            pages.append({"kind": "listing", "collection": name, "key": key, "title": title, "url": page_url})
    if "index.html" not in claimed:
        pages.append({"kind": "home", "collection": None, "key": None, "title": config["title"], "url": "/"})
    if "404.html" not in claimed:
        pages.append({"kind": "404", "collection": None, "key": None, "title": "404", "url": "/404.html"})

    generated = []
    merged: dict[str, list[dict]] = {}
    index_urls: dict[str, dict[str, str]] = {}
    for page in pages:
        page["output"] = url_to_output_path(page["url"])
        owner = owners.get(page["output"])
        if owner is not None:
            merged.setdefault(page["output"], []).append(page)
        else:
            label = f"generated {page['collection'] or page['kind']} page"
            if page["key"] is not None:
                label += f" '{page['key']}'"
            claim(claimed, page["output"], page["url"], label)
            generated.append(page)
        if page["key"] is not None:
            index_urls.setdefault(page["collection"], {})[page["key"]] = owner["url"] if owner else page["url"]

    site["generated"] = generated
    site["merged"] = merged
    site["index_urls"] = index_urls
    site["nav"] = nav


def write_site(site: dict) -> list[str]:
    config = site["config"]
    destination = site["destination"]
    written = []
    for doc in site["documents"]:
        if not is_written(doc, config):
            continue
        listing = "".join(render_listing(site, page) for page in site["merged"].get(doc["output"], []))
        write_text(destination / doc["output"], build_document_page(doc, site, listing))
        written.append(doc["output"])

    for page in site["generated"]:
        if page["kind"] == "home":
            text = build_site_index(site)
        elif page["kind"] == "404":
            text = build_404(site)
        else:
            text = build_listing_page(site, page)
        write_text(destination / page["output"], text)
        written.append(page["output"])

    written.extend(copy_static(site["static_files"], site["source"], destination))

    if FEED_PLUGIN in config["plugins"]:
        if config["url"]:
            write_text(destination / config["feed"]["path"], build_feed(site))
            written.append(config["feed"]["path"])
        else:
            site["report"].warn("_config.yml", f"{FEED_PLUGIN} needs 'url' to be set; feed skipped")
    return written


def build_state(source: Path, config: dict, discovered: tuple[list[dict], list[Path]], options: dict) -> dict:
    documents, static_files = discovered
    return {
        "version": LOCK_VERSION,
        "generator_hash": hash_paths(list_files(PACKAGE_DIR), PACKAGE_DIR),
        "templates_hash": hash_paths(template_paths(source)),
        "config_hash": hash_config(config),
        "options": options,
        "sources": source_hashes([doc["file"] for doc in documents] + static_files, source),
    }


def build_site(
    source: Path,
    config: dict,
    report: BuildReport,
    lenient: Optional[bool] = None,
    drafts: bool = False,
    incremental: Optional[bool] = None,
) -> bool:
    if lenient is None:
        lenient = not config["strict_front_matter"]
    if incremental is None:
        incremental = config["incremental"]
    destination = resolve_destination(source, config)
    discovered = discover(source, config, destination)
    lock_path = source / LOCK_NAME
    state = build_state(source, config, discovered, {"lenient": lenient, "drafts": drafts})
    previous = load_lock(lock_path) if incremental else {}
    if incremental and destination.exists() and unchanged(previous, state):
        print("No changes detected. Build skipped.")
        return False

    site = load_site(source, config, report, lenient=lenient, drafts=drafts, discovered=discovered)
    if not incremental:
        clean_output_dir(destination, source)
    destination.mkdir(parents=True, exist_ok=True)
    written = write_site(site)
    if previous:
        remove_stale_outputs(destination, previous, written)

    state.update(
        {
            "built_at": dt.datetime.now().replace(microsecond=0).isoformat(),
            "errors": len(report.errors),
            "outputs": sorted(set(written)),
        }
    )
    write_lock(lock_path, state)
    return True
