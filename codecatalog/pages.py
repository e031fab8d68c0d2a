from __future__ import annotations

import datetime as dt
import html

from .content import language_slug, parse_timestamp
from .indexes import resolve_related, sort_articles
from .render import render_template, strip_tags
from .schema import ARTICLES
from .utils import format_timestamp, iso_date, join_url

SUMMARY_LENGTH = 200


def relative_url(config: dict, url: str) -> str:
    return f"{config['baseurl']}{url}"


def absolute_url(config: dict, url: str) -> str:
    return join_url(config["url"], relative_url(config, url))


def index_url(site: dict, collection: str, key: str) -> str:
    return site["index_urls"].get(collection, {}).get(key, "")


def link_or_text(config: dict, url: str, text: str) -> str:
    if not url:
        return html.escape(text)
    return f'<a href="{html.escape(relative_url(config, url))}">{html.escape(text)}</a>'


def build_nav(site: dict) -> str:
    config = site["config"]
    items = []
    for entry in site["nav"]:
        items.append(f"<li>{link_or_text(config, entry['url'], entry['label'])}</li>")
    return f'<ul class="nav-list">{"".join(items)}</ul>' if items else ""


def build_aux_links(config: dict) -> str:
    target = ' target="_blank" rel="noopener"' if config["aux_links_new_tab"] else ""
    links = []
    for label, value in config["aux_links"].items():
        urls = value if isinstance(value, list) else [value]
        for url in urls:
            if not url:
                continue
            links.append(f'<a class="aux-link" href="{html.escape(str(url))}"{target}>{html.escape(str(label))}</a>')
    return "".join(links)


def build_footer(config: dict, doc: dict | None = None) -> str:
    parts = []
    if config["back_to_top"]:
        parts.append(f'<p class="back-to-top"><a href="#top">{html.escape(config["back_to_top_text"])}</a></p>')
    if doc is not None and config["last_edit_timestamp"]:
        modified = parse_timestamp(doc["meta"].get("last_modified_date"))
        if modified is not None:
            stamp = format_timestamp(modified, config["last_edit_time_format"])
            parts.append(f'<p class="last-edit">Page last modified: {html.escape(stamp)}.</p>')
    if doc is not None and config["gh_edit_link"] and config["gh_edit_repository"]:
        url = "/".join(
            [
                config["gh_edit_repository"].rstrip("/"),
                config["gh_edit_view_mode"],
                config["gh_edit_branch"],
                doc["source"],
            ]
        )
        parts.append(
            f'<p class="edit-link"><a href="{html.escape(url)}">{html.escape(config["gh_edit_link_text"])}</a></p>'
        )
    if config["footer_content"]:
        parts.append(f'<div class="footer-content">{config["footer_content"]}</div>')
    return "\n".join(parts)


def render_notices(doc: dict) -> str:
    notices = []
    if doc["meta"].get("status") == "DRAFT":
        notices.append('<p class="notice notice-draft">Draft</p>')
    if doc["needs_review"]:
        notices.append(
            '<p class="notice notice-review">Some metadata on this page was filled in with defaults '
            "and needs review.</p>"
        )
    return "".join(notices)


def render_metadata(doc: dict, site: dict) -> str:
    config = site["config"]
    meta = doc["meta"]
    status = str(meta.get("status", ""))
    language = str(meta.get("language", ""))
    language_html = link_or_text(config, index_url(site, "languages", language_slug(language)), language)
    project = meta.get("project")
    if isinstance(project, dict):
        project_html = link_or_text(config, index_url(site, "projects", project["key"]), project["name"])
        if project.get("home-page"):
            project_html += f' (<a href="{html.escape(project["home-page"])}">home page</a>)'
    else:
        project_html = ""
    tags_html = " ".join(
        f'<span class="tag">{link_or_text(config, index_url(site, "tags", tag), tag)}</span>'
        for tag in meta.get("tags") or []
    )
    return render_template(
        site["templates"]["includes"]["article_metadata"],
        status=html.escape(status),
        status_class=html.escape(status.lower()),
        language=language_html,
        project=project_html,
        tags=tags_html,
        words=str(doc["rendered"]["words"]),
        citations=str(len(doc["rendered"]["citations"])),
    )


def render_related(doc: dict, site: dict) -> str:
    config = site["config"]
    items = []
    for target, ref in resolve_related(doc, site["by_id"], site["by_url"], config["url"], config["baseurl"]):
        if target is None:
            site["report"].warn(doc["source"], f"related article not found: {ref}")
            items.append(f'<li><span class="related-missing">{html.escape(ref)}</span></li>')
            continue
        items.append(f"<li>{link_or_text(config, target['url'], target['meta']['title'])}</li>")
    if not items:
        return ""
    return render_template(site["templates"]["includes"]["related_articles"], items="".join(items))


def render_article_list(docs: list[dict], site: dict) -> str:
    config = site["config"]
    if not docs:
        return '<p class="listing-empty">Nothing here yet.</p>'
    rows = []
    for doc in sort_articles(docs):
        meta = doc["meta"]
        badge = ' <span class="badge badge-draft">Draft</span>' if meta.get("status") == "DRAFT" else ""
        language = meta.get("language")
        language_html = f' <span class="article-language">{html.escape(str(language))}</span>' if language else ""
        rows.append(f"<li>{link_or_text(config, doc['url'], str(meta['title']))}{language_html}{badge}</li>")
    return f'<ul class="article-list">{"".join(rows)}</ul>'


def render_key_list(site: dict, collection: str, entries: list[tuple[str, str, int]]) -> str:
    config = site["config"]
    if not entries:
        return '<p class="listing-empty">Nothing here yet.</p>'
    rows = []
    for key, label, count in entries:
        link = link_or_text(config, index_url(site, collection, key), label)
        rows.append(f'<li>{link}<span class="count">{count}</span></li>')
    return f'<ul class="index-list">{"".join(rows)}</ul>'


def render_listing(site: dict, page: dict) -> str:
    indexes = site["indexes"]
    by_id = site["by_id"]
    kind = page["collection"]
    key = page.get("key")
    if key is None:
        if kind == "tags":
            entries = [(tag, tag, len(ids)) for tag, ids in indexes["tags"].items()]
            return render_key_list(site, kind, entries)
        if kind == "projects":
            entries = [(k, v["name"], len(v["articles"])) for k, v in indexes["projects"].items()]
            return render_key_list(site, kind, entries)
        if kind == "languages":
            entries = [(k, v["name"], len(v["articles"])) for k, v in indexes["languages"].items()]
            return render_key_list(site, kind, entries)
        if kind == ARTICLES:
            return render_article_list(site["articles"], site)
        docs = [doc for doc in site["documents"] if doc["collection"] == kind]
        return render_article_list(docs, site)

    if kind == "tags":
        ids = indexes["tags"].get(key, [])
        intro = ""
    elif kind == "projects":
        entry = indexes["projects"].get(key, {"articles": [], "home-page": ""})
        ids = entry["articles"]
        home = entry["home-page"]
        intro = f'<p class="project-home"><a href="{html.escape(home)}">{html.escape(home)}</a></p>' if home else ""
    else:
        ids = indexes["languages"].get(key, {"articles": []})["articles"]
        intro = ""
    docs = [by_id[item] for item in ids if item in by_id]
    return f'{intro}<div class="listing">{render_article_list(docs, site)}</div>'


def render_page(
    site: dict,
    title: str,
    content: str,
    doc: dict | None = None,
    layout: str = "default",
    **parts: str,
) -> str:
    templates = site["templates"]
    config = site["config"]
    layout_template = templates["layouts"].get(layout) or templates["layouts"]["default"]
    inner = render_template(
        layout_template,
        page_title=html.escape(title),
        notices=parts.get("notices", ""),
        metadata=parts.get("metadata", ""),
        toc=parts.get("toc", ""),
        listing=parts.get("listing", ""),
        related=parts.get("related", ""),
        content=content,
    )
    page_title = title if title == config["title"] else f"{title} | {config['title']}"
    return render_template(
        templates["base"],
        title=html.escape(page_title),
        site_name=html.escape(config["title"]),
        home_url=html.escape(relative_url(config, "/")),
        aux_links=build_aux_links(config),
        extra_head=parts.get("extra_head", ""),
        footer=build_footer(config, doc),
        nav=build_nav(site),
        content=inner,
    )


def build_document_page(doc: dict, site: dict, listing: str = "") -> str:
    meta = doc["meta"]
    layout = str(meta.get("layout") or "default")
    if layout not in site["templates"]["layouts"]:
        site["report"].warn(doc["source"], f"unknown layout '{layout}', using default")
        layout = "default"
    is_article = doc["collection"] == ARTICLES
    return render_page(
        site,
        str(meta["title"]),
        doc["rendered"]["html"],
        doc=doc,
        layout=layout,
        notices=render_notices(doc),
        metadata=render_metadata(doc, site) if is_article else "",
        related=render_related(doc, site) if is_article else "",
        toc=doc["rendered"]["toc"],
        listing=listing,
    )


def build_listing_page(site: dict, page: dict) -> str:
    return render_page(site, page["title"], "", listing=render_listing(site, page))


def build_site_index(site: dict) -> str:
    config = site["config"]
    intro = f'<p class="site-description">{html.escape(config["description"])}</p>' if config["description"] else ""
    return render_page(site, config["title"], intro, listing=render_article_list(site["articles"], site))


def build_404(site: dict) -> str:
    config = site["config"]
    content = (
        "<p>Page not found. The page you requested does not exist.</p>"
        f'<p><a href="{html.escape(relative_url(config, "/"))}">Back to home</a></p>'
    )
    return render_page(site, "404", content)


def summarize(doc: dict) -> str:
    summary = doc["meta"].get("description")
    if isinstance(summary, str) and summary.strip():
        return summary.strip()
    text = " ".join(strip_tags(doc["rendered"]["html"]).split())
    return text[:SUMMARY_LENGTH] + ("..." if len(text) > SUMMARY_LENGTH else "")


def build_feed(site: dict, now: dt.datetime | None = None) -> str:
    config = site["config"]
    now = now or dt.datetime.now(dt.timezone.utc)
    published = [doc for doc in site["articles"] if doc["meta"].get("status") == "PUBLISHED"]

    def modified(doc: dict) -> dt.datetime:
        value = parse_timestamp(doc["meta"].get("last_modified_date"))
        if value is None:
            return dt.datetime.min.replace(tzinfo=dt.timezone.utc)
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return value

    published.sort(key=lambda doc: (modified(doc), doc["path"]), reverse=True)
    entries_docs = published[: config["feed"]["posts_limit"]]
    updated = modified(entries_docs[0]) if entries_docs else now
    if updated.year == 1:
        updated = now
    feed_url = absolute_url(config, "/" + config["feed"]["path"])
    entries = []
    for doc in entries_docs:
        link = absolute_url(config, doc["url"])
        entry_updated = modified(doc)
        if entry_updated.year == 1:
            entry_updated = updated
        categories = "".join(f'<category term="{html.escape(tag)}" />' for tag in doc["meta"].get("tags") or [])
        entries.append(
            "\n".join(
                [
                    "<entry>",
                    f"<title>{html.escape(str(doc['meta']['title']))}</title>",
                    f'<link href="{html.escape(link)}" />',
                    f"<id>{html.escape(link)}</id>",
                    f"<updated>{iso_date(entry_updated)}</updated>",
                    f"<summary>{html.escape(summarize(doc))}</summary>",
                    categories,
                    "</entry>",
                ]
            )
        )
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            f"<title>{html.escape(config['title'])}</title>",
            f"<subtitle>{html.escape(config['description'])}</subtitle>",
            f"<id>{html.escape(absolute_url(config, '/'))}</id>",
            f"<updated>{iso_date(updated)}</updated>",
            f'<link href="{html.escape(feed_url)}" rel="self" />',
            f'<link href="{html.escape(absolute_url(config, "/"))}" />',
            "\n".join(entries),
            "</feed>",
        ]
    )
