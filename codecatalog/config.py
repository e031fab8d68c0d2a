from __future__ import annotations

import copy
import json
import tomllib
from pathlib import Path

import yaml

from .errors import ConfigError
from .utils import parse_bool, parse_int

DEFAULT_PERMALINK = "/:collection/:path/"
PAGE_PERMALINK = "/:path:output_ext"
SUPPORTED_PLUGINS = ("jekyll-feed",)

DEFAULT_EXCLUDE = [
    ".sass-cache/",
    ".jekyll-cache/",
    "gemfiles/",
    "Gemfile",
    "Gemfile.lock",
    "node_modules/",
    "vendor/bundle/",
    "vendor/cache/",
    "vendor/gems/",
    "vendor/ruby/",
]

DEFAULT_CONFIG = {
    "title": "Code Catalog",
    "description": "",
    "url": "",
    "baseurl": "",
    "source": ".",
    "destination": "_site",
    "collections": {},
    "exclude": [],
    "include": [],
    "plugins": [],
    "feed": {"path": "feed.xml", "posts_limit": 10},
    "just_the_docs": {"collections": {}},
    "back_to_top": False,
    "back_to_top_text": "Back to top",
    "footer_content": "",
    "last_edit_timestamp": False,
    "last_edit_time_format": "%b %e %Y at %I:%M %p",
    "gh_edit_link": False,
    "gh_edit_link_text": "Edit this page on GitHub.",
    "gh_edit_repository": "",
    "gh_edit_branch": "main",
    "gh_edit_view_mode": "tree",
    "aux_links": {},
    "aux_links_new_tab": False,
    "strict_front_matter": True,
    "incremental": False,
}


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    if suffix == ".toml":
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a mapping: {path}")
    return data


def merge_config(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_site_config(paths: list[Path], overrides: dict | None = None) -> dict:
    config = copy.deepcopy(DEFAULT_CONFIG)
    for path in paths:
        config = merge_config(config, load_config(path))
    if overrides:
        config = merge_config(config, {k: v for k, v in overrides.items() if v is not None})
    return normalize_config(config)


def _string_list(config: dict, key: str) -> list[str]:
    value = config.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return list(value)


def normalize_collections(value: object) -> dict:
    if value is None:
        return {}
    if isinstance(value, list):
        value = {name: {} for name in value}
    if not isinstance(value, dict):
        raise ConfigError("'collections' must be a mapping or a list of names")
    collections = {}
    for name, settings in value.items():
        if settings is None:
            settings = {}
        if not isinstance(settings, dict):
            raise ConfigError(f"collections.{name} must be a mapping")
        permalink = settings.get("permalink", DEFAULT_PERMALINK)
        if not isinstance(permalink, str) or not permalink.strip():
            raise ConfigError(f"collections.{name}.permalink must be a string")
        collections[str(name)] = {
            **settings,
            "permalink": permalink.strip(),
            "output": parse_bool(settings.get("output", False)),
        }
    return collections


def check_permalink_templates(collections: dict) -> None:
    seen: dict[str, str] = {}
    for name, settings in collections.items():
        template = settings["permalink"]
        if ":collection" in template or not settings["output"]:
            continue
        if template in seen:
            raise ConfigError(
                f"collections.{name}.permalink collides with collections.{seen[template]}.permalink: {template}"
            )
        seen[template] = name


def normalize_config(config: dict) -> dict:
    for key in ("title", "description", "url", "baseurl", "source", "destination", "footer_content"):
        value = config.get(key)
        if value is None:
            config[key] = ""
        elif not isinstance(value, (str, int, float)):
            raise ConfigError(f"'{key}' must be a string")
        else:
            config[key] = str(value)
    config["url"] = config["url"].rstrip("/")
    baseurl = config["baseurl"].strip().rstrip("/")
    if baseurl and not baseurl.startswith("/"):
        baseurl = "/" + baseurl
    config["baseurl"] = baseurl

    config["collections"] = normalize_collections(config.get("collections"))
    check_permalink_templates(config["collections"])
    config["exclude"] = DEFAULT_EXCLUDE + [item for item in _string_list(config, "exclude") if item not in DEFAULT_EXCLUDE]
    config["include"] = _string_list(config, "include")
    config["plugins"] = _string_list(config, "plugins")

    feed = config.get("feed") or {}
    if not isinstance(feed, dict):
        raise ConfigError("'feed' must be a mapping")
    config["feed"] = {
        "path": str(feed.get("path") or "feed.xml").lstrip("/"),
        "posts_limit": max(1, parse_int(feed.get("posts_limit"), 10)),
    }

    theme = config.get("just_the_docs") or {}
    if not isinstance(theme, dict):
        raise ConfigError("'just_the_docs' must be a mapping")
    theme_collections = theme.get("collections") or {}
    if not isinstance(theme_collections, dict):
        raise ConfigError("'just_the_docs.collections' must be a mapping")
    config["just_the_docs"] = {**theme, "collections": theme_collections}

    aux_links = config.get("aux_links") or {}
    if not isinstance(aux_links, dict):
        raise ConfigError("'aux_links' must be a mapping")
    config["aux_links"] = aux_links

    for key in ("back_to_top", "last_edit_timestamp", "gh_edit_link", "aux_links_new_tab", "incremental"):
        config[key] = parse_bool(config.get(key))
    config["strict_front_matter"] = parse_bool(config.get("strict_front_matter", True))
    return config


def collection_settings(config: dict, name: str) -> dict:
    settings = config["collections"].get(name)
    if settings is None:
        return {}
    theme = config["just_the_docs"]["collections"].get(name) or {}
    return {
        "name": name,
        "permalink": settings["permalink"],
        "output": settings["output"],
        "label": str(theme.get("name") or name.replace("_", " ").title()),
        "nav_exclude": parse_bool(theme.get("nav_exclude", False)),
        "search_exclude": parse_bool(theme.get("search_exclude", False)),
    }


def unsupported_plugins(config: dict) -> list[str]:
    return [name for name in config["plugins"] if name not in SUPPORTED_PLUGINS]


def split_config_arg(value: str) -> list[Path]:
    return [Path(item.strip()) for item in value.split(",") if item.strip()]
