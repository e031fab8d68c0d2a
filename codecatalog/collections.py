from __future__ import annotations

from pathlib import Path
from typing import Optional

from .content import FRONT_MATTER_DELIM
from .errors import PermalinkCollisionError
from .permalink import resolve_permalink, url_to_output_path
from .utils import matches_any

CONTENT_SUFFIXES = {".md", ".markdown"}


def collection_dir(source: Path, name: str) -> Path:
    return source / f"_{name}"


def is_excluded(rel: str, config: dict) -> bool:
    if matches_any(rel, config["include"]):
        return False
    for part in rel.split("/"):
        if part.startswith((".", "_", "#")) or part.endswith("~"):
            return True
    return matches_any(rel, config["exclude"])


def has_front_matter(path: Path) -> bool:
    with path.open("r", encoding="utf-8", errors="replace") as handle:
        first = handle.readline()
    return first.lstrip("\ufeff").strip() == FRONT_MATTER_DELIM


def new_document(file: Path, source: str, collection: Optional[str], path: str) -> dict:
    return {
        "file": file,
        "source": source,
        "collection": collection,
        "path": path,
        "meta": None,
        "body": "",
        "url": None,
        "output": None,
        "needs_review": False,
    }


def _sorted_files(root: Path) -> list[Path]:
    return sorted((p for p in root.rglob("*") if p.is_file()), key=lambda p: p.as_posix())


def discover(source: Path, config: dict, destination: Optional[Path] = None) -> tuple[list[dict], list[Path]]:
    documents = []
    for name in config["collections"]:
        root = collection_dir(source, name)
        if not root.is_dir():
            continue
        for file in _sorted_files(root):
            if file.suffix.lower() not in CONTENT_SUFFIXES:
                continue
            rel = file.relative_to(source).as_posix()
            inner = file.relative_to(root).with_suffix("").as_posix()
            if any(part.startswith(".") for part in inner.split("/")):
                continue
            if matches_any(rel, config["exclude"]) and not matches_any(rel, config["include"]):
                continue
            documents.append(new_document(file, rel, name, inner))

    static_files = []
    dest_resolved = destination.resolve() if destination is not None else None
    for file in _sorted_files(source):
        if dest_resolved is not None and file.resolve().is_relative_to(dest_resolved):
            continue
        rel = file.relative_to(source).as_posix()
        if is_excluded(rel, config):
            continue
        if file.suffix.lower() in CONTENT_SUFFIXES and has_front_matter(file):
            documents.append(new_document(file, rel, None, file.relative_to(source).with_suffix("").as_posix()))
        else:
            static_files.append(file)
    return documents, static_files


def assign_permalinks(documents: list[dict], config: dict) -> dict[str, str]:
    claimed: dict[str, str] = {}
    for doc in documents:
        template = None
        if doc["collection"] is not None:
            template = config["collections"][doc["collection"]]["permalink"]
        doc["url"] = resolve_permalink(template, doc["collection"], doc["path"], doc["meta"])
        doc["output"] = url_to_output_path(doc["url"])
        claim(claimed, doc["output"], doc["url"], doc["source"])
    return claimed


def claim(claimed: dict[str, str], output: str, url: str, source: str) -> None:
    previous = claimed.get(output)
    if previous is not None and previous != source:
        raise PermalinkCollisionError(url, [previous, source])
    claimed[output] = source


def is_written(doc: dict, config: dict) -> bool:
    if doc["collection"] is None:
        return True
    return config["collections"][doc["collection"]]["output"]
