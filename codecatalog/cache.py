from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Optional

LOCK_NAME = ".catalog-metadata.json"
LOCK_VERSION = 1


def list_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return [path for path in root.rglob("*") if path.is_file() and "__pycache__" not in path.parts]


def hash_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    return hash_bytes(text.encode("utf-8"))


def hash_file(path: Path) -> str:
    return hash_bytes(path.read_bytes())


def hash_paths(paths: list[Path], base: Optional[Path] = None) -> str:
    digest = hashlib.sha256()
    for path in sorted(paths, key=lambda p: p.as_posix()):
        rel = path
        if base is not None:
            try:
                rel = path.relative_to(base)
            except ValueError:
                rel = path
        digest.update(rel.as_posix().encode("utf-8"))
        digest.update(b"\0")
        digest.update(path.read_bytes())
        digest.update(b"\0")
    return digest.hexdigest()


def hash_config(config: dict) -> str:
    return hash_text(json.dumps(config, sort_keys=True, default=str))


def source_hashes(paths: list[Path], source: Path) -> dict[str, str]:
    return {path.relative_to(source).as_posix(): hash_file(path) for path in sorted(paths)}


def load_lock(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def write_lock(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=True), encoding="utf-8")


def unchanged(previous: dict, current: dict) -> bool:
    if not previous or previous.get("version") != LOCK_VERSION:
        return False
    if previous.get("errors"):
        return False
    keys = ("generator_hash", "templates_hash", "config_hash", "options", "sources")
    return all(previous.get(key) == current.get(key) for key in keys)


def remove_stale_outputs(output_dir: Path, previous: dict, written: list[str]) -> list[str]:
    keep = set(written)
    removed = []
    for rel in previous.get("outputs", []):
        if rel in keep:
            continue
        path = output_dir / rel
        if not path.resolve().is_relative_to(output_dir.resolve()):
            continue
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        removed.append(rel)
    return removed
