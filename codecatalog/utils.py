from __future__ import annotations

import datetime as dt
import fnmatch
import re
import shutil
from pathlib import Path

from .errors import CatalogError

STRFTIME_DAY_RE = re.compile(r"%[%e]")


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def iso_date(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_timestamp(value: dt.datetime, fmt: str) -> str:
    # expand %e (space-padded day) before strftime
    fmt = STRFTIME_DAY_RE.sub(lambda match: "%%" if match.group(0) == "%%" else f"{value.day:2d}", fmt)
    return value.strftime(fmt)


def matches_any(rel_path: str, patterns: list[str]) -> bool:
    parts = rel_path.split("/")
    for pattern in patterns:
        if pattern.endswith("/"):
            prefix = pattern.rstrip("/")
            for depth in range(1, len(parts)):
                if fnmatch.fnmatch("/".join(parts[:depth]), prefix):
                    return True
            continue
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        if any(fnmatch.fnmatch("/".join(parts[:depth]), pattern) for depth in range(1, len(parts))):
            return True
    return False


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise CatalogError("Refusing to clean project root.")
    if not output_resolved.is_relative_to(root_resolved):
        raise CatalogError("Refusing to clean output directory outside project root.")
    shutil.rmtree(output_dir)
