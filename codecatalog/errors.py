from __future__ import annotations

import sys


class CatalogError(Exception):
    """Base class for every error raised by codecatalog."""


class ConfigError(CatalogError):
    pass


class FrontMatterSyntaxError(CatalogError):
    pass


class PermalinkError(CatalogError):
    pass


class PermalinkCollisionError(CatalogError):
    def __init__(self, url: str, sources: list[str]):
        self.url = url
        self.sources = sources
        joined = ", ".join(sources)
        super().__init__(f"Permalink collision at {url}: {joined}")


class BuildReport:
    """Per-file diagnostics collected during a build.

    Messages are printed as they are recorded; the lists are kept so the
    caller can decide on an exit status and tests can inspect them.
    """

    def __init__(self, quiet: bool = False):
        self.quiet = quiet
        self.errors: list[tuple[str, str]] = []
        self.warnings: list[tuple[str, str]] = []
        self.review: list[str] = []

    def error(self, source: str, message: str) -> None:
        self.errors.append((source, message))
        self._emit("error", source, message)

    def warn(self, source: str, message: str) -> None:
        self.warnings.append((source, message))
        self._emit("warning", source, message)

    def flag_review(self, source: str) -> None:
        if source in self.review:
            return
        self.review.append(source)
        self._emit("review", source, "fell back to defaults, needs manual review")

    def failed_sources(self) -> set[str]:
        return {source for source, _ in self.errors}

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        parts = [f"{len(self.errors)} error(s)", f"{len(self.warnings)} warning(s)"]
        if self.review:
            parts.append(f"{len(self.review)} page(s) need review")
        return ", ".join(parts)

    def _emit(self, level: str, source: str, message: str) -> None:
        if self.quiet:
            return
        print(f"{level}: {source}: {message}", file=sys.stderr)
