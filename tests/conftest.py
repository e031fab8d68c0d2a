import sys
import textwrap
from pathlib import Path

import pytest

# Allow tests to import the package from the repository root without installation
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from codecatalog.config import load_site_config  # noqa: E402

CONFIG_YML = """\
title: Code Catalog
url: https://catalog.example.org
plugins:
  - jekyll-feed
collections:
  articles:
    permalink: "/:collection/:path/"
    output: true
  projects:
    permalink: "/:collection/:path/"
    output: true
  languages:
    permalink: "/:collection/:path/"
    output: true
  tags:
    permalink: "/:collection/:path/"
    output: true
just_the_docs:
  collections:
    articles:
      name: Articles
    languages:
      name: By Language
    projects:
      name: By Project
    tags:
      name: By Tag
back_to_top: true
back_to_top_text: "Back to top"
footer_content: "Copyright &copy; Code Catalog"
last_edit_timestamp: true
gh_edit_link: true
gh_edit_repository: "https://github.com/example/catalog"
aux_links:
  "Code Catalog on GitHub":
    - "//github.com/example/catalog"
"""

FILLED_SECTIONS = """\
## Context

Foo is a library for bars.

## Problem

Bars need to be foo'd quickly.

## Overview

The [`Foo.bar`](https://github.com/x/foo/blob/main/foo/bar.go#L10-L20) function does it.

## Implementation details

It uses a loop.

## Testing

There are [unit tests](https://github.com/x/foo/blob/main/foo/bar_test.go#L5).

## References

- [Foo on GitHub](https://github.com/x/foo)
"""


def article_text(
    title="Foo - Bar [Go]",
    status="PUBLISHED",
    layout="default",
    language="Go",
    name="Foo",
    key="foo",
    home_page="https://github.com/x/foo",
    tags=("a", "b"),
    extra="",
    body=FILLED_SECTIONS,
):
    tag_list = ", ".join(tags)
    return (
        "---\n"
        f'title: "{title}"\n'
        f"layout: {layout}\n"
        f"status: {status}\n"
        f"language: {language}\n"
        "project:\n"
        f"  name: {name}\n"
        f"  key: {key}\n"
        f'  home-page: "{home_page}"\n'
        f"tags: [{tag_list}]\n"
        f"{extra}"
        "---\n"
        f"{body}"
    )


class SiteTree:
    def __init__(self, root: Path):
        self.root = root

    def write(self, rel: str, text: str) -> Path:
        path = self.root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text) if text.startswith("\n") else text, encoding="utf-8")
        return path

    def article(self, slug: str, **kwargs) -> Path:
        return self.write(f"_articles/{slug}.md", article_text(**kwargs))

    def config(self, **overrides) -> dict:
        return load_site_config([self.root / "_config.yml"], overrides)

    def output(self, rel: str) -> str:
        return (self.root / "_site" / rel).read_text(encoding="utf-8")


@pytest.fixture
def site_tree(tmp_path):
    tree = SiteTree(tmp_path)
    tree.write("_config.yml", CONFIG_YML)
    return tree
