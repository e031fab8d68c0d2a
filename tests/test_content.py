import datetime as dt

import pytest

from codecatalog.content import (
    extract_sections,
    extract_title,
    is_placeholder,
    language_slug,
    missing_sections,
    parse_front_matter,
    parse_timestamp,
    serialize_document,
    split_title,
)
from codecatalog.errors import FrontMatterSyntaxError

from conftest import FILLED_SECTIONS, article_text


def test_parse_front_matter_reads_nested_project():
    meta, body = parse_front_matter(article_text())

    assert meta["title"] == "Foo - Bar [Go]"
    assert meta["status"] == "PUBLISHED"
    assert meta["project"] == {"name": "Foo", "key": "foo", "home-page": "https://github.com/x/foo"}
    assert meta["tags"] == ["a", "b"]
    assert body.startswith("## Context")


def test_parse_front_matter_without_block_returns_none():
    meta, body = parse_front_matter("# Just a heading\n\nText.")

    assert meta is None
    assert body.startswith("# Just a heading")


def test_parse_front_matter_unclosed_block_is_not_front_matter():
    meta, _ = parse_front_matter("---\ntitle: x\nno closing line")

    assert meta is None


def test_parse_front_matter_empty_block_is_empty_mapping():
    meta, body = parse_front_matter("---\n---\nbody")

    assert meta == {}
    assert body == "body"


def test_parse_front_matter_ignores_bom():
    meta, _ = parse_front_matter("\ufeff---\ntitle: Hello\n---\n")

    assert meta == {"title": "Hello"}


@pytest.mark.parametrize("text", ["---\ntitle: [unclosed\n---\n", "---\n- a\n- b\n---\n"])
def test_parse_front_matter_rejects_bad_yaml(text):
    with pytest.raises(FrontMatterSyntaxError):
        parse_front_matter(text)


def test_front_matter_round_trip_is_idempotent():
    meta, body = parse_front_matter(
        article_text(extra="nav_order: 3\nlast_modified_date: 2021-05-30T10:00:00\nrelated: [baz]\n")
    )

    again, again_body = parse_front_matter(serialize_document(meta, body))

    assert again == meta
    assert again_body == body
    assert isinstance(again["last_modified_date"], dt.datetime)


def test_extract_title_prefers_front_matter_then_heading():
    assert extract_title({"title": " Given "}, "# Other") == "Given"
    assert extract_title({}, "\n# From Heading\n\ntext") == "From Heading"
    assert extract_title({}, "text first\n# Late", fallback="stem") == "stem"


def test_split_title_separates_language_suffix():
    assert split_title("Foo - Bar [Go]") == ("Foo - Bar", "Go")
    assert split_title("Plain title") == ("Plain title", "")


def test_extract_sections_skips_headings_in_fences():
    body = "## Context\n\nreal\n\n```\n## Not a heading\n```\n\n## Problem\n\nissue\n"

    sections = extract_sections(body)

    assert list(sections) == ["context", "problem"]
    assert "## Not a heading" in sections["context"]
    assert sections["problem"] == "issue"


@pytest.mark.parametrize(
    "text",
    ["", "TODO", "  tbd.  ", "...", "<!-- fill me -->", "- TODO\n- TBD", "_Write the context here._", "[placeholder]"],
)
def test_is_placeholder_detects_markers(text):
    assert is_placeholder(text)


@pytest.mark.parametrize("text", ["Real prose.", "TODO: but also\nsome content here", "[Foo](https://x)"])
def test_is_placeholder_accepts_real_content(text):
    assert not is_placeholder(text)


def test_missing_sections_lists_placeholders_and_absent_sections():
    body = FILLED_SECTIONS.replace("It uses a loop.", "TODO").replace("## References", "## Links")

    assert missing_sections(body) == ["Implementation details", "References"]
    assert missing_sections(FILLED_SECTIONS) == []


def test_language_slug_keeps_cpp_and_csharp_apart():
    assert language_slug("C++") == "cpp"
    assert language_slug("C#") == "csharp"
    assert language_slug("C") == "c"
    assert language_slug("Go") == "go"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2021-05-30 12:34:56 -0700", dt.datetime(2021, 5, 30, 12, 34, 56, tzinfo=dt.timezone(dt.timedelta(hours=-7)))),
        ("2021-05-30", dt.datetime(2021, 5, 30)),
        (dt.date(2021, 5, 30), dt.datetime(2021, 5, 30)),
        ("yesterday", None),
        (42, None),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected
