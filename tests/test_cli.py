import json

from codecatalog.cli import main
from codecatalog.content import parse_front_matter
from codecatalog.schema import validate_front_matter


def test_build_exit_code_is_zero_for_valid_site(site_tree, capsys):
    site_tree.article("foo-bar")

    status = main(["build", "--source", str(site_tree.root)])

    out = capsys.readouterr().out
    assert status == 0
    assert "Build completed in" in out
    assert "Site generated in:" in out
    assert (site_tree.root / "_site/articles/foo-bar/index.html").exists()


def test_build_exit_code_is_non_zero_when_a_file_fails(site_tree, capsys):
    site_tree.article("foo-bar")
    site_tree.article("broken", status="WIP")

    status = main(["build", "--source", str(site_tree.root)])

    err = capsys.readouterr().err
    assert status == 1
    assert "error: _articles/broken.md: 'status' must be 'DRAFT' or 'PUBLISHED', got 'WIP'" in err
    assert (site_tree.root / "_site/articles/foo-bar/index.html").exists()


def test_lenient_flag_turns_errors_into_warnings(site_tree, capsys):
    site_tree.article("broken", status="WIP")

    status = main(["build", "--source", str(site_tree.root), "--lenient"])

    err = capsys.readouterr().err
    assert status == 0
    assert "warning: _articles/broken.md:" in err
    assert "review: _articles/broken.md:" in err


def test_permalink_collision_exits_with_fatal_message(site_tree, capsys):
    site_tree.article("one", extra="permalink: /same/\n")
    site_tree.article("two", key="bar", name="Bar", extra="permalink: /same/\n")

    status = main(["build", "--source", str(site_tree.root)])

    assert status == 1
    assert "fatal: Permalink collision at /same/" in capsys.readouterr().err


def test_missing_explicit_config_is_an_error(site_tree, capsys):
    status = main(["build", "--source", str(site_tree.root), "--config", "nope.yml"])

    assert status == 1
    assert "Config file not found" in capsys.readouterr().err


def test_destination_override(site_tree, tmp_path):
    site_tree.article("foo-bar")
    destination = site_tree.root / "public"

    status = main(["build", "--source", str(site_tree.root), "--destination", str(destination)])

    assert status == 0
    assert (destination / "articles/foo-bar/index.html").exists()


def test_check_prints_indexes(site_tree, capsys):
    site_tree.article("foo-bar")

    status = main(["check", "--source", str(site_tree.root), "--json"])

    captured = capsys.readouterr()
    assert status == 0
    indexes = json.loads(captured.out)
    assert indexes["tags"] == {"a": ["foo-bar"], "b": ["foo-bar"]}
    assert "Checked 1 document(s)" in captured.err
    assert not (site_tree.root / "_site").exists()


def test_check_flags_project_conflicts(site_tree, capsys):
    site_tree.article("one", name="Foo")
    site_tree.article("two", name="Other Foo")

    status = main(["check", "--source", str(site_tree.root)])

    assert status == 1
    assert "error: _articles/two.md: project.key 'foo'" in capsys.readouterr().err


def test_new_creates_a_valid_draft(site_tree, capsys):
    args = [
        "new",
        "Foo - Bar",
        "--source",
        str(site_tree.root),
        "--language",
        "Go",
        "--project-name",
        "Foo",
        "--project-key",
        "foo",
        "--home-page",
        "https://github.com/x/foo",
        "--tag",
        "Concurrency",
    ]

    assert main(args) == 0
    path = site_tree.root / "_articles/foo-bar.md"
    meta, body = parse_front_matter(path.read_text(encoding="utf-8"))
    assert meta["title"] == "Foo - Bar [Go]"
    assert meta["status"] == "DRAFT"
    assert meta["tags"] == ["concurrency"]
    assert validate_front_matter(meta, "articles", body) == []
    meta["status"] = "PUBLISHED"
    problems = validate_front_matter(meta, "articles", body)
    assert problems == [
        "published article has placeholder or missing sections: "
        "Context, Problem, Overview, Implementation details, Testing, References"
    ]

    assert main(args) == 1
    assert "Refusing to overwrite" in capsys.readouterr().err


def test_new_rejects_bad_project_key(site_tree, capsys):
    status = main(
        [
            "new",
            "Foo",
            "--source",
            str(site_tree.root),
            "--language",
            "Go",
            "--project-name",
            "Foo",
            "--project-key",
            "Foo_Key",
            "--home-page",
            "https://github.com/x/foo",
        ]
    )

    assert status == 1
    assert "project.key" in capsys.readouterr().err
    assert not (site_tree.root / "_articles").exists()
