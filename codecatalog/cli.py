from __future__ import annotations

import argparse
import functools
import json
import sys
import time
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from .builder import build_site, load_site, resolve_destination
from .config import load_site_config, split_config_arg
from .errors import BuildReport, CatalogError, PermalinkCollisionError
from .scaffold import create_article

DEFAULT_CONFIG = "_config.yml"


def add_site_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--source", "-s", default=".", help="Site source directory.")
    parser.add_argument(
        "--config",
        default=None,
        help=f"Comma-separated config files (YAML/TOML/JSON), relative to the source. Default: {DEFAULT_CONFIG}.",
    )
    parser.add_argument(
        "--lenient",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Fall back to defaults for malformed front matter instead of skipping the file.",
    )
    parser.add_argument("--drafts", action="store_true", help="Render and index DRAFT articles.")


def add_build_options(parser: argparse.ArgumentParser) -> None:
    add_site_options(parser)
    parser.add_argument("--destination", "-d", default=None, help="Output directory for the site.")
    parser.add_argument(
        "--incremental",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Skip the build when nothing changed since the last one.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="code-catalog", description="Code Catalog static site builder.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Build the site.")
    add_build_options(build)

    serve = subparsers.add_parser("serve", help="Build the site and serve it locally.")
    add_build_options(serve)
    serve.add_argument("--host", default="127.0.0.1", help="Host to bind.")
    serve.add_argument("--port", default=4000, type=int, help="Port to bind.")

    check = subparsers.add_parser("check", help="Validate content without writing output.")
    add_site_options(check)
    check.add_argument("--json", action="store_true", help="Print the tag/project/language indexes as JSON.")

    new = subparsers.add_parser("new", help="Create a new DRAFT article from the template.")
    new.add_argument("title", help='Article title, e.g. "Foo - Bar".')
    new.add_argument("--source", "-s", default=".", help="Site source directory.")
    new.add_argument("--language", required=True, help="Programming language discussed.")
    new.add_argument("--project-name", required=True, help="Project name.")
    new.add_argument("--project-key", required=True, help="Project key ([a-z0-9-]+).")
    new.add_argument("--home-page", required=True, help="Project home page URL.")
    new.add_argument("--tag", action="append", default=[], help="Tag (repeatable).")
    return parser


def load_args_config(args: argparse.Namespace) -> tuple[Path, dict]:
    source = Path(args.source)
    if not source.is_dir():
        raise CatalogError(f"Source directory not found: {source}")
    config_paths = split_config_arg(args.config) if args.config else [Path(DEFAULT_CONFIG)]
    config_paths = [path if path.is_absolute() else source / path for path in config_paths]
    for path in config_paths:
        if args.config and not path.exists():
            raise CatalogError(f"Config file not found: {path}")
    destination = getattr(args, "destination", None)
    overrides = {"destination": str(Path(destination).resolve()) if destination else None}
    return source, load_site_config(config_paths, overrides)


def run_build(args: argparse.Namespace) -> tuple[int, Path]:
    source, config = load_args_config(args)
    report = BuildReport()
    start = time.perf_counter()
    built = build_site(source, config, report, lenient=args.lenient, drafts=args.drafts, incremental=args.incremental)
    elapsed = time.perf_counter() - start
    destination = resolve_destination(source, config)
    print(f"Build completed in {elapsed:.2f}s.")
    if built:
        print(f"Site generated in: {destination}")
    if report.errors or report.warnings or report.review:
        print(report.summary(), file=sys.stderr)
    return (0 if report.ok else 1), destination


def run_serve(args: argparse.Namespace) -> int:
    status, destination = run_build(args)
    handler = functools.partial(SimpleHTTPRequestHandler, directory=str(destination))
    with ThreadingHTTPServer((args.host, args.port), handler) as server:
        print(f"Serving {destination} at http://{args.host}:{args.port}/ (Ctrl+C to stop)")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            print("Server stopped.")
    return status


def run_check(args: argparse.Namespace) -> int:
    source, config = load_args_config(args)
    report = BuildReport()
    site = load_site(source, config, report, lenient=args.lenient, drafts=args.drafts)
    if args.json:
        print(json.dumps(site["indexes"], indent=2, ensure_ascii=False))
    print(f"Checked {len(site['documents'])} document(s): {report.summary()}.", file=sys.stderr)
    return 0 if report.ok else 1


def run_new(args: argparse.Namespace) -> int:
    path = create_article(
        Path(args.source),
        args.title,
        args.language,
        args.project_name,
        args.project_key,
        args.home_page,
        args.tag,
    )
    print(f"Created {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    commands = {
        "build": lambda: run_build(args)[0],
        "serve": lambda: run_serve(args),
        "check": lambda: run_check(args),
        "new": lambda: run_new(args),
    }
    try:
        return commands[args.command]()
    except PermalinkCollisionError as exc:
        print(f"fatal: {exc}", file=sys.stderr)
        return 1
    except CatalogError as exc:
        print(str(exc), file=sys.stderr)
        return 1
