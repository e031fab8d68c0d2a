from __future__ import annotations

import xml.etree.ElementTree as etree

from markdown.extensions import Extension
from markdown.inlinepatterns import InlineProcessor
from pygments.lexers import get_lexer_for_filename
from pygments.util import ClassNotFound

RE_CODE_CITATION = (
    r"\[(?P<text>[^\]]+)\]\("
    r"(?P<url>https?://github\.com/(?P<repo>[^/\s)]+/[^/\s)]+)/blob/(?P<ref>[^/\s)]+)/(?P<path>[^#\s)]+)"
    r"(?:#L(?P<start>\d+)(?:-L(?P<end>\d+))?)?)"
    r"\)"
)


def get_lang(file_path: str) -> str:
    try:
        lexer = get_lexer_for_filename(file_path)
    except ClassNotFound:
        return "text"
    return lexer.aliases[0] if lexer.aliases else lexer.name.lower()


class CodeCitationProcessor(InlineProcessor):
    def __init__(self, pattern, md, citations: list[dict]):
        super().__init__(pattern, md)
        self.citations = citations

    def handleMatch(self, m, data):
        path = m.group("path")
        start = m.group("start")
        end = m.group("end") or start
        lang = get_lang(path)
        self.citations.append(
            {
                "url": m.group("url"),
                "repo": m.group("repo"),
                "ref": m.group("ref"),
                "path": path,
                "start": int(start) if start else None,
                "end": int(end) if end else None,
                "lang": lang,
            }
        )

        el = etree.Element("a")
        el.set("href", m.group("url"))
        el.set("class", "code-citation")
        el.set("data-lang", lang)
        el.set("title", f"{m.group('repo')}/{path}")
        if start:
            el.set("data-lines", start if end == start else f"{start}-{end}")
        el.text = m.group("text")
        return el, m.start(0), m.end(0)


class CodeCitationExtension(Extension):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.citations: list[dict] = []

    def extendMarkdown(self, md):
        md.registerExtension(self)
        # above the standard link pattern (160) so citations are not consumed as plain links
        md.inlinePatterns.register(
            CodeCitationProcessor(RE_CODE_CITATION, md, self.citations),
            "code_citation",
            175,
        )

    def reset(self):
        self.citations.clear()
