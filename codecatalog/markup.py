from __future__ import annotations

import markdown

from .code_linker import CodeCitationExtension
from .content import count_words
from .render import strip_tags

TOC_DEPTH = "2-4"


def convert_markdown(body: str, toc_depth: str = TOC_DEPTH) -> dict:
    citations = CodeCitationExtension()
    md = markdown.Markdown(
        extensions=["fenced_code", "tables", "toc", "codehilite", citations],
        extension_configs={
            "toc": {"toc_depth": toc_depth},
            "codehilite": {"guess_lang": False, "css_class": "highlight"},
        },
    )
    html_content = md.convert(body)
    result = {
        "html": html_content,
        "toc": md.toc,
        "citations": list(citations.citations),
        "words": count_words(strip_tags(html_content)),
    }
    md.reset()
    return result
