"""
markup_blocks.py
----------------
Block structure of rendered messages.

Two passes over the raw text:
1. Fenced code is cut out first. A fence body becomes a CodeBlock and is never
   looked at again; an unterminated fence is left as ordinary text.
2. Every remaining line is classified (heading, quote, bullet, ordered, text,
   blank) and adjacent lines of the same kind are grouped into one node, so a
   run of list items yields a single list and a run of text lines a single
   paragraph.
"""

import re
from itertools import groupby
from typing import Iterable, List, NamedTuple

from utils.markup_inline import parse_inline
from utils.markup_nodes import (
    Block,
    Blockquote,
    BulletList,
    CodeBlock,
    Heading,
    OrderedList,
    Paragraph,
)
from utils.safe_url import DEFAULT_ALLOWED_SCHEMES

# ```lang\n...``` (language tag only when the marker ends its line) or an
# inline ```...```. Non-greedy: each fence closes at the nearest marker.
_FENCE_RE = re.compile(
    r"```(?:(?P<lang>[\w+#.-]*)[ \t]*\n(?P<body>.*?)|(?P<inline>.*?))```",
    re.DOTALL,
)

# Longest heading marker wins because "#{1,3} " requires the space right
# after the last hash.
_LINE_RULES = (
    ("heading", re.compile(r"^(?P<marker>#{1,3}) (?P<text>.+)$")),
    ("quote", re.compile(r"^(?P<marker>>) (?P<text>.+)$")),
    ("bullet", re.compile(r"^(?P<marker>[*-]) (?P<text>.+)$")),
    ("ordered", re.compile(r"^(?P<marker>\d+\.) (?P<text>.+)$")),
)


class _Line(NamedTuple):
    kind: str
    text: str
    marker: str = ""


def parse_blocks(
    text: str, allowed_schemes: Iterable[str] = DEFAULT_ALLOWED_SCHEMES
) -> List[Block]:
    """Parse normalised raw text (``\\n`` line endings) into block nodes."""
    allowed_schemes = frozenset(allowed_schemes)
    blocks: List[Block] = []
    pos = 0
    for match in _FENCE_RE.finditer(text):
        blocks.extend(_parse_lines(text[pos:match.start()], allowed_schemes))
        if match.group("body") is not None:
            language, body = match.group("lang"), match.group("body")
        else:
            language, body = "", match.group("inline")
        blocks.append(CodeBlock(language=language, body=body.strip()))
        pos = match.end()
    blocks.extend(_parse_lines(text[pos:], allowed_schemes))
    return blocks


def classify_line(line: str) -> _Line:
    if not line.strip():
        return _Line("blank", "")
    for kind, pattern in _LINE_RULES:
        match = pattern.match(line)
        if match and match.group("text").strip():
            return _Line(kind, match.group("text").strip(), match.group("marker"))
    return _Line("text", line)


def _parse_lines(segment: str, allowed_schemes: Iterable[str]) -> List[Block]:
    blocks: List[Block] = []
    lines = [classify_line(line) for line in segment.split("\n")]

    for kind, run in groupby(lines, key=lambda line: line.kind):
        run = list(run)
        if kind == "blank":
            continue
        if kind == "heading":
            blocks.extend(
                Heading(level=len(line.marker), children=parse_inline(line.text, allowed_schemes))
                for line in run
            )
        elif kind == "quote":
            blocks.append(Blockquote([parse_inline(line.text, allowed_schemes) for line in run]))
        elif kind == "bullet":
            blocks.append(BulletList([parse_inline(line.text, allowed_schemes) for line in run]))
        elif kind == "ordered":
            blocks.append(OrderedList([parse_inline(line.text, allowed_schemes) for line in run]))
        else:
            paragraph = "\n".join(line.text for line in run).strip()
            blocks.append(
                Paragraph([parse_inline(line, allowed_schemes) for line in paragraph.split("\n")])
            )
    return blocks
