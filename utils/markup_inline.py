"""
markup_inline.py
----------------
Inline span parsing for rendered messages.

Order of recognition on a single line of text:
1. Inline code (`x`) - content is inert.
2. Links ([label](url)) - target validated through SafeUrl; label may carry
   emphasis and inline code but not nested links.
3. Emphasis - bold (**x**, __x__) before italic (*x*, _x_); ***x*** and
   ___x___ resolve as bold wrapping italic. Italic text may wrap complete
   bold spans (*a **b** c*).

Code spans and links are swapped out for placeholders before the emphasis
scan, so emphasis markers inside them are never seen.
"""

import re
from typing import Iterable, List

from utils.markup_nodes import CodeSpan, Emphasis, Inline, Link, Strong, Text
from utils.safe_url import DEFAULT_ALLOWED_SCHEMES, SafeUrl, UnsafeUrlError

PLACEHOLDER = "\x00"

_CODE_SPAN_RE = re.compile(r"`([^`]+)`")
# One level of balanced parentheses is allowed inside the target.
_LINK_RE = re.compile(r"\[([^\[\]\n]+)\]\(((?:[^()\s]|\([^()\s]*\))+)\)")
_PLACEHOLDER_RE = re.compile(r"\x00(\d+)\x00")

# A complete bold span, as it may appear inside italic text.
_STAR_BOLD = r"\*\*(?=[^\s*])[^*\n]+?(?<=[^\s*])\*\*"
_UND_BOLD = r"(?<!\w)__(?=[^\s_])[^_\n]+?(?<=[^\s_])__(?!\w)"

# Alternatives are tried in order at each position: the earliest match wins
# and, at the same position, triple before bold before italic.
# No body can run past an unpaired marker of its own kind, so an opener
# without a closer scans only up to the next marker, not to the end of the line.
_EMPHASIS_RE = re.compile(
    r"\*\*\*(?P<star3>(?=[^\s*])(?:[^*\n]|\*(?!\*\*))+?(?<=[^\s*]))\*\*\*"
    r"|(?<!\w)___(?P<und3>(?=[^\s_])(?:[^_\n]|_(?!__))+?(?<=[^\s_]))___(?!\w)"
    r"|\*\*(?P<star2>(?=[^\s*])(?:[^*\n]|\*(?!\*))+?(?<=[^\s*]))\*\*"
    r"|(?<!\w)__(?P<und2>(?=[^\s_])(?:[^_\n]|_(?!_))+?(?<=[^\s_]))__(?!\w)"
    rf"|\*(?P<star1>(?=[^\s*])(?:[^*\n]|{_STAR_BOLD})+?(?<=\S))\*"
    rf"|(?<!\w)_(?P<und1>(?=[^\s_])(?:[^_\n]|{_UND_BOLD})+?(?<=\S))_(?!\w)"
)


def parse_inline(
    text: str, allowed_schemes: Iterable[str] = DEFAULT_ALLOWED_SCHEMES
) -> List[Inline]:
    """Parse one line of raw text into inline nodes."""
    text = text.replace(PLACEHOLDER, "\ufffd")
    atoms: List[Inline] = []

    def stash(node: Inline) -> str:
        atoms.append(node)
        return f"{PLACEHOLDER}{len(atoms) - 1}{PLACEHOLDER}"

    def link_or_literal(match: "re.Match[str]") -> str:
        label, target = match.group(1), match.group(2)
        try:
            href = SafeUrl.parse(target, allowed_schemes)
        except UnsafeUrlError:
            return match.group(0)
        return stash(Link(href=href, children=_parse_emphasis(label, atoms)))

    text = _CODE_SPAN_RE.sub(lambda m: stash(CodeSpan(m.group(1))), text)
    text = _LINK_RE.sub(link_or_literal, text)
    return _parse_emphasis(text, atoms)


def _parse_emphasis(text: str, atoms: List[Inline]) -> List[Inline]:
    nodes: List[Inline] = []
    pos = 0
    for match in _EMPHASIS_RE.finditer(text):
        nodes.extend(_expand(text[pos:match.start()], atoms))
        kind = match.lastgroup or ""
        inner = _parse_emphasis(match.group(kind), atoms)
        if kind.endswith("3"):
            nodes.append(Strong([Emphasis(inner)]))
        elif kind.endswith("2"):
            nodes.append(Strong(inner))
        else:
            nodes.append(Emphasis(inner))
        pos = match.end()
    nodes.extend(_expand(text[pos:], atoms))
    return nodes


def _expand(segment: str, atoms: List[Inline]) -> List[Inline]:
    """Split plain text around placeholders, restoring the stashed nodes."""
    nodes: List[Inline] = []
    for i, piece in enumerate(_PLACEHOLDER_RE.split(segment)):
        if i % 2:
            nodes.append(atoms[int(piece)])
        elif piece:
            nodes.append(Text(piece))
    return nodes
