"""
markup_nodes.py
---------------
Typed intermediate representation for rendered messages.

Block nodes are produced by `utils.markup_blocks`, inline nodes by
`utils.markup_inline`. Text values are stored raw and escaped only when the
tree is emitted, so no pass ever re-reads markup produced by another.
"""

from dataclasses import dataclass, field
from typing import List, Union

from utils.safe_url import SafeUrl


# --------------------------------------------------------------------------
# Inline nodes
# --------------------------------------------------------------------------
@dataclass
class Text:
    value: str


@dataclass
class CodeSpan:
    value: str


@dataclass
class Strong:
    children: List["Inline"] = field(default_factory=list)


@dataclass
class Emphasis:
    children: List["Inline"] = field(default_factory=list)


@dataclass
class Link:
    href: SafeUrl
    children: List["Inline"] = field(default_factory=list)


Inline = Union[Text, CodeSpan, Strong, Emphasis, Link]


# --------------------------------------------------------------------------
# Block nodes
# --------------------------------------------------------------------------
@dataclass
class CodeBlock:
    language: str
    body: str


@dataclass
class Heading:
    level: int
    children: List[Inline] = field(default_factory=list)


@dataclass
class Blockquote:
    lines: List[List[Inline]] = field(default_factory=list)


@dataclass
class BulletList:
    items: List[List[Inline]] = field(default_factory=list)


@dataclass
class OrderedList:
    items: List[List[Inline]] = field(default_factory=list)


@dataclass
class Paragraph:
    lines: List[List[Inline]] = field(default_factory=list)


Block = Union[CodeBlock, Heading, Blockquote, BulletList, OrderedList, Paragraph]
