"""
Parse the markdown subset produced by the merge prompt into a document tree.

Supported: ATX headings (# to ######), ordered and unordered lists nested by
indentation (two spaces per level), paragraphs, and inline strong/emphasis
(**x**, __x__, *x*, _x_). Everything else is treated as paragraph text.
"""

import re
from dataclasses import dataclass, field

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$")
LIST_PATTERN = re.compile(r"^(\s*)([-*+]|\d+\.)\s+(.+)$")
INLINE_PATTERN = re.compile(
    r"\*\*(?P<strong_star>.+?)\*\*"
    r"|(?<!\w)__(?P<strong_under>.+?)__(?!\w)"
    r"|\*(?P<em_star>.+?)\*"
    r"|(?<!\w)_(?P<em_under>.+?)_(?!\w)"
)

INDENT_WIDTH = 2


# Inline nodes


@dataclass
class Text:
    text: str


@dataclass
class Strong:
    children: list["Inline"]


@dataclass
class Emphasis:
    children: list["Inline"]


Inline = Text | Strong | Emphasis


# Block nodes


@dataclass
class Heading:
    level: int
    children: list[Inline]


@dataclass
class Paragraph:
    children: list[Inline]


@dataclass
class ListItem:
    children: list[Inline]
    sublists: list["ListBlock"] = field(default_factory=list)


@dataclass
class ListBlock:
    ordered: bool
    items: list[ListItem] = field(default_factory=list)


Block = Heading | Paragraph | ListBlock


@dataclass
class Document:
    children: list[Block] = field(default_factory=list)


def parse_inline(text: str) -> list[Inline]:
    """Split text into plain runs and (possibly nested) strong/emphasis spans."""
    nodes: list[Inline] = []
    position = 0

    for match in INLINE_PATTERN.finditer(text):
        if match.start() > position:
            nodes.append(Text(text[position : match.start()]))

        kind = match.lastgroup or ""
        inner = parse_inline(match.group(kind))
        nodes.append(Strong(inner) if kind.startswith("strong") else Emphasis(inner))
        position = match.end()

    if position < len(text):
        nodes.append(Text(text[position:]))
    return nodes


def _append_text(item: ListItem, text: str) -> None:
    """Continue a list item's text with a following line."""
    if item.children and isinstance(item.children[-1], Text):
        tail = item.children.pop()
        item.children.extend(parse_inline(f"{tail.text} {text}"))
    else:
        item.children.append(Text(" "))
        item.children.extend(parse_inline(text))


@dataclass
class _OpenList:
    block: ListBlock
    level: int
    siblings: list  # container the block lives in (document children or parent item's sublists)


class _Parser:
    """Line-driven state machine with a stack of open lists."""

    def __init__(self) -> None:
        self.document = Document()
        self.stack: list[_OpenList] = []
        self.last_was_item = False
        self.blank_since_item = False

    def close_lists(self) -> None:
        self.stack.clear()
        self.last_was_item = False
        self.blank_since_item = False

    def list_item(self, indent: str, marker: str, content: str) -> None:
        level = len(indent.expandtabs(4)) // INDENT_WIDTH + 1
        ordered = marker[0].isdigit()

        while self.stack and self.stack[-1].level > level:
            self.stack.pop()

        if self.stack and self.stack[-1].level == level and self.stack[-1].block.ordered != ordered:
            replaced = self.stack.pop()
            self._open_list(ordered, level, replaced.siblings)
        elif not self.stack:
            self._open_list(ordered, level, self.document.children)
        elif self.stack[-1].level < level:
            parent_item = self.stack[-1].block.items[-1]
            self._open_list(ordered, level, parent_item.sublists)

        self.stack[-1].block.items.append(ListItem(parse_inline(content.strip())))
        self.last_was_item = True
        self.blank_since_item = False

    def _open_list(self, ordered: bool, level: int, siblings: list) -> None:
        block = ListBlock(ordered=ordered)
        siblings.append(block)
        self.stack.append(_OpenList(block, level, siblings))

    def text_line(self, line: str) -> None:
        if self.last_was_item and not self.blank_since_item:
            _append_text(self.stack[-1].block.items[-1], line.strip())
            return
        # Intentional: text after a blank line closes the list instead of continuing the last item
        self.close_lists()
        self.document.children.append(Paragraph(parse_inline(line.strip())))

    def feed(self, line: str) -> None:
        heading = HEADING_PATTERN.match(line)
        if heading:
            self.close_lists()
            self.document.children.append(
                Heading(len(heading.group(1)), parse_inline(heading.group(2).strip()))
            )
            return

        item = LIST_PATTERN.match(line)
        if item:
            self.list_item(*item.groups())
            return

        if not line.strip():
            if self.last_was_item:
                self.blank_since_item = True
            else:
                self.close_lists()
            return

        self.text_line(line)


def parse_markdown(text: str) -> Document:
    """
    Parse markdown text into a Document.

    A blank line between list items keeps the list open; any other line after
    a blank closes every open list. Lists still open at the end of input are
    closed implicitly, so the tree is always well formed.
    """
    parser = _Parser()
    for line in text.replace("\r\n", "\n").split("\n"):
        parser.feed(line)
    parser.close_lists()
    return parser.document
