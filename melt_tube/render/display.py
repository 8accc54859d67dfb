"""Render a parsed Document to safe HTML or to rich console renderables."""

import html
import re
from dataclasses import dataclass, field

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.style import Style
from rich.text import Text as RichText

from ..settings import DisplayTheme
from .markdown import Document, Emphasis, Heading, Inline, ListBlock, Paragraph, Strong, Text

POPUP_ID = "transcript-summary-popup"

ALLOWED_TAGS = frozenset(
    {"div", "h1", "h2", "h3", "h4", "h5", "h6", "p", "ul", "ol", "li", "strong", "em"}
)
ALLOWED_ATTRIBUTES = frozenset({"class", "id", "style"})

# Heading font size relative to the base font size
HEADER_SCALE = {1: 2.0, 2: 1.5, 3: 1.25, 4: 1.1, 5: 1.0, 6: 0.9}

UNORDERED_STYLES = ("disc", "circle", "square")
ORDERED_STYLES = ("decimal", "lower-alpha", "lower-roman")
BULLETS = ("•", "◦", "▪")


@dataclass
class Element:
    """
    A display-tree element.

    Tags outside ALLOWED_TAGS are rejected; attributes outside
    ALLOWED_ATTRIBUTES are dropped.
    """

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list["Element | str"] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.tag not in ALLOWED_TAGS:
            raise ValueError(f"Tag not allowed: {self.tag}")
        self.attrs = {k: v for k, v in self.attrs.items() if k in ALLOWED_ATTRIBUTES}

    def to_html(self) -> str:
        attrs = "".join(f' {k}="{html.escape(v, quote=True)}"' for k, v in self.attrs.items())
        inner = "".join(
            html.escape(child) if isinstance(child, str) else child.to_html()
            for child in self.children
        )
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"


def _inline_elements(nodes: list[Inline]) -> list[Element | str]:
    out: list[Element | str] = []
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.text)
        elif isinstance(node, Strong):
            out.append(Element("strong", children=_inline_elements(node.children)))
        elif isinstance(node, Emphasis):
            out.append(Element("em", children=_inline_elements(node.children)))
    return out


def _list_element(block: ListBlock, depth: int) -> Element:
    styles = ORDERED_STYLES if block.ordered else UNORDERED_STYLES
    items = [
        Element(
            "li",
            children=_inline_elements(item.children)
            + [_list_element(sub, depth + 1) for sub in item.sublists],
        )
        for item in block.items
    ]
    return Element(
        "ol" if block.ordered else "ul",
        {"style": f"list-style-type: {styles[depth % len(styles)]}"},
        items,
    )


def materialize(document: Document, root_id: str = POPUP_ID) -> Element:
    """Build the safe display tree for a document."""
    root = Element("div", {"id": root_id})
    for block in document.children:
        if isinstance(block, Heading):
            root.children.append(Element(f"h{block.level}", children=_inline_elements(block.children)))
        elif isinstance(block, Paragraph):
            root.children.append(Element("p", children=_inline_elements(block.children)))
        elif isinstance(block, ListBlock):
            root.children.append(_list_element(block, 0))
    return root


def _css_font(font: str) -> str:
    return re.sub(r"[^\w \-]", "", font).strip() or "sans-serif"


def theme_stylesheet(theme: DisplayTheme, root_id: str = POPUP_ID) -> str:
    """CSS for the popup, with heading and spacing sizes derived from the base font size."""
    size = theme.font_size
    scope = f"#{root_id}"
    rules = [
        f"{scope} {{ background: {theme.background_color}; color: {theme.text_color}; "
        f"font-family: {_css_font(theme.font)}, sans-serif; font-size: {size}px; "
        "padding: 15px 30px; border-radius: 8px; }",
    ]
    for level, scale in HEADER_SCALE.items():
        px = round(size * scale, 2)
        rules.append(f"{scope} h{level} {{ font-size: {px}px; margin: {px}px 0; font-weight: bold; }}")
    rules.extend(
        [
            f"{scope} ul, {scope} ol {{ margin: {size * 0.5}px 0; padding-left: {size}px; }}",
            f"{scope} li {{ margin: {size * 0.5}px 0; line-height: {size * 1.2}px; }}",
            f"{scope} p {{ margin: {size * 0.5}px 0; line-height: {size * 1.2}px; }}",
            f"{scope} strong {{ font-weight: bold; }}",
            f"{scope} em {{ font-style: italic; }}",
        ]
    )
    return "\n".join(rules)


def render_html(document: Document, theme: DisplayTheme, root_id: str = POPUP_ID) -> str:
    """Standalone HTML fragment: stylesheet plus the materialized tree."""
    return f"<style>\n{theme_stylesheet(theme, root_id)}\n</style>\n{materialize(document, root_id).to_html()}\n"


# Console rendering


def _roman(n: int) -> str:
    numerals = [(10, "x"), (9, "ix"), (5, "v"), (4, "iv"), (1, "i")]
    out = ""
    for value, numeral in numerals:
        while n >= value:
            out += numeral
            n -= value
    return out


def _alpha(n: int) -> str:
    out = ""
    while n > 0:
        n, rem = divmod(n - 1, 26)
        out = chr(ord("a") + rem) + out
    return out


def _marker(ordered: bool, number: int, depth: int) -> str:
    if not ordered:
        return BULLETS[depth % len(BULLETS)]
    style = ORDERED_STYLES[depth % len(ORDERED_STYLES)]
    if style == "lower-alpha":
        return f"{_alpha(number)}."
    if style == "lower-roman":
        return f"{_roman(number)}."
    return f"{number}."


def _inline_text(nodes: list[Inline], style: Style, out: RichText) -> RichText:
    for node in nodes:
        if isinstance(node, Text):
            out.append(node.text, style=style)
        elif isinstance(node, Strong):
            _inline_text(node.children, style + Style(bold=True), out)
        elif isinstance(node, Emphasis):
            _inline_text(node.children, style + Style(italic=True), out)
    return out


def _list_lines(block: ListBlock, depth: int, base: Style) -> list[RichText]:
    lines = []
    for number, item in enumerate(block.items, start=1):
        line = RichText("  " * depth + _marker(block.ordered, number, depth) + " ", style=base)
        lines.append(_inline_text(item.children, base, line))
        for sub in item.sublists:
            lines.extend(_list_lines(sub, depth + 1, base))
    return lines


def render_console(document: Document, theme: DisplayTheme) -> Group:
    """Rich renderables for a document, colored by the theme."""
    base = Style(color=theme.text_color)
    renderables: list[RenderableType] = []

    for block in document.children:
        if isinstance(block, Heading):
            heading_style = base + Style(bold=True, underline=block.level <= 2)
            renderables.append(RichText(""))
            renderables.append(_inline_text(block.children, heading_style, RichText()))
        elif isinstance(block, Paragraph):
            renderables.append(_inline_text(block.children, base, RichText()))
        elif isinstance(block, ListBlock):
            renderables.extend(_list_lines(block, 0, base))

    return Group(*renderables)


def render_panel(document: Document, theme: DisplayTheme, title: str | None = None) -> Panel:
    """The console counterpart of the popup: themed panel around the document."""
    return Panel(
        render_console(document, theme),
        title=title,
        style=Style(bgcolor=theme.background_color),
        border_style=Style(color=theme.button_color),
        padding=(1, 2),
    )
