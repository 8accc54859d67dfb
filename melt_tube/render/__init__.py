"""Markdown parsing and display rendering."""

from .display import (
    ALLOWED_ATTRIBUTES,
    ALLOWED_TAGS,
    Element,
    materialize,
    render_console,
    render_html,
    render_panel,
    theme_stylesheet,
)
from .markdown import (
    Document,
    Emphasis,
    Heading,
    ListBlock,
    ListItem,
    Paragraph,
    Strong,
    Text,
    parse_inline,
    parse_markdown,
)

__all__ = [
    "ALLOWED_ATTRIBUTES",
    "ALLOWED_TAGS",
    "Document",
    "Element",
    "Emphasis",
    "Heading",
    "ListBlock",
    "ListItem",
    "Paragraph",
    "Strong",
    "Text",
    "materialize",
    "parse_inline",
    "parse_markdown",
    "render_console",
    "render_html",
    "render_panel",
    "theme_stylesheet",
]
