"""Chunked YouTube transcript summarization with a styled markdown renderer."""

__version__ = "0.1.0"
