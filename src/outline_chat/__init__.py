"""Conversational book-outline assistant with streamed replies."""

__version__ = "0.1.0"
