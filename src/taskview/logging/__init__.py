"""Structured logging primitives for taskview."""

from .events import log_event, setup_logging, summarize_text
from .formatter import StructuredTextFormatter

__all__ = [
    "StructuredTextFormatter",
    "log_event",
    "setup_logging",
    "summarize_text",
]
