"""Presentation-facing adapters."""

from .render import (
    DELETED_PLACEHOLDER,
    ReplyRow,
    flatten_thread,
    format_relative_time,
    replies_label,
    to_row,
)

__all__ = [
    "DELETED_PLACEHOLDER",
    "ReplyRow",
    "flatten_thread",
    "format_relative_time",
    "replies_label",
    "to_row",
]
