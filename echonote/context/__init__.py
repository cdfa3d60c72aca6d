"""Assistant context derived from notes."""

from .builder import build_global_context, build_note_context, format_transcript

__all__ = [
    "build_global_context",
    "build_note_context",
    "format_transcript",
]
