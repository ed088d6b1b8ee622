"""Minimal PDF writer for workout documents."""

import logging

from app.models import WorkoutDocument
from app.pdf.encoding import escape_text
from app.pdf.layout import LayoutCursor, build_content_stream
from app.pdf.objects import ObjectGraph, PdfBuildError, StreamLengthMismatch, assemble
from app.pdf.writer import serialize

logger = logging.getLogger("workoutpdf.pdf")

__all__ = [
    "LayoutCursor",
    "ObjectGraph",
    "PdfBuildError",
    "StreamLengthMismatch",
    "assemble",
    "build_content_stream",
    "escape_text",
    "render_workout_pdf",
    "serialize",
]


def render_workout_pdf(doc: WorkoutDocument) -> bytes:
    """Lay out, assemble and serialize *doc* into a one-page PDF."""
    stream = build_content_stream(doc)
    pdf = serialize(assemble(stream))
    logger.debug("Rendered workout PDF bytes=%d stream_chars=%d", len(pdf), len(stream))
    return pdf
