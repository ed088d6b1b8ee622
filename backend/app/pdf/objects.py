"""Fixed single-page object graph wrapped around a content stream."""

from __future__ import annotations

import re
from dataclasses import dataclass

from app.pdf.encoding import encode_stream
from app.pdf.layout import FONT_KEY, PAGE_HEIGHT, PAGE_WIDTH

CATALOG = 1
PAGE_TREE = 2
PAGE = 3
CONTENTS = 4

BASE_FONT = "Helvetica"

_LENGTH_PATTERN = re.compile(rb"^<< /Length (\d+) >>\nstream\n")


class PdfBuildError(Exception):
    """Raised when the document structure violates an internal invariant."""


class StreamLengthMismatch(PdfBuildError):
    def __init__(self, declared: int, actual: int) -> None:
        self.declared = declared
        self.actual = actual
        super().__init__(f"Content stream declares /Length {declared} but carries {actual} bytes")


@dataclass(frozen=True)
class PdfObject:
    number: int
    body: bytes


@dataclass(frozen=True)
class ObjectGraph:
    objects: tuple[PdfObject, ...]
    root: int = CATALOG


def stream_object(data: bytes) -> bytes:
    return f"<< /Length {len(data)} >>\nstream\n".encode("ascii") + data + b"\nendstream"


def check_stream_length(body: bytes) -> None:
    """Verify the declared ``/Length`` of a stream object against its payload."""
    match = _LENGTH_PATTERN.match(body)
    if match is None or not body.endswith(b"\nendstream"):
        raise PdfBuildError("Malformed stream object")
    declared = int(match.group(1))
    actual = len(body) - match.end() - len(b"\nendstream")
    if declared != actual:
        raise StreamLengthMismatch(declared, actual)


def assemble(content_stream: str) -> ObjectGraph:
    data = encode_stream(content_stream)
    page = (
        f"<< /Type /Page /Parent {PAGE_TREE} 0 R /MediaBox [0 0 {PAGE_WIDTH} {PAGE_HEIGHT}] "
        f"/Contents {CONTENTS} 0 R "
        f"/Resources << /Font << /{FONT_KEY} << /Type /Font /Subtype /Type1 /BaseFont /{BASE_FONT} >> >> >> >>"
    )
    contents = stream_object(data)
    check_stream_length(contents)

    return ObjectGraph(
        objects=(
            PdfObject(CATALOG, f"<< /Type /Catalog /Pages {PAGE_TREE} 0 R >>".encode("ascii")),
            PdfObject(PAGE_TREE, f"<< /Type /Pages /Kids [{PAGE} 0 R] /Count 1 >>".encode("ascii")),
            PdfObject(PAGE, page.encode("ascii")),
            PdfObject(CONTENTS, contents),
        ),
        root=CATALOG,
    )
