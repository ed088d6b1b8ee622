"""Serialize an object graph into a PDF byte buffer.

Offsets in the cross-reference table and the ``startxref`` pointer are read
from the buffer while it is written, never estimated.
"""

from __future__ import annotations

from app.pdf.objects import ObjectGraph

HEADER = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"


def _check_numbering(graph: ObjectGraph) -> None:
    numbers = [obj.number for obj in graph.objects]
    expected = list(range(1, len(numbers) + 1))
    if sorted(numbers) != expected:
        raise ValueError(f"Object numbers must be contiguous from 1, got {numbers}")
    if graph.root not in numbers:
        raise ValueError(f"Root object {graph.root} is not part of the graph")


def serialize(graph: ObjectGraph) -> bytes:
    _check_numbering(graph)

    pdf = bytearray()
    pdf.extend(HEADER)
    offsets: list[int] = []

    for obj in sorted(graph.objects, key=lambda item: item.number):
        offsets.append(len(pdf))
        pdf.extend(f"{obj.number} 0 obj\n".encode("ascii"))
        pdf.extend(obj.body)
        pdf.extend(b"\nendobj\n")

    size = len(offsets) + 1
    xref_start = len(pdf)
    pdf.extend(f"xref\n0 {size}\n".encode("ascii"))
    pdf.extend(b"0000000000 65535 f \n")
    for offset in offsets:
        pdf.extend(f"{offset:010d} 00000 n \n".encode("ascii"))
    pdf.extend(
        (
            f"trailer\n<< /Size {size} /Root {graph.root} 0 R >>\n"
            f"startxref\n{xref_start}\n%%EOF\n"
        ).encode("ascii")
    )
    return bytes(pdf)
