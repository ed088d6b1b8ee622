#!/usr/bin/env python3
"""Render a workout JSON file to a PDF without running the API."""

from __future__ import annotations

import argparse
import json
import pathlib
import sys

from pydantic import ValidationError

from app.models import WorkoutDocument
from app.pdf import render_workout_pdf


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("source", type=pathlib.Path, help="Workout JSON (a document or a {\"data\": ...} request body)")
    parser.add_argument("output", type=pathlib.Path, help="Where to write the PDF")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    payload = json.loads(args.source.read_text(encoding="utf-8"))
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]

    try:
        doc = WorkoutDocument.model_validate(payload)
    except ValidationError as exc:
        print(f"Invalid workout document: {exc}", file=sys.stderr)
        return 2

    pdf = render_workout_pdf(doc)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(pdf)
    print(f"Wrote {len(pdf)} bytes to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
