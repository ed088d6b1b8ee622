"""Content stream layout for workout documents.

Every block renderer takes the current cursor and returns the advanced cursor
together with the operators it emitted, so blocks compose left to right and can
be exercised one at a time.

Pagination is cursor-only: a line that would land below the bottom margin
resumes at the top of the same page. The document has exactly one page object.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from app.models import DayPlan, Exercise, WorkoutDocument, WorkoutMetadata
from app.pdf.encoding import escape_text

logger = logging.getLogger("workoutpdf.pdf")

PAGE_WIDTH = 612
PAGE_HEIGHT = 792
LEFT = 50
MARGIN = 50
PAGE_TOP = 750
TITLE_Y = 750
RULE_Y = 740
BODY_TOP = 720

TITLE_SIZE = 18
HEADER_SIZE = 14
DESCRIPTION_SIZE = 12
DAY_SIZE = 12
DETAIL_SIZE = 10

DESCRIPTION_STEP = 20
HEADER_STEP = 15
DAY_STEP = 15
LINE_STEP = 12
DAY_GROUP_GAP = 5

FONT_KEY = "F1"
DEFAULT_TITLE = "Workout Schedule"
METADATA_HEADER = "Workout Information"
SCHEDULE_HEADER = "Workout Schedule"

METADATA_FIELDS = (
    ("created_by", "Created by"),
    ("created_at", "Created on"),
    ("duration", "Duration"),
    ("difficulty", "Difficulty"),
)

Ops = list[str]


@dataclass(frozen=True)
class LayoutCursor:
    y: float = BODY_TOP
    font_size: Optional[float] = None


def set_font(cursor: LayoutCursor, size: float) -> tuple[LayoutCursor, Ops]:
    """Switch font size, emitting nothing when the size is already active."""
    if cursor.font_size == size:
        return cursor, []
    return replace(cursor, font_size=size), [f"/{FONT_KEY} {size} Tf"]


def show_text(text: str, x: float, y: float) -> str:
    return f"1 0 0 1 {x:.1f} {y:.1f} Tm ({escape_text(text)}) Tj"


def place_line(cursor: LayoutCursor, text: str, size: float, step: float) -> tuple[LayoutCursor, Ops]:
    """Emit one line at the cursor and move the cursor down by *step*."""
    if cursor.y < MARGIN:
        logger.debug("Cursor at y=%.1f is below margin; resuming at top of page", cursor.y)
        cursor = replace(cursor, y=PAGE_TOP)
    cursor, font_ops = set_font(cursor, size)
    ops = font_ops + [show_text(text, LEFT, cursor.y)]
    return replace(cursor, y=cursor.y - step), ops


def render_title(cursor: LayoutCursor, title: Optional[str]) -> tuple[LayoutCursor, Ops]:
    # Fixed position; the body cursor is neither read nor moved.
    cursor, ops = set_font(cursor, TITLE_SIZE)
    ops.append(show_text(title or DEFAULT_TITLE, LEFT, TITLE_Y))
    return cursor, ops


def render_title_rule() -> Ops:
    return [f"{LEFT} {RULE_Y} m {PAGE_WIDTH - LEFT} {RULE_Y} l S"]


def render_description(cursor: LayoutCursor, description: Optional[str]) -> tuple[LayoutCursor, Ops]:
    if not description:
        return cursor, []
    return place_line(cursor, f"Description: {description}", DESCRIPTION_SIZE, DESCRIPTION_STEP)


def render_metadata(cursor: LayoutCursor, metadata: Optional[WorkoutMetadata]) -> tuple[LayoutCursor, Ops]:
    if metadata is None:
        return cursor, []

    cursor, ops = place_line(cursor, METADATA_HEADER, HEADER_SIZE, HEADER_STEP)
    for field_name, label in METADATA_FIELDS:
        value = getattr(metadata, field_name)
        if not value:
            continue
        cursor, line_ops = place_line(cursor, f"{label}: {value}", DETAIL_SIZE, LINE_STEP)
        ops.extend(line_ops)
    return cursor, ops


def exercise_summary(exercise: Exercise) -> str:
    """Sets/reps take precedence over duration; a lone sets or reps value is dropped."""
    if exercise.sets is not None and exercise.reps is not None:
        return f" - {exercise.sets} sets x {exercise.reps} reps"
    if exercise.duration:
        return f" - Duration: {exercise.duration}"
    return ""


def exercise_line(ordinal: int, exercise: Exercise) -> str:
    line = f"{ordinal}. {exercise.name}{exercise_summary(exercise)}"
    if exercise.notes:
        line += f" ({exercise.notes})"
    return line


def render_day(cursor: LayoutCursor, day: DayPlan) -> tuple[LayoutCursor, Ops]:
    cursor, ops = place_line(cursor, day.day, DAY_SIZE, DAY_STEP)
    for ordinal, exercise in enumerate(day.exercises, start=1):
        cursor, line_ops = place_line(cursor, exercise_line(ordinal, exercise), DETAIL_SIZE, LINE_STEP)
        ops.extend(line_ops)
    return replace(cursor, y=cursor.y - DAY_GROUP_GAP), ops


def render_schedule(cursor: LayoutCursor, schedule: Optional[Sequence[DayPlan]]) -> tuple[LayoutCursor, Ops]:
    if not schedule:
        return cursor, []

    cursor, ops = place_line(cursor, SCHEDULE_HEADER, HEADER_SIZE, HEADER_STEP)
    for day in schedule:
        cursor, day_ops = render_day(cursor, day)
        ops.extend(day_ops)
    return cursor, ops


def build_content_stream(doc: WorkoutDocument) -> str:
    """Lay out *doc* as a single text object plus the title rule and return the operator stream."""
    cursor = LayoutCursor()
    ops: Ops = ["BT"]

    cursor, block = render_title(cursor, doc.title)
    ops.extend(block)
    cursor, block = render_description(cursor, doc.description)
    ops.extend(block)
    cursor, block = render_metadata(cursor, doc.metadata)
    ops.extend(block)
    cursor, block = render_schedule(cursor, doc.schedule)
    ops.extend(block)

    ops.append("ET")
    # Rule under the title, outside the text object.
    ops.extend(render_title_rule())
    logger.debug("Laid out content stream ops=%d final_y=%.1f", len(ops), cursor.y)
    return "\n".join(ops) + "\n"
