"""Display numbers: ``YYYYMMDD`` + two-digit type code + three-digit sequence."""
from __future__ import annotations

from datetime import date
from typing import Iterable, Optional

from taskcycle.exceptions import ConflictError, ValidationError
from . import dates

TYPE_CODES = {
    "NORMAL": "10",
    "OVERDUE": "11",
    "RECURRING": "12",
    "IDEA": "13",
    "INBOX": "14",
}
MAX_SEQUENCE = 999


def type_code(task_type: str, due_date: Optional[date], today: date) -> str:
    if task_type == "NORMAL" and not dates.is_dateless(due_date) and due_date < today:
        return TYPE_CODES["OVERDUE"]
    return TYPE_CODES.get(task_type, TYPE_CODES["NORMAL"])


def prefix_for(task_type: str, due_date: Optional[date], today: date) -> str:
    anchor = today if dates.is_dateless(due_date) else due_date
    return anchor.strftime("%Y%m%d") + type_code(task_type, due_date, today)


def next_number(prefix: str, existing: Iterable[str]) -> str:
    """Smallest unused sequence for ``prefix``; gaps left by deletions are reused."""
    used = set()
    for number in existing:
        if number and number.startswith(prefix) and len(number) == len(prefix) + 3:
            tail = number[-3:]
            if tail.isdigit():
                used.add(int(tail))

    sequence = 1
    while sequence in used:
        sequence += 1
    if sequence > MAX_SEQUENCE:
        raise ConflictError(f"Too many tasks for display prefix {prefix}", {"prefix": prefix})
    return f"{prefix}{sequence:03d}"


def parse(display_number: str) -> dict:
    if len(display_number) != 13 or not display_number.isdigit():
        raise ValidationError("Invalid display number format", {"display_number": display_number})
    return {
        "date": date(int(display_number[0:4]), int(display_number[4:6]), int(display_number[6:8])),
        "type_code": display_number[8:10],
        "sequence": int(display_number[10:13]),
    }


def display_sequence(display_number: str) -> int:
    """The part shown to users (the trailing sequence)."""
    return parse(display_number)["sequence"]
