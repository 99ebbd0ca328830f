"""Pure aggregation over loaded sessions and upload tasks.

Every money figure comes from ``compute_amount``; sums stay ``Decimal``
and are never rounded here.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from app.modules.classes.models import compute_amount
from app.modules.reports.schemas import (
    BillLine,
    EditorTotals,
    SessionTotals,
    TeacherBill,
    TeacherTotals,
)

UNKNOWN_NAME = "Unknown"
ZERO = Decimal("0")


def display_name(value: str | None) -> str:
    cleaned = (value or "").strip()
    return cleaned or UNKNOWN_NAME


def _teacher_key(class_session: Any) -> tuple:
    return (class_session.teacher_id, class_session.teacher_tpin)


def summarize_sessions(sessions: Iterable[Any]) -> tuple[SessionTotals, list[TeacherTotals]]:
    """Overall totals plus one row per teacher, ordered by teacher name."""
    totals = SessionTotals()
    per_teacher: dict[tuple, TeacherTotals] = {}
    for class_session in sessions:
        amount = compute_amount(class_session.hours, class_session.hourly_rate)
        totals.total_classes += 1
        totals.total_hours += class_session.hours
        totals.total_amount += amount

        key = _teacher_key(class_session)
        row = per_teacher.get(key)
        if row is None:
            row = TeacherTotals(
                teacher_id=class_session.teacher_id,
                teacher_tpin=class_session.teacher_tpin,
                teacher_name=display_name(class_session.teacher_name),
                classes=0,
                hours=ZERO,
                amount=ZERO,
            )
            per_teacher[key] = row
        row.classes += 1
        row.hours += class_session.hours
        row.amount += amount

    by_teacher = sorted(per_teacher.values(), key=lambda item: (item.teacher_name, item.teacher_tpin or ""))
    return totals, by_teacher


def summarize_uploads(tasks: Iterable[Any]) -> tuple[int, list[EditorTotals]]:
    """Video count overall and per editor; tasks without an editor group under ``Unknown``."""
    total = 0
    per_editor: dict[Any, EditorTotals] = {}
    for task in tasks:
        total += 1
        editor = getattr(task, "editor", None)
        row = per_editor.get(task.editor_id)
        if row is None:
            row = EditorTotals(
                editor_id=task.editor_id,
                editor_tpin=editor.tpin if editor is not None else None,
                editor_name=display_name(editor.name if editor is not None else None),
                videos=0,
            )
            per_editor[task.editor_id] = row
        row.videos += 1

    by_editor = sorted(per_editor.values(), key=lambda item: (-item.videos, item.editor_name))
    return total, by_editor


def group_bill_lines(sessions: Iterable[Any]) -> list[TeacherBill]:
    """Group sessions into per-teacher bill sections with subtotals."""
    groups: dict[tuple, TeacherBill] = {}
    for class_session in sessions:
        amount = compute_amount(class_session.hours, class_session.hourly_rate)
        course = getattr(class_session, "course", None)
        line = BillLine(
            session_id=class_session.id,
            course_name=display_name(course.name if course is not None else None),
            class_name=class_session.name,
            hours=class_session.hours,
            hourly_rate=class_session.hourly_rate,
            amount=amount,
            confirmed_at=class_session.confirmed_at,
            paid=class_session.paid,
        )
        key = _teacher_key(class_session)
        group = groups.get(key)
        if group is None:
            group = TeacherBill(
                teacher_id=class_session.teacher_id,
                teacher_tpin=class_session.teacher_tpin,
                teacher_name=display_name(class_session.teacher_name),
                lines=[],
                classes=0,
                hours=ZERO,
                subtotal=ZERO,
            )
            groups[key] = group
        group.lines.append(line)
        group.classes += 1
        group.hours += class_session.hours
        group.subtotal += amount

    return sorted(groups.values(), key=lambda item: (item.teacher_name, item.teacher_tpin or ""))
