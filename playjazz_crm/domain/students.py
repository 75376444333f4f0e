# playjazz_crm/domain/students.py
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List

from .enums import LogType
from .models import Student, TimelineLog


def search_students(students: Iterable[Student], term: str | None) -> List[Student]:
    """Busca por nome ou curso, sem diferenciar maiúsculas."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(students)
    return [s for s in students if needle in s.name.lower() or needle in s.course.lower()]


def append_log(student: Student, log: TimelineLog) -> Student:
    # timeline é append-only; ordem de exibição = ordem de inserção
    return student.model_copy(update={"timeline": [*student.timeline, log]})


def new_log(log_id: str, type: LogType, message: str, when: datetime | None = None) -> TimelineLog:
    when = when or datetime.now()
    return TimelineLog(id=log_id, date=when.date().isoformat(), type=type, message=message)
