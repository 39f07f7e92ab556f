from collections import Counter
from typing import Hashable, Iterable, List, Mapping, Optional, Set

from ..exceptions import InputValidationError
from ..models import FacultyMember, LectureSlot, Schedule


def _duplicates(values) -> list:
    return [v for v, n in Counter(values).items() if n > 1]


def validate_request(faculty: List[FacultyMember], lectures: List[LectureSlot],
                     preferences: Mapping[FacultyMember, Iterable[Hashable]],
                     initial_best_score: Optional[int] = None) -> None:
    """Reject malformed input before a search starts."""
    if not faculty:
        raise InputValidationError("faculty list is empty")
    dup_faculty = _duplicates(faculty)
    if dup_faculty:
        raise InputValidationError(f"duplicate faculty: {dup_faculty}", details={"faculty": dup_faculty})
    for lec in lectures:
        if lec.id is None or lec.time_slot is None:
            raise InputValidationError("lecture slot without id or time slot", details={"lecture": repr(lec)})
    dup_ids = _duplicates(lec.id for lec in lectures)
    if dup_ids:
        raise InputValidationError(f"duplicate lecture ids: {dup_ids}", details={"lecture_ids": dup_ids})
    known = set(faculty)
    unknown = [f for f in preferences if f not in known]
    if unknown:
        raise InputValidationError(f"preferences for unknown faculty: {unknown}", details={"faculty": unknown})
    if initial_best_score is not None:
        if isinstance(initial_best_score, bool) or not isinstance(initial_best_score, int):
            raise InputValidationError("initial best score must be an integer",
                                       details={"initial_best_score": initial_best_score})
        if initial_best_score < 0:
            raise InputValidationError("initial best score must be non-negative",
                                       details={"initial_best_score": initial_best_score})


def faculty_once(faculty: Iterable[FacultyMember], sched: Schedule) -> bool:
    faculty = list(faculty)
    return len(sched) == len(faculty) and set(sched.assignments) == set(faculty)


def lectures_unique(sched: Schedule) -> bool:
    ids = [a.lecture.id for a in sched.assignments.values()]
    return len(ids) == len(set(ids))


def time_slots_unique(sched: Schedule) -> bool:
    seen: Set[tuple] = set()
    for f, a in sched.pairs():
        key = (f, a.lecture.time_slot)
        if key in seen:
            return False
        seen.add(key)
    return True


def preferences_ok(sched: Schedule, preferences: Mapping[FacultyMember, Iterable[Hashable]]) -> bool:
    for f, a in sched.pairs():
        if a.faculty != f:
            return False
        if a.is_preferred != (a.lecture.time_slot in set(preferences.get(f, ()))):
            return False
    return True


def schedule_ok(sched: Schedule, faculty: Iterable[FacultyMember],
                preferences: Mapping[FacultyMember, Iterable[Hashable]]) -> bool:
    return (faculty_once(faculty, sched) and lectures_unique(sched)
            and time_slots_unique(sched) and preferences_ok(sched, preferences))
