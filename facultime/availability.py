from contextlib import contextmanager
from typing import Dict, FrozenSet, Hashable, Iterable, List, Mapping, Set

from .models import Assignment, FacultyMember, LectureSlot, Schedule


class AvailabilityIndex:
    """Lookups built once per search so membership tests are O(1).

    ``lectures_by_time`` groups the lecture slots by time slot, keeping the
    order in which each time slot first appears in the lecture list.
    """
    def __init__(self, lectures: List[LectureSlot], lectures_by_time: Dict[Hashable, List[LectureSlot]],
                 preferred: Dict[FacultyMember, FrozenSet[Hashable]]):
        self.lectures = lectures
        self.lectures_by_time = lectures_by_time
        self._preferred = preferred

    @classmethod
    def build(cls, lectures: Iterable[LectureSlot],
              preferences: Mapping[FacultyMember, Iterable[Hashable]]) -> "AvailabilityIndex":
        lectures = list(lectures)
        by_time: Dict[Hashable, List[LectureSlot]] = {}
        for lec in lectures:
            by_time.setdefault(lec.time_slot, []).append(lec)
        preferred = {f: frozenset(slots) for f, slots in preferences.items()}
        return cls(lectures, by_time, preferred)

    def preferred_slots(self, faculty: FacultyMember) -> FrozenSet[Hashable]:
        return self._preferred.get(faculty, frozenset())

    def is_preferred(self, faculty: FacultyMember, lecture: LectureSlot) -> bool:
        return lecture.time_slot in self.preferred_slots(faculty)


class SearchState:
    """Mutable state of one search run: partial schedule plus consumed resources.

    Owned by a single search invocation and never shared. Each faculty member
    holds exactly one lecture, so ``used_times[f]`` has at most one entry.
    """
    def __init__(self):
        self.schedule = Schedule()
        self.used_lectures: Set[Hashable] = set()
        self.used_times: Dict[FacultyMember, Set[Hashable]] = {}

    def lecture_free(self, lecture_id: Hashable) -> bool:
        return lecture_id not in self.used_lectures

    def time_free(self, faculty: FacultyMember, time_slot: Hashable) -> bool:
        return time_slot not in self.used_times.get(faculty, ())

    @contextmanager
    def assign(self, faculty: FacultyMember, lecture: LectureSlot, is_preferred: bool):
        """Tentatively add an assignment; it is undone when the block exits, however it exits."""
        self.schedule.assignments[faculty] = Assignment(faculty, lecture, is_preferred)
        self.used_lectures.add(lecture.id)
        times = self.used_times.setdefault(faculty, set())
        times.add(lecture.time_slot)
        try:
            yield
        finally:
            del self.schedule.assignments[faculty]
            self.used_lectures.discard(lecture.id)
            times.discard(lecture.time_slot)
