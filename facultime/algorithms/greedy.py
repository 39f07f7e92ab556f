from typing import Hashable, Iterable, List, Mapping
import random

from ..exceptions import SchedulerError
from ..models import Assignment, FacultyMember, LectureSlot, Schedule


def greedy_assignment(faculty: Iterable[FacultyMember], lectures: List[LectureSlot],
                      preferences: Mapping[FacultyMember, Iterable[Hashable]],
                      order: str = 'given', seed=None) -> Schedule:
    """Quick starting schedule: first free preferred lecture, else first free lecture."""
    if order == 'given':
        members = list(faculty)
    elif order == 'random':
        members = list(faculty)
        random.Random(seed).shuffle(members)
    else:
        raise ValueError("order must be 'given' or 'random'")
    if len(lectures) < len(members):
        raise SchedulerError(
            f"{len(members)} faculty but only {len(lectures)} lecture slots",
            details={"faculty": len(members), "lectures": len(lectures)},
        )
    used = set()
    schedule = Schedule()
    for f in members:
        preferred = set(preferences.get(f, ()))
        free = [l for l in lectures if l.id not in used]
        pick = next((l for l in free if l.time_slot in preferred), free[0])
        used.add(pick.id)
        schedule.assignments[f] = Assignment(f, pick, pick.time_slot in preferred)
    return schedule
