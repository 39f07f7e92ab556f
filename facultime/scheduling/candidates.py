from typing import List, Tuple

from ..availability import AvailabilityIndex, SearchState
from ..models import FacultyMember, LectureSlot


def candidates_for(faculty: FacultyMember, state: SearchState,
                   index: AvailabilityIndex) -> List[Tuple[LectureSlot, bool]]:
    """Lecture slots still open to ``faculty``, preferred ones first.

    The ordering only steers the search toward good schedules early; an
    empty list means the branch cannot be extended.
    """
    preferred = index.preferred_slots(faculty)
    possible = []
    for lec in index.lectures:
        if state.lecture_free(lec.id) and state.time_free(faculty, lec.time_slot):
            possible.append((lec, lec.time_slot in preferred))
    # sort is stable, so lecture-list order survives within each group
    possible.sort(key=lambda c: not c[1])
    return possible
