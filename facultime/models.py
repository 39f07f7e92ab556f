from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Tuple

FacultyMember = Hashable


@dataclass(frozen=True)
class LectureSlot:
    id: Hashable
    time_slot: Hashable  # parallel sessions share a time slot


@dataclass(frozen=True)
class Assignment:
    faculty: FacultyMember
    lecture: LectureSlot
    is_preferred: bool


@dataclass
class Schedule:
    # faculty -> assignment, in the order the faculty were assigned
    assignments: Dict[FacultyMember, Assignment] = field(default_factory=dict)

    @property
    def score(self) -> int:
        return sum(1 for a in self.assignments.values() if not a.is_preferred)

    def pairs(self) -> List[Tuple[FacultyMember, Assignment]]:
        return list(self.assignments.items())

    def copy(self) -> "Schedule":
        return Schedule(assignments=dict(self.assignments))

    def __len__(self) -> int:
        return len(self.assignments)


@dataclass
class BestSolution:
    score: int
    schedule: Optional[Schedule] = None


@dataclass
class SearchResult:
    score: int
    nodes_explored: int
    schedule: Optional[Schedule] = None  # None when the initial bound was never beaten
    cancelled: bool = False

    @property
    def improved(self) -> bool:
        return self.schedule is not None
