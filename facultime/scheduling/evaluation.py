from typing import Hashable, Iterable, List, Mapping, Optional
import networkx as nx

from ..graph_build import build_preference_graph, faculty_node
from ..models import FacultyMember, LectureSlot, Schedule
from .validation import faculty_once, lectures_unique, preferences_ok, time_slots_unique


def score_of(sched: Schedule) -> int:
    return sched.score


def preference_lower_bound(faculty: List[FacultyMember], lectures: List[LectureSlot],
                           preferences: Mapping[FacultyMember, Iterable[Hashable]]) -> int:
    """Lower bound on the score: faculty left over by a maximum preferred matching.

    Every faculty member outside a maximum matching on preferred edges must
    take an unpreferred lecture. With at least as many lectures as faculty
    the leftovers can always be seated, so the bound is then the optimum.
    """
    faculty = list(faculty)
    if not faculty:
        return 0
    G = build_preference_graph(faculty, lectures, preferences)
    top = {faculty_node(f) for f in faculty}
    matching = nx.bipartite.maximum_matching(G, top_nodes=top)
    matched = sum(1 for n in top if n in matching)
    return len(faculty) - matched


def summary(faculty: List[FacultyMember], lectures: List[LectureSlot],
            preferences: Mapping[FacultyMember, Iterable[Hashable]], sched: Optional[Schedule],
            score: int, nodes_explored: int, cancelled: bool = False) -> str:
    time_slots = len({l.time_slot for l in lectures})
    lb = preference_lower_bound(faculty, lectures, preferences)
    status = "cancelled" if cancelled else "complete"
    if sched is None:
        validity = "Schedule: none better than the initial bound\n"
    else:
        validity = (
            f"Valid (faculty once): {faculty_once(faculty, sched)}  "
            f"Valid (lectures unique): {lectures_unique(sched)}  "
            f"Valid (time slots): {time_slots_unique(sched)}  "
            f"Valid (preferences): {preferences_ok(sched, preferences)}\n"
        )
    warning = ""
    if len(lectures) < len(faculty):
        warning = f"Warning: lectures={len(lectures)} < faculty={len(faculty)}; no complete schedule exists.\n"
    return (
        f"Faculty: {len(faculty)}  Lectures: {len(lectures)}  Time slots: {time_slots}\n"
        f"Search: {status}  Nodes explored: {nodes_explored}\n"
        f"Best score (unpreferred assignments): {score}  Preference lower bound: {lb}\n"
        f"{validity}"
        f"{warning}"
    )
