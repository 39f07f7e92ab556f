from typing import Hashable, Iterable, List, Mapping
import networkx as nx

from .models import FacultyMember, LectureSlot


def faculty_node(f: FacultyMember):
    return ("faculty", f)


def lecture_node(lecture_id: Hashable):
    return ("lecture", lecture_id)


def build_preference_graph(faculty: Iterable[FacultyMember], lectures: List[LectureSlot],
                           preferences: Mapping[FacultyMember, Iterable[Hashable]]) -> nx.Graph:
    """Bipartite graph linking each faculty member to every lecture in a preferred time slot."""
    G = nx.Graph()
    faculty = list(faculty)
    G.add_nodes_from((faculty_node(f) for f in faculty), bipartite=0)
    G.add_nodes_from((lecture_node(l.id) for l in lectures), bipartite=1)
    by_time = {}
    for lec in lectures:
        by_time.setdefault(lec.time_slot, []).append(lec)
    for f in faculty:
        for slot in preferences.get(f, ()):
            for lec in by_time.get(slot, ()):
                G.add_edge(faculty_node(f), lecture_node(lec.id))
    return G
