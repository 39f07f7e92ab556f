import itertools
import random

import pytest

from facultime.channel import SearchChannel
from facultime.models import LectureSlot


def brute_force_score(faculty, lectures, preferences):
    """Minimum score over every assignment of distinct lectures, or None if none exists."""
    best = None
    for combo in itertools.permutations(lectures, len(faculty)):
        s = sum(1 for f, lec in zip(faculty, combo) if lec.time_slot not in preferences.get(f, ()))
        if best is None or s < best:
            best = s
    return best


def random_instance(seed, n_faculty=4, n_slots=3, per_slot=2, prob=0.35):
    rng = random.Random(seed)
    faculty = [f"F{i}" for i in range(n_faculty)]
    slots = [f"T{i}" for i in range(n_slots)]
    lectures = [LectureSlot(id=i * per_slot + j, time_slot=s) for i, s in enumerate(slots) for j in range(per_slot)]
    prefs = {f: {s for s in slots if rng.random() < prob} for f in faculty}
    return faculty, lectures, prefs


@pytest.fixture()
def two_faculty():
    faculty = ["A", "B"]
    lectures = [
        LectureSlot(id=1, time_slot="9am"),
        LectureSlot(id=2, time_slot="9am"),
        LectureSlot(id=3, time_slot="10am"),
    ]
    prefs = {"A": {"10am"}, "B": set()}
    return faculty, lectures, prefs


@pytest.fixture()
def huge_instance():
    # no preferences anywhere: pruning only bites at the leaves, so the tree is enormous
    faculty = [f"F{i}" for i in range(8)]
    lectures = [LectureSlot(id=i, time_slot=f"T{i // 2}") for i in range(16)]
    return faculty, lectures, {}


@pytest.fixture()
def channel():
    return SearchChannel()
