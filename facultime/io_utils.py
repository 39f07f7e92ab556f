import csv
import io
import json
import os
import random
from typing import Dict, Hashable, IO, List, Set, Union

from .channel import StartRequest
from .exceptions import InputValidationError
from .models import FacultyMember, LectureSlot, Schedule

TextOrPath = Union[str, os.PathLike, IO]


def _open_text(src: TextOrPath):
    """Return a text-mode file handle and a flag indicating whether to close it.

    Accepts a filesystem path, a text IO object, or a BytesIO buffer.
    """
    if isinstance(src, (str, os.PathLike)):
        f = open(src, 'r', newline='')
        return f, True
    if isinstance(src, io.BytesIO):
        src.seek(0)
        f = io.TextIOWrapper(src, encoding='utf-8', newline='')
        return f, True
    if hasattr(src, 'read'):
        if hasattr(src, 'seek'):
            src.seek(0)
        return src, False
    raise TypeError("Unsupported input type; expected path or file-like object")


def _lecture_id(raw: str):
    raw = raw.strip()
    return int(raw) if raw.isdigit() else raw


def load_lectures(src: TextOrPath) -> List[LectureSlot]:
    """CSV with columns id,time_slot (timeSlot is accepted too)."""
    lectures: List[LectureSlot] = []
    f, should_close = _open_text(src)
    try:
        r = csv.DictReader(f)
        for line_no, row in enumerate(r, start=2):
            lid = row.get('id')
            slot = row.get('time_slot', row.get('timeSlot'))
            if not lid or not slot:
                raise InputValidationError(f"lecture row {line_no} needs id and time_slot",
                                           details={"line": line_no, "row": row})
            lectures.append(LectureSlot(id=_lecture_id(lid), time_slot=slot.strip()))
    finally:
        if should_close:
            f.close()
    return lectures


def load_preferences(src: TextOrPath) -> Dict[FacultyMember, Set[Hashable]]:
    """CSV faculty,time_slot with one row per preferred slot.

    A row with an empty time_slot declares a faculty member without preferences.
    """
    prefs: Dict[FacultyMember, Set[Hashable]] = {}
    f, should_close = _open_text(src)
    try:
        r = csv.DictReader(f)
        for row in r:
            name = (row.get('faculty') or '').strip()
            if not name:
                continue
            slots = prefs.setdefault(name, set())
            slot = (row.get('time_slot') or row.get('timeSlot') or '').strip()
            if slot:
                slots.add(slot)
    finally:
        if should_close:
            f.close()
    return prefs


def load_faculty(src: TextOrPath) -> List[FacultyMember]:
    """One faculty label per line; blank lines and # comments are skipped."""
    faculty: List[FacultyMember] = []
    f, should_close = _open_text(src)
    try:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            faculty.append(line)
    finally:
        if should_close:
            f.close()
    return faculty


def load_request_json(src: TextOrPath) -> StartRequest:
    f, should_close = _open_text(src)
    try:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InputValidationError(f"start request is not valid JSON: {e}")
    finally:
        if should_close:
            f.close()
    return StartRequest.from_wire(data)


def save_schedule_csv(path: str, schedule: Schedule):
    with open(path, 'w', newline='') as f:
        w = csv.writer(f)
        w.writerow(['faculty', 'lecture_id', 'time_slot', 'preferred'])
        for faculty, a in schedule.pairs():
            w.writerow([faculty, a.lecture.id, a.lecture.time_slot, int(a.is_preferred)])


def generate_synthetic(n_faculty: int, n_time_slots: int = 6, lectures_per_slot: int = 2,
                       pref_prob: float = 0.3, seed=None):
    """Random faculty, lecture slots and preferences for demos and benchmarks."""
    rng = random.Random(seed)
    faculty = [f"F{i}" for i in range(n_faculty)]
    slots = [f"T{i}" for i in range(n_time_slots)]
    lectures = [LectureSlot(id=i * lectures_per_slot + j, time_slot=slot)
                for i, slot in enumerate(slots) for j in range(lectures_per_slot)]
    preferences = {f: {s for s in slots if rng.random() < pref_prob} for f in faculty}
    return faculty, lectures, preferences
