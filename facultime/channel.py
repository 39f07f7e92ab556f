"""Progress/cancellation channel between a running search and its controller.

Everything that crosses the boundary is a plain JSON-compatible dict (the
"wire" shape), so the same messages work over a ``queue.Queue`` for a worker
thread or a ``multiprocessing`` queue for a worker process.

Wire shapes::

    {"kind": "progress", "facultyIndex": 3, "facultyLabel": "Ada", "nodesExplored": 4000}
    {"kind": "solutionFound", "score": 1,
     "schedule": [["Ada", {"lecture": {"id": 3, "timeSlot": "10am"}, "isPreferred": true}], ...]}
    {"kind": "complete", "nodesExplored": 5210, "finalScore": 1}
    {"kind": "cancelled", "nodesExplored": 3000, "finalScore": 2}
    {"kind": "error", "message": "duplicate lecture ids: [7]"}

``complete``, ``cancelled`` and ``error`` are final: exactly one of them ends
every run.
"""
import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Mapping, Optional, Set

from .exceptions import InputValidationError, SearchCancelled
from .models import Assignment, FacultyMember, LectureSlot, Schedule

logger = logging.getLogger(__name__)

FINAL_KINDS = ("complete", "cancelled", "error")


def lecture_to_wire(lecture: LectureSlot) -> Dict[str, Any]:
    return {"id": lecture.id, "timeSlot": lecture.time_slot}


def _require_hashable(value, what: str) -> None:
    try:
        hash(value)
    except TypeError:
        raise InputValidationError(f"{what} must be a string or number, got {type(value).__name__}",
                                   details={what: repr(value)})


def lecture_from_wire(data: Mapping[str, Any]) -> LectureSlot:
    if not isinstance(data, Mapping) or "id" not in data or "timeSlot" not in data:
        raise InputValidationError("lecture slot needs 'id' and 'timeSlot'", details={"lecture": repr(data)})
    _require_hashable(data["id"], "lecture id")
    _require_hashable(data["timeSlot"], "time slot")
    return LectureSlot(id=data["id"], time_slot=data["timeSlot"])


def schedule_to_wire(schedule: Schedule) -> List[list]:
    return [[f, {"lecture": lecture_to_wire(a.lecture), "isPreferred": a.is_preferred}]
            for f, a in schedule.pairs()]


def schedule_from_wire(pairs: List[list]) -> Schedule:
    sched = Schedule()
    for f, a in pairs:
        sched.assignments[f] = Assignment(f, lecture_from_wire(a["lecture"]), bool(a["isPreferred"]))
    return sched


def _slot_sets_to_wire(mapping: Optional[Mapping[FacultyMember, Set[Hashable]]]):
    if mapping is None:
        return None
    return [[f, sorted(slots, key=str)] for f, slots in mapping.items()]


def _slot_sets_from_wire(data) -> Optional[Dict[FacultyMember, Set[Hashable]]]:
    if data is None:
        return None
    # Accept both [[faculty, [slots]], ...] and {faculty: [slots]}
    if isinstance(data, Mapping):
        items = data.items()
    elif isinstance(data, (list, tuple)):
        items = data
    else:
        raise InputValidationError("slot mapping must be a list of [faculty, [timeSlot, ...]] or an object",
                                   details={"data": repr(data)})
    out: Dict[FacultyMember, Set[Hashable]] = {}
    for entry in items:
        try:
            f, slots = entry
        except (TypeError, ValueError):
            raise InputValidationError("slot mapping entries must be [faculty, [timeSlot, ...]]",
                                       details={"entry": repr(entry)})
        _require_hashable(f, "faculty label")
        if slots is None:
            slots = ()
        # a bare string would otherwise become a set of characters
        if not isinstance(slots, (list, tuple, set, frozenset)):
            raise InputValidationError(f"time slots for {f!r} must be a list",
                                       details={"faculty": repr(f), "slots": repr(slots)})
        for slot in slots:
            _require_hashable(slot, "time slot")
        out[f] = set(slots)
    return out


@dataclass
class StartRequest:
    faculty: List[FacultyMember]
    lectures: List[LectureSlot]
    preferences: Dict[FacultyMember, Set[Hashable]]
    initial_best_score: Optional[int] = None
    # consumed by upstream heuristics only; the search ignores it
    availability: Optional[Dict[FacultyMember, Set[Hashable]]] = None

    def to_wire(self) -> Dict[str, Any]:
        return {
            "facultyList": list(self.faculty),
            "lectureSlots": [lecture_to_wire(l) for l in self.lectures],
            "preferenceData": _slot_sets_to_wire(self.preferences),
            "initialBestScore": self.initial_best_score,
            "availability": _slot_sets_to_wire(self.availability),
        }

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "StartRequest":
        if not isinstance(data, Mapping):
            raise InputValidationError("start request must be a JSON object")
        missing = [k for k in ("facultyList", "lectureSlots") if k not in data]
        if missing:
            raise InputValidationError(f"start request is missing {', '.join(missing)}",
                                       details={"missing": missing})
        for key in ("facultyList", "lectureSlots"):
            if not isinstance(data[key], (list, tuple)):
                raise InputValidationError(f"{key} must be a list", details={key: repr(data[key])})
        for f in data["facultyList"]:
            _require_hashable(f, "faculty label")
        return cls(
            faculty=list(data["facultyList"]),
            lectures=[lecture_from_wire(l) for l in data["lectureSlots"]],
            preferences=_slot_sets_from_wire(data.get("preferenceData")) or {},
            initial_best_score=data.get("initialBestScore"),
            availability=_slot_sets_from_wire(data.get("availability")),
        )


@dataclass
class ProgressMessage:
    faculty_index: int
    faculty_label: FacultyMember
    nodes_explored: int
    kind: str = field(default="progress", init=False)

    def to_wire(self):
        return {"kind": self.kind, "facultyIndex": self.faculty_index,
                "facultyLabel": self.faculty_label, "nodesExplored": self.nodes_explored}


@dataclass
class SolutionMessage:
    schedule: Schedule
    score: int
    kind: str = field(default="solutionFound", init=False)

    def to_wire(self):
        return {"kind": self.kind, "schedule": schedule_to_wire(self.schedule), "score": self.score}


@dataclass
class CompleteMessage:
    nodes_explored: int
    final_score: int
    kind: str = field(default="complete", init=False)

    def to_wire(self):
        return {"kind": self.kind, "nodesExplored": self.nodes_explored, "finalScore": self.final_score}


@dataclass
class CancelledMessage(CompleteMessage):
    kind: str = field(default="cancelled", init=False)


@dataclass
class ErrorMessage:
    message: str
    kind: str = field(default="error", init=False)

    def to_wire(self):
        return {"kind": self.kind, "message": self.message}


def message_from_wire(data: Mapping[str, Any]):
    kind = data.get("kind")
    if kind == "progress":
        return ProgressMessage(data["facultyIndex"], data["facultyLabel"], data["nodesExplored"])
    if kind == "solutionFound":
        return SolutionMessage(schedule_from_wire(data["schedule"]), data["score"])
    if kind == "complete":
        return CompleteMessage(data["nodesExplored"], data["finalScore"])
    if kind == "cancelled":
        return CancelledMessage(data["nodesExplored"], data["finalScore"])
    if kind == "error":
        return ErrorMessage(data["message"])
    raise ValueError(f"unknown message kind: {kind!r}")


class SearchChannel:
    """Outbound messages plus an inbound cancellation flag.

    ``outbox`` and ``cancel_event`` default to thread primitives; pass the
    ``multiprocessing`` equivalents when the search runs in another process.
    """
    def __init__(self, outbox=None, cancel_event=None):
        self.outbox = outbox if outbox is not None else queue.Queue()
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()

    def emit(self, message) -> None:
        self.outbox.put(message.to_wire())

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def checkpoint(self, nodes_explored: int) -> None:
        """Suspension point of the search: let the controller run, then honour cancellation."""
        time.sleep(0)
        if self.cancel_event.is_set():
            logger.debug("cancellation observed after %d nodes", nodes_explored)
            raise SearchCancelled(nodes_explored)

    def get(self, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        try:
            return self.outbox.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[Dict[str, Any]]:
        out = []
        while True:
            try:
                out.append(self.outbox.get_nowait())
            except queue.Empty:
                return out
