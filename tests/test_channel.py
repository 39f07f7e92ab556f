import json

import pytest

from facultime.channel import (
    CancelledMessage, CompleteMessage, ErrorMessage, ProgressMessage, SearchChannel, SolutionMessage,
    StartRequest, message_from_wire,
)
from facultime.exceptions import InputValidationError, SearchCancelled
from facultime.models import Assignment, LectureSlot, Schedule


def test_start_request_wire_shape(two_faculty):
    faculty, lectures, prefs = two_faculty
    req = StartRequest(faculty, lectures, prefs, initial_best_score=2)
    wire = req.to_wire()
    assert wire["facultyList"] == ["A", "B"]
    assert wire["lectureSlots"][0] == {"id": 1, "timeSlot": "9am"}
    assert wire["preferenceData"] == [["A", ["10am"]], ["B", []]]
    assert wire["initialBestScore"] == 2
    assert wire["availability"] is None

    back = StartRequest.from_wire(json.loads(json.dumps(wire)))
    assert back.faculty == faculty
    assert back.lectures == lectures
    assert back.preferences == prefs


def test_start_request_accepts_object_preferences():
    req = StartRequest.from_wire({
        "facultyList": ["A"],
        "lectureSlots": [{"id": "x", "timeSlot": "mon"}],
        "preferenceData": {"A": ["mon", "tue"]},
        "availability": [["A", ["mon"]]],
    })
    assert req.preferences == {"A": {"mon", "tue"}}
    assert req.availability == {"A": {"mon"}}
    assert req.initial_best_score is None


@pytest.mark.parametrize("payload", [
    {"lectureSlots": []},
    {"facultyList": ["A"], "lectureSlots": [{"id": 1}]},
    {"facultyList": ["A"], "lectureSlots": [], "preferenceData": [["A"]]},
    ["not", "an", "object"],
    {"facultyList": ["A"], "lectureSlots": 5},
    {"facultyList": "AB", "lectureSlots": []},
    {"facultyList": [["A"]], "lectureSlots": []},
    {"facultyList": ["A"], "lectureSlots": [{"id": [1], "timeSlot": "9am"}]},
    {"facultyList": ["A"], "lectureSlots": [{"id": 1, "timeSlot": {"day": "mon"}}]},
    {"facultyList": ["A"], "lectureSlots": ["9am"]},
    {"facultyList": ["A"], "lectureSlots": [], "preferenceData": [["A", "mon"]]},
    {"facultyList": ["A"], "lectureSlots": [], "preferenceData": {"A": "mon"}},
    {"facultyList": ["A"], "lectureSlots": [], "preferenceData": [["A", [["mon"]]]]},
    {"facultyList": ["A"], "lectureSlots": [], "preferenceData": [[["A"], ["mon"]]]},
    {"facultyList": ["A"], "lectureSlots": [], "preferenceData": 7},
])
def test_malformed_start_request(payload):
    with pytest.raises(InputValidationError):
        StartRequest.from_wire(payload)


def test_string_slot_list_is_not_split_into_characters():
    with pytest.raises(InputValidationError) as exc:
        StartRequest.from_wire({"facultyList": ["A"], "lectureSlots": [],
                                "preferenceData": [["A", "mon"]]})
    assert "must be a list" in exc.value.message


def test_null_slot_list_means_no_preferences():
    req = StartRequest.from_wire({"facultyList": ["A"], "lectureSlots": [], "preferenceData": [["A", None]]})
    assert req.preferences == {"A": set()}


def test_message_wire_shapes():
    sched = Schedule()
    lec = LectureSlot(id=3, time_slot="10am")
    sched.assignments["A"] = Assignment("A", lec, True)

    assert ProgressMessage(1, "B", 2000).to_wire() == {
        "kind": "progress", "facultyIndex": 1, "facultyLabel": "B", "nodesExplored": 2000}
    assert SolutionMessage(sched, 0).to_wire() == {
        "kind": "solutionFound", "score": 0,
        "schedule": [["A", {"lecture": {"id": 3, "timeSlot": "10am"}, "isPreferred": True}]]}
    assert CompleteMessage(10, 1).to_wire() == {"kind": "complete", "nodesExplored": 10, "finalScore": 1}
    assert CancelledMessage(1000, 2).to_wire() == {"kind": "cancelled", "nodesExplored": 1000, "finalScore": 2}
    assert ErrorMessage("bad").to_wire() == {"kind": "error", "message": "bad"}


def test_message_from_wire():
    msg = message_from_wire({"kind": "solutionFound", "score": 1,
                             "schedule": [["B", {"lecture": {"id": 1, "timeSlot": "9am"}, "isPreferred": False}]]})
    assert isinstance(msg, SolutionMessage)
    assert msg.schedule.assignments["B"].lecture == LectureSlot(1, "9am")
    assert msg.schedule.score == 1
    assert isinstance(message_from_wire({"kind": "cancelled", "nodesExplored": 5, "finalScore": 0}),
                      CancelledMessage)
    with pytest.raises(ValueError):
        message_from_wire({"kind": "bogus"})


def test_checkpoint_raises_only_after_cancel(channel):
    channel.checkpoint(1000)
    channel.cancel()
    assert channel.cancelled
    with pytest.raises(SearchCancelled) as exc:
        channel.checkpoint(2000)
    assert exc.value.nodes_explored == 2000


def test_drain_empties_outbox():
    channel = SearchChannel()
    channel.emit(CompleteMessage(1, 0))
    assert channel.drain() == [{"kind": "complete", "nodesExplored": 1, "finalScore": 0}]
    assert channel.drain() == []
    assert channel.get(timeout=0.01) is None
