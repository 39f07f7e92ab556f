import pytest

from facultime.channel import SearchChannel, StartRequest
from facultime.worker import SearchWorker, run_search_job


def test_worker_reports_improvement_and_completion(two_faculty):
    faculty, lectures, prefs = two_faculty
    worker = SearchWorker(StartRequest(faculty, lectures, prefs, initial_best_score=2)).start()
    seen = [m.kind for m in worker.messages()]
    worker.join(timeout=5)

    assert seen == ["solutionFound", "complete"]
    assert worker.best.score == 1
    assert worker.final.final_score == 1
    assert not worker.is_alive()


def test_worker_without_improvement(two_faculty):
    faculty, lectures, prefs = two_faculty
    final = SearchWorker(StartRequest(faculty, lectures, prefs, initial_best_score=1)).start().result()
    assert final.kind == "complete"
    assert final.final_score == 1


def test_invalid_request_reports_error_and_never_searches():
    channel = SearchChannel()
    wire = {"facultyList": ["A"], "lectureSlots": [{"id": 1, "timeSlot": "9am"}, {"id": 1, "timeSlot": "10am"}]}
    assert run_search_job(wire, channel.outbox, channel.cancel_event) is None
    messages = channel.drain()
    assert len(messages) == 1
    assert messages[0]["kind"] == "error"
    assert "duplicate lecture ids" in messages[0]["message"]


def test_unexpected_failure_becomes_error_message(monkeypatch, two_faculty):
    from facultime.algorithms import branch_bound

    def explode(*args, **kwargs):
        raise RuntimeError("index corrupted")

    monkeypatch.setattr(branch_bound, "candidates_for", explode)
    channel = SearchChannel()
    faculty, lectures, prefs = two_faculty
    run_search_job(StartRequest(faculty, lectures, prefs).to_wire(), channel.outbox, channel.cancel_event)
    assert channel.drain() == [{"kind": "error", "message": "index corrupted"}]


def test_cancel_running_worker(huge_instance):
    faculty, lectures, prefs = huge_instance
    worker = SearchWorker(StartRequest(faculty, lectures, prefs)).start()
    kinds = []
    for msg in worker.messages():
        kinds.append(msg.kind)
        if msg.kind == "progress" and not worker.channel.cancelled:
            worker.cancel()
    worker.join(timeout=5)

    assert kinds[-1] == "cancelled"
    assert worker.final.nodes_explored % 1000 == 0
    assert worker.final.final_score == len(faculty)
    assert worker.best.score == len(faculty)


def test_worker_in_separate_process(two_faculty):
    faculty, lectures, prefs = two_faculty
    worker = SearchWorker(StartRequest(faculty, lectures, prefs, initial_best_score=2), use_process=True)
    final = worker.start().result()
    assert final.kind == "complete"
    assert final.final_score == 1
    assert worker.best.schedule.assignments["A"].lecture.id == 3


@pytest.mark.parametrize("wire", [
    {"facultyList": ["A"], "lectureSlots": [{"id": [1], "timeSlot": "9am"}]},
    {"facultyList": [["A"]], "lectureSlots": [{"id": 1, "timeSlot": "9am"}]},
    {"facultyList": ["A"], "lectureSlots": 5},
    {"facultyList": ["A"], "lectureSlots": [{"id": 1, "timeSlot": "9am"}], "preferenceData": [["A", "9am"]]},
])
def test_wrongly_typed_request_reports_one_error(wire):
    channel = SearchChannel()
    assert run_search_job(wire, channel.outbox, channel.cancel_event) is None
    assert [m["kind"] for m in channel.drain()] == ["error"]


def test_worker_thread_ends_with_error_for_unhashable_id():
    class HandWrittenRequest(StartRequest):
        def to_wire(self):
            return {"facultyList": ["A"], "lectureSlots": [{"id": {"n": 1}, "timeSlot": "9am"}]}

    final = SearchWorker(HandWrittenRequest(["A"], [], {})).start().result()
    assert final.kind == "error"
    assert "lecture id" in final.message


def test_unexpected_request_failure_still_reports_error(monkeypatch, two_faculty):
    from facultime import worker as worker_module

    def broken(*args, **kwargs):
        raise TypeError("unorderable data")

    monkeypatch.setattr(worker_module, "validate_request", broken)
    channel = SearchChannel()
    faculty, lectures, prefs = two_faculty
    run_search_job(StartRequest(faculty, lectures, prefs).to_wire(), channel.outbox, channel.cancel_event)
    messages = channel.drain()
    assert len(messages) == 1
    assert messages[0]["kind"] == "error"
    assert "unorderable data" in messages[0]["message"]
