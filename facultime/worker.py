"""Run a search off the controller's thread and relay its messages.

The controller side only ever sees wire messages from the outbox; it never
touches the search state. Cancellation is cooperative: the search notices
the flag at its next checkpoint, at most ``report_interval`` nodes later.
"""
import logging
import multiprocessing
import queue
import threading
from typing import Any, Dict, Iterator, Optional

from .algorithms.branch_bound import BranchAndBoundSearch, SearchParams
from .channel import FINAL_KINDS, ErrorMessage, SearchChannel, StartRequest, message_from_wire
from .exceptions import InputValidationError, SchedulerError
from .models import SearchResult
from .scheduling.validation import validate_request

logger = logging.getLogger(__name__)


def run_search_job(request_wire: Dict[str, Any], outbox, cancel_event,
                   params: Optional[SearchParams] = None) -> Optional[SearchResult]:
    """Validate a start request and search it, ending with exactly one final message."""
    channel = SearchChannel(outbox, cancel_event)
    try:
        request = StartRequest.from_wire(request_wire)
        validate_request(request.faculty, request.lectures, request.preferences, request.initial_best_score)
    except InputValidationError as e:
        logger.warning("rejected start request: %s", e.message)
        channel.emit(ErrorMessage(e.message))
        return None
    except Exception as e:
        logger.exception("could not read start request")
        channel.emit(ErrorMessage(f"malformed start request: {str(e) or type(e).__name__}"))
        return None

    search = BranchAndBoundSearch(request.faculty, request.lectures, request.preferences,
                                  request.initial_best_score, channel=channel, params=params)
    try:
        return search.run()
    except Exception as e:
        logger.exception("search failed after %d nodes", search.nodes_explored)
        channel.emit(ErrorMessage(str(e) or type(e).__name__))
        return None


class SearchWorker:
    def __init__(self, request: StartRequest, params: Optional[SearchParams] = None, use_process: bool = False):
        self.request = request
        self.params = params
        self.use_process = use_process
        if use_process:
            self._ctx = multiprocessing.get_context("spawn")
            self.channel = SearchChannel(self._ctx.Queue(), self._ctx.Event())
        else:
            self._ctx = None
            self.channel = SearchChannel(queue.Queue(), threading.Event())
        self._runner = None
        self.best = None   # latest SolutionMessage
        self.final = None  # CompleteMessage, CancelledMessage or ErrorMessage

    def start(self) -> "SearchWorker":
        if self._runner is not None:
            raise RuntimeError("worker already started")
        args = (self.request.to_wire(), self.channel.outbox, self.channel.cancel_event, self.params)
        if self.use_process:
            self._runner = self._ctx.Process(target=run_search_job, args=args, daemon=True)
        else:
            self._runner = threading.Thread(target=run_search_job, args=args, daemon=True,
                                            name="facultime-search")
        self._runner.start()
        logger.debug("search worker started (%s)", "process" if self.use_process else "thread")
        return self

    def cancel(self) -> None:
        self.channel.cancel()

    def is_alive(self) -> bool:
        return self._runner is not None and self._runner.is_alive()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._runner is not None:
            self._runner.join(timeout)

    @property
    def done(self) -> bool:
        return self.final is not None

    def poll(self, timeout: Optional[float] = None):
        """Next message from the search, or None if nothing arrived within ``timeout``."""
        data = self.channel.get(timeout=timeout)
        if data is None:
            return None
        msg = message_from_wire(data)
        if msg.kind == "solutionFound":
            self.best = msg
        elif msg.kind in FINAL_KINDS:
            self.final = msg
        return msg

    def messages(self, timeout: float = 0.1) -> Iterator:
        """Yield messages until the final one; the final message is yielded too."""
        if self._runner is None:
            raise RuntimeError("worker not started")
        while self.final is None:
            msg = self.poll(timeout)
            if msg is not None:
                yield msg
                continue
            if self._runner is not None and not self._runner.is_alive():
                # runner exited between polls; its last message may still be in flight
                msg = self.poll(0.5)
                if msg is None:
                    raise SchedulerError("search worker exited without a final message")
                yield msg

    def result(self):
        for _ in self.messages():
            pass
        self.join()
        return self.final
