"""Exhaustive backtracking search with branch-and-bound pruning.

Faculty members are assigned one at a time in a fixed exploration order.
A branch is abandoned as soon as its running count of unpreferred
assignments reaches the best complete score known, so the search only ever
reports schedules that strictly improve on the current bound.
"""
import logging
import random
from typing import Hashable, Iterable, List, Mapping, Optional

from ..availability import AvailabilityIndex, SearchState
from ..channel import CancelledMessage, CompleteMessage, ProgressMessage, SearchChannel, SolutionMessage
from ..exceptions import SearchCancelled
from ..models import BestSolution, FacultyMember, LectureSlot, Schedule, SearchResult
from ..scheduling.candidates import candidates_for

logger = logging.getLogger(__name__)


class SearchParams:
    """Search knobs.

    A node is one candidate attempt. Every ``report_interval`` nodes the
    search reports progress and then checks for cancellation; the node that
    triggered the check is already counted, so a cancelled run reports
    ``nodes_explored`` as a multiple of ``report_interval`` even though that
    last node was never expanded.
    """
    def __init__(self, report_interval=1000, shuffle=False, seed=None):
        if report_interval < 1:
            raise ValueError("report_interval must be >= 1")
        self.report_interval = report_interval
        self.shuffle = shuffle
        self.seed = seed


class BestSolutionTracker:
    """Best complete schedule seen so far; replaced only on a strictly lower score."""
    def __init__(self, initial_score: int):
        self.best = BestSolution(score=initial_score)

    @property
    def score(self) -> int:
        return self.best.score

    @property
    def schedule(self) -> Optional[Schedule]:
        return self.best.schedule

    def offer(self, schedule: Schedule, score: int) -> bool:
        if score >= self.best.score:
            return False
        self.best = BestSolution(score=score, schedule=schedule.copy())
        return True


def exploration_order(faculty: Iterable[FacultyMember], params: SearchParams) -> List[FacultyMember]:
    order = list(faculty)
    if params.shuffle:
        random.Random(params.seed).shuffle(order)
    return order


class BranchAndBoundSearch:
    def __init__(self, faculty: Iterable[FacultyMember], lectures: Iterable[LectureSlot],
                 preferences: Mapping[FacultyMember, Iterable[Hashable]],
                 initial_best_score: Optional[int] = None,
                 channel: Optional[SearchChannel] = None, params: Optional[SearchParams] = None):
        self.params = params or SearchParams()
        self.order = exploration_order(faculty, self.params)
        self.index = AvailabilityIndex.build(lectures, preferences)
        if initial_best_score is None:
            # unreachable score: every complete schedule beats it
            initial_best_score = len(self.order) + 1
        self.initial_best_score = initial_best_score
        self.channel = channel if channel is not None else SearchChannel()
        self.tracker = BestSolutionTracker(initial_best_score)
        self.nodes_explored = 0
        self._state: Optional[SearchState] = None

    def run(self) -> SearchResult:
        """Search to exhaustion or cancellation; the final channel message is emitted here."""
        self._state = SearchState()
        self.tracker = BestSolutionTracker(self.initial_best_score)
        self.nodes_explored = 0
        logger.debug("search start: %d faculty, %d lectures, bound %d",
                     len(self.order), len(self.index.lectures), self.initial_best_score)
        cancelled = False
        try:
            self._extend(0, 0)
        except SearchCancelled:
            cancelled = True
        finally:
            self._state = None

        if cancelled:
            logger.info("search cancelled after %d nodes, best score %d", self.nodes_explored, self.tracker.score)
            self.channel.emit(CancelledMessage(self.nodes_explored, self.tracker.score))
        else:
            logger.info("search complete after %d nodes, best score %d", self.nodes_explored, self.tracker.score)
            self.channel.emit(CompleteMessage(self.nodes_explored, self.tracker.score))
        return SearchResult(score=self.tracker.score, nodes_explored=self.nodes_explored,
                            schedule=self.tracker.schedule, cancelled=cancelled)

    def _extend(self, depth: int, score: int) -> None:
        # scores never decrease along a path, so this branch cannot beat the bound
        if score >= self.tracker.score:
            return

        if depth == len(self.order):
            if self.tracker.offer(self._state.schedule, score):
                logger.info("improved schedule: score %d after %d nodes", score, self.nodes_explored)
                self.channel.emit(SolutionMessage(self.tracker.schedule, score))
            return

        faculty = self.order[depth]
        interval = self.params.report_interval
        for lecture, preferred in candidates_for(faculty, self._state, self.index):
            self.nodes_explored += 1
            if self.nodes_explored % interval == 0:
                self.channel.emit(ProgressMessage(depth, faculty, self.nodes_explored))
                self.channel.checkpoint(self.nodes_explored)
            with self._state.assign(faculty, lecture, preferred):
                self._extend(depth + 1, score + (0 if preferred else 1))


def branch_and_bound(faculty, lectures, preferences, initial_best_score=None,
                     channel=None, params=None) -> SearchResult:
    return BranchAndBoundSearch(faculty, lectures, preferences, initial_best_score,
                                channel=channel, params=params).run()
