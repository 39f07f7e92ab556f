from typing import Optional


class FaculTimeError(Exception):
    """Base class for all FaculTime exceptions."""
    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class InputValidationError(FaculTimeError):
    """Raised when faculty, lecture or preference data is malformed."""


class SchedulerError(FaculTimeError):
    """Raised when a heuristic cannot produce a schedule from valid input."""


class SearchCancelled(FaculTimeError):
    """Unwinds the search after a cancellation request was observed."""
    def __init__(self, nodes_explored: int):
        super().__init__("search cancelled", details={"nodes_explored": nodes_explored})
        self.nodes_explored = nodes_explored
