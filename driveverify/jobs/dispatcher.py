"""Job dispatcher interface."""

from abc import ABC, abstractmethod
from typing import Any, Callable


class JobDispatcher(ABC):
    """Abstract interface for job dispatching (local or external worker pool).

    Implementations run each submitted callable at most once, possibly on a
    different worker than the submitter. Failed work is never retried.
    """

    @abstractmethod
    async def submit(self, job_id: str, fn: Callable[..., Any], *args: Any) -> str:
        """Schedule fn(*args) for execution. Returns job_id."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the dispatcher (e.g., start worker loop)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher gracefully."""
        ...
