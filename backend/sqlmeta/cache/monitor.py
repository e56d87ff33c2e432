"""Progress/cancellation handle passed to cache loaders."""

from __future__ import annotations

import logging
import threading

from ..core.exceptions import LoadCanceledError

logger = logging.getLogger(__name__)


class LoadMonitor:
    """Cancellable progress context for one metadata operation.

    Loaders report progress through it and poll ``check_canceled`` between
    round trips. Canceling never interrupts a running query; it only stops the
    loader at its next check.
    """

    def __init__(self, name: str = "metadata") -> None:
        self.name = name
        self.task: str | None = None
        self.total = 0
        self.completed = 0
        self._canceled = threading.Event()

    def begin_task(self, task: str, total: int = 0) -> None:
        self.task = task
        self.total = total
        self.completed = 0
        logger.debug(f"[{self.name}] {task}")

    def sub_task(self, task: str) -> None:
        logger.debug(f"[{self.name}] {self.task or ''} > {task}")

    def worked(self, amount: int = 1) -> None:
        self.completed += amount

    def done(self) -> None:
        if self.total:
            self.completed = self.total
        self.task = None

    def cancel(self) -> None:
        self._canceled.set()

    @property
    def is_canceled(self) -> bool:
        return self._canceled.is_set()

    def check_canceled(self) -> None:
        """Raise LoadCanceledError if the operation has been canceled."""
        if self._canceled.is_set():
            raise LoadCanceledError(f"Operation '{self.task or self.name}' was canceled")

    def __repr__(self) -> str:
        return f"LoadMonitor({self.name!r}, task={self.task!r}, {self.completed}/{self.total})"
