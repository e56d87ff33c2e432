"""Single-slot memo for values derived from an entity, such as DDL text."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

from ..core.exceptions import ComputeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DerivedValue(Generic[T]):
    """Holds one computed value until it is explicitly refreshed.

    The compute function runs under the slot's lock, so threads sharing one
    entity instance also share one computation.
    """

    def __init__(self, name: str = "value") -> None:
        self.name = name
        self._value: Optional[T] = None
        self._present = False
        self._lock = threading.Lock()

    @property
    def is_present(self) -> bool:
        return self._present

    def get(self, compute: Callable[[], T], force_refresh: bool = False) -> T:
        """Return the stored value, computing it when absent or when forced.

        Raises:
            ComputeError: If ``compute`` fails; nothing is stored in that case
        """
        with self._lock:
            if force_refresh:
                self._reset()
            if self._present:
                return self._value
            try:
                value = compute()
            except ComputeError:
                raise
            except Exception as e:
                logger.error(f"Failed to compute {self.name}: {e}")
                raise ComputeError(f"Failed to compute {self.name}: {e}", cause=e) from e
            self._value = value
            self._present = True
            return value

    def clear(self) -> None:
        with self._lock:
            self._reset()

    def _reset(self) -> None:
        self._value = None
        self._present = False
