"""
Compensating actions for multi-row writes.

Supabase exposes no client-side transaction, so a write that spans several
rows (a pair plus its two memberships, a check-in plus the goal progress it
reports) records an undo step after every step that succeeded. If a later
step raises, the recorded undos run in reverse order and the original error
propagates.
"""

import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class CompensatingWrite:
    def __init__(self, name: str):
        self.name = name
        self._undo: List[Tuple[str, Callable[[], object]]] = []

    def on_failure(self, description: str, undo: Callable[[], object]) -> None:
        """Register an undo step for a write that has just succeeded"""
        self._undo.append((description, undo))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            self._undo.clear()
            return False
        logger.warning(f"{self.name} failed after {len(self._undo)} completed step(s): {exc}")
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
                logger.info(f"{self.name}: rolled back {description}")
            except Exception as undo_error:
                # Leave the row for an admin; the caller still sees the original error
                logger.error(f"{self.name}: could not roll back {description}: {undo_error}")
        return False
