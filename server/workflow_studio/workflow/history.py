"""
Undo/redo history over full workflow snapshots
"""

import logging
from typing import List, Optional

from ..config import HISTORY_CONFIG
from ..models import WorkflowGraph

logger = logging.getLogger(__name__)


class HistoryManager:
    """
    Bounded list of deep-copied graph snapshots plus a cursor.

    ``entries[:cursor + 1]`` are the states undo walks back through. Callers
    ``save`` the pre-mutation graph before every structural change. ``undo``
    also records the live graph at ``cursor + 1`` so that ``redo`` can return
    to it. Snapshots are copied on the way in and on the way out, so stored
    entries are never shared with the live graph.
    """

    def __init__(self, limit: Optional[int] = None):
        self.limit = HISTORY_CONFIG["limit"] if limit is None else limit
        if self.limit < 1:
            raise ValueError(f"History limit must be positive, got {self.limit}")
        self._entries: List[WorkflowGraph] = []
        self._cursor = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def can_undo(self) -> bool:
        return self._cursor >= 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 2

    def save(self, workflow: WorkflowGraph):
        """Push a snapshot, dropping abandoned redo entries and the oldest past the limit"""
        self._entries = self._entries[:self._cursor + 1]
        self._entries.append(workflow.model_copy(deep=True))

        if len(self._entries) > self.limit:
            self._entries.pop(0)

        self._cursor = len(self._entries) - 1
        logger.debug(f"History saved ({len(self._entries)}/{self.limit})")

    def undo(self, current: WorkflowGraph) -> Optional[WorkflowGraph]:
        """Return the previous state, or None when there is nothing to undo"""
        if self._cursor < 0:
            return None

        # entries[cursor + 1] always mirrors the live graph; refresh it so
        # edits that skip history (property updates) survive a redo
        if self._cursor == len(self._entries) - 1:
            self._entries.append(current.model_copy(deep=True))
        else:
            self._entries[self._cursor + 1] = current.model_copy(deep=True)

        restored = self._entries[self._cursor]
        self._cursor -= 1
        return restored.model_copy(deep=True)

    def redo(self) -> Optional[WorkflowGraph]:
        """Return the next state, or None when there is nothing to redo"""
        if not self.can_redo:
            return None

        self._cursor += 1
        return self._entries[self._cursor + 1].model_copy(deep=True)

    def clear(self):
        self._entries = []
        self._cursor = -1
