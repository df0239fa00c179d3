"""
Resolution session for import conflicts.

Holds one decision per conflict (deactivate-and-replace, or skip) while the
operator reviews them. The session has no commit authority; it is handed to
the commit coordinator once the operator confirms.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List

from app.schemas.employee_import import Conflict


class ImportStage(str, Enum):
    """Where an import attempt stands. CONFLICT only occurs when there are conflicts."""

    UPLOAD = "upload"
    CONFLICT = "conflict"
    RESULT = "result"


class ResolutionError(Exception):
    """Raised for an invalid operation on a resolution session."""


@dataclass
class ResolutionDecision:
    conflict: Conflict
    resolve: bool = True


class ResolutionSession:
    """Per-conflict decisions, all defaulting to resolve=True."""

    def __init__(self, decisions: List[ResolutionDecision]):
        self._decisions = decisions
        self._closed = False

    @classmethod
    def present(cls, conflicts: List[Conflict]) -> "ResolutionSession":
        return cls([ResolutionDecision(conflict=c) for c in conflicts])

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self._decisions)

    def _decision_at(self, index: int) -> ResolutionDecision:
        if self._closed:
            raise ResolutionError("Session is closed; decisions can no longer change")
        if index < 0 or index >= len(self._decisions):
            raise ResolutionError(f"No conflict at position {index}")
        return self._decisions[index]

    def toggle(self, index: int) -> bool:
        """Flip one decision and return its new value."""
        decision = self._decision_at(index)
        decision.resolve = not decision.resolve
        return decision.resolve

    def set_decision(self, index: int, resolve: bool) -> None:
        self._decision_at(index).resolve = resolve

    def decisions(self) -> List[ResolutionDecision]:
        """Snapshot of the current decisions, in conflict order."""
        return [ResolutionDecision(conflict=d.conflict, resolve=d.resolve) for d in self._decisions]

    def resolved(self) -> List[Conflict]:
        return [d.conflict for d in self._decisions if d.resolve]

    def skipped(self) -> List[Conflict]:
        return [d.conflict for d in self._decisions if not d.resolve]

    def close(self) -> List[ResolutionDecision]:
        """Freeze the session and return the final decisions."""
        if self._closed:
            raise ResolutionError("Session already closed")
        self._closed = True
        return self.decisions()
