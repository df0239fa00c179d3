"""
Uniqueness index over the ACTIVE roster.

Built once per import attempt from a roster snapshot. Emails are matched
case-insensitively, matriculas exactly.
"""

from typing import Dict, Iterable, Optional

from app.schemas.user import RosterEntry


class UniquenessIndex:
    """Lookup of the active roster entry holding each identity key."""

    def __init__(self, by_email: Dict[str, RosterEntry], by_short_id: Dict[str, RosterEntry]):
        self._by_email = by_email
        self._by_short_id = by_short_id

    @classmethod
    def build(cls, roster: Iterable[RosterEntry]) -> "UniquenessIndex":
        by_email: Dict[str, RosterEntry] = {}
        by_short_id: Dict[str, RosterEntry] = {}
        for entry in roster:
            if not entry.is_active:
                continue
            # first holder wins if the store ever returned two actives for one key
            by_email.setdefault(entry.email.strip().lower(), entry)
            if entry.short_id:
                by_short_id.setdefault(entry.short_id, entry)
        return cls(by_email, by_short_id)

    def lookup_by_email(self, email: str) -> Optional[RosterEntry]:
        if not email:
            return None
        return self._by_email.get(email.strip().lower())

    def lookup_by_short_id(self, short_id: Optional[str]) -> Optional[RosterEntry]:
        if not short_id:
            return None
        return self._by_short_id.get(short_id)

    def __len__(self) -> int:
        return len({entry.id for entry in self._by_email.values()} | {entry.id for entry in self._by_short_id.values()})
