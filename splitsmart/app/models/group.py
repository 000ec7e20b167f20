"""
models/group.py — Group and Member records.

The members list is the authoritative scope for expense and settlement
validity. Member order is preserved; it drives the order of balance output.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Member:
    id: str
    name: str = ""
    email: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.id


@dataclass
class Group:
    id: str
    name: str
    members: list[Member] = field(default_factory=list)
    created_by: str | None = None
    color: str | None = None

    @property
    def member_ids(self) -> list[str]:
        return [m.id for m in self.members]

    def has_member(self, member_id: str) -> bool:
        return any(m.id == member_id for m in self.members)

    def member_name(self, member_id: str) -> str:
        for m in self.members:
            if m.id == member_id:
                return m.display_name
        return member_id

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Group id={self.id} name={self.name!r} members={len(self.members)}>"
