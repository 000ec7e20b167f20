"""
extensions.py — Ledger read interface and its in-memory store singleton.

The ledger never talks to a database. The calling layer fetches groups,
expenses and settlements and hands them over as a JSON-shaped snapshot;
LedgerStore validates it through the marshmallow schemas and answers the
read queries the services need (the LedgerSource protocol).

Pattern:
    1. Create the store here (no app attached yet).
    2. Call store.init_app(app) inside the app factory in app/__init__.py.
    3. Import `store` from here wherever needed.

    from splitsmart.app.extensions import store

Caching and invalidation belong to the caller: load() replaces the whole
snapshot and the store keeps no derived state.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from splitsmart.app.models.expense import Expense
from splitsmart.app.models.group import Group
from splitsmart.app.models.settlement import Settlement

logger = logging.getLogger(__name__)


class LedgerSource(Protocol):
    """Read interface consumed by the services."""

    def get_group(self, group_id: str) -> Group | None: ...

    def groups_for_member(self, member_id: str) -> list[Group]: ...

    def expenses_for_group(self, group_id: str) -> list[Expense]: ...

    def settlements_for_group(self, group_id: str) -> list[Settlement]: ...

    def get_expense(self, expense_id: str) -> Expense | None: ...

    def get_settlement(self, settlement_id: str) -> Settlement | None: ...


class LedgerStore:

    def __init__(self) -> None:
        self._groups: dict[str, Group] = {}
        self._expenses: dict[str, Expense] = {}
        self._settlements: dict[str, Settlement] = {}

    def init_app(self, app) -> None:
        app.extensions["ledger_store"] = self
        path = app.config.get("LEDGER_DATA_PATH")
        if path:
            self.load_file(path, strict_members=app.config.get("STRICT_MEMBERS", False))

    # ── Loading ────────────────────────────────────────────────────────────

    def load_file(self, path: str | Path, strict_members: bool = False) -> None:
        with open(path, encoding="utf-8") as fh:
            payload = json.load(fh)
        self.load(payload, strict_members=strict_members)
        logger.info("Loaded ledger snapshot from %s.", path)

    def load(self, payload: dict, strict_members: bool = False) -> None:
        """
        Replaces the store's contents with `payload`.

        payload keys: "groups", "expenses", "settlements" (each a list of
        documents; missing keys mean empty lists).

        Raises:
            marshmallow.ValidationError -- a document fails its schema.
            AppError (422)              -- strict_members and a record names
                                           a non-member.
        """
        # Imported here to keep models → schemas → extensions acyclic.
        from splitsmart.app.schemas.expense_schema import ExpenseSchema
        from splitsmart.app.schemas.group_schema import GroupSchema
        from splitsmart.app.schemas.settlement_schema import SettlementSchema

        groups: list[Group] = GroupSchema(many=True).load(payload.get("groups", []))
        expenses: list[Expense] = ExpenseSchema(many=True).load(payload.get("expenses", []))
        settlements: list[Settlement] = SettlementSchema(many=True).load(
            payload.get("settlements", [])
        )

        groups_by_id = {g.id: g for g in groups}
        if strict_members:
            self._check_members(groups_by_id, expenses, settlements)

        self._groups = groups_by_id
        self._expenses = {e.id: e for e in expenses}
        self._settlements = {s.id: s for s in settlements}

    @staticmethod
    def _check_members(
            groups_by_id: dict[str, Group],
            expenses: list[Expense],
            settlements: list[Settlement],
    ) -> None:
        from splitsmart.app.services.expense_service import validate_expense_members
        from splitsmart.app.services.settlement_service import validate_settlement_members

        for expense in expenses:
            group = groups_by_id.get(expense.group_id)
            if group is not None:
                validate_expense_members(expense, group)
        for settlement in settlements:
            group = groups_by_id.get(settlement.group_id)
            if group is not None:
                validate_settlement_members(settlement, group)

    def add_group(self, group: Group) -> None:
        self._groups[group.id] = group

    def add_expense(self, expense: Expense) -> None:
        self._expenses[expense.id] = expense

    def add_settlement(self, settlement: Settlement) -> None:
        self._settlements[settlement.id] = settlement

    def remove_expense(self, expense_id: str) -> None:
        """Drops an expense from future aggregation. No cascade."""
        self._expenses.pop(expense_id, None)

    def clear(self) -> None:
        self._groups.clear()
        self._expenses.clear()
        self._settlements.clear()

    # ── LedgerSource ───────────────────────────────────────────────────────

    def get_group(self, group_id: str) -> Group | None:
        return self._groups.get(group_id)

    def groups_for_member(self, member_id: str) -> list[Group]:
        return [g for g in self._groups.values() if g.has_member(member_id)]

    def expenses_for_group(self, group_id: str) -> list[Expense]:
        return sorted(
            (e for e in self._expenses.values() if e.group_id == group_id),
            key=lambda e: e.date,
            reverse=True,
        )

    def settlements_for_group(self, group_id: str) -> list[Settlement]:
        return sorted(
            (s for s in self._settlements.values() if s.group_id == group_id),
            key=lambda s: s.date,
            reverse=True,
        )

    def get_expense(self, expense_id: str) -> Expense | None:
        return self._expenses.get(expense_id)

    def get_settlement(self, settlement_id: str) -> Settlement | None:
        return self._settlements.get(settlement_id)


store = LedgerStore()
