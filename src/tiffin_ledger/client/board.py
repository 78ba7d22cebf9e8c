from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from ..core.enums import Meal
from .api import ApiError, MessApiClient
from .state import (
    BoardState,
    MemberRow,
    ToggleFailure,
    ToggleSuccess,
    apply_optimistic_toggle,
    can_mark,
    reconcile,
)

logger = logging.getLogger(__name__)


class AttendanceBoard:
    """Per-day attendance sheet: optimistic toggles reconciled with the server."""

    def __init__(self, client: MessApiClient, state: BoardState):
        self._client = client
        self.state = state

    @classmethod
    def load(cls, client: MessApiClient, att_date: date) -> "AttendanceBoard":
        marks = {int(r["userId"]): r for r in client.attendance_for_date(att_date)}
        rows = []
        for m in client.list_members():
            mark = marks.get(int(m["id"]), {})
            rows.append(
                MemberRow(
                    member_id=int(m["id"]),
                    name=m["name"],
                    lunch=bool(mark.get("lunch", False)),
                    dinner=bool(mark.get("dinner", False)),
                    remaining_credits=int(m["remainingCredits"]),
                )
            )
        return cls(client, BoardState(att_date=att_date, rows=tuple(rows)))

    def toggle(self, member_id: int, meal: Meal) -> BoardState:
        meal = Meal(meal)
        row = self.state.row(member_id)
        if row is not None and not can_mark(row, meal):
            self.state = replace(self.state, error="Tiffins exhausted")
            return self.state

        optimistic, snapshot = apply_optimistic_toggle(self.state, member_id, meal)
        self.state = optimistic
        desired = optimistic.row(member_id).is_present(meal)

        try:
            data = self._client.set_meal_presence(member_id, self.state.att_date, meal, desired)
        except ApiError as e:
            logger.warning("Toggle %s for member %s failed: %s", meal.value, member_id, e.message)
            outcome = ToggleFailure(snapshot=snapshot, message=e.message, status=e.status)
        else:
            outcome = ToggleSuccess(
                member_id=member_id,
                record=data.get("record"),
                remaining_credits=int(data["remainingCredits"]),
            )

        self.state = reconcile(self.state, outcome)
        return self.state
