"""Attendance board state and its pure update functions.

The board applies a toggle optimistically, then ``reconcile`` folds the
server's answer (or the error) into the next state. The server's values
always win over the optimistic flip: a present mark at zero credits is
recorded without a deduction, so the locally guessed balance can be wrong.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Mapping, Optional, Tuple, Union

from ..core.enums import Meal


@dataclass(frozen=True)
class MemberRow:
    member_id: int
    name: str
    lunch: bool = False
    dinner: bool = False
    remaining_credits: int = 0

    def is_present(self, meal: Meal) -> bool:
        return self.lunch if meal == Meal.LUNCH else self.dinner


@dataclass(frozen=True)
class BoardState:
    att_date: date
    rows: Tuple[MemberRow, ...] = ()
    error: Optional[str] = None
    session_expired: bool = False

    def row(self, member_id: int) -> Optional[MemberRow]:
        for r in self.rows:
            if r.member_id == member_id:
                return r
        return None

    def with_row(self, row: MemberRow) -> "BoardState":
        rows = tuple(row if r.member_id == row.member_id else r for r in self.rows)
        return replace(self, rows=rows)


@dataclass(frozen=True)
class ToggleSuccess:
    member_id: int
    record: Optional[Mapping[str, Any]]
    remaining_credits: int


@dataclass(frozen=True)
class ToggleFailure:
    snapshot: MemberRow
    message: str
    status: Optional[int] = None

    @property
    def unauthenticated(self) -> bool:
        return self.status == 401


ToggleOutcome = Union[ToggleSuccess, ToggleFailure]


def can_mark(row: MemberRow, meal: Meal) -> bool:
    """Removing a mark is always allowed; adding one needs credits left."""
    return row.is_present(meal) or row.remaining_credits > 0


def apply_optimistic_toggle(state: BoardState, member_id: int, meal: Meal) -> Tuple[BoardState, MemberRow]:
    """Flip the flag locally; returns the next state and the pre-toggle row."""
    snapshot = state.row(member_id)
    if snapshot is None:
        raise KeyError(member_id)

    if meal == Meal.LUNCH:
        flipped = replace(snapshot, lunch=not snapshot.lunch)
    else:
        flipped = replace(snapshot, dinner=not snapshot.dinner)
    return replace(state.with_row(flipped), error=None), snapshot


def reconcile(state: BoardState, outcome: ToggleOutcome) -> BoardState:
    if isinstance(outcome, ToggleSuccess):
        current = state.row(outcome.member_id)
        if current is None:
            return state
        record = outcome.record or {}
        authoritative = replace(
            current,
            lunch=bool(record.get("lunch", False)),
            dinner=bool(record.get("dinner", False)),
            remaining_credits=int(outcome.remaining_credits),
        )
        return replace(state.with_row(authoritative), error=None)

    rolled_back = state.with_row(outcome.snapshot)
    return replace(
        rolled_back,
        error=outcome.message,
        session_expired=state.session_expired or outcome.unauthenticated,
    )
