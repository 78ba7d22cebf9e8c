from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..core.constants import CREDITS_PER_MEAL


@dataclass(frozen=True)
class CreditDecision:
    requested: int
    applied: int

    @property
    def skipped(self) -> bool:
        return self.requested != self.applied


class CreditPolicy(ABC):
    """Strategy Pattern: decide how a presence flip moves the credit balance."""

    @abstractmethod
    def decide(self, *, previous: bool, desired: bool, balance: int) -> CreditDecision:
        raise NotImplementedError


class FlooredDebitPolicy(CreditPolicy):
    """Marking present consumes a credit, reverting refunds one.

    A consume is dropped when the balance is already <= 0 (the mark itself
    still stands). Refunds are applied without checking ``max_credits``, so a
    member marked present at zero and then reverted ends up one credit ahead.
    """

    def decide(self, *, previous: bool, desired: bool, balance: int) -> CreditDecision:
        if previous == desired:
            return CreditDecision(requested=0, applied=0)

        if desired:
            requested = -CREDITS_PER_MEAL
            applied = requested if balance > 0 else 0
            return CreditDecision(requested=requested, applied=applied)

        return CreditDecision(requested=CREDITS_PER_MEAL, applied=CREDITS_PER_MEAL)
