from __future__ import annotations

from decimal import Decimal

from ..members.repository import MemberRepository


class StatsService:
    def __init__(self, members: MemberRepository):
        self._members = members

    def monthly_revenue(self) -> Decimal:
        """Sum of every member's subscription amount."""
        return self._members.total_subscription_amount()
