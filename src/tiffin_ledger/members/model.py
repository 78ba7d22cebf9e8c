from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple


@dataclass(frozen=True)
class PaymentEntry:
    """One line of a member's payment history (append-only)."""

    amount: Decimal
    paid_at: datetime
    description: Optional[str] = None


@dataclass(frozen=True)
class MemberAccount:
    """Domain entity: a mess member and their tiffin credit balance.

    Note: Plain data object (no DB access code). ``remaining_credits`` is never
    pushed below zero by attendance debits, but refunds have no upper bound.
    """

    member_id: int
    name: str
    hostel_name: str
    college_name: str
    whatsapp_number: str
    subscription_amount: Decimal
    max_credits: int
    remaining_credits: int
    total_paid: Decimal = Decimal("0")
    payment_history: Tuple[PaymentEntry, ...] = field(default_factory=tuple)
    created_at: Optional[datetime] = None

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_credits <= 0

    @property
    def balance_due(self) -> Decimal:
        return self.subscription_amount - self.total_paid


@dataclass(frozen=True)
class NewMember:
    """Validated registration data."""

    name: str
    hostel_name: str
    college_name: str
    whatsapp_number: str
    subscription_amount: Decimal
    max_credits: int
