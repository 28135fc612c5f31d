"""Credit budget accounting."""

from __future__ import annotations

from whale_scout.budget.ledger import CreditLedger, next_month_start

__all__ = ["CreditLedger", "next_month_start"]
