"""
Commission Service – tier lookup and monthly commission aggregation for hotel
partners. Commission amounts are computed by the Evista backend; this module
only groups and totals what the backend returns.
"""
import logging
from typing import Dict, Iterable, List, Optional

from evista_partner.models.commission import (
    CommissionSummary,
    Tier,
    TierBreakdown,
    TierProgress,
    Transaction,
)
from evista_partner.models.payout import Payout, PayoutSummary

logger = logging.getLogger(__name__)


# ─── Tier table ───────────────────────────────────────────────────────────────

TIERS: List[Tier] = [
    Tier(name="Bronze", min=1, max=10, rate=20),
    Tier(name="Silver", min=11, max=20, rate=25),
    Tier(name="Gold", min=21, max=None, rate=27),
]


def tier_of(n: int) -> Tier:
    """Tier for the n-th paid transaction of the month (n >= 1)."""
    for tier in TIERS:
        if tier.contains(n):
            return tier
    # Only reachable for n < 1, which the backend never assigns
    return TIERS[0]


def tier_by_name(name: str) -> Optional[Tier]:
    for tier in TIERS:
        if tier.name.lower() == (name or "").lower():
            return tier
    return None


def tier_progress(paid_count: int) -> TierProgress:
    """Where the hotel stands this month and how far the next tier is."""
    current = tier_of(max(paid_count, 1))
    index = TIERS.index(current)
    next_tier = TIERS[index + 1] if index + 1 < len(TIERS) else None

    if next_tier is None:
        return TierProgress(paid_count=paid_count, current_tier=current)

    floor = 0 if index == 0 else current.min
    span = next_tier.min - floor
    progress = (paid_count - floor) / span * 100
    return TierProgress(
        paid_count=paid_count,
        current_tier=current,
        next_tier=next_tier,
        bookings_to_next_tier=next_tier.min - paid_count,
        progress_percentage=round(min(max(progress, 0.0), 100.0), 2),
    )


# ─── Aggregation ──────────────────────────────────────────────────────────────

def summarize_commissions(transactions: Iterable[Transaction]) -> Optional[CommissionSummary]:
    """
    Group one month of paid transactions by tier.

    Returns None when there is nothing paid; tiers without transactions are
    left out of the breakdown.
    """
    breakdown: Dict[str, TierBreakdown] = {}
    first_seq: Dict[str, int] = {}
    last_seq: Dict[str, int] = {}
    total_commission = 0.0
    total_revenue = 0
    count = 0

    for trx in transactions:
        name = trx.commission_tier
        entry = breakdown.get(name)
        if entry is None:
            entry = breakdown[name] = TierBreakdown(rate=trx.commission_rate)
            first_seq[name] = trx.seq
            last_seq[name] = trx.seq

        entry.count += 1
        entry.commission += trx.commission_amount or 0
        first_seq[name] = min(first_seq[name], trx.seq)
        last_seq[name] = max(last_seq[name], trx.seq)

        total_commission += trx.commission_amount or 0
        total_revenue += trx.grand_total
        count += 1

    if count == 0:
        return None

    for name, entry in breakdown.items():
        entry.trx_range = f"#{first_seq[name]}–#{last_seq[name]}"

    ordered = {
        tier.name: breakdown[tier.name] for tier in TIERS if tier.name in breakdown
    }
    # Labels the tier table does not know keep their arrival order at the end
    for name, entry in breakdown.items():
        if name not in ordered:
            logger.warning("⚠️  Unknown commission tier label '%s'", name)
            ordered[name] = entry

    return CommissionSummary(
        total_paid_trx=count,
        total_commission=total_commission,
        total_revenue=total_revenue,
        breakdown=ordered,
    )


def summarize_payouts(payouts: Iterable[Payout]) -> PayoutSummary:
    """Totals shown above the payout history."""
    total_paid = 0.0
    total_pending = 0.0
    count = 0
    for payout in payouts:
        count += 1
        if payout.status == "paid":
            total_paid += payout.amount
        elif payout.status == "pending":
            total_pending += payout.amount
    return PayoutSummary(total_paid=total_paid, total_pending=total_pending, invoice_count=count)


# ─── Backend payload parsing ──────────────────────────────────────────────────

def _extract_list(payload, *keys) -> list:
    data = payload.get("data", payload) if isinstance(payload, dict) else payload
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def parse_transactions(payload: dict) -> List[Transaction]:
    """Transactions from the backend response, skipping malformed rows."""
    rows = _extract_list(payload, "transactions", "items", "data")
    transactions = []
    for row in rows:
        try:
            transactions.append(Transaction.model_validate(row))
        except ValueError as e:
            logger.warning("Skipping malformed transaction row %s: %s", row.get("id") if isinstance(row, dict) else row, e)
    return transactions


def parse_payouts(payload: dict) -> List[Payout]:
    rows = _extract_list(payload, "payouts", "items", "data")
    payouts = []
    for row in rows:
        try:
            payouts.append(Payout.model_validate(row))
        except ValueError as e:
            logger.warning("Skipping malformed payout row: %s", e)
    return payouts
