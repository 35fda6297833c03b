"""
Subscription cost allocation.

Monthly equivalents use fixed calendar averages:
- weekly: x 4.33 (weeks per month)
- yearly: / 12
- custom: x 30.44 / days (days per month, days clamped to >= 1)

Equivalents are applied per share and then summed, only over active,
non-archived subscriptions.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, Optional

from swisscoin.models.money import CurrencyBalance
from swisscoin.models.subscription import BillingCycle, BillingStatus, Subscription

WEEKS_PER_MONTH = Decimal("4.33")
DAYS_PER_MONTH = Decimal("30.44")
MONTHS_PER_YEAR = Decimal("12")
DUE_WINDOW_DAYS = 7


def monthly_equivalent(
    cycle: BillingCycle | str,
    amount: Decimal,
    custom_cycle_days: Optional[int] = None
) -> Decimal:
    """Convert a per-cycle amount into its monthly equivalent."""
    cycle = BillingCycle(cycle)
    amount = Decimal(amount)
    if cycle == BillingCycle.WEEKLY:
        return amount * WEEKS_PER_MONTH
    if cycle == BillingCycle.MONTHLY:
        return amount
    if cycle == BillingCycle.YEARLY:
        return amount / MONTHS_PER_YEAR
    days = max(1, custom_cycle_days or 0)
    return amount * (DAYS_PER_MONTH / Decimal(days))


def share_amounts(subscription: Subscription) -> Dict[str, Decimal]:
    """
    Per-cycle amount carried by each person.

    The owner carries whatever the subscriber shares leave unassigned, on top
    of any explicit share of their own. A personal subscription belongs
    entirely to the owner.
    """
    if not subscription.is_shared:
        return {subscription.owner_id: subscription.amount}

    amounts: Dict[str, Decimal] = {}
    for share in subscription.shares:
        amounts[share.person_id] = amounts.get(share.person_id, Decimal("0")) + share.amount

    assigned = sum(amounts.values(), Decimal("0"))
    remainder = subscription.amount - assigned
    if remainder > 0 or subscription.owner_id not in amounts:
        amounts[subscription.owner_id] = amounts.get(subscription.owner_id, Decimal("0")) + remainder
    return amounts


def person_monthly_share(subscription: Subscription, person_id: str) -> Decimal:
    per_cycle = share_amounts(subscription).get(person_id)
    if per_cycle is None:
        return Decimal("0")
    return monthly_equivalent(subscription.cycle, per_cycle, subscription.custom_cycle_days)


def roster_monthly_total(subscriptions: Iterable[Subscription]) -> CurrencyBalance:
    """Monthly cost of all active, non-archived subscriptions, per currency."""
    total = CurrencyBalance()
    for subscription in subscriptions:
        if not subscription.counts_toward_totals:
            continue
        for per_cycle in share_amounts(subscription).values():
            total.add(
                subscription.currency,
                monthly_equivalent(subscription.cycle, per_cycle, subscription.custom_cycle_days)
            )
    return total


def user_monthly_share(subscriptions: Iterable[Subscription], user_id: str) -> CurrencyBalance:
    """Monthly cost carried by one person across active, non-archived subscriptions."""
    total = CurrencyBalance()
    for subscription in subscriptions:
        if not subscription.counts_toward_totals:
            continue
        if user_id not in share_amounts(subscription):
            continue
        total.add(subscription.currency, person_monthly_share(subscription, user_id))
    return total


def _add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def next_billing_date(
    from_date: date,
    cycle: BillingCycle | str,
    custom_cycle_days: Optional[int] = None
) -> date:
    cycle = BillingCycle(cycle)
    if cycle == BillingCycle.WEEKLY:
        return from_date + timedelta(days=7)
    if cycle == BillingCycle.MONTHLY:
        return _add_months(from_date, 1)
    if cycle == BillingCycle.YEARLY:
        return _add_months(from_date, 12)
    return from_date + timedelta(days=custom_cycle_days or 30)


def billing_status(next_billing: date, is_active: bool, today: date) -> BillingStatus:
    if not is_active:
        return BillingStatus.PAUSED
    days_until = (next_billing - today).days
    if days_until < 0:
        return BillingStatus.OVERDUE
    if days_until <= DUE_WINDOW_DAYS:
        return BillingStatus.DUE
    return BillingStatus.UPCOMING
