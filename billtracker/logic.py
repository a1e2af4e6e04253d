import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from dateutil.relativedelta import relativedelta
from typing import Optional, Iterable

from billtracker import config
from billtracker.exceptions import InvalidRecurrenceError, InvalidBillTypeError, BillValidationError
from billtracker.models import (
    Bill, BillType, BillStatus, PaymentRecord, Recurrence, to_date
)

logger = logging.getLogger(__name__)

DateLike = date | datetime | str


def _today(today: Optional[DateLike]) -> date:
    return to_date(today) if today is not None else date.today()


# ===== STATUS =====
def get_days_from_today(due_date: DateLike, today: Optional[DateLike] = None) -> int:
    """Signed number of days until due_date (negative when overdue)."""
    return (to_date(due_date) - _today(today)).days


def get_bill_status(due_date: DateLike, today: Optional[DateLike] = None) -> BillStatus:
    """Status derived from the due date alone; never returns PAID."""
    days = get_days_from_today(due_date, today)
    if days < 0:
        return BillStatus.OVERDUE
    if days == 0:
        return BillStatus.DUE_TODAY
    return BillStatus.UPCOMING


def _days_label(days: int) -> str:
    return f"{days} day{'s' if days > 1 else ''}"


def get_status_context_text(due_date: DateLike, today: Optional[DateLike] = None) -> str:
    days = get_days_from_today(due_date, today)
    if days == 0:
        return "Due today"
    if days > 0:
        return f"{_days_label(days)} left"
    return f"Overdue {_days_label(abs(days))}"


def get_color_for_status(status: BillStatus | str) -> str:
    try:
        return config.STATUS_COLORS[BillStatus(status)]
    except ValueError:
        return config.DEFAULT_COLOR


def get_status_color(due_date: DateLike, today: Optional[DateLike] = None) -> str:
    # Paid bills need get_color_for_status(BillStatus.PAID); a due date can't tell.
    return get_color_for_status(get_bill_status(due_date, today))


# ===== RECURRENCE =====
_RECURRENCE_STEPS = {
    Recurrence.WEEKLY: timedelta(days=7),
    Recurrence.MONTHLY: relativedelta(months=1),
    Recurrence.YEARLY: relativedelta(years=1),
}


def calculate_next_due_date(
        current_due_date: DateLike,
        recurrence: Recurrence | str,
        strict: bool = False,
) -> date:
    """
    Advance a due date by one recurrence period.

    Month and year steps clamp to the end of the target month, so Jan 31
    becomes Feb 28 (or 29) and Feb 29 becomes Feb 28 in a non-leap year.
    An unknown recurrence returns the date unchanged, or raises
    InvalidRecurrenceError when strict is set.

    The result is a date; call .isoformat() for the "YYYY-MM-DD" form.
    """
    current = to_date(current_due_date)
    try:
        step = _RECURRENCE_STEPS[Recurrence(recurrence)]
    except ValueError:
        if strict:
            raise InvalidRecurrenceError(f"Unknown recurrence: {recurrence!r}")
        logger.warning("Unknown recurrence %r, due date %s left unchanged", recurrence, current)
        return current
    return current + step


# ===== PAYMENTS =====
def process_payment(bill: Bill, today: Optional[DateLike] = None, strict: bool = False) -> Bill:
    """
    Record a payment and return the updated copy of the bill.

    One-time bills are marked paid. Recurring bills log the payment and roll
    their due date forward; they stay unpaid.
    """
    paid_on = _today(today)

    if bill.bill_type == BillType.ONE_TIME:
        logger.debug("Marking one-time bill %s paid on %s", bill.id, paid_on)
        return replace(bill, is_paid=True, paid_date=paid_on)

    if bill.bill_type == BillType.RECURRING:
        history = list(bill.payment_history or [])
        history.append(PaymentRecord(date=paid_on, amount=bill.amount))
        next_due = calculate_next_due_date(
            bill.due_date,
            bill.recurrence or config.DEFAULT_RECURRENCE,
            strict=strict
        )
        logger.debug("Recurring bill %s paid on %s, next due %s", bill.id, paid_on, next_due)
        return replace(bill, due_date=next_due, next_due_date=next_due, payment_history=history)

    if strict:
        raise InvalidBillTypeError(f"Unknown bill type: {bill.bill_type!r}")
    logger.warning("Unknown bill type %r on bill %s, payment ignored", bill.bill_type, bill.id)
    return bill


def update_bill(bill: Bill, **changes) -> Bill:
    for locked in ("id", "created_at"):
        if locked in changes:
            raise BillValidationError(f"Field '{locked}' cannot be changed")
    return replace(bill, **changes)


# ===== FORMATTING =====
# English names regardless of the process locale
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def format_date(value: DateLike) -> str:
    """Render a date as 'Mon D, YYYY', e.g. 'Jan 5, 2024'."""
    d = to_date(value)
    return f"{MONTH_NAMES[d.month - 1][:3]} {d.day}, {d.year}"


def format_payment_history(history: Optional[Iterable[PaymentRecord]]) -> list[dict]:
    if not history:
        return []

    ordered = sorted(history, key=lambda p: to_date(p.date), reverse=True)
    return [
        {
            "period": f"{MONTH_NAMES[to_date(p.date).month - 1]} {to_date(p.date).year}",
            "date": to_date(p.date).isoformat(),
            "formatted_date": format_date(p.date),
        } for p in ordered
    ]


# ===== GROUPING =====
def group_bills_by_status(
        bills: Iterable[Bill],
        today: Optional[DateLike] = None
) -> dict[BillStatus, list[Bill]]:
    current = _today(today)
    grouped = {
        BillStatus.UPCOMING: [],
        BillStatus.DUE_TODAY: [],
        BillStatus.OVERDUE: [],
        BillStatus.PAID: [],
    }

    for bill in bills:
        if bill.is_paid:
            grouped[BillStatus.PAID].append(bill)
        else:
            grouped[get_bill_status(bill.due_date, current)].append(bill)

    for status in grouped:
        grouped[status].sort(key=lambda b: to_date(b.due_date))

    return grouped


def get_upcoming_bills(
        bills: Iterable[Bill],
        days: Optional[int] = None,
        today: Optional[DateLike] = None
) -> list[Bill]:
    current = _today(today)
    if days is None:
        days = config.UPCOMING_WINDOW_DAYS
    upcoming = [
        b for b in bills
        if not b.is_paid and 0 < get_days_from_today(b.due_date, current) <= days
    ]
    return sorted(upcoming, key=lambda b: to_date(b.due_date))


def get_bills_needing_reminder(bills: Iterable[Bill], today: Optional[DateLike] = None) -> list[Bill]:
    """Unpaid bills whose reminder date has arrived and that are not yet overdue."""
    current = _today(today)
    due = [
        b for b in bills
        if not b.is_paid and b.reminder_date is not None
        and to_date(b.reminder_date) <= current <= to_date(b.due_date)
    ]
    return sorted(due, key=lambda b: to_date(b.due_date))


def get_bills_for_date(bills: Iterable[Bill], day: DateLike) -> list[Bill]:
    target = to_date(day)
    return [b for b in bills if to_date(b.due_date) == target]
