from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, List, Any

from billtracker.exceptions import InvalidDateError, BillValidationError


class BillType(str, Enum):
    ONE_TIME = "one_time"
    RECURRING = "recurring"


class Recurrence(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BillCategory(str, Enum):
    SUBSCRIPTIONS = "Subscriptions"
    ELECTRICITY = "Electricity"
    WATER = "Water"
    INTERNET = "Internet"
    RENT = "Rent"
    LOAN = "Loan"
    INSURANCE = "Insurance"
    MEDICAL = "Medical"
    TRANSPORTATION = "Transportation"
    ENTERTAINMENT = "Entertainment"
    OTHER = "Other"


class BillStatus(str, Enum):
    UPCOMING = "upcoming"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"
    PAID = "paid"


def to_date(value: date | datetime | str) -> date:
    """Normalize a date, datetime or ISO string to a plain date.

    Strings may carry a time part ("2024-01-15T08:30:00Z"), which is dropped.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip().split("T")[0])
        except ValueError:
            raise InvalidDateError(f"Date must be in YYYY-MM-DD format, got {value!r}")
    raise InvalidDateError(f"Unsupported date value: {value!r}")


def _optional_date(value) -> Optional[date]:
    return to_date(value) if value else None


def _to_datetime(value: datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        raise InvalidDateError(f"Invalid timestamp: {value!r}")


def _to_enum(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        raise BillValidationError(f"Invalid {field_name}: {value!r}")


@dataclass(frozen=True)
class PaymentRecord:
    date: date
    amount: float
    notes: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "date", to_date(self.date))

    def to_dict(self) -> dict[str, Any]:
        data = {"date": self.date.isoformat(), "amount": self.amount}
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PaymentRecord:
        return cls(
            date=to_date(data["date"]),
            amount=float(data["amount"]),
            notes=data.get("notes")
        )


@dataclass
class Bill:
    id: str
    name: str
    amount: float
    category: BillCategory
    due_date: date
    bill_type: BillType
    created_at: datetime = field(default_factory=datetime.now)
    reminder_date: Optional[date] = None

    # Recurring bills only
    recurrence: Optional[Recurrence] = None
    next_due_date: Optional[date] = None
    payment_history: List[PaymentRecord] = field(default_factory=list)

    # UI state
    is_paid: bool = False
    paid_date: Optional[date] = None

    def __post_init__(self):
        if self.amount <= 0:
            raise BillValidationError(f"Bill amount must be positive, got {self.amount}")

        # Dates may arrive as ISO strings
        self.due_date = to_date(self.due_date)
        self.reminder_date = _optional_date(self.reminder_date)
        self.next_due_date = _optional_date(self.next_due_date)
        self.paid_date = _optional_date(self.paid_date)
        self.created_at = _to_datetime(self.created_at)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "category": _enum_value(self.category),
            "due_date": self.due_date.isoformat(),
            "reminder_date": self.reminder_date.isoformat() if self.reminder_date else None,
            "bill_type": _enum_value(self.bill_type),
            "created_at": self.created_at.isoformat(),
            "recurrence": _enum_value(self.recurrence) if self.recurrence else None,
            "next_due_date": self.next_due_date.isoformat() if self.next_due_date else None,
            "payment_history": [p.to_dict() for p in self.payment_history],
            "is_paid": self.is_paid,
            "paid_date": self.paid_date.isoformat() if self.paid_date else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Bill:
        try:
            return cls(
                id=str(data["id"]),
                name=data["name"],
                amount=float(data["amount"]),
                category=_to_enum(BillCategory, data["category"], "category"),
                due_date=to_date(data["due_date"]),
                bill_type=_to_enum(BillType, data["bill_type"], "bill type"),
                created_at=_to_datetime(data["created_at"]),
                reminder_date=_optional_date(data.get("reminder_date")),
                recurrence=_to_enum(Recurrence, data["recurrence"], "recurrence")
                if data.get("recurrence") else None,
                next_due_date=_optional_date(data.get("next_due_date")),
                payment_history=[PaymentRecord.from_dict(p) for p in data.get("payment_history") or []],
                is_paid=_to_bool(data.get("is_paid", False), "is_paid"),
                paid_date=_optional_date(data.get("paid_date"))
            )
        except KeyError as e:
            raise BillValidationError(f"Missing required field: {e.args[0]}")


def _enum_value(value):
    return value.value if isinstance(value, Enum) else value


def _to_bool(value, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise BillValidationError(f"{field_name} must be true or false, got {value!r}")
    return value
