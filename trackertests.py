import unittest
from datetime import date, datetime, timedelta
from unittest.mock import patch

from billtracker import config
from billtracker.exceptions import (
    InvalidDateError, BillValidationError, InvalidRecurrenceError, InvalidBillTypeError
)
from billtracker.models import (
    Bill, BillType, BillCategory, BillStatus, PaymentRecord, Recurrence, to_date
)
from billtracker.logic import (
    get_days_from_today, get_bill_status, get_status_context_text, get_status_color,
    get_color_for_status, calculate_next_due_date, process_payment, update_bill,
    format_date, format_payment_history, group_bills_by_status,
    get_upcoming_bills, get_bills_needing_reminder, get_bills_for_date
)


TODAY = date(2024, 1, 15)


def make_bill(bill_id="1", due_date=TODAY, bill_type=BillType.ONE_TIME, **kwargs) -> Bill:
    defaults = dict(
        name=f"Bill {bill_id}",
        amount=50.0,
        category=BillCategory.ELECTRICITY,
        created_at=datetime(2024, 1, 1, 9, 30),
    )
    defaults.update(kwargs)
    return Bill(id=bill_id, due_date=due_date, bill_type=bill_type, **defaults)


class TestBillModel(unittest.TestCase):
    def test_bill_creation(self):
        """Test Bill dataclass defaults"""
        bill = make_bill()
        self.assertEqual(bill.amount, 50.0)
        self.assertEqual(bill.category, BillCategory.ELECTRICITY)
        self.assertFalse(bill.is_paid)
        self.assertIsNone(bill.paid_date)
        self.assertIsNone(bill.recurrence)
        self.assertEqual(bill.payment_history, [])

    def test_non_positive_amount_rejected(self):
        with self.assertRaises(BillValidationError):
            make_bill(amount=0)
        with self.assertRaises(BillValidationError):
            make_bill(amount=-10.0)

    def test_enum_values_match_strings(self):
        self.assertEqual(BillType.RECURRING, "recurring")
        self.assertEqual(Recurrence.MONTHLY, "monthly")
        self.assertEqual(BillStatus.DUE_TODAY, "due_today")
        self.assertEqual(len(BillCategory), 11)
        self.assertEqual(BillCategory("Internet"), BillCategory.INTERNET)

    def test_to_date(self):
        self.assertEqual(to_date("2024-01-15"), TODAY)
        self.assertEqual(to_date("2024-01-15T22:10:00.000Z"), TODAY)
        self.assertEqual(to_date(datetime(2024, 1, 15, 23, 59)), TODAY)
        self.assertEqual(to_date(TODAY), TODAY)

    def test_to_date_invalid(self):
        with self.assertRaises(InvalidDateError):
            to_date("15/01/2024")
        with self.assertRaises(ValueError):
            to_date("not a date")
        with self.assertRaises(InvalidDateError):
            to_date(20240115)

    def test_dict_round_trip(self):
        """Test converting a recurring bill to a dict and back"""
        bill = make_bill(
            bill_type=BillType.RECURRING,
            recurrence=Recurrence.YEARLY,
            next_due_date=TODAY,
            reminder_date=date(2024, 1, 10),
            payment_history=[PaymentRecord(date(2023, 1, 15), 50.0, notes="card")]
        )
        data = bill.to_dict()

        self.assertEqual(data["due_date"], "2024-01-15")
        self.assertEqual(data["bill_type"], "recurring")
        self.assertEqual(data["category"], "Electricity")
        self.assertEqual(data["recurrence"], "yearly")
        self.assertEqual(data["payment_history"], [{"date": "2023-01-15", "amount": 50.0, "notes": "card"}])
        self.assertIsNone(data["paid_date"])

        self.assertEqual(Bill.from_dict(data), bill)

    def test_from_dict_minimal(self):
        bill = Bill.from_dict({
            "id": 7,
            "name": "Netflix",
            "amount": "15.99",
            "category": "Subscriptions",
            "due_date": "2024-02-01",
            "bill_type": "one_time",
            "created_at": "2024-01-01T10:00:00.000Z",
        })
        self.assertEqual(bill.id, "7")
        self.assertEqual(bill.amount, 15.99)
        self.assertEqual(bill.category, BillCategory.SUBSCRIPTIONS)
        self.assertEqual(bill.due_date, date(2024, 2, 1))
        self.assertEqual(bill.bill_type, BillType.ONE_TIME)
        self.assertEqual(bill.created_at.date(), date(2024, 1, 1))
        self.assertIsNone(bill.recurrence)
        self.assertEqual(bill.payment_history, [])
        self.assertFalse(bill.is_paid)

    def test_from_dict_invalid(self):
        data = make_bill().to_dict()

        with self.assertRaises(BillValidationError):
            Bill.from_dict({**data, "category": "Groceries"})
        with self.assertRaises(BillValidationError):
            Bill.from_dict({**data, "bill_type": "quarterly"})
        with self.assertRaises(InvalidDateError):
            Bill.from_dict({**data, "due_date": "2024-13-01"})

        del data["name"]
        with self.assertRaises(BillValidationError):
            Bill.from_dict(data)

    def test_from_dict_rejects_non_bool_is_paid(self):
        data = make_bill().to_dict()
        for value in ("false", "true", 0, None):
            with self.assertRaises(BillValidationError):
                Bill.from_dict({**data, "is_paid": value})

        self.assertTrue(Bill.from_dict({**data, "is_paid": True}).is_paid)

    def test_string_dates_are_normalized(self):
        """Test that ISO strings passed to the constructor become dates"""
        bill = make_bill(
            due_date="2024-01-15",
            bill_type=BillType.RECURRING,
            recurrence=Recurrence.MONTHLY,
            reminder_date="2024-01-10",
            next_due_date="2024-01-15",
            created_at="2024-01-01T09:30:00",
            payment_history=[PaymentRecord("2023-12-15", 50.0)]
        )
        self.assertEqual(bill.due_date, TODAY)
        self.assertEqual(bill.reminder_date, date(2024, 1, 10))
        self.assertEqual(bill.next_due_date, TODAY)
        self.assertEqual(bill.created_at, datetime(2024, 1, 1, 9, 30))
        self.assertEqual(bill.payment_history[0].date, date(2023, 12, 15))
        self.assertEqual(bill.to_dict()["due_date"], "2024-01-15")

        paid = process_payment(bill, today=TODAY)
        data = paid.to_dict()
        self.assertEqual(data["due_date"], "2024-02-15")
        self.assertEqual(data["next_due_date"], "2024-02-15")
        self.assertEqual(data["reminder_date"], "2024-01-10")
        self.assertEqual(data["payment_history"], [
            {"date": "2023-12-15", "amount": 50.0},
            {"date": "2024-01-15", "amount": 50.0},
        ])
        self.assertEqual(Bill.from_dict(data), paid)

    def test_invalid_string_date_rejected(self):
        with self.assertRaises(InvalidDateError):
            make_bill(due_date="15/01/2024")
        with self.assertRaises(InvalidDateError):
            make_bill(paid_date="yesterday")


class TestStatus(unittest.TestCase):
    def test_days_from_today(self):
        self.assertEqual(get_days_from_today("2024-01-15", today=TODAY), 0)
        self.assertEqual(get_days_from_today("2024-01-18", today=TODAY), 3)
        self.assertEqual(get_days_from_today("2024-01-10", today=TODAY), -5)
        self.assertEqual(get_days_from_today("2025-01-15", today=TODAY), 366)

    def test_bill_status(self):
        for offset in (1, 2, 30, 400):
            self.assertEqual(get_bill_status(TODAY - timedelta(days=offset), today=TODAY), BillStatus.OVERDUE)
            self.assertEqual(get_bill_status(TODAY + timedelta(days=offset), today=TODAY), BillStatus.UPCOMING)
        self.assertEqual(get_bill_status(TODAY, today=TODAY), BillStatus.DUE_TODAY)

    def test_time_of_day_is_ignored(self):
        self.assertEqual(get_bill_status(datetime(2024, 1, 15, 23, 59), today=datetime(2024, 1, 15, 0, 1)),
                         BillStatus.DUE_TODAY)
        self.assertEqual(get_days_from_today("2024-01-16T00:00:00", today=datetime(2024, 1, 15, 23, 0)), 1)

    def test_status_against_clock_today(self):
        today = date(2024, 2, 29)
        with patch("billtracker.logic.date") as mock_date:
            mock_date.today.return_value = today
            self.assertEqual(get_bill_status(today), BillStatus.DUE_TODAY)
            self.assertEqual(get_days_from_today(today.isoformat()), 0)
            self.assertLess(get_days_from_today(today - timedelta(days=1)), 0)
            self.assertEqual(get_bill_status(today + timedelta(days=1)), BillStatus.UPCOMING)

    def test_default_today_comes_from_clock(self):
        with patch("billtracker.logic.date") as mock_date:
            mock_date.today.return_value = TODAY
            self.assertEqual(get_days_from_today("2024-01-20"), 5)
            self.assertEqual(get_bill_status("2024-01-14"), BillStatus.OVERDUE)

    def test_status_context_text(self):
        self.assertEqual(get_status_context_text(TODAY, today=TODAY), "Due today")
        self.assertEqual(get_status_context_text("2024-01-16", today=TODAY), "1 day left")
        self.assertEqual(get_status_context_text("2024-01-20", today=TODAY), "5 days left")
        self.assertEqual(get_status_context_text("2024-01-14", today=TODAY), "Overdue 1 day")
        self.assertEqual(get_status_context_text("2024-01-05", today=TODAY), "Overdue 10 days")

    def test_status_color(self):
        self.assertEqual(get_status_color("2024-01-10", today=TODAY), "#EF4444")
        self.assertEqual(get_status_color(TODAY, today=TODAY), "#F59E0B")
        self.assertEqual(get_status_color("2024-02-10", today=TODAY), "#6B7280")

    def test_status_color_never_paid(self):
        """A due date alone can never yield the paid color"""
        for offset in range(-3, 4):
            color = get_status_color(TODAY + timedelta(days=offset), today=TODAY)
            self.assertNotEqual(color, config.STATUS_COLORS[BillStatus.PAID])

    def test_color_for_status(self):
        self.assertEqual(get_color_for_status(BillStatus.PAID), "#10B981")
        self.assertEqual(get_color_for_status("overdue"), "#EF4444")
        self.assertEqual(get_color_for_status("archived"), config.DEFAULT_COLOR)


class TestRecurrence(unittest.TestCase):
    def test_next_due_date(self):
        self.assertEqual(calculate_next_due_date("2024-01-15", Recurrence.WEEKLY), date(2024, 1, 22))
        self.assertEqual(calculate_next_due_date("2024-01-15", Recurrence.MONTHLY), date(2024, 2, 15))
        self.assertEqual(calculate_next_due_date("2024-01-15", Recurrence.YEARLY), date(2025, 1, 15))

    def test_next_due_date_accepts_strings(self):
        self.assertEqual(calculate_next_due_date(date(2024, 12, 28), "weekly"), date(2025, 1, 4))
        self.assertEqual(calculate_next_due_date("2024-12-15", "monthly"), date(2025, 1, 15))

    def test_month_end_clamps(self):
        self.assertEqual(calculate_next_due_date("2024-01-31", Recurrence.MONTHLY), date(2024, 2, 29))
        self.assertEqual(calculate_next_due_date("2023-01-31", Recurrence.MONTHLY), date(2023, 2, 28))
        self.assertEqual(calculate_next_due_date("2024-03-31", Recurrence.MONTHLY), date(2024, 4, 30))

    def test_leap_day_yearly(self):
        self.assertEqual(calculate_next_due_date("2024-02-29", Recurrence.YEARLY), date(2025, 2, 28))

    def test_time_part_is_dropped(self):
        self.assertEqual(calculate_next_due_date(datetime(2024, 1, 15, 18, 45), Recurrence.WEEKLY),
                         date(2024, 1, 22))

    def test_unknown_recurrence_fallback(self):
        with self.assertLogs("billtracker.logic", level="WARNING"):
            self.assertEqual(calculate_next_due_date("2024-01-15", "quarterly"), TODAY)

    def test_unknown_recurrence_strict(self):
        with self.assertRaises(InvalidRecurrenceError):
            calculate_next_due_date("2024-01-15", "quarterly", strict=True)

    def test_next_due_date_iso_form(self):
        self.assertEqual(calculate_next_due_date("2024-01-15", Recurrence.WEEKLY).isoformat(), "2024-01-22")
        self.assertEqual(calculate_next_due_date("2024-01-15", Recurrence.MONTHLY).isoformat(), "2024-02-15")
        self.assertEqual(calculate_next_due_date("2024-01-15", Recurrence.YEARLY).isoformat(), "2025-01-15")


class TestPayments(unittest.TestCase):
    def test_one_time_payment(self):
        bill = make_bill(due_date=date(2024, 1, 10))
        paid = process_payment(bill, today=TODAY)

        self.assertTrue(paid.is_paid)
        self.assertEqual(paid.paid_date, TODAY)

        before, after = bill.to_dict(), paid.to_dict()
        for key in ("is_paid", "paid_date"):
            before.pop(key)
            after.pop(key)
        self.assertEqual(before, after)

        # Original is untouched
        self.assertFalse(bill.is_paid)
        self.assertIsNone(bill.paid_date)

    def test_one_time_payment_uses_clock(self):
        with patch("billtracker.logic.date") as mock_date:
            mock_date.today.return_value = date(2024, 3, 1)
            paid = process_payment(make_bill())
        self.assertEqual(paid.paid_date, date(2024, 3, 1))

    def test_recurring_payment(self):
        bill = make_bill(bill_type=BillType.RECURRING, recurrence=Recurrence.MONTHLY, amount=80.0)
        paid = process_payment(bill, today=TODAY)

        self.assertEqual(paid.due_date, date(2024, 2, 15))
        self.assertEqual(paid.next_due_date, date(2024, 2, 15))
        self.assertEqual(len(paid.payment_history), 1)
        self.assertEqual(paid.payment_history[0].date, TODAY)
        self.assertEqual(paid.payment_history[0].amount, 80.0)
        self.assertFalse(paid.is_paid)
        self.assertIsNone(paid.paid_date)

        # Original is untouched
        self.assertEqual(bill.due_date, TODAY)
        self.assertEqual(bill.payment_history, [])

    def test_recurring_payment_appends_history(self):
        history = [PaymentRecord(date(2023, 11, 15), 40.0), PaymentRecord(date(2023, 12, 15), 45.0)]
        bill = make_bill(bill_type=BillType.RECURRING, recurrence=Recurrence.WEEKLY, payment_history=history)
        paid = process_payment(bill, today=TODAY)

        self.assertEqual(paid.payment_history[:2], history)
        self.assertEqual(paid.payment_history[2], PaymentRecord(TODAY, 50.0))
        self.assertEqual(len(bill.payment_history), 2)
        self.assertEqual(paid.due_date, date(2024, 1, 22))

    def test_recurring_defaults_to_monthly(self):
        bill = make_bill(bill_type=BillType.RECURRING, due_date=date(2024, 3, 31))
        paid = process_payment(bill, today=TODAY)
        self.assertEqual(paid.due_date, date(2024, 4, 30))
        self.assertEqual(paid.next_due_date, date(2024, 4, 30))

    def test_repeated_payments_roll_forward(self):
        bill = make_bill(bill_type=BillType.RECURRING, recurrence=Recurrence.YEARLY)
        for _ in range(3):
            bill = process_payment(bill, today=TODAY)
        self.assertEqual(bill.due_date, date(2027, 1, 15))
        self.assertEqual(len(bill.payment_history), 3)

    def test_unknown_bill_type(self):
        bill = make_bill(bill_type="installment")
        with self.assertLogs("billtracker.logic", level="WARNING"):
            self.assertIs(process_payment(bill, today=TODAY), bill)
        with self.assertRaises(InvalidBillTypeError):
            process_payment(bill, today=TODAY, strict=True)

    def test_update_bill(self):
        bill = make_bill()
        updated = update_bill(bill, name="Power", amount=75.0)
        self.assertEqual(updated.name, "Power")
        self.assertEqual(updated.amount, 75.0)
        self.assertEqual(bill.name, "Bill 1")

        with self.assertRaises(BillValidationError):
            update_bill(bill, id="2")
        with self.assertRaises(BillValidationError):
            update_bill(bill, amount=-1)


class TestFormatting(unittest.TestCase):
    def test_format_date(self):
        self.assertEqual(format_date("2024-01-05"), "Jan 5, 2024")
        self.assertEqual(format_date(date(2023, 12, 25)), "Dec 25, 2023")

    def test_month_names_are_english(self):
        """Test month names come from a fixed table, not the process locale"""
        labels = [format_date(date(2024, month, 1)).split()[0] for month in range(1, 13)]
        self.assertEqual(labels, ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
                                  "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"])

        history = [PaymentRecord(date(2024, 9, 30), 10.0)]
        self.assertEqual(format_payment_history(history)[0]["period"], "September 2024")
        self.assertEqual(format_date("2024-05-09"), "May 9, 2024")

    def test_format_empty_history(self):
        self.assertEqual(format_payment_history([]), [])
        self.assertEqual(format_payment_history(None), [])

    def test_format_payment_history(self):
        history = [
            PaymentRecord(date(2023, 11, 3), 40.0),
            PaymentRecord(date(2024, 1, 5), 40.0),
            PaymentRecord(date(2023, 12, 4), 40.0),
        ]
        result = format_payment_history(history)

        self.assertEqual(len(result), 3)
        self.assertEqual([r["date"] for r in result], ["2024-01-05", "2023-12-04", "2023-11-03"])
        self.assertEqual(result[0], {
            "period": "January 2024",
            "date": "2024-01-05",
            "formatted_date": "Jan 5, 2024",
        })
        self.assertEqual(result[2]["period"], "November 2023")

        # Input order is preserved
        self.assertEqual(history[0].date, date(2023, 11, 3))


class TestGrouping(unittest.TestCase):
    def setUp(self):
        self.bills = [
            make_bill("a", due_date=date(2024, 1, 20)),
            make_bill("b", due_date=date(2024, 1, 10)),
            make_bill("c", due_date=TODAY),
            make_bill("d", due_date=date(2024, 1, 16)),
            make_bill("e", due_date=date(2024, 1, 1), is_paid=True, paid_date=date(2023, 12, 30)),
            make_bill("f", due_date=date(2024, 1, 3)),
            make_bill("g", due_date=date(2024, 3, 1), is_paid=True),
        ]

    def test_group_bills_by_status(self):
        grouped = group_bills_by_status(self.bills, today=TODAY)

        self.assertEqual(set(grouped), set(BillStatus))
        self.assertEqual([b.id for b in grouped[BillStatus.UPCOMING]], ["d", "a"])
        self.assertEqual([b.id for b in grouped[BillStatus.DUE_TODAY]], ["c"])
        self.assertEqual([b.id for b in grouped[BillStatus.OVERDUE]], ["f", "b"])
        self.assertEqual([b.id for b in grouped[BillStatus.PAID]], ["e", "g"])

    def test_group_empty(self):
        grouped = group_bills_by_status([], today=TODAY)
        self.assertEqual(grouped, {status: [] for status in BillStatus})

    def test_upcoming_bills(self):
        upcoming = get_upcoming_bills(self.bills, days=5, today=TODAY)
        self.assertEqual([b.id for b in upcoming], ["d", "a"])

        upcoming = get_upcoming_bills(self.bills, days=1, today=TODAY)
        self.assertEqual([b.id for b in upcoming], ["d"])

    def test_upcoming_window_follows_config(self):
        with patch.object(config, "UPCOMING_WINDOW_DAYS", 1):
            self.assertEqual([b.id for b in get_upcoming_bills(self.bills, today=TODAY)], ["d"])
        with patch.object(config, "UPCOMING_WINDOW_DAYS", 10):
            self.assertEqual([b.id for b in get_upcoming_bills(self.bills, today=TODAY)], ["d", "a"])

    def test_bills_needing_reminder(self):
        bills = [
            make_bill("a", due_date=date(2024, 1, 20), reminder_date=date(2024, 1, 13)),
            make_bill("b", due_date=date(2024, 1, 20), reminder_date=date(2024, 1, 18)),
            make_bill("c", due_date=date(2024, 1, 10), reminder_date=date(2024, 1, 5)),
            make_bill("d", due_date=TODAY, reminder_date=TODAY),
            make_bill("e", due_date=date(2024, 1, 20), reminder_date=date(2024, 1, 1), is_paid=True),
            make_bill("f", due_date=date(2024, 1, 20)),
        ]
        self.assertEqual([b.id for b in get_bills_needing_reminder(bills, today=TODAY)], ["d", "a"])

    def test_bills_for_date(self):
        self.assertEqual([b.id for b in get_bills_for_date(self.bills, "2024-01-15")], ["c"])
        self.assertEqual(get_bills_for_date(self.bills, date(2024, 2, 2)), [])


class TestConfig(unittest.TestCase):
    def test_configure_logging(self):
        with patch("billtracker.config.logging.basicConfig") as basic_config:
            config.configure_logging("DEBUG")
            self.assertEqual(basic_config.call_args.kwargs["level"], "DEBUG")

            config.configure_logging()
            self.assertEqual(basic_config.call_args.kwargs["level"], config.LOG_LEVEL)

    def test_defaults(self):
        self.assertEqual(config.DEFAULT_RECURRENCE, Recurrence.MONTHLY)
        self.assertEqual(set(config.STATUS_COLORS), set(BillStatus))


if __name__ == "__main__":
    unittest.main()
