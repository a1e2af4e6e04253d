import logging
import os

from billtracker.models import BillStatus, Recurrence


STATUS_COLORS = {
    BillStatus.OVERDUE: "#EF4444",  # red
    BillStatus.DUE_TODAY: "#F59E0B",  # amber
    BillStatus.UPCOMING: "#6B7280",  # gray
    BillStatus.PAID: "#10B981",  # green
}
DEFAULT_COLOR = "#6B7280"

# Recurring bills without a recurrence advance monthly
DEFAULT_RECURRENCE = Recurrence.MONTHLY

UPCOMING_WINDOW_DAYS = int(os.environ.get("BILLTRACKER_UPCOMING_DAYS", "30"))

LOG_LEVEL = os.environ.get("BILLTRACKER_LOG_LEVEL", "WARNING").upper()


def configure_logging(level: str | None = None):
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
