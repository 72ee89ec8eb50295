"""Due-date preference and gestational week calculation."""

import json
import logging
import math
from datetime import date
from pathlib import Path

logger = logging.getLogger(__name__)

DUE_DATE_KEY = "pregnancyDueDate"
FULL_TERM_WEEKS = 40
DEFAULT_WEEK = 12


def calculate_current_week(due_date: date | None, today: date | None = None) -> int:
    """Gestational week implied by a due date, clamped to 1..40.

    Without a due date the tracker shows week 12.
    """
    if due_date is None:
        return DEFAULT_WEEK
    today = today or date.today()

    # Whole days, so ceil() of the day difference is the difference itself
    days_remaining = math.ceil((due_date - today).days)
    weeks_remaining = math.floor(days_remaining / 7)
    return max(1, min(FULL_TERM_WEEKS, FULL_TERM_WEEKS - weeks_remaining))


class DueDateStore:
    """Persists the single due-date preference in a small JSON file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> date | None:
        """Return the stored due date, or None when unset or unreadable."""
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            value = data.get(DUE_DATE_KEY) if isinstance(data, dict) else None
            return date.fromisoformat(value) if value else None
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return None

    def save(self, due_date: date) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({DUE_DATE_KEY: due_date.isoformat()}),
            encoding="utf-8",
        )
