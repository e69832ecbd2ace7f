"""Date manipulation utilities"""

from datetime import date, timedelta
from typing import Optional

from finhealth_gateway.domain.exceptions import InvalidQueryError
from finhealth_gateway.domain.models import TimeWindow


def resolve_window(
    start: Optional[date] = None,
    end: Optional[date] = None,
    days: int = 30,
    today: Optional[date] = None,
) -> TimeWindow:
    """
    Fill in missing reporting bounds.

    Missing start -> today - days, missing end -> today.

    Raises:
        InvalidQueryError: start falls after end
    """
    today = today or date.today()
    if start is None:
        start = today - timedelta(days=days)
    if end is None:
        end = today

    if start > end:
        raise InvalidQueryError(f"start_date {start.isoformat()} is after end_date {end.isoformat()}")

    return TimeWindow(start=start, end=end)
