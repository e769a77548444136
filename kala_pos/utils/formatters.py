"""
Formatting helpers shared by the JSON serializers and the exporters.
"""
from decimal import Decimal
from datetime import date, datetime
from typing import Optional, Union
from zoneinfo import ZoneInfo

DATETIME_FORMAT = '%Y-%m-%d %H:%M:%S'
DATE_FORMAT = '%Y-%m-%d'


def money(value: Union[int, float, Decimal, None]) -> Optional[float]:
    """
    Render a stored amount as a JSON number.

    Examples:
        money(Decimal('2000.00')) -> 2000.0
        money(None) -> None
    """
    if value is None:
        return None
    return float(value)


def datetime_str(value: Optional[datetime]) -> Optional[str]:
    """Wall-clock timestamp as 'YYYY-MM-DD HH:MM:SS'."""
    if value is None:
        return None
    return value.strftime(DATETIME_FORMAT)


def parse_date(value: str) -> date:
    """Parse a 'YYYY-MM-DD' calendar date (raises ValueError)."""
    return datetime.strptime(value.strip(), DATE_FORMAT).date()


def store_now(timezone_name: str) -> datetime:
    """
    Current wall-clock time in the shop's timezone, without tzinfo.

    Sales are stored as naive local timestamps so calendar-day filters match
    what the cashier saw on the bill.
    """
    return datetime.now(ZoneInfo(timezone_name)).replace(tzinfo=None, microsecond=0)
