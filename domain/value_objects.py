"""Domain Value Objects"""
import math
import re
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, validator

from domain.exceptions import ValidationError

SECONDS_PER_DAY = 24 * 60 * 60

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def today_utc() -> date:
    """Current calendar date in UTC"""
    return datetime.now(timezone.utc).date()


def utc_midnight(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def parse_calendar_date(value: Union[str, date, None], field: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` calendar date, raising ValidationError"""
    if value is None or value == "":
        raise ValidationError(f"{field} is required", {"field": field})
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE.match(value.strip()):
        raise ValidationError(
            f"{field} must be an ISO calendar date (YYYY-MM-DD)", {"field": field, "value": str(value)}
        )
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(
            f"{field} is not a valid calendar date", {"field": field, "value": value}
        )


class DateRange(BaseModel):
    """Half-open stay interval [start_date, end_date)"""
    start_date: date
    end_date: date

    @validator('end_date')
    def end_after_start(cls, v, values):
        if 'start_date' in values and v <= values['start_date']:
            raise ValidationError(
                'end_date must be after start_date',
                {"start_date": values['start_date'].isoformat(), "end_date": v.isoformat()},
            )
        return v

    @classmethod
    def parse(cls, start_date: Union[str, date, None], end_date: Union[str, date, None]) -> "DateRange":
        return cls(
            start_date=parse_calendar_date(start_date, "start_date"),
            end_date=parse_calendar_date(end_date, "end_date"),
        )

    def nights(self) -> int:
        """Number of nights, counted between UTC midnights"""
        elapsed = utc_midnight(self.end_date) - utc_midnight(self.start_date)
        return math.ceil(elapsed.total_seconds() / SECONDS_PER_DAY)

    def overlaps(self, start_date: date, end_date: date) -> bool:
        # a checkout on the same day as the next checkin is not an overlap
        return self.end_date > start_date and self.start_date < end_date

    class Config:
        frozen = True


def calculate_total_price(nightly_price: Decimal, date_range: DateRange) -> Decimal:
    return Decimal(nightly_price) * date_range.nights()


def days_until(start_date: date, today: date) -> int:
    """Whole calendar days from ``today`` to ``start_date`` (negative once past)"""
    return math.floor(
        (utc_midnight(start_date) - utc_midnight(today)).total_seconds() / SECONDS_PER_DAY
    )


class ReservationFilter(BaseModel):
    """Equality filters for the staff reservation listing (AND-combined)"""
    guest_user_id: Optional[int] = None
    room_id: Optional[int] = None

    class Config:
        frozen = True
