from __future__ import annotations

from datetime import date

from ..common.datetime_utils import day_name
from ..users.model import User
from .repository import HolidayRepository


class CalendarService:
    """Calendar facts: holidays are organization-wide, weekends are per employee."""

    def __init__(self, holidays: HolidayRepository):
        self._holidays = holidays

    def is_holiday(self, day: date) -> bool:
        return self._holidays.exists_on(day)

    @staticmethod
    def is_weekend(user: User, day: date) -> bool:
        return user.is_weekend(day_name(day))
