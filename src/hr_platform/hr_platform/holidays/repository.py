from __future__ import annotations

from datetime import date
from typing import Protocol


class HolidayRepository(Protocol):
    def exists_on(self, day: date) -> bool:
        raise NotImplementedError
