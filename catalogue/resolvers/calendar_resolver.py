from datetime import date
from typing import Callable

from catalogue.fetcher import Fetcher
from catalogue.resolvers.base_resolver import BaseResolver
from catalogue.semester import current_semester_code


class CalendarResolver(BaseResolver):
    """Derives the semester from today's date, never touches the network."""
    strategy_name = "calendar"

    def __init__(self, base_url: str, fetcher: Fetcher | None = None, today: Callable[[], date] = date.today) -> None:
        super().__init__(base_url, fetcher)
        self.today = today

    def resolve(self) -> str:
        return current_semester_code(self.today())
