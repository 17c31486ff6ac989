"""Daily activity input models: what a resource did on each day of a month."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, Field

# Fixed English abbreviations; strftime("%a") follows LC_TIME.
DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def day_abbr(day: date) -> str:
    return DAY_NAMES[day.weekday()]


class Client(StrEnum):
    VERISMA = "verisma"
    MRO = "mro"
    DATAVANT = "datavant"


class LocationCases(BaseModel):
    """Processing cases worked at one location/subproject on one day."""

    client: Client
    location_id: str
    location_name: str = ""
    cases: int = 0


class DayActivity(BaseModel):
    """One day of a resource's work log.

    Logging cases are counted per client and paid at the slab rate. Processing
    cases are listed per location and paid at the location's fixed rate.
    ``complete_logging_cases`` is the subset of logging cases that were logged
    to full completion and earn the completion bonus.
    """

    day: date
    hours_worked: Decimal = Decimal("0")
    verisma_logging_cases: int = 0
    mro_logging_cases: int = 0
    datavant_logging_cases: int = 0
    complete_logging_cases: int = 0
    processing: list[LocationCases] = Field(default_factory=list)

    @property
    def month(self) -> int:
        return self.day.month

    @property
    def year(self) -> int:
        return self.day.year

    @property
    def day_name(self) -> str:
        return day_abbr(self.day)

    def logging_cases(self, client: Client) -> int:
        return {
            Client.VERISMA: self.verisma_logging_cases,
            Client.MRO: self.mro_logging_cases,
            Client.DATAVANT: self.datavant_logging_cases,
        }[client]

    def processing_cases(self, client: Client) -> int:
        return sum(p.cases for p in self.processing if p.client == client)

    def client_cases(self, client: Client) -> int:
        """Logging plus processing cases for one client on this day."""
        return self.logging_cases(client) + self.processing_cases(client)

    @property
    def has_activity(self) -> bool:
        return self.hours_worked > 0 or any(self.client_cases(c) > 0 for c in Client)
