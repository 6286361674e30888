"""Data models for parking sessions, tariffs and invoices."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum


class DayClass(str, Enum):
    """Which rate band list applies to a civil day."""

    WEEKDAY = "weekday"
    WEEKEND = "weekend"


@dataclass(frozen=True)
class Session:
    """A single parking occupancy event."""

    customer_id: str
    facility_id: str
    start_time: datetime
    end_time: datetime

    @property
    def is_degenerate(self) -> bool:
        return self.start_time >= self.end_time


@dataclass(frozen=True)
class RateBand:
    """A half-open hour interval [start_hour, end_hour) with an hourly price."""

    start_hour: int  # 0-23
    end_hour: int  # 1-24
    price_per_hour: Decimal

    def contains(self, hour: int) -> bool:
        return self.start_hour <= hour < self.end_hour


@dataclass(frozen=True)
class TariffSchedule:
    """Weekday and weekend rate bands for one facility."""

    weekday_bands: tuple[RateBand, ...]
    weekend_bands: tuple[RateBand, ...]
    timezone: str | None = None  # IANA name, e.g. Europe/Brussels

    def bands_for(self, day_class: DayClass) -> tuple[RateBand, ...]:
        if day_class is DayClass.WEEKEND:
            return self.weekend_bands
        return self.weekday_bands


@dataclass
class ParkingFacility:
    """A parking facility and its active tariff schedule."""

    facility_id: str
    name: str
    schedule: TariffSchedule


@dataclass
class Customer:
    """A parking customer."""

    customer_id: str
    name: str
    email: str | None = None


@dataclass
class BilledHour:
    """One hourly charge of a priced session."""

    start: datetime  # local civil time
    day_class: DayClass
    hour: int
    rate: Decimal


@dataclass
class Invoice:
    """The billed total for one customer at one facility."""

    facility_id: str
    customer_id: str
    amount: Decimal = field(default_factory=lambda: Decimal("0"))
    session_count: int = 0
