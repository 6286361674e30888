"""Tariff loading, validation and rate lookup."""

import logging
import os
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .db import get_connection
from .models import DayClass, ParkingFacility, RateBand, TariffSchedule

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "facilities.yaml"

HOURS_PER_DAY = 24


class TariffConfigurationError(ValueError):
    """A tariff schedule cannot price every hour it may be asked about."""


def get_config_path() -> Path:
    """Find the facilities.yaml config file."""
    env_path = os.environ.get("PARKING_FACILITIES_PATH")
    if env_path:
        return Path(env_path)
    candidates = [
        Path.cwd() / "config" / "facilities.yaml",
        DEFAULT_CONFIG_PATH,
    ]
    for path in candidates:
        if path.exists():
            return path
    raise FileNotFoundError("Could not find config/facilities.yaml")


def day_class_for(dt: datetime) -> DayClass:
    """Saturday and Sunday are weekend days, everything else is a weekday."""
    if dt.weekday() >= 5:
        return DayClass.WEEKEND
    return DayClass.WEEKDAY


def rate_for(schedule: TariffSchedule, day_class: DayClass, hour: int) -> Decimal | None:
    """Get the hourly price of the first band containing `hour`, or None."""
    for band in schedule.bands_for(day_class):
        if band.contains(hour):
            return band.price_per_hour
    return None


def get_rate_for_time(dt: datetime, schedule: TariffSchedule) -> Decimal:
    """Get the hourly price applicable at a local civil time."""
    day_class = day_class_for(dt)
    rate = rate_for(schedule, day_class, dt.hour)
    if rate is None:
        raise TariffConfigurationError(
            f"No rate band covers {dt.hour:02d}:00 in the {day_class.value} tariff"
        )
    return rate


def get_zone(schedule: TariffSchedule) -> ZoneInfo | None:
    """Get the schedule's time zone, or None for naive civil time."""
    if not schedule.timezone:
        return None
    try:
        return ZoneInfo(schedule.timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TariffConfigurationError(f"Unknown timezone {schedule.timezone!r}") from e


def validate_schedule(schedule: TariffSchedule) -> None:
    """Check the time zone and that each day class covers hours 0-23 exactly once.

    Raises TariffConfigurationError describing the first problem found.
    """
    get_zone(schedule)
    for day_class in DayClass:
        covered = [0] * HOURS_PER_DAY
        for band in schedule.bands_for(day_class):
            if not 0 <= band.start_hour < band.end_hour <= HOURS_PER_DAY:
                raise TariffConfigurationError(
                    f"Invalid {day_class.value} band [{band.start_hour}, {band.end_hour})"
                )
            if band.price_per_hour < 0:
                raise TariffConfigurationError(
                    f"Negative price {band.price_per_hour} in {day_class.value} band "
                    f"[{band.start_hour}, {band.end_hour})"
                )
            for hour in range(band.start_hour, band.end_hour):
                covered[hour] += 1

        gaps = [hour for hour, count in enumerate(covered) if count == 0]
        if gaps:
            raise TariffConfigurationError(
                f"{day_class.value.capitalize()} tariff has no rate for hours {_format_hours(gaps)}"
            )
        overlaps = [hour for hour, count in enumerate(covered) if count > 1]
        if overlaps:
            raise TariffConfigurationError(
                f"{day_class.value.capitalize()} tariff has overlapping bands at hours {_format_hours(overlaps)}"
            )


def _format_hours(hours: list[int]) -> str:
    return ", ".join(str(h) for h in hours)


def parse_price(value) -> Decimal:
    """Parse a price without going through binary floating point."""
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise TariffConfigurationError(f"Invalid price {value!r}")


def _parse_hour(value) -> int:
    # bool is an int subclass, YAML turns yes/no into one
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"hour {value!r} is not a whole number")
    return value


def _parse_bands(raw_bands, label: str) -> tuple[RateBand, ...]:
    if raw_bands is None:
        return ()
    if not isinstance(raw_bands, list):
        raise TariffConfigurationError(f"{label} bands must be a list, got {raw_bands!r}")

    bands = []
    for b in raw_bands:
        try:
            bands.append(
                RateBand(
                    start_hour=_parse_hour(b["start"]),
                    end_hour=_parse_hour(b["end"]),
                    price_per_hour=parse_price(b["rate"]),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise TariffConfigurationError(f"Invalid {label} rate band {b!r}: {e}") from e
    return tuple(bands)


def load_facilities_from_yaml(config_path: Path | None = None) -> list[ParkingFacility]:
    """Load facility tariff definitions from a YAML config file.

    Every schedule is validated before it is returned.
    """
    path = config_path or get_config_path()
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    facilities = []
    for index, fac in enumerate(data.get("facilities") or [], start=1):
        if not isinstance(fac, dict) or fac.get("id") is None:
            raise TariffConfigurationError(f"Facility entry {index} without id")
        facility_id = str(fac["id"])

        try:
            schedule = TariffSchedule(
                weekday_bands=_parse_bands(fac.get("weekdays"), DayClass.WEEKDAY.value),
                weekend_bands=_parse_bands(fac.get("weekends"), DayClass.WEEKEND.value),
                timezone=fac.get("timezone"),
            )
            validate_schedule(schedule)
        except TariffConfigurationError as e:
            raise TariffConfigurationError(f"Facility '{facility_id}': {e}") from e
        facilities.append(
            ParkingFacility(
                facility_id=facility_id,
                name=fac.get("name", facility_id),
                schedule=schedule,
            )
        )
    logger.debug("Loaded %d facilities from %s", len(facilities), path)
    return facilities


def save_facilities_to_db(facilities: list[ParkingFacility], db_path: Path | None = None) -> int:
    """Save facilities and their rate bands. Returns number of facilities saved."""
    count = 0
    with get_connection(db_path) as conn:
        for facility in facilities:
            conn.execute(
                "INSERT OR REPLACE INTO facilities (id, name, timezone) VALUES (?, ?, ?)",
                (facility.facility_id, facility.name, facility.schedule.timezone),
            )

            # Replace the facility's bands wholesale
            conn.execute("DELETE FROM rate_bands WHERE facility_id = ?", (facility.facility_id,))

            for day_class in DayClass:
                for band in facility.schedule.bands_for(day_class):
                    conn.execute(
                        """INSERT INTO rate_bands
                           (facility_id, day_class, start_hour, end_hour, price_per_hour)
                           VALUES (?, ?, ?, ?, ?)""",
                        (
                            facility.facility_id,
                            day_class.value,
                            band.start_hour,
                            band.end_hour,
                            str(band.price_per_hour),
                        ),
                    )
            count += 1
        conn.commit()
    return count


def get_schedule_from_db(facility_id: str, db_path: Path | None = None) -> TariffSchedule | None:
    """Get the tariff schedule of a facility, or None if the facility is unknown."""
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT id, timezone FROM facilities WHERE id = ?", (facility_id,)
        ).fetchone()
        if not row:
            return None

        rows = conn.execute(
            """SELECT day_class, start_hour, end_hour, price_per_hour
               FROM rate_bands WHERE facility_id = ?
               ORDER BY day_class, start_hour""",
            (facility_id,),
        ).fetchall()

    bands: dict[str, list[RateBand]] = {d.value: [] for d in DayClass}
    for r in rows:
        bands[r["day_class"]].append(
            RateBand(
                start_hour=r["start_hour"],
                end_hour=r["end_hour"],
                price_per_hour=Decimal(r["price_per_hour"]),
            )
        )
    return TariffSchedule(
        weekday_bands=tuple(bands[DayClass.WEEKDAY.value]),
        weekend_bands=tuple(bands[DayClass.WEEKEND.value]),
        timezone=row["timezone"],
    )


def list_facilities(db_path: Path | None = None) -> list[ParkingFacility]:
    """List all facilities in the database with their schedules."""
    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT id, name FROM facilities ORDER BY id").fetchall()

    facilities = []
    for row in rows:
        schedule = get_schedule_from_db(row["id"], db_path)
        facilities.append(ParkingFacility(facility_id=row["id"], name=row["name"], schedule=schedule))
    return facilities
