"""Read interfaces the invoice service consumes, with in-memory and SQLite implementations."""

from pathlib import Path
from typing import Iterable, Protocol

from .collectors.customers import get_customer
from .collectors.sessions import get_sessions_for_facility
from .models import Customer, Session, TariffSchedule
from .tariffs import get_schedule_from_db


class SessionSource(Protocol):
    def get_sessions(self, facility_id: str) -> list[Session]:
        """All sessions for a facility; empty for an unknown facility."""
        ...


class ScheduleSource(Protocol):
    def get_schedule(self, facility_id: str) -> TariffSchedule | None:
        """The facility's tariff schedule, or None if the facility is unknown."""
        ...


class CustomerSource(Protocol):
    def get_customer(self, customer_id: str) -> Customer | None:
        ...


class InMemorySessionSource:
    def __init__(self, sessions: Iterable[Session] = ()):
        self._sessions = list(sessions)

    def add_session(self, session: Session) -> None:
        self._sessions.append(session)

    def get_sessions(self, facility_id: str) -> list[Session]:
        return [s for s in self._sessions if s.facility_id == facility_id]


class InMemoryScheduleSource:
    def __init__(self, schedules: dict[str, TariffSchedule] | None = None):
        self._schedules = dict(schedules or {})

    def get_schedule(self, facility_id: str) -> TariffSchedule | None:
        return self._schedules.get(facility_id)


class InMemoryCustomerSource:
    def __init__(self, customers: Iterable[Customer] = ()):
        self._customers = {c.customer_id: c for c in customers}

    def get_customer(self, customer_id: str) -> Customer | None:
        return self._customers.get(customer_id)


class SqliteSessionSource:
    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def get_sessions(self, facility_id: str) -> list[Session]:
        return get_sessions_for_facility(facility_id, self.db_path)


class SqliteScheduleSource:
    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def get_schedule(self, facility_id: str) -> TariffSchedule | None:
        return get_schedule_from_db(facility_id, self.db_path)


class SqliteCustomerSource:
    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path

    def get_customer(self, customer_id: str) -> Customer | None:
        return get_customer(customer_id, self.db_path)
