"""Per-customer invoice aggregation for a parking facility."""

import logging
from decimal import Decimal

from .models import Invoice, Session, TariffSchedule
from .pricing import price_session
from .sources import ScheduleSource, SessionSource

logger = logging.getLogger(__name__)


class InvalidFacilityError(ValueError):
    """The requested facility has no known tariff schedule."""

    def __init__(self, facility_id: str):
        self.facility_id = facility_id
        super().__init__(f"Invalid parking facility id '{facility_id}'")


class CustomerNotFoundError(LookupError):
    """The customer has no sessions at the requested facility."""

    def __init__(self, facility_id: str, customer_id: str):
        self.facility_id = facility_id
        self.customer_id = customer_id
        super().__init__(
            f"No sessions for customer '{customer_id}' at parking facility '{facility_id}'"
        )


class InvoiceService:
    """Prices a facility's sessions and groups them into one invoice per customer.

    Either a complete invoice list is returned or an error is raised;
    a TariffConfigurationError from pricing aborts the whole call.
    """

    def __init__(self, session_source: SessionSource, schedule_source: ScheduleSource):
        self.session_source = session_source
        self.schedule_source = schedule_source

    def get_invoices(self, facility_id: str) -> list[Invoice]:
        """Get one invoice per customer with sessions at the facility."""
        schedule = self._get_schedule(facility_id)
        sessions = self.session_source.get_sessions(facility_id)
        return list(self._aggregate(facility_id, sessions, schedule).values())

    def get_invoice(self, facility_id: str, customer_id: str) -> Invoice:
        """Get the invoice of a single customer at the facility."""
        schedule = self._get_schedule(facility_id)
        sessions = [
            s for s in self.session_source.get_sessions(facility_id) if s.customer_id == customer_id
        ]
        invoices = self._aggregate(facility_id, sessions, schedule)
        if customer_id not in invoices:
            raise CustomerNotFoundError(facility_id, customer_id)
        return invoices[customer_id]

    def _get_schedule(self, facility_id: str) -> TariffSchedule:
        schedule = self.schedule_source.get_schedule(facility_id)
        if schedule is None:
            raise InvalidFacilityError(facility_id)
        return schedule

    def _aggregate(
        self, facility_id: str, sessions: list[Session], schedule: TariffSchedule
    ) -> dict[str, Invoice]:
        invoices: dict[str, Invoice] = {}
        for session in sessions:
            if session.facility_id != facility_id:
                continue
            invoice = invoices.get(session.customer_id)
            if invoice is None:
                invoice = Invoice(facility_id=facility_id, customer_id=session.customer_id, amount=Decimal("0"))
                invoices[session.customer_id] = invoice
            invoice.amount += price_session(session, schedule)
            invoice.session_count += 1

        logger.debug(
            "Priced %d sessions into %d invoices for %s", len(sessions), len(invoices), facility_id
        )
        return invoices
