from datetime import datetime
from decimal import Decimal

import pytest

from parking.invoices import InvoiceService
from parking.models import Customer, RateBand, Session, TariffSchedule
from parking.reports.invoices import format_invoice_report_text, get_invoice_report
from parking.sources import InMemoryCustomerSource, InMemoryScheduleSource, InMemorySessionSource

SCHEDULE = TariffSchedule(
    weekday_bands=(RateBand(0, 7, Decimal("0.8")), RateBand(7, 24, Decimal("2.8"))),
    weekend_bands=(RateBand(0, 24, Decimal("1.8")),),
)


@pytest.fixture
def service():
    sessions = InMemorySessionSource(
        [
            Session("c002", "pf001", datetime(2018, 12, 17, 6), datetime(2018, 12, 17, 10)),
            Session("c001", "pf001", datetime(2018, 12, 15, 6), datetime(2018, 12, 15, 8)),
            Session("c001", "pf001", datetime(2018, 12, 16, 6), datetime(2018, 12, 16, 7)),
        ]
    )
    return InvoiceService(sessions, InMemoryScheduleSource({"pf001": SCHEDULE}))


def test_report_sorted_and_enriched(service):
    customers = InMemoryCustomerSource([Customer("c001", "Ann Peeters")])

    report = get_invoice_report("pf001", service, customers)

    assert report["facility_id"] == "pf001"
    assert report["invoice_count"] == 2
    assert report["total_amount"] == "14.6"
    assert report["invoices"] == [
        {"customer_id": "c001", "customer_name": "Ann Peeters", "sessions": 2, "amount": "5.4"},
        {"customer_id": "c002", "customer_name": None, "sessions": 1, "amount": "9.2"},
    ]


def test_report_for_single_customer(service):
    report = get_invoice_report("pf001", service, customer_id="c002")

    assert [row["customer_id"] for row in report["invoices"]] == ["c002"]
    assert report["total_amount"] == "9.2"


def test_format_text(service):
    customers = InMemoryCustomerSource([Customer("c001", "Ann Peeters")])
    text = format_invoice_report_text(get_invoice_report("pf001", service, customers))

    assert "Invoices for pf001" in text
    assert "- Ann Peeters (c001): 5.4 over 2 sessions" in text
    assert "- c002: 9.2 over 1 session\n" in text
    assert "Total: 14.6 across 2 invoice(s)" in text


def test_format_text_empty():
    empty = InvoiceService(InMemorySessionSource(), InMemoryScheduleSource({"pf001": SCHEDULE}))
    text = format_invoice_report_text(get_invoice_report("pf001", empty))
    assert "No sessions recorded." in text
