"""Invoice reports for a facility, enriched with customer details."""

from datetime import datetime
from decimal import Decimal

from ..invoices import InvoiceService
from ..sources import CustomerSource


def get_invoice_report(
    facility_id: str,
    service: InvoiceService,
    customer_source: CustomerSource | None = None,
    customer_id: str | None = None,
) -> dict:
    """Build a JSON-friendly invoice report for a facility.

    Amounts are rendered as decimal strings so no precision is lost.
    """
    if customer_id:
        invoices = [service.get_invoice(facility_id, customer_id)]
    else:
        invoices = service.get_invoices(facility_id)
    invoices.sort(key=lambda i: i.customer_id)

    rows = []
    for invoice in invoices:
        customer = customer_source.get_customer(invoice.customer_id) if customer_source else None
        rows.append(
            {
                "customer_id": invoice.customer_id,
                "customer_name": customer.name if customer else None,
                "sessions": invoice.session_count,
                "amount": str(invoice.amount),
            }
        )

    total = sum((i.amount for i in invoices), Decimal("0"))
    return {
        "facility_id": facility_id,
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "invoice_count": len(rows),
        "total_amount": str(total),
        "invoices": rows,
    }


def format_invoice_report_text(report: dict) -> str:
    """Format an invoice report as plain text."""
    lines = [
        f"Invoices for {report['facility_id']}",
        f"Generated: {report['generated_at']}",
        "",
    ]

    if not report["invoices"]:
        lines.append("No sessions recorded.")
        return "\n".join(lines)

    for row in report["invoices"]:
        label = row["customer_id"]
        if row["customer_name"]:
            label = f"{row['customer_name']} ({row['customer_id']})"
        plural = "s" if row["sessions"] != 1 else ""
        lines.append(f"- {label}: {row['amount']} over {row['sessions']} session{plural}")

    lines.extend(
        [
            "",
            f"Total: {report['total_amount']} across {report['invoice_count']} invoice(s)",
        ]
    )
    return "\n".join(lines)
