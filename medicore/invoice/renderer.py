from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from medicore.constants import STATUS_COLORS, format_invoice_date
from medicore.models.bill import Bill, PaymentStatus
from medicore.settings import settings

logger = logging.getLogger(__name__)


class Issuer(BaseModel):
    name: str
    tagline: str = ""
    address: str = ""
    phone: str = ""
    gst: str = ""

    @classmethod
    def from_settings(cls) -> Issuer:
        return cls(
            name=settings.hospital_name,
            tagline=settings.hospital_tagline,
            address=settings.hospital_address,
            phone=settings.hospital_phone,
            gst=settings.hospital_gst,
        )


class InvoiceHeader(BaseModel):
    issuer: Issuer
    invoice_number: str
    issue_date: datetime | None = None
    issue_date_label: str = ""
    payment_status: PaymentStatus
    status_color: str


class PatientBlock(BaseModel):
    name: str = ""
    type_and_ward: str = ""
    contact: str = ""


class InvoiceRow(BaseModel):
    index: int
    service_name: str
    quantity: int
    unit_price: Decimal
    amount: Decimal


class TotalsLine(BaseModel):
    key: str  # subtotal, discount, tax, total
    label: str
    amount: Decimal
    deduction: bool = False


class InvoiceDocument(BaseModel):
    header: InvoiceHeader
    patient: PatientBlock
    rows: list[InvoiceRow]
    totals: list[TotalsLine]
    notes: str = ""
    footer: str = ""

    def total_line(self, key: str) -> TotalsLine | None:
        return next((line for line in self.totals if line.key == key), None)


def _format_rate(rate: Decimal) -> str:
    """Decimal('5') -> '5', Decimal('12.50') -> '12.5'"""
    return f"{rate.normalize():f}"


def _totals_block(bill: Bill) -> list[TotalsLine]:
    lines = [TotalsLine(key="subtotal", label="Subtotal", amount=bill.subtotal)]
    if bill.discount > 0:
        lines.append(TotalsLine(key="discount", label="Discount", amount=bill.discount, deduction=True))
    if bill.tax_rate > 0:
        lines.append(
            TotalsLine(key="tax", label=f"Tax ({_format_rate(bill.tax_rate)}%)", amount=bill.tax_amount)
        )
    lines.append(TotalsLine(key="total", label="Total", amount=bill.total_amount))
    return lines


def render_invoice(bill: Bill, issuer: Issuer | None = None) -> InvoiceDocument:
    """Project a persisted bill into the fixed invoice layout.

    Amounts come from the stored bill as-is. Only each row's amount is
    re-derived, from the stored unit price and quantity.
    """
    issuer = issuer or Issuer.from_settings()

    patient = bill.patient
    patient_block = PatientBlock()
    if patient is not None:
        patient_block = PatientBlock(
            name=patient.name,
            type_and_ward=" - ".join(part for part in (patient.patient_type, patient.ward) if part),
            contact=patient.contact,
        )

    rows = [
        InvoiceRow(
            index=i,
            service_name=item.service_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            amount=item.unit_price * item.quantity,
        )
        for i, item in enumerate(bill.items, start=1)
    ]

    document = InvoiceDocument(
        header=InvoiceHeader(
            issuer=issuer,
            invoice_number=bill.bill_number,
            issue_date=bill.created_at,
            issue_date_label=format_invoice_date(bill.created_at),
            payment_status=bill.payment_status,
            status_color=STATUS_COLORS.get(bill.payment_status, "yellow"),
        ),
        patient=patient_block,
        rows=rows,
        totals=_totals_block(bill),
        notes=bill.notes,
        footer=f"Thank you for choosing {issuer.name}. Get well soon!",
    )
    logger.debug("Invoice rendered: number=%s rows=%d", bill.bill_number, len(rows))
    return document
