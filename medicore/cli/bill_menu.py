from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from decimal import Decimal
from pathlib import Path
from typing import Any, TypeVar

import questionary
from rich.console import Console
from rich.table import Table

from medicore.constants import SERVICE_TEMPLATES, format_invoice_date
from medicore.invoice.renderer import InvoiceDocument, render_invoice
from medicore.models import format_inr, parse_amount
from medicore.models.bill import Bill, PaymentMethod, PaymentStatus
from medicore.models.patient import Patient
from medicore.pdf.invoice import write_invoice_pdf
from medicore.services.bill_workflow import BillWorkflowController, NoticeKind
from medicore.settings import settings

logger = logging.getLogger(__name__)

console = Console()

T = TypeVar("T")

STATUS_STYLES = {"green": "green", "yellow": "yellow", "orange": "dark_orange"}

ADD_SERVICE = "Add Service"
EDIT_SERVICE = "Edit Service"
REMOVE_SERVICE = "Remove Service"
SELECT_PATIENT = "Select Patient"
SET_DISCOUNT = "Discount"
SET_TAX = "Tax"
SET_STATUS = "Payment Status"
SET_METHOD = "Payment Method"
SET_NOTES = "Notes"
GENERATE = "Generate Bill"
CANCEL = "Cancel"


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


def _money(amount: Decimal) -> str:
    return format_inr(amount, symbol=settings.currency_symbol)


def _show_notice(controller: BillWorkflowController) -> None:
    notice = controller.notice
    if notice is None:
        return
    style = "green" if notice.kind == NoticeKind.SUCCESS else "red"
    console.print(f"[{style}]{notice.message}[/{style}]")
    controller.dismiss_notice()


def _patient_label(patient: Patient) -> str:
    return f"{patient.name} - {patient.patient_type} | {patient.ward} | {patient.contact}"


def _bill_label(bill: Bill) -> str:
    name = bill.patient.name if bill.patient else f"Patient #{bill.patient_id}"
    return f"{bill.bill_number} - {name}"


# ---- Bill list & invoice ----


def _show_bill_table(bills: list[Bill]) -> None:
    table = Table()
    table.add_column("Bill #", style="bold blue")
    table.add_column("Patient")
    table.add_column("Amount", justify="right")
    table.add_column("Payment Status", justify="center")
    table.add_column("Method")
    table.add_column("Date")

    for bill in bills:
        patient = bill.patient
        patient_cell = f"{patient.name}\n[dim]{patient.patient_type} • {patient.ward}[/dim]" if patient else ""
        table.add_row(
            bill.bill_number,
            patient_cell,
            _money(bill.total_amount),
            bill.payment_status.value,
            bill.payment_method.value,
            format_invoice_date(bill.created_at),
        )

    console.print(table)


def show_invoice(document: InvoiceDocument) -> None:
    header = document.header
    issuer = header.issuer
    status_style = STATUS_STYLES.get(header.status_color, "yellow")

    console.print()
    console.print(f"[bold]{issuer.name}[/bold]  [dim]{issuer.tagline}[/dim]")
    if issuer.address:
        console.print(f"[dim]{issuer.address}[/dim]")
    console.print(f"[dim]Phone: {issuer.phone} | GST: {issuer.gst}[/dim]")
    console.print(
        f"INVOICE [bold blue]{header.invoice_number}[/bold blue]  "
        f"Date: {header.issue_date_label}  "
        f"[{status_style}]{header.payment_status.value}[/{status_style}]"
    )
    console.print()
    console.print(f"  Patient: [bold]{document.patient.name}[/bold]")
    console.print(f"  Type: {document.patient.type_and_ward}")
    console.print(f"  Contact: {document.patient.contact}")

    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Service Description")
    table.add_column("Qty", justify="center")
    table.add_column("Unit Price", justify="right")
    table.add_column("Amount", justify="right")
    for row in document.rows:
        table.add_row(
            str(row.index),
            row.service_name,
            str(row.quantity),
            _money(row.unit_price),
            _money(row.amount),
        )
    console.print(table)

    for line in document.totals:
        if line.key == "total":
            console.print(f"  [bold]{line.label}: {_money(line.amount)}[/bold]")
        elif line.deduction:
            console.print(f"  {line.label}: [red]-{_money(line.amount)}[/red]")
        else:
            console.print(f"  {line.label}: {_money(line.amount)}")

    if document.notes:
        console.print(f"  [yellow]Notes: {document.notes}[/yellow]")
    console.print(f"[dim]{document.footer}[/dim]")


def print_invoice(document: InvoiceDocument) -> Path | None:
    try:
        path = write_invoice_pdf(document, settings.invoice_output_dir)
    except OSError:
        logger.exception("Failed to write invoice %s", document.header.invoice_number)
        console.print("[red]Could not save the invoice PDF.[/red]")
        return None
    console.print(f"[green]Invoice saved:[/green] {path}")
    return path


def _invoice_menu(bill: Bill) -> None:
    document = render_invoice(bill)
    show_invoice(document)

    while True:
        action = questionary.select("Invoice", choices=["Print Invoice", "Back"]).ask()
        if action is None or action == "Back":
            return
        print_invoice(document)


def list_bills_menu(controller: BillWorkflowController) -> None:
    console.print()
    console.print("[bold]Billing Module[/bold]", style="cyan")

    _run(controller.refresh_bills())
    console.print(f"  {controller.total} total bills generated")

    if not controller.bills:
        console.print("[yellow]No bills yet.[/yellow]")
        return

    _show_bill_table(controller.bills)

    choices = [_bill_label(bill) for bill in controller.bills] + ["Back"]
    choice = questionary.select("Select a bill:", choices=choices).ask()
    if choice is None or choice == "Back":
        return

    bill = controller.bills[choices.index(choice)]
    _invoice_menu(bill)


# ---- Bill composition ----


def _show_draft(controller: BillWorkflowController) -> None:
    draft = controller.draft
    totals = controller.totals

    patient = next((p for p in controller.patients if p.id == draft.patient_id), None)
    console.print()
    console.print(f"  Patient: [bold]{patient.name if patient else '(none)'}[/bold]")

    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Service")
    table.add_column("Qty", justify="center")
    table.add_column("Unit Price", justify="right")
    table.add_column("Total", justify="right")
    for i, item in enumerate(draft.items, start=1):
        table.add_row(
            str(i),
            item.service_name or "[dim](empty)[/dim]",
            str(item.quantity),
            _money(item.unit_price) if item.unit_price is not None else "",
            _money(item.line_total),
        )
    console.print(table)

    console.print(f"  Subtotal: {_money(totals.subtotal)}")
    console.print(f"  Discount: [red]-{_money(draft.discount)}[/red]")
    console.print(f"  Tax ({draft.tax_rate}%): +{_money(totals.tax_amount)}")
    console.print(f"  [bold]Total Amount: {_money(totals.total_amount)}[/bold]")
    console.print(f"  {draft.payment_status.value} / {draft.payment_method.value}")
    if totals.is_negative:
        console.print("[yellow]  Discount exceeds the bill amount.[/yellow]")


def _ask_quantity(default: int) -> int | None:
    while True:
        val = questionary.text("  Qty:", default=str(default)).ask()
        if val is None:
            return None
        parsed = parse_amount(val)
        if parsed is not None and parsed >= 1 and parsed == parsed.to_integral_value():
            return int(parsed)
        console.print("[red]Quantity must be a whole number of at least 1.[/red]")


def _ask_amount(label: str, default: Decimal | None, maximum: Decimal | None = None) -> Decimal | None:
    while True:
        val = questionary.text(label, default="" if default is None else str(default)).ask()
        if val is None:
            return None
        parsed = parse_amount(val)
        if parsed is not None and parsed >= 0 and (maximum is None or parsed <= maximum):
            return parsed
        console.print("[red]Invalid value. Try again.[/red]")


def _edit_row(controller: BillWorkflowController, index: int) -> None:
    item = controller.draft.items[index]

    name = questionary.autocomplete(
        "  Service name:",
        choices=SERVICE_TEMPLATES,
        default=item.service_name,
    ).ask()
    if name is None:
        return
    controller.update_item(index, "service_name", name)

    quantity = _ask_quantity(item.quantity)
    if quantity is None:
        return
    controller.update_item(index, "quantity", quantity)

    price = _ask_amount("  Unit price:", item.unit_price)
    if price is None:
        return
    controller.update_item(index, "unit_price", price)


def _choose_row(controller: BillWorkflowController, prompt: str) -> int | None:
    choices = [
        f"{i}. {item.service_name or '(empty)'}" for i, item in enumerate(controller.draft.items, start=1)
    ] + ["Back"]
    choice = questionary.select(prompt, choices=choices).ask()
    if choice is None or choice == "Back":
        return None
    return choices.index(choice)


def _select_patient(controller: BillWorkflowController) -> None:
    if not controller.patients:
        console.print("[yellow]No patients found.[/yellow]")
        return
    # Labels can repeat (same name and ward), so the answer is the patient id.
    choices = [questionary.Choice(title=_patient_label(p), value=p.id) for p in controller.patients]
    patient_id = questionary.select("Select Patient:", choices=choices).ask()
    if patient_id is None:
        return
    controller.select_patient(patient_id)


def _handle_action(controller: BillWorkflowController, action: str) -> None:
    draft = controller.draft
    if action == ADD_SERVICE:
        controller.add_item()
        _edit_row(controller, len(controller.draft.items) - 1)
    elif action == EDIT_SERVICE:
        index = _choose_row(controller, "Select the service:")
        if index is not None:
            _edit_row(controller, index)
    elif action == REMOVE_SERVICE:
        if len(draft.items) == 1:
            console.print("[yellow]A bill keeps at least one row.[/yellow]")
            return
        index = _choose_row(controller, "Select the service to remove:")
        if index is not None:
            controller.remove_item(index)
    elif action == SELECT_PATIENT:
        _select_patient(controller)
    elif action == SET_DISCOUNT:
        value = _ask_amount("  Discount:", draft.discount)
        if value is not None:
            controller.set_discount(value)
    elif action == SET_TAX:
        value = _ask_amount("  Tax (%):", draft.tax_rate, maximum=Decimal("100"))
        if value is not None:
            controller.set_tax(value)
    elif action == SET_STATUS:
        status = questionary.select(
            "  Payment Status:",
            choices=[s.value for s in PaymentStatus],
            default=draft.payment_status.value,
        ).ask()
        if status is not None:
            controller.set_payment_status(status)
    elif action == SET_METHOD:
        method = questionary.select(
            "  Payment Method:",
            choices=[m.value for m in PaymentMethod],
            default=draft.payment_method.value,
        ).ask()
        if method is not None:
            controller.set_payment_method(method)
    elif action == SET_NOTES:
        notes = questionary.text("  Notes (optional):", default=draft.notes).ask()
        if notes is not None:
            controller.set_notes(notes)


def create_bill_menu(controller: BillWorkflowController) -> Bill | None:
    if not controller.can_create:
        console.print("[red]You are not allowed to create bills.[/red]")
        return None

    console.print()
    console.print("[bold]Create New Bill[/bold]", style="cyan")

    if not controller.patients:
        _run(controller.load_patients())

    _select_patient(controller)
    _edit_row(controller, 0)

    while True:
        _show_draft(controller)
        action = questionary.select(
            "Bill",
            choices=[
                ADD_SERVICE,
                EDIT_SERVICE,
                REMOVE_SERVICE,
                SELECT_PATIENT,
                SET_DISCOUNT,
                SET_TAX,
                SET_STATUS,
                SET_METHOD,
                SET_NOTES,
                GENERATE,
                CANCEL,
            ],
        ).ask()

        if action is None or action == CANCEL:
            controller.discard()
            console.print("[yellow]Bill discarded.[/yellow]")
            return None

        if action == GENERATE:
            bill = _run(controller.submit())
            _show_notice(controller)
            if bill is not None:
                console.print(f"  Bill #: [bold]{bill.bill_number}[/bold]")
                console.print(f"  Total: [bold]{_money(bill.total_amount)}[/bold]")
                return bill
            continue

        _handle_action(controller, action)
