"""Seed the database with demo patients and bills for local development.

Usage:
    python -m medicore.scripts.seed
"""

from __future__ import annotations

import random
from decimal import Decimal

from faker import Faker
from rich.console import Console
from rich.table import Table
from sqlalchemy import text

from medicore.constants import SERVICE_TEMPLATES
from medicore.db import get_connection, initialize_db
from medicore.models import format_inr
from medicore.models.actor import Actor, Role
from medicore.models.bill import BillDraft, PaymentMethod, PaymentStatus
from medicore.models.line_item import LineItem
from medicore.models.patient import Patient
from medicore.repositories.factory import get_bill_repository, get_patient_repository
from medicore.services.bill_service import BillService
from medicore.services.patient_service import PatientService

console = Console()
fake = Faker("en_IN")

NUM_PATIENTS = 12
NUM_BILLS = 20
SEED_ACTOR = Actor(username="admin", role=Role.ADMIN.value)

TABLES_TO_CLEAR = ["bill_items", "bills", "patients"]

PATIENT_TYPES = ["IPD", "OPD", "Emergency", "Day Care"]
WARDS = ["General Ward", "ICU", "Cardiology", "Orthopaedics", "Maternity", "Paediatrics", ""]

# Typical price ranges in rupees for the service templates.
PRICE_RANGES = {
    "Consultation Fee": (300, 1000),
    "Ward Charges": (1500, 4000),
    "ICU Charges": (8000, 20000),
    "Surgery": (25000, 90000),
    "MRI Scan": (5000, 9000),
    "CT Scan": (3000, 6000),
    "Ambulance": (800, 2500),
}
DEFAULT_PRICE_RANGE = (100, 1500)

BILL_NOTES = [
    "",
    "",
    "",
    "Insurance claim submitted.",
    "Follow-up visit in two weeks.",
    "",
    "Balance to be paid at discharge.",
    "",
]


def _clear_all(conn) -> None:
    console.print("\n[yellow]Clearing all tables...[/yellow]")
    for table in TABLES_TO_CLEAR:
        conn.execute(text(f"DELETE FROM {table}"))  # noqa: S608
        console.print(f"  Cleared [dim]{table}[/dim]")
    conn.commit()
    console.print("[green]All tables cleared.[/green]\n")


def _create_patients(patient_service: PatientService) -> list[Patient]:
    console.print("[cyan]Creating patients...[/cyan]")

    patients = []
    for _ in range(NUM_PATIENTS):
        patient = patient_service.create_patient(
            name=fake.name(),
            patient_type=random.choice(PATIENT_TYPES),
            ward=random.choice(WARDS),
            contact=fake.phone_number(),
        )
        console.print(f"  Created patient: {patient.name} (id={patient.id})")
        patients.append(patient)

    console.print(f"[green]{len(patients)} patients created.[/green]\n")
    return patients


def _random_draft(patient: Patient) -> BillDraft:
    services = random.sample(SERVICE_TEMPLATES, random.randint(1, 5))
    items = []
    for name in services:
        low, high = PRICE_RANGES.get(name, DEFAULT_PRICE_RANGE)
        items.append(
            LineItem(
                service_name=name,
                quantity=random.randint(1, 3),
                unit_price=Decimal(random.randint(low, high)),
            )
        )

    discount = Decimal(random.choice([0, 0, 0, 100, 250, 500]))
    tax_rate = Decimal(random.choice([0, 0, 5, 12, 18]))

    return BillDraft(
        patient_id=patient.id,
        items=tuple(items),
        discount=discount,
        tax_rate=tax_rate,
        payment_status=random.choice(list(PaymentStatus)),
        payment_method=random.choice(list(PaymentMethod)),
        notes=random.choice(BILL_NOTES),
    )


def _create_bills(bill_service: BillService, patients: list[Patient]) -> int:
    console.print("[cyan]Generating bills...[/cyan]")

    table = Table(title="Bills generated")
    table.add_column("Bill #", style="bold")
    table.add_column("Patient")
    table.add_column("Services", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Status")

    total_bills = 0
    for _ in range(NUM_BILLS):
        patient = random.choice(patients)
        bill = bill_service.create_bill(SEED_ACTOR, _random_draft(patient))
        table.add_row(
            bill.bill_number,
            patient.name,
            str(len(bill.items)),
            format_inr(bill.total_amount),
            bill.payment_status.value,
        )
        total_bills += 1

    console.print(table)
    console.print(f"\n[green]{total_bills} bills generated.[/green]\n")
    return total_bills


def main() -> None:
    console.print("[bold magenta]MediCore - Database Seeder[/bold magenta]")
    console.print("=" * 40)

    initialize_db()
    conn = get_connection()

    _clear_all(conn)

    patient_repo = get_patient_repository()
    bill_repo = get_bill_repository()

    patient_service = PatientService(patient_repo)
    bill_service = BillService(bill_repo, patient_repo)

    patients = _create_patients(patient_service)
    total_bills = _create_bills(bill_service, patients)

    console.print("[bold green]Seeding complete![/bold green]")
    console.print(f"  Patients: {len(patients)}")
    console.print(f"  Bills:    {total_bills}")


if __name__ == "__main__":  # pragma: no cover
    main()
