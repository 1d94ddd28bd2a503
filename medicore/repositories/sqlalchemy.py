from __future__ import annotations

from datetime import datetime

from sqlalchemy import Connection, text
from sqlalchemy.engine import RowMapping
from ulid import ULID

from medicore.constants import IST_TZ
from medicore.models.bill import Bill, BillItem, PaymentMethod, PaymentStatus
from medicore.models.patient import Patient
from medicore.repositories.base import BillRepository, PatientRepository


def _now() -> datetime:
    return datetime.now(IST_TZ)


def _format_bill_number(bill_id: int, created_at: datetime) -> str:
    return f"BILL-{created_at:%Y%m}-{bill_id:05d}"


def _in_clause(prefix: str, values: list[int]) -> tuple[str, dict[str, int]]:
    placeholders = ", ".join(f":{prefix}{i}" for i in range(len(values)))
    params = {f"{prefix}{i}": value for i, value in enumerate(values)}
    return placeholders, params


class SQLAlchemyPatientRepository(PatientRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, patient: Patient) -> Patient:
        try:
            result = self.conn.execute(
                text(
                    "INSERT INTO patients (uuid, name, patient_type, ward, contact, created_at) "
                    "VALUES (:uuid, :name, :patient_type, :ward, :contact, :created_at)"
                ),
                {
                    "uuid": str(ULID()),
                    "name": patient.name,
                    "patient_type": patient.patient_type,
                    "ward": patient.ward,
                    "contact": patient.contact,
                    "created_at": _now(),
                },
            )
            patient_id = result.lastrowid
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise
        created = self.get_by_id(patient_id)
        if created is None:
            raise RuntimeError(f"Failed to retrieve patient after create (id={patient_id})")
        return created

    @staticmethod
    def _build_patient(row: RowMapping) -> Patient:
        return Patient(
            id=row["id"],
            uuid=row["uuid"],
            name=row["name"],
            patient_type=row["patient_type"],
            ward=row["ward"],
            contact=row["contact"],
            created_at=row["created_at"],
        )

    def get_by_id(self, patient_id: int) -> Patient | None:
        row = (
            self.conn.execute(
                text("SELECT * FROM patients WHERE id = :id"),
                {"id": patient_id},
            )
            .mappings()
            .fetchone()
        )
        if row is None:
            return None
        return self._build_patient(row)

    def list_recent(self, limit: int) -> list[Patient]:
        rows = (
            self.conn.execute(
                text("SELECT * FROM patients ORDER BY created_at DESC, id DESC LIMIT :limit"),
                {"limit": limit},
            )
            .mappings()
            .fetchall()
        )
        return [self._build_patient(row) for row in rows]


class SQLAlchemyBillRepository(BillRepository):
    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    def create(self, bill: Bill) -> Bill:
        try:
            bill_id = self._insert(bill)
            self.conn.commit()
        except Exception:
            # The session connection is shared; drop the partial bill before the next commit.
            self.conn.rollback()
            raise
        result = self.get_by_id(bill_id)
        if result is None:
            raise RuntimeError(f"Failed to retrieve bill after create (id={bill_id})")
        return result

    def _insert(self, bill: Bill) -> int:
        bill_uuid = str(ULID())
        now = _now()
        result = self.conn.execute(
            text(
                "INSERT INTO bills (uuid, bill_number, patient_id, subtotal, discount, tax_rate, "
                "tax_amount, total_amount, payment_status, payment_method, notes, created_by, created_at) "
                "VALUES (:uuid, :bill_number, :patient_id, :subtotal, :discount, :tax_rate, "
                ":tax_amount, :total_amount, :payment_status, :payment_method, :notes, :created_by, :created_at)"
            ),
            {
                "uuid": bill_uuid,
                # Placeholder until the row id is known; replaced before commit.
                "bill_number": bill_uuid,
                "patient_id": bill.patient_id,
                "subtotal": str(bill.subtotal),
                "discount": str(bill.discount),
                "tax_rate": str(bill.tax_rate),
                "tax_amount": str(bill.tax_amount),
                "total_amount": str(bill.total_amount),
                "payment_status": bill.payment_status.value,
                "payment_method": bill.payment_method.value,
                "notes": bill.notes,
                "created_by": bill.created_by,
                "created_at": now,
            },
        )
        bill_id = result.lastrowid
        self.conn.execute(
            text("UPDATE bills SET bill_number = :bill_number WHERE id = :id"),
            {"bill_number": _format_bill_number(bill_id, now), "id": bill_id},
        )
        for i, item in enumerate(bill.items):
            self.conn.execute(
                text(
                    "INSERT INTO bill_items (bill_id, service_name, quantity, unit_price, line_total, sort_order) "
                    "VALUES (:bill_id, :service_name, :quantity, :unit_price, :line_total, :sort_order)"
                ),
                {
                    "bill_id": bill_id,
                    "service_name": item.service_name,
                    "quantity": item.quantity,
                    "unit_price": str(item.unit_price),
                    "line_total": str(item.line_total),
                    "sort_order": i,
                },
            )
        return bill_id

    @staticmethod
    def _build_bill(row: RowMapping, item_rows: list[RowMapping], patient: Patient | None) -> Bill:
        return Bill(
            id=row["id"],
            uuid=row["uuid"],
            bill_number=row["bill_number"],
            patient_id=row["patient_id"],
            patient=patient,
            items=[
                BillItem(
                    id=item_row["id"],
                    bill_id=item_row["bill_id"],
                    service_name=item_row["service_name"],
                    quantity=item_row["quantity"],
                    unit_price=item_row["unit_price"],
                    line_total=item_row["line_total"],
                    sort_order=item_row["sort_order"],
                )
                for item_row in item_rows
            ],
            subtotal=row["subtotal"],
            discount=row["discount"],
            tax_rate=row["tax_rate"],
            tax_amount=row["tax_amount"],
            total_amount=row["total_amount"],
            payment_status=PaymentStatus(row["payment_status"]),
            payment_method=PaymentMethod(row["payment_method"]),
            notes=row["notes"],
            created_by=row["created_by"],
            created_at=row["created_at"],
        )

    def _fetch_one(self, where: str, params: dict) -> Bill | None:
        row = self.conn.execute(text(f"SELECT * FROM bills WHERE {where}"), params).mappings().fetchone()
        if row is None:
            return None
        bills = self._build_bills_from_rows([row])
        return bills[0]

    def get_by_id(self, bill_id: int) -> Bill | None:
        return self._fetch_one("id = :id", {"id": bill_id})

    def get_by_uuid(self, uuid: str) -> Bill | None:
        return self._fetch_one("uuid = :uuid", {"uuid": uuid})

    def get_by_number(self, bill_number: str) -> Bill | None:
        return self._fetch_one("bill_number = :bill_number", {"bill_number": bill_number})

    def list_all(self) -> list[Bill]:
        rows = (
            self.conn.execute(text("SELECT * FROM bills ORDER BY created_at DESC, id DESC"))
            .mappings()
            .fetchall()
        )
        return self._build_bills_from_rows(list(rows))

    def _build_bills_from_rows(self, rows: list[RowMapping]) -> list[Bill]:
        if not rows:
            return []

        bill_ids = [row["id"] for row in rows]
        placeholders, params = _in_clause("id", bill_ids)
        all_items = (
            self.conn.execute(
                text(f"SELECT * FROM bill_items WHERE bill_id IN ({placeholders}) ORDER BY sort_order"),
                params,
            )
            .mappings()
            .fetchall()
        )
        items_by_bill: dict[int, list[RowMapping]] = {}
        for item_row in all_items:
            items_by_bill.setdefault(item_row["bill_id"], []).append(item_row)

        patient_ids = sorted({row["patient_id"] for row in rows})
        placeholders, params = _in_clause("pid", patient_ids)
        patient_rows = (
            self.conn.execute(text(f"SELECT * FROM patients WHERE id IN ({placeholders})"), params)
            .mappings()
            .fetchall()
        )
        patients = {
            patient_row["id"]: SQLAlchemyPatientRepository._build_patient(patient_row) for patient_row in patient_rows
        }

        return [
            self._build_bill(row, items_by_bill.get(row["id"], []), patients.get(row["patient_id"])) for row in rows
        ]
