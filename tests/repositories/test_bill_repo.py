from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from freezegun import freeze_time
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from medicore.models.bill import BillItem, PaymentMethod, PaymentStatus
from medicore.repositories.sqlalchemy import SQLAlchemyBillRepository


class TestBillRepoCRUD:
    def _create_patient(self, patient_repo, sample_patient, **overrides):
        return patient_repo.create(sample_patient(**overrides))

    def test_create_and_get(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        created = bill_repo.create(sample_bill(patient_id=patient.id))

        assert created.id is not None
        assert created.uuid != ""
        assert created.patient_id == patient.id
        assert len(created.items) == 2
        assert created.subtotal == Decimal("1100")
        assert created.tax_amount == Decimal("55")
        assert created.total_amount == Decimal("1055")
        assert created.created_at is not None

    def test_create_joins_patient(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient, name="Anita Desai")
        created = bill_repo.create(sample_bill(patient_id=patient.id))

        assert created.patient is not None
        assert created.patient.name == "Anita Desai"

    @freeze_time("2025-03-05 10:00:00")
    def test_bill_number_format(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        created = bill_repo.create(sample_bill(patient_id=patient.id))

        assert created.bill_number == f"BILL-202503-{created.id:05d}"

    def test_bill_numbers_unique(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        first = bill_repo.create(sample_bill(patient_id=patient.id))
        second = bill_repo.create(sample_bill(patient_id=patient.id))

        assert first.bill_number != second.bill_number
        assert first.uuid != second.uuid

    def test_items_keep_order(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        created = bill_repo.create(sample_bill(patient_id=patient.id))

        assert [item.service_name for item in created.items] == ["Consultation Fee", "X-Ray"]
        assert [item.sort_order for item in created.items] == [0, 1]
        assert created.items[1].quantity == 2
        assert created.items[1].line_total == Decimal("600")

    def test_fractional_amounts_round_trip_exactly(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        bill = sample_bill(
            patient_id=patient.id,
            items=[
                BillItem(
                    service_name="Medicine",
                    quantity=3,
                    unit_price=Decimal("33.33"),
                    line_total=Decimal("99.99"),
                ),
            ],
            subtotal=Decimal("99.99"),
            discount=Decimal("0"),
            tax_rate=Decimal("12.5"),
            tax_amount=Decimal("12.49875"),
            total_amount=Decimal("112.48875"),
        )
        created = bill_repo.create(bill)

        assert created.tax_rate == Decimal("12.5")
        assert created.tax_amount == Decimal("12.49875")
        assert created.total_amount == Decimal("112.48875")
        assert created.items[0].unit_price == Decimal("33.33")

    def test_negative_total_persisted(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        created = bill_repo.create(
            sample_bill(
                patient_id=patient.id,
                discount=Decimal("12000"),
                tax_rate=Decimal("0"),
                tax_amount=Decimal("0"),
                total_amount=Decimal("-10900"),
            )
        )

        assert created.total_amount == Decimal("-10900")

    def test_payment_fields_and_notes(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        created = bill_repo.create(
            sample_bill(
                patient_id=patient.id,
                payment_status=PaymentStatus.PAID,
                payment_method=PaymentMethod.UPI,
                notes="Paid at discharge",
                created_by=7,
            )
        )

        assert created.payment_status == PaymentStatus.PAID
        assert created.payment_method == PaymentMethod.UPI
        assert created.notes == "Paid at discharge"
        assert created.created_by == 7

    def test_get_by_id_not_found(self, bill_repo):
        assert bill_repo.get_by_id(9999) is None

    def test_get_by_uuid(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        created = bill_repo.create(sample_bill(patient_id=patient.id))
        fetched = bill_repo.get_by_uuid(created.uuid)

        assert fetched is not None
        assert fetched.id == created.id

    def test_get_by_uuid_not_found(self, bill_repo):
        assert bill_repo.get_by_uuid("nonexistent") is None

    def test_get_by_number(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = self._create_patient(patient_repo, sample_patient)
        created = bill_repo.create(sample_bill(patient_id=patient.id))
        fetched = bill_repo.get_by_number(created.bill_number)

        assert fetched is not None
        assert fetched.id == created.id

    def test_get_by_number_not_found(self, bill_repo):
        assert bill_repo.get_by_number("BILL-000000-00000") is None


class TestBillRepoList:
    def test_list_empty(self, bill_repo):
        assert bill_repo.list_all() == []

    def test_list_newest_first(self, bill_repo, patient_repo, sample_patient, sample_bill):
        patient = patient_repo.create(sample_patient())
        with freeze_time("2025-01-10 09:00:00"):
            older = bill_repo.create(sample_bill(patient_id=patient.id))
        with freeze_time("2025-02-10 09:00:00"):
            newer = bill_repo.create(sample_bill(patient_id=patient.id))

        bills = bill_repo.list_all()
        assert [b.id for b in bills] == [newer.id, older.id]

    def test_list_batches_items_and_patients(self, bill_repo, patient_repo, sample_patient, sample_bill):
        first = patient_repo.create(sample_patient(name="Ravi Kumar"))
        second = patient_repo.create(sample_patient(name="Meena Iyer"))
        bill_repo.create(sample_bill(patient_id=first.id))
        bill_repo.create(sample_bill(patient_id=second.id))

        bills = bill_repo.list_all()
        assert len(bills) == 2
        assert {b.patient.name for b in bills} == {"Ravi Kumar", "Meena Iyer"}
        assert all(len(b.items) == 2 for b in bills)


class TestBillRepoFailedCreate:
    def _abort_items_named(self, db_connection, service_name):
        db_connection.execute(
            text(
                "CREATE TRIGGER reject_item BEFORE INSERT ON bill_items "
                f"WHEN NEW.service_name = '{service_name}' "
                "BEGIN SELECT RAISE(ABORT, 'item rejected'); END"
            )
        )
        db_connection.commit()

    def test_failed_item_insert_leaves_no_bill(
        self, db_connection, bill_repo, patient_repo, sample_patient, sample_bill
    ):
        patient = patient_repo.create(sample_patient())
        self._abort_items_named(db_connection, "Broken")
        broken = sample_bill(
            patient_id=patient.id,
            items=[
                BillItem(
                    service_name="Broken",
                    quantity=1,
                    unit_price=Decimal("500"),
                    line_total=Decimal("500"),
                ),
            ],
        )

        with pytest.raises(DBAPIError):
            bill_repo.create(broken)

        assert bill_repo.list_all() == []

    def test_next_create_does_not_commit_failed_bill(
        self, db_connection, bill_repo, patient_repo, sample_patient, sample_bill
    ):
        patient = patient_repo.create(sample_patient())
        self._abort_items_named(db_connection, "Broken")
        broken_item = BillItem(service_name="Broken", quantity=1, unit_price=Decimal("500"), line_total=Decimal("500"))

        with pytest.raises(DBAPIError):
            bill_repo.create(sample_bill(patient_id=patient.id, items=[broken_item]))
        created = bill_repo.create(sample_bill(patient_id=patient.id))

        bills = bill_repo.list_all()
        assert [bill.id for bill in bills] == [created.id]
        assert len(bills[0].items) == 2
        item_count = db_connection.execute(text("SELECT COUNT(*) FROM bill_items")).scalar()
        assert item_count == 2


class TestBillRepoRollback:
    def test_rolls_back_and_reraises(self, sample_bill):
        conn = MagicMock()
        conn.execute.side_effect = [MagicMock(lastrowid=1), MagicMock(), RuntimeError("disk I/O error")]

        with pytest.raises(RuntimeError, match="disk I/O error"):
            SQLAlchemyBillRepository(conn).create(sample_bill())

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
