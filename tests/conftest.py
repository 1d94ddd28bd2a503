"""Root conftest — in-memory SQLite engine and fixtures for the full schema."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy import Connection, create_engine, event, text
from sqlalchemy.engine import Engine

from medicore.models.bill import Bill, BillItem
from medicore.models.patient import Patient

# Matches Alembic head: 3f1c2a9b7d10 (initial schema)
SCHEMA_DDL = """
CREATE TABLE patients (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    name TEXT NOT NULL,
    patient_type VARCHAR(50) NOT NULL DEFAULT '',
    ward VARCHAR(100) NOT NULL DEFAULT '',
    contact VARCHAR(100) NOT NULL DEFAULT '',
    created_at DATETIME NOT NULL
);

CREATE TABLE bills (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid VARCHAR(26) NOT NULL UNIQUE,
    bill_number VARCHAR(32) NOT NULL UNIQUE,
    patient_id INTEGER NOT NULL REFERENCES patients(id),
    subtotal VARCHAR(40) NOT NULL DEFAULT '0',
    discount VARCHAR(40) NOT NULL DEFAULT '0',
    tax_rate VARCHAR(40) NOT NULL DEFAULT '0',
    tax_amount VARCHAR(40) NOT NULL DEFAULT '0',
    total_amount VARCHAR(40) NOT NULL DEFAULT '0',
    payment_status VARCHAR(20) NOT NULL DEFAULT 'Pending',
    payment_method VARCHAR(20) NOT NULL DEFAULT 'Cash',
    notes TEXT NOT NULL DEFAULT '',
    created_by INTEGER,
    created_at DATETIME NOT NULL
);

CREATE TABLE bill_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    bill_id INTEGER NOT NULL REFERENCES bills(id) ON DELETE CASCADE,
    service_name TEXT NOT NULL,
    quantity INTEGER NOT NULL DEFAULT 1,
    unit_price VARCHAR(40) NOT NULL,
    line_total VARCHAR(40) NOT NULL,
    sort_order INTEGER NOT NULL DEFAULT 0
);
"""


@pytest.fixture()
def db_engine() -> Engine:
    engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    return engine


@pytest.fixture()
def db_connection(db_engine: Engine) -> Connection:
    conn = db_engine.connect()
    for statement in SCHEMA_DDL.strip().split(";"):
        stmt = statement.strip()
        if stmt:
            conn.execute(text(stmt))
    conn.commit()
    yield conn
    conn.close()


def _sample_patient(**overrides) -> Patient:
    defaults = dict(
        name="Ravi Kumar",
        patient_type="IPD",
        ward="General Ward",
        contact="+91 98765 00001",
    )
    defaults.update(overrides)
    return Patient(**defaults)


def _sample_bill(patient_id: int = 1, **overrides) -> Bill:
    defaults = dict(
        patient_id=patient_id,
        items=[
            BillItem(
                service_name="Consultation Fee",
                quantity=1,
                unit_price=Decimal("500"),
                line_total=Decimal("500"),
                sort_order=0,
            ),
            BillItem(
                service_name="X-Ray",
                quantity=2,
                unit_price=Decimal("300"),
                line_total=Decimal("600"),
                sort_order=1,
            ),
        ],
        subtotal=Decimal("1100"),
        discount=Decimal("100"),
        tax_rate=Decimal("5"),
        tax_amount=Decimal("55"),
        total_amount=Decimal("1055"),
        notes="Test note",
    )
    defaults.update(overrides)
    return Bill(**defaults)


@pytest.fixture()
def sample_patient():
    return _sample_patient


@pytest.fixture()
def sample_bill():
    return _sample_bill
