import pytest
from sqlalchemy import Connection

from medicore.repositories.sqlalchemy import SQLAlchemyBillRepository, SQLAlchemyPatientRepository


@pytest.fixture()
def patient_repo(db_connection: Connection) -> SQLAlchemyPatientRepository:
    return SQLAlchemyPatientRepository(db_connection)


@pytest.fixture()
def bill_repo(db_connection: Connection) -> SQLAlchemyBillRepository:
    return SQLAlchemyBillRepository(db_connection)
