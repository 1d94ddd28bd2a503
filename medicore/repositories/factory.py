from medicore.repositories.base import BillRepository, PatientRepository


def get_bill_repository() -> BillRepository:
    from medicore.db import get_connection
    from medicore.repositories.sqlalchemy import SQLAlchemyBillRepository

    return SQLAlchemyBillRepository(get_connection())


def get_patient_repository() -> PatientRepository:
    from medicore.db import get_connection
    from medicore.repositories.sqlalchemy import SQLAlchemyPatientRepository

    return SQLAlchemyPatientRepository(get_connection())
