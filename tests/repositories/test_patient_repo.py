from unittest.mock import MagicMock

import pytest
from freezegun import freeze_time

from medicore.repositories.sqlalchemy import SQLAlchemyPatientRepository


class TestPatientRepo:
    def test_create_and_get(self, patient_repo, sample_patient):
        created = patient_repo.create(sample_patient())

        assert created.id is not None
        assert len(created.uuid) == 26
        assert created.name == "Ravi Kumar"
        assert created.patient_type == "IPD"
        assert created.ward == "General Ward"
        assert created.contact == "+91 98765 00001"
        assert created.created_at is not None

        fetched = patient_repo.get_by_id(created.id)
        assert fetched == created

    def test_get_by_id_not_found(self, patient_repo):
        assert patient_repo.get_by_id(9999) is None

    def test_list_recent_newest_first(self, patient_repo, sample_patient):
        with freeze_time("2025-01-01 08:00:00"):
            older = patient_repo.create(sample_patient(name="Older"))
        with freeze_time("2025-02-01 08:00:00"):
            newer = patient_repo.create(sample_patient(name="Newer"))

        patients = patient_repo.list_recent(10)
        assert [p.id for p in patients] == [newer.id, older.id]

    def test_list_recent_respects_limit(self, patient_repo, sample_patient):
        for i in range(5):
            patient_repo.create(sample_patient(name=f"Patient {i}"))

        assert len(patient_repo.list_recent(3)) == 3

    def test_list_recent_empty(self, patient_repo):
        assert patient_repo.list_recent(100) == []


class TestPatientRepoRollback:
    def test_rolls_back_and_reraises(self, sample_patient):
        conn = MagicMock()
        conn.execute.side_effect = RuntimeError("database is locked")

        with pytest.raises(RuntimeError, match="database is locked"):
            SQLAlchemyPatientRepository(conn).create(sample_patient())

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
