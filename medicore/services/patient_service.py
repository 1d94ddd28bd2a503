from __future__ import annotations

import logging

from medicore.models.patient import Patient
from medicore.repositories.base import PatientRepository

logger = logging.getLogger(__name__)


class PatientService:
    def __init__(self, repo: PatientRepository) -> None:
        self.repo = repo

    def create_patient(
        self,
        name: str,
        patient_type: str = "",
        ward: str = "",
        contact: str = "",
    ) -> Patient:
        patient = Patient(name=name, patient_type=patient_type, ward=ward, contact=contact)
        result = self.repo.create(patient)
        logger.info("Patient created: id=%s, name=%s", result.id, result.name)
        return result

    def list_patients(self, limit: int = 100) -> list[Patient]:
        result = self.repo.list_recent(limit)
        logger.debug("Listed %d patients (limit=%d)", len(result), limit)
        return result

    def get_patient(self, patient_id: int) -> Patient | None:
        result = self.repo.get_by_id(patient_id)
        logger.debug("get_patient id=%s found=%s", patient_id, result is not None)
        return result
