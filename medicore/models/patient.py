from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class Patient(BaseModel):
    id: int | None = None
    uuid: str = ""
    name: str
    patient_type: str = ""  # OPD, IPD, Emergency
    ward: str = ""
    contact: str = ""
    created_at: datetime | None = None
