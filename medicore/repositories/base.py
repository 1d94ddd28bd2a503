from abc import ABC, abstractmethod

from medicore.models.bill import Bill
from medicore.models.patient import Patient


class BillRepository(ABC):
    @abstractmethod
    def create(self, bill: Bill) -> Bill: ...

    @abstractmethod
    def get_by_id(self, bill_id: int) -> Bill | None: ...

    @abstractmethod
    def get_by_uuid(self, uuid: str) -> Bill | None: ...

    @abstractmethod
    def get_by_number(self, bill_number: str) -> Bill | None: ...

    @abstractmethod
    def list_all(self) -> list[Bill]: ...


class PatientRepository(ABC):
    @abstractmethod
    def create(self, patient: Patient) -> Patient: ...

    @abstractmethod
    def get_by_id(self, patient_id: int) -> Patient | None: ...

    @abstractmethod
    def list_recent(self, limit: int) -> list[Patient]: ...
