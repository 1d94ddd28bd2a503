from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel

from medicore.exceptions import RepositoryError
from medicore.models.actor import Actor
from medicore.models.bill import Bill, BillDraft, PaymentMethod, PaymentStatus
from medicore.models.line_item import LineItem
from medicore.models.patient import Patient
from medicore.services.access_policy import DENIED_MESSAGES, AccessPolicy, Capability
from medicore.services.bill_computer import BillComputation, compute_bill
from medicore.services.bill_service import BillService
from medicore.services.patient_service import PatientService
from medicore.settings import settings

logger = logging.getLogger(__name__)

MISSING_PATIENT_MESSAGE = "Please select a patient"
NO_SERVICES_MESSAGE = "Add at least one service"
CREATED_MESSAGE = "Bill created successfully!"
CREATE_FAILED_MESSAGE = "Failed to create bill"


class WorkflowState(str, Enum):
    EMPTY = "empty"
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"


class NoticeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Notice(BaseModel):
    kind: NoticeKind
    message: str


class BillWorkflowController:
    """Drives one actor's bill composition session.

    Holds the draft, the bill list and the patient list, and talks to the
    repository boundary through worker threads so the event loop never blocks.
    At most one submission is in flight at a time.
    """

    def __init__(
        self,
        actor: Actor,
        bill_service: BillService,
        patient_service: PatientService,
        policy: AccessPolicy | None = None,
        patient_limit: int | None = None,
    ) -> None:
        self.actor = actor
        self.bill_service = bill_service
        self.patient_service = patient_service
        self.policy = policy or AccessPolicy()
        self.patient_limit = patient_limit or settings.patient_list_limit

        self.draft = BillDraft.empty()
        self.state = WorkflowState.EMPTY
        self.bills: list[Bill] = []
        self.total = 0
        self.patients: list[Patient] = []
        self.loading = False
        self.submitting = False
        self.notice: Notice | None = None

    @property
    def can_create(self) -> bool:
        return self.policy.can_create_bill(self.actor.role)

    @property
    def can_view(self) -> bool:
        return self.policy.can_view_bill(self.actor.role)

    @property
    def totals(self) -> BillComputation:
        return compute_bill(self.draft.items, self.draft.discount, self.draft.tax_rate)

    # ---- Fetching ----

    async def load(self) -> None:
        # One after the other: both services share the session DB connection.
        await self.refresh_bills()
        await self.load_patients()

    async def refresh_bills(self) -> None:
        self.loading = True
        try:
            result = await asyncio.to_thread(self.bill_service.list_bills, self.actor)
            self.bills = result.bills
            self.total = result.total
        except Exception:
            logger.exception("Failed to fetch bills for user=%s", self.actor.username)
            self.bills = []
            self.total = 0
        finally:
            self.loading = False

    async def load_patients(self) -> None:
        try:
            self.patients = await asyncio.to_thread(self.patient_service.list_patients, self.patient_limit)
        except Exception:
            logger.exception("Failed to fetch patients")
            self.patients = []

    # ---- Draft transitions ----

    def _apply(self, draft: BillDraft) -> BillDraft:
        self.draft = draft
        if self.state is not WorkflowState.SUBMITTING:
            self.state = WorkflowState.EDITING
        return draft

    def select_patient(self, patient_id: int | None) -> BillDraft:
        return self._apply(self.draft.select_patient(patient_id))

    def add_item(self, item: LineItem | None = None) -> BillDraft:
        return self._apply(self.draft.add_item(item))

    def update_item(self, index: int, field: str, value: Any) -> BillDraft:
        return self._apply(self.draft.update_item(index, field, value))

    def remove_item(self, index: int) -> BillDraft:
        return self._apply(self.draft.remove_item(index))

    def set_discount(self, value: Any) -> BillDraft:
        return self._apply(self.draft.set_discount(value))

    def set_tax(self, value: Any) -> BillDraft:
        return self._apply(self.draft.set_tax(value))

    def set_payment_status(self, status: PaymentStatus | str) -> BillDraft:
        return self._apply(self.draft.set_payment_status(status))

    def set_payment_method(self, method: PaymentMethod | str) -> BillDraft:
        return self._apply(self.draft.set_payment_method(method))

    def set_notes(self, notes: str) -> BillDraft:
        return self._apply(self.draft.set_notes(notes))

    def dismiss_notice(self) -> None:
        self.notice = None

    def discard(self) -> None:
        """Close the composition view. Nothing was written, so nothing to undo."""
        logger.debug("Draft discarded by user=%s", self.actor.username)
        self.draft = BillDraft.empty()
        self.state = WorkflowState.EMPTY

    # ---- Submission ----

    def validate(self) -> str | None:
        """Return the first local validation failure, or None."""
        if self.draft.patient_id is None:
            return MISSING_PATIENT_MESSAGE
        if not self.draft.complete_items():
            return NO_SERVICES_MESSAGE
        return None

    def _fail(self, message: str) -> None:
        self.notice = Notice(kind=NoticeKind.ERROR, message=message)
        self.state = WorkflowState.EDITING

    async def submit(self) -> Bill | None:
        if self.submitting:
            logger.debug("Submit ignored: a submission is already in flight")
            return None

        if not self.can_create:
            logger.warning("Submit blocked: user=%s role=%s", self.actor.username, self.actor.role)
            self._fail(DENIED_MESSAGES[Capability.CREATE_BILL])
            return None

        self.state = WorkflowState.VALIDATING
        error = self.validate()
        if error is not None:
            logger.debug("Draft invalid: %s", error)
            self._fail(error)
            return None

        request = self.draft.with_complete_items()
        expected = compute_bill(request.items, request.discount, request.tax_rate)
        if expected.is_negative:
            logger.warning("Submitting bill with negative total %s", expected.total_amount)

        self.submitting = True
        self.state = WorkflowState.SUBMITTING
        try:
            bill = await asyncio.to_thread(self.bill_service.create_bill, self.actor, request)
        except RepositoryError as exc:
            logger.warning("Bill submission rejected: %s", exc.message)
            self._fail(exc.message or CREATE_FAILED_MESSAGE)
            return None
        except Exception:
            logger.exception("Bill submission failed")
            self._fail(CREATE_FAILED_MESSAGE)
            return None
        finally:
            self.submitting = False

        if bill.total_amount != expected.total_amount:
            logger.error(
                "Total mismatch for bill %s: server=%s client=%s",
                bill.bill_number,
                bill.total_amount,
                expected.total_amount,
            )

        self.notice = Notice(kind=NoticeKind.SUCCESS, message=CREATED_MESSAGE)
        self.draft = BillDraft.empty()
        self.state = WorkflowState.SUBMITTED
        await self.refresh_bills()
        return bill
