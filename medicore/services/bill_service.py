from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from medicore.exceptions import BillValidationError, PatientNotFoundError, RepositoryError
from medicore.models.actor import Actor
from medicore.models.bill import Bill, BillDraft, BillItem, BillList
from medicore.models.line_item import LineItem
from medicore.models.patient import Patient
from medicore.repositories.base import BillRepository, PatientRepository
from medicore.services.access_policy import AccessPolicy, Capability
from medicore.services.bill_computer import compute_bill

logger = logging.getLogger(__name__)

MAX_TAX_RATE = Decimal("100")


class BillService:
    """Repository boundary for bills.

    Re-checks the access policy and recomputes every derived amount on the
    server side, whatever the client already did.
    """

    def __init__(
        self,
        bill_repo: BillRepository,
        patient_repo: PatientRepository,
        policy: AccessPolicy | None = None,
    ) -> None:
        self.bill_repo = bill_repo
        self.patient_repo = patient_repo
        self.policy = policy or AccessPolicy()

    def _validate(self, draft: BillDraft, items: list[LineItem]) -> Patient:
        if draft.patient_id is None:
            raise BillValidationError("Please select a patient")
        patient = self.patient_repo.get_by_id(draft.patient_id)
        if patient is None:
            raise PatientNotFoundError("Patient not found")
        if not items:
            raise BillValidationError("Add at least one service")
        for item in items:
            if item.quantity < 1:
                raise BillValidationError(f"Quantity for '{item.service_name}' must be at least 1")
            if item.unit_price is not None and item.unit_price < 0:
                raise BillValidationError(f"Unit price for '{item.service_name}' cannot be negative")
        if draft.discount < 0:
            raise BillValidationError("Discount cannot be negative")
        if not 0 <= draft.tax_rate <= MAX_TAX_RATE:
            raise BillValidationError("Tax must be between 0 and 100")
        return patient

    def create_bill(self, actor: Actor, draft: BillDraft) -> Bill:
        self.policy.require(actor, Capability.CREATE_BILL)

        computation = compute_bill(draft.items, draft.discount, draft.tax_rate)
        try:
            patient = self._validate(draft, computation.filtered_items)
        except RepositoryError as exc:
            logger.warning("Bill rejected for user=%s: %s", actor.username, exc.message)
            raise

        bill = Bill(
            patient_id=patient.id,
            items=[
                BillItem(
                    service_name=item.service_name.strip(),
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    line_total=item.line_total,
                    sort_order=i,
                )
                for i, item in enumerate(computation.filtered_items)
            ],
            subtotal=computation.subtotal,
            discount=draft.discount,
            tax_rate=draft.tax_rate,
            tax_amount=computation.tax_amount,
            total_amount=computation.total_amount,
            payment_status=draft.payment_status,
            payment_method=draft.payment_method,
            notes=draft.notes,
            created_by=actor.id,
        )
        try:
            bill = self.bill_repo.create(bill)
        except SQLAlchemyError as exc:
            logger.exception("Failed to persist bill for patient=%s", patient.id)
            raise RepositoryError() from exc

        bill.patient = patient
        logger.info(
            "Bill created: id=%s, number=%s, patient=%s, total=%s, by=%s",
            bill.id,
            bill.bill_number,
            patient.id,
            bill.total_amount,
            actor.username,
        )
        return bill

    def list_bills(self, actor: Actor) -> BillList:
        self.policy.require(actor, Capability.VIEW_BILL)
        bills = self.bill_repo.list_all()
        logger.debug("Listed %d bills for user=%s", len(bills), actor.username)
        return BillList(bills=bills, total=len(bills))

    def get_bill(self, actor: Actor, bill_id: int) -> Bill | None:
        self.policy.require(actor, Capability.VIEW_BILL)
        result = self.bill_repo.get_by_id(bill_id)
        logger.debug("get_bill id=%s found=%s", bill_id, result is not None)
        return result

    def get_bill_by_number(self, actor: Actor, bill_number: str) -> Bill | None:
        self.policy.require(actor, Capability.VIEW_BILL)
        result = self.bill_repo.get_by_number(bill_number)
        logger.debug("get_bill_by_number number=%s found=%s", bill_number, result is not None)
        return result
