from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum

from medicore.exceptions import AccessDeniedError
from medicore.models.actor import Actor, Role

logger = logging.getLogger(__name__)


class Capability(str, Enum):
    CREATE_BILL = "create_bill"
    VIEW_BILL = "view_bill"


ROLE_CAPABILITIES: Mapping[str, frozenset[Capability]] = {
    Role.ADMIN.value: frozenset({Capability.CREATE_BILL, Capability.VIEW_BILL}),
    Role.RECEPTIONIST.value: frozenset({Capability.CREATE_BILL, Capability.VIEW_BILL}),
    Role.DOCTOR.value: frozenset({Capability.VIEW_BILL}),
    Role.NURSE.value: frozenset({Capability.VIEW_BILL}),
}

# Any signed-in role not listed above.
AUTHENTICATED_CAPABILITIES = frozenset({Capability.VIEW_BILL})

DENIED_MESSAGES = {
    Capability.CREATE_BILL: "You are not allowed to create bills",
    Capability.VIEW_BILL: "You are not allowed to view bills",
}


class AccessPolicy:
    def __init__(self, table: Mapping[str, frozenset[Capability]] | None = None) -> None:
        self.table = ROLE_CAPABILITIES if table is None else table

    def capabilities_for(self, role: str | None) -> frozenset[Capability]:
        if not role:
            return frozenset()
        return self.table.get(role, AUTHENTICATED_CAPABILITIES)

    def allows(self, role: str | None, capability: Capability) -> bool:
        result = capability in self.capabilities_for(role)
        logger.debug("role=%s capability=%s allowed=%s", role, capability.value, result)
        return result

    def can_create_bill(self, role: str | None) -> bool:
        return self.allows(role, Capability.CREATE_BILL)

    def can_view_bill(self, role: str | None) -> bool:
        return self.allows(role, Capability.VIEW_BILL)

    def require(self, actor: Actor, capability: Capability) -> None:
        if not self.allows(actor.role, capability):
            logger.warning(
                "Access denied: user=%s role=%s capability=%s",
                actor.username,
                actor.role,
                capability.value,
            )
            raise AccessDeniedError(DENIED_MESSAGES[capability])
