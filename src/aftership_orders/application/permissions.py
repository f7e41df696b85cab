from aftership_orders.domain.caller import (
    DELETE_ORDER,
    EDIT_ORDER,
    READ_ORDER,
    Caller,
)
from aftership_orders.domain.order import Order

# Action -> capability required to perform it on an order
ACTION_CAPABILITIES: dict[str, str] = {
    "read": READ_ORDER,
    "edit": EDIT_ORDER,
    "delete": DELETE_ORDER,
}


class CapabilityPermissionService:
    """Grants an action when the caller holds the matching capability."""

    def __init__(self, action_capabilities: dict[str, str] | None = None) -> None:
        self._action_capabilities = action_capabilities or ACTION_CAPABILITIES

    def can(self, caller: Caller, order: Order, action: str) -> bool:
        capability = self._action_capabilities.get(action)
        return capability is not None and caller.has(capability)

    def has_capability(self, caller: Caller, capability: str) -> bool:
        return caller.has(capability)
