from pydantic import BaseModel, ConfigDict, Field

READ_ORDER = "read_shop_order"
EDIT_ORDER = "edit_shop_order"
DELETE_ORDER = "delete_shop_order"
READ_PRIVATE_ORDERS = "read_private_shop_orders"


class Caller(BaseModel):
    """The identity a request is executed as."""

    model_config = ConfigDict(frozen=True)

    user_id: int | None = None
    capabilities: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> "Caller":
        return cls()

    def has(self, capability: str) -> bool:
        return capability in self.capabilities
