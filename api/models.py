"""Pydantic models for the farm game backend's response envelope and payloads."""

from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field as PydanticField, ValidationError

from api.errors import DecodeError, MessageNotFoundError

# ── msg_type discriminators ─────────────────────

MSG_FIELDS = 2
MSG_WAREHOUSES = 3
MSG_ORDERS = 15
MSG_STALL = 20
MSG_ORDER_UPDATE = 47
MSG_MARKET = 920

EMPTY_PLANT_ITEM_ID = -1
STALL_STATUS_SOLD = 2


class GameModel(BaseModel):
    """Base for payloads: unknown keys are ignored, missing keys take defaults."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ── Envelope ────────────────────────────────────


class Envelope(GameModel):
    """Uniform response wrapper returned by every backend endpoint."""

    result: int = 0
    messages: List[Any] = []
    error_msg: str = ""

    def find_message(self, msg_type: int) -> Optional[Dict[str, Any]]:
        """Return the first message tagged *msg_type*, or None."""
        for message in self.messages:
            if isinstance(message, dict) and message.get("msg_type") == msg_type:
                return message
        return None

    def require_message(self, msg_type: int) -> Dict[str, Any]:
        message = self.find_message(msg_type)
        if message is None:
            raise MessageNotFoundError(msg_type)
        return message


ModelT = TypeVar("ModelT", bound=BaseModel)


def demux(envelope: Envelope, msg_type: int, model: Type[ModelT]) -> ModelT:
    """Locate the message tagged *msg_type* and validate it as *model*.

    Raises ``MessageNotFoundError`` when the tag is absent and
    ``DecodeError`` when the message does not match the model.
    """
    message = envelope.require_message(msg_type)
    try:
        return model.model_validate(message)
    except ValidationError as exc:
        raise DecodeError(f"msg_type={msg_type} is not a valid {model.__name__}: {exc}") from exc


def demux_list(envelope: Envelope, msg_type: int, key: str, model: Type[ModelT]) -> List[ModelT]:
    """Like ``demux`` but validates the list stored under *key* in the message."""
    payload = envelope.require_message(msg_type).get(key)
    if not isinstance(payload, list):
        raise DecodeError(f"msg_type={msg_type} has no list under {key!r}")
    try:
        return [model.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise DecodeError(f"msg_type={msg_type}[{key}] is not a list of {model.__name__}: {exc}") from exc


# ── Fields and warehouses (panorama) ────────────


class Field(GameModel):
    id: int = 0
    x: int = 0
    y: int = 0
    item_id: int = 0
    plant_item_id: int = 0
    left_time: int = 0
    plant_time: int = 0
    product_status: int = 0
    rotate: int = 0
    time: int = 0

    @property
    def is_empty(self) -> bool:
        return self.plant_item_id == EMPTY_PLANT_ITEM_ID

    @property
    def is_ready(self) -> bool:
        return self.left_time < 0


class Farmland(GameModel):
    """Plot descriptor sent with a plant request."""

    id: int = 0
    last_interval: int = 1
    x: int = 0
    y: int = 0

    @classmethod
    def from_field(cls, field: Field) -> "Farmland":
        return cls(id=field.id, last_interval=1, x=field.x, y=field.y)


class ItemInfo(GameModel):
    item_id: int = 0
    count: int = 0


class Warehouse(GameModel):
    category: int = 0
    items: List[ItemInfo] = []


# ── Orders ──────────────────────────────────────


class OrderItem(GameModel):
    item_id: int = 0
    count: int = 0


class Order(GameModel):
    """A delivery order occupying one order slot."""

    order_id: int = 0
    slot: int = 0
    items: List[OrderItem] = []
    time_left: int = 0
    special: int = 0
    voucher_item_id: int = 0
    status: int = 0
    crystal_item_id: int = 0
    desc_id: int = PydanticField(0, alias="descId")
    icon: int = 0
    op_time: int = 0
    buyer: int = 0
    exp: int = 0
    coin: int = 0

    @property
    def total_count(self) -> int:
        return sum(item.count for item in self.items)

    @property
    def is_ready(self) -> bool:
        return self.time_left <= 0


class OrderInfo(GameModel):
    op_time: int = 0
    msg_type: int = 0
    orders: List[Order] = []


# ── Stall ───────────────────────────────────────


class StallItem(GameModel):
    id: int = 0
    slot: int = 0
    item_id: int = 0
    count: int = 0
    coin: int = 0
    status: int = 0
    last_ad_time: int = 0
    buyer_head_url: str = ""
    buyer_farm_name: str = ""
    buyer_lover_head_url: str = ""

    @property
    def is_sold(self) -> bool:
        return self.status == STALL_STATUS_SOLD


class StallInfo(GameModel):
    capacity: int = 0
    last_free_ad_time: int = 0
    ad_auth: int = 0
    farm_id: str = ""
    op_time: int = 0
    msg_type: int = 0
    stall_items: List[StallItem] = []

    def empty_slots(self) -> List[int]:
        """Slot numbers in ``1..capacity`` with no listing, ascending."""
        occupied = {item.slot for item in self.stall_items}
        return [slot for slot in range(1, self.capacity + 1) if slot not in occupied]


# ── Market ──────────────────────────────────────


class MarketItem(GameModel):
    id: int = 0
    item_id: int = 0
    count: int = 0
    sold_out: int = PydanticField(0, alias="soldOut")
    coin: int = 0


class MarketInfo(GameModel):
    op_time: int = 0
    msg_type: int = 0
    market_item_list: List[MarketItem] = []
    next_refresh_time: int = 0
