"""Delivery orders: listing, refusing, fulfilling and claiming rewards."""

from typing import Optional

from api.client import FarmClient
from api.models import MSG_ORDER_UPDATE, MSG_ORDERS, Envelope, Order, OrderInfo, demux


class OrderApi:
    def __init__(self, client: FarmClient) -> None:
        self.client = client

    def query(self) -> OrderInfo:
        return demux(self.client.post("/v1/game/farm/order/query"), MSG_ORDERS, OrderInfo)

    def refuse(self, order_id: int) -> Envelope:
        return self.client.post("/v1/game/farm/order/refuse", {"order_id": order_id})

    def accomplish(self, order_id: int, by_rainbow_coin: bool = False) -> Envelope:
        return self.client.post(
            "/v1/game/farm/order/accomplish",
            {"order_id": order_id, "by_rainbow_coin": int(by_rainbow_coin)},
        )

    def reward(self, order_id: int) -> Envelope:
        return self.client.post("/v1/game/farm/order/reward", {"order_id": order_id})

    @staticmethod
    def follow_up(envelope: Envelope) -> Optional[Order]:
        """Return the order that replaced an accomplished one in its slot, if any."""
        if envelope.find_message(MSG_ORDER_UPDATE) is None:
            return None
        return demux(envelope, MSG_ORDER_UPDATE, Order)
