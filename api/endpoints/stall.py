"""Player stall: listing goods, collecting earnings, buying from others."""

import random
import string

from api.client import FarmClient
from api.models import MSG_STALL, Envelope, StallInfo, demux

_CHECK_ALPHABET = string.ascii_letters + string.digits


def make_check_token(length: int = 6) -> str:
    """Random alphanumeric nonce the onshelf endpoint expects in ``check``."""
    return "".join(random.choices(_CHECK_ALPHABET, k=length))


class StallApi:
    def __init__(self, client: FarmClient) -> None:
        self.client = client

    def query(self) -> StallInfo:
        return demux(self.client.post("/v1/game/farm/stall/query"), MSG_STALL, StallInfo)

    def earn(self, slot: int, stall_sale_id: int) -> Envelope:
        return self.client.post(
            "/v1/game/farm/stall/earn",
            {"slot": slot, "stall_sale_id": stall_sale_id},
        )

    def buy(self, stall_sale_id: int, seller_farm_id: int) -> Envelope:
        return self.client.post(
            "/v1/game/farm/stall/buy",
            {"stall_sale_id": stall_sale_id, "seller_farm_id": seller_farm_id},
        )

    def onshelf(
        self,
        slot: int,
        item_id: int,
        count: int,
        coin: int,
        ad: bool,
        rainbow_coin: int = 0,
    ) -> Envelope:
        return self.client.post(
            "/v1/game/farm/stall/onshelf",
            {
                "slot": slot,
                "item_id": item_id,
                "count": count,
                "coin": coin,
                "ad": int(ad),
                "rainbow_coin": rainbow_coin,
                "check": make_check_token(),
            },
        )
