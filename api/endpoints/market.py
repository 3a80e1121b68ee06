"""System market: selling produce and buying catalog goods."""

from api.client import FarmClient
from api.models import MSG_MARKET, Envelope, MarketInfo, demux


class MarketApi:
    def __init__(self, client: FarmClient) -> None:
        self.client = client

    def sale(self, item_id: int, count: int) -> Envelope:
        return self.client.post("/v1/game/farm/market/sale", {"item_id": item_id, "count": count})

    def query(self) -> MarketInfo:
        return demux(self.client.post("/v1/game/farm/market/query"), MSG_MARKET, MarketInfo)

    def buy(self, id: int) -> Envelope:
        return self.client.post("/v1/game/farm/market/buy", {"id": id})
