"""Typed wrappers over ``FarmClient``, one per game subsystem."""

from api.client import FarmClient
from api.endpoints.crops import CropsApi
from api.endpoints.market import MarketApi
from api.endpoints.order import OrderApi
from api.endpoints.panorama import PanoramaApi
from api.endpoints.stall import StallApi


class FarmApi:
    """All subsystem wrappers sharing one signed client."""

    def __init__(self, client: FarmClient) -> None:
        self.client = client
        self.crops = CropsApi(client)
        self.market = MarketApi(client)
        self.order = OrderApi(client)
        self.panorama = PanoramaApi(client)
        self.stall = StallApi(client)

    def close(self) -> None:
        self.client.close()


__all__ = ["CropsApi", "FarmApi", "MarketApi", "OrderApi", "PanoramaApi", "StallApi"]
