"""Field planting and harvesting."""

import json
from typing import Iterable, List

from api.client import FarmClient
from api.models import Envelope, Farmland


def encode_farmlands(farmlands: Iterable[Farmland]) -> str:
    """Plant requests take a compact JSON array of plot descriptors."""
    return json.dumps([f.model_dump() for f in farmlands], separators=(",", ":"))


def encode_farmland_ids(farmland_ids: Iterable[int]) -> str:
    """Harvest requests take plot ids as a comma-joined string."""
    return ",".join(str(i) for i in farmland_ids)


class CropsApi:
    def __init__(self, client: FarmClient) -> None:
        self.client = client

    def plant(self, item_id: int, farmlands: List[Farmland]) -> Envelope:
        return self.client.post(
            "/v1/game/farm/crops/plant",
            {"item_id": item_id, "farmlands": encode_farmlands(farmlands)},
        )

    def harvest(self, item_id: int, farmland_ids: List[int]) -> Envelope:
        return self.client.post(
            "/v1/game/farm/crops/harvest",
            {"item_id": item_id, "farmland_ids": encode_farmland_ids(farmland_ids)},
        )
