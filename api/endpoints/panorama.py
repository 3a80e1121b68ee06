"""Whole-farm snapshot: fields and warehouse contents."""

from typing import List

from api.client import FarmClient
from api.models import MSG_FIELDS, MSG_WAREHOUSES, Envelope, Field, Warehouse, demux_list


class PanoramaApi:
    def __init__(self, client: FarmClient) -> None:
        self.client = client

    def panorama(self) -> Envelope:
        return self.client.post("/v1/game/farm/panorama")

    def get_fields(self) -> List[Field]:
        return demux_list(self.panorama(), MSG_FIELDS, "fields", Field)

    def get_warehouses(self) -> List[Warehouse]:
        return demux_list(self.panorama(), MSG_WAREHOUSES, "warehouses", Warehouse)
