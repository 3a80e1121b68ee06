"""Configuration and per-cycle report objects for the automation agent."""

from dataclasses import asdict, dataclass, field
from typing import Dict, Optional, Tuple

WHEAT_ITEM_ID = 201001
CURRENCY_ITEM_IDS: Tuple[int, ...] = (
    209001, 209002, 209003, 209004,
    210001, 210002, 210003, 210004,
)


@dataclass
class ClientConfig:
    """Connection settings for the signed RPC client."""

    base_url: str
    version: str
    union_id: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    strict_results: bool = False

    def default_params(self) -> Dict[str, str]:
        return {"fv": self.version, "union_id": self.union_id}


@dataclass
class AgentConfig:
    """Tuning knobs for one automation loop."""

    target_item_id: int = WHEAT_ITEM_ID
    listing_size: int = 10
    listing_price: int = 36
    reserve: int = 10
    order_item_cap: int = 2
    buy_item_ids: Tuple[int, ...] = CURRENCY_ITEM_IDS
    cycle_interval_seconds: float = 125.0
    harvest_settle_seconds: float = 1.0
    stall_settle_seconds: float = 1.0
    reward_delay_seconds: float = 10.0


@dataclass
class CycleReport:
    """What one pass of the loop did. Counts are of successful calls."""

    cycle: int
    harvested: int = 0
    planted: int = 0
    listed: int = 0
    earned: int = 0
    sold: int = 0
    accomplished: int = 0
    refused: int = 0
    deferred: int = 0
    purchased: int = 0
    errors: int = 0
    inventory_fresh: bool = False

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)
