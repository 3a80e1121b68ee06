"""Farm automation agent -- inventory bookkeeping and the cycle loop."""

from agent.schemas import AgentConfig, ClientConfig, CycleReport
from agent.inventory import InventoryTracker
from agent.automation import FarmAutomation

__all__ = [
    "AgentConfig",
    "ClientConfig",
    "CycleReport",
    "InventoryTracker",
    "FarmAutomation",
]
