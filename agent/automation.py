"""The farm automation loop.

Each cycle runs a fixed sequence of phases against the backend:

    harvest & replant -> refresh inventory -> stall restock & collection ->
    surplus liquidation -> order fulfillment -> currency-item purchase ->
    pace until the next cycle

Every phase isolates its own failures: a failed call is logged, counted in
the ``CycleReport`` and the phase moves on. Nothing here stops the loop
except the stop event or ``max_cycles``.
"""

import logging
import threading
import time
from datetime import timedelta
from typing import Callable, Dict, Optional

from agent.inventory import InventoryTracker
from agent.schemas import AgentConfig, CycleReport
from api.endpoints import FarmApi
from api.errors import FarmError, MessageNotFoundError
from api.models import Farmland, Field, Order
from utils.error_tags import classify_error_tag

logger = logging.getLogger(__name__)


def _position(field: Field):
    return (field.x, field.y)


def order_requirements(order: Order) -> Dict[int, int]:
    """Total count needed per item id (an order may list an item twice)."""
    needed: Dict[int, int] = {}
    for item in order.items:
        needed[item.item_id] = needed.get(item.item_id, 0) + item.count
    return needed


class FarmAutomation:
    """Runs the farm for one account, one request at a time."""

    def __init__(
        self,
        api: FarmApi,
        config: Optional[AgentConfig] = None,
        inventory: Optional[InventoryTracker] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api = api
        self.config = config or AgentConfig()
        self.inventory = inventory or InventoryTracker(api.panorama)
        self._sleep = sleep
        self._clock = clock
        self._free_ad = False
        self._next_cycle_at: Optional[float] = None
        self.cycle_count = 0

    # ── Loop ────────────────────────────────────

    def run_forever(self, stop_event: Optional[threading.Event] = None, max_cycles: int = 0) -> None:
        """Run cycles until *stop_event* is set or *max_cycles* have run (0 = unlimited)."""
        stop_event = stop_event or threading.Event()
        completed = 0
        while not stop_event.is_set():
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Cycle %d crashed, continuing with the next one", self.cycle_count)
            completed += 1
            if max_cycles > 0 and completed >= max_cycles:
                logger.info("Reached max cycles (%d), stopping", max_cycles)
                break
            self.wait_for_next_cycle(stop_event)

    def wait_for_next_cycle(self, stop_event: Optional[threading.Event] = None) -> float:
        """Block until the pacing deadline set during the last cycle; returns the wait."""
        if self._next_cycle_at is None:
            remaining = self.config.cycle_interval_seconds
        else:
            remaining = max(0.0, self._next_cycle_at - self._clock())
        if stop_event is not None:
            stop_event.wait(timeout=remaining)
        else:
            self._sleep(remaining)
        return remaining

    def run_cycle(self) -> CycleReport:
        self.cycle_count += 1
        report = CycleReport(cycle=self.cycle_count)
        self._next_cycle_at = None
        self.inventory.invalidate()
        logger.info("Cycle %d starting", report.cycle)

        self.harvest_and_plant(report)
        # Pacing is measured from the end of the replant.
        self._next_cycle_at = self._clock() + self.config.cycle_interval_seconds

        try:
            self.inventory.refresh()
        except FarmError as exc:
            self._fail(report, "refresh warehouse", exc)
        report.inventory_fresh = self.inventory.is_fresh

        logger.info(
            "after harvest_and_plant, item %d count: %d",
            self.config.target_item_id,
            self.inventory.get(self.config.target_item_id),
        )
        # An empty stale tracker blocks every listing, so earnings are still collected.
        self.restock_stall(report)
        logger.info(
            "after restock_stall, item %d count: %d",
            self.config.target_item_id,
            self.inventory.get(self.config.target_item_id),
        )
        self._sleep(self.config.stall_settle_seconds)

        if self.inventory.is_fresh:
            self.liquidate_surplus(report)
            self.fulfill_orders(report)
        else:
            logger.warning("Inventory unavailable, skipping sale and order phases this cycle")

        self.buy_currency_items(report)
        logger.info("Cycle %d done: %s", report.cycle, report.as_dict())
        return report

    def _fail(self, report: CycleReport, action: str, exc: Exception) -> None:
        report.errors += 1
        logger.error("failed to %s [%s]: %s", action, classify_error_tag(exc), exc)

    # ── Phase 1: harvest & replant ──────────────

    def harvest_and_plant(self, report: CycleReport) -> None:
        target = self.config.target_item_id
        try:
            fields = self.api.panorama.get_fields()
        except FarmError as exc:
            self._fail(report, "query fields", exc)
            return

        ripe = sorted(
            (f for f in fields if f.plant_item_id == target and f.is_ready),
            key=_position,
        )
        replant = [f for f in fields if f.is_empty]

        if ripe:
            ids = [f.id for f in ripe]
            logger.info("harvest_farmland_ids: %s", ids)
            try:
                self.api.crops.harvest(target, ids)
            except FarmError as exc:
                self._fail(report, "harvest", exc)
            else:
                report.harvested = len(ids)
                replant.extend(ripe)
        self._sleep(self.config.harvest_settle_seconds)

        farmlands = [Farmland.from_field(f) for f in sorted(replant, key=_position)]
        if not farmlands:
            return
        logger.info("plant_farmlands: %s", [f.id for f in farmlands])
        try:
            self.api.crops.plant(target, farmlands)
        except FarmError as exc:
            self._fail(report, "plant", exc)
        else:
            report.planted = len(farmlands)

    # ── Phase 2: stall restock & collection ─────

    def restock_stall(self, report: CycleReport) -> None:
        try:
            stall = self.api.stall.query()
        except FarmError as exc:
            self._fail(report, "query stall", exc)
            return

        logger.info("stall last_free_ad_time: %d", stall.last_free_ad_time)
        self._free_ad = stall.last_free_ad_time == 0
        empty_slots = stall.empty_slots()
        logger.info("stall empty_slots: %s", empty_slots)
        for slot in empty_slots:
            self._list_target(slot, report)

        for item in stall.stall_items:
            if not item.is_sold:
                continue
            try:
                self.api.stall.earn(item.slot, item.id)
            except FarmError as exc:
                self._fail(report, f"earn slot {item.slot}", exc)
                continue
            report.earned += 1
            if self.inventory.get(self.config.target_item_id) < self.config.listing_size:
                logger.info(
                    "succeed to earn, slot: %d, item %d is not enough: %d",
                    item.slot,
                    self.config.target_item_id,
                    self.inventory.get(self.config.target_item_id),
                )
                continue
            self._list_target(item.slot, report)

    def _take_free_ad(self) -> bool:
        ad, self._free_ad = self._free_ad, False
        return ad

    def _list_target(self, slot: int, report: CycleReport) -> bool:
        """List one lot of the target crop in *slot* if inventory allows."""
        cfg = self.config
        if self.inventory.get(cfg.target_item_id) < cfg.listing_size:
            return False
        # The free ad is spent by the attempt, whether or not the listing succeeds.
        ad = self._take_free_ad()
        try:
            self.api.stall.onshelf(slot, cfg.target_item_id, cfg.listing_size, cfg.listing_price, ad, 0)
        except FarmError as exc:
            self._fail(report, f"onshelf slot {slot}", exc)
            return False
        self.inventory.apply_delta(cfg.target_item_id, -cfg.listing_size)
        report.listed += 1
        logger.info("succeed to onshelf, slot: %d, ad: %s", slot, ad)
        return True

    # ── Phase 3: surplus liquidation ────────────

    def liquidate_surplus(self, report: CycleReport) -> None:
        target = self.config.target_item_id
        reserve = self.config.reserve
        count = self.inventory.get(target)
        if count <= reserve:
            return
        surplus = count - reserve
        try:
            self.api.market.sale(target, surplus)
        except FarmError as exc:
            self._fail(report, f"sell item {target}", exc)
            return
        # A completed sale leaves exactly the reserve, whatever the estimate said.
        self.inventory.set(target, reserve)
        report.sold = surplus
        logger.info("sold %d of item %d, remain: %d", surplus, target, reserve)

    # ── Phase 4: order fulfillment ──────────────

    def fulfill_orders(self, report: CycleReport) -> None:
        try:
            order_info = self.api.order.query()
        except MessageNotFoundError as exc:
            logger.info("no order list this cycle: %s", exc)
            return
        except FarmError as exc:
            self._fail(report, "query orders", exc)
            return

        ready = [o for o in order_info.orders if o.is_ready]
        waiting = sorted((o for o in order_info.orders if not o.is_ready), key=lambda o: o.time_left)
        if waiting:
            logger.info("waiting order time: %s", [str(timedelta(seconds=o.time_left)) for o in waiting])
        if ready:
            logger.info("ready order count: %d", len(ready))

        for order in ready:
            self.fulfill_order(order, report)

    def fulfill_order(self, order: Order, report: CycleReport) -> int:
        """Fulfill *order* and any follow-up orders it spawns in its slot.

        Returns the number of iterations run, which is at most the length
        of the follow-up chain plus one.
        """
        cfg = self.config
        current: Optional[Order] = order
        iterations = 0
        while current is not None:
            iterations += 1
            needed = order_requirements(current)
            oversized = current.total_count > cfg.order_item_cap
            if oversized or not self.inventory.has_all(needed):
                self._refuse_or_defer(current, oversized, report)
                break

            try:
                envelope = self.api.order.accomplish(current.order_id, by_rainbow_coin=False)
            except FarmError as exc:
                self._fail(report, f"accomplish order {current.order_id}", exc)
                break
            report.accomplished += 1
            logger.info(
                "succeed to accomplish order, special: %d, slot: %d, order_id: %d, items: %s",
                current.special,
                current.slot,
                current.order_id,
                needed,
            )
            for item_id, count in needed.items():
                self.inventory.apply_delta(item_id, -count)

            self._sleep(cfg.reward_delay_seconds)
            try:
                self.api.order.reward(current.order_id)
            except FarmError as exc:
                self._fail(report, f"claim reward for order {current.order_id}", exc)

            try:
                follow_up = self.api.order.follow_up(envelope)
            except FarmError as exc:
                self._fail(report, f"decode follow-up of order {current.order_id}", exc)
                break
            if follow_up is None:
                logger.warning(
                    "accomplish response for order %d carried no follow-up order: result=%d error_msg=%r",
                    current.order_id,
                    envelope.result,
                    envelope.error_msg,
                )
            current = follow_up
        return iterations

    def _refuse_or_defer(self, order: Order, oversized: bool, report: CycleReport) -> None:
        if order.voucher_item_id == 0 or oversized:
            try:
                self.api.order.refuse(order.order_id)
            except FarmError as exc:
                self._fail(report, f"refuse order {order.order_id}", exc)
                return
            report.refused += 1
            logger.info(
                "succeed to refuse order, special: %d, slot: %d, order_id: %d, items: %s",
                order.special,
                order.slot,
                order.order_id,
                order_requirements(order),
            )
        else:
            report.deferred += 1
            logger.info(
                "special order, item is not enough, slot: %d, order_id: %d",
                order.slot,
                order.order_id,
            )

    # ── Phase 5: currency-item purchase ─────────

    def buy_currency_items(self, report: CycleReport) -> None:
        try:
            market = self.api.market.query()
        except FarmError as exc:
            self._fail(report, "query market", exc)
            return
        allowed = set(self.config.buy_item_ids)
        for item in market.market_item_list:
            if item.item_id not in allowed or item.sold_out != 0:
                continue
            try:
                self.api.market.buy(item.id)
            except FarmError as exc:
                self._fail(report, f"buy market item {item.item_id}", exc)
                continue
            report.purchased += 1
            logger.info("succeed to market_buy, item_id: %d, count: %d", item.item_id, item.count)
