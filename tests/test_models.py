"""Tests for the response envelope and payload models."""

import pytest

from api.errors import DecodeError, MessageNotFoundError
from api.models import (
    MSG_MARKET,
    MSG_ORDERS,
    Envelope,
    Field,
    MarketInfo,
    Order,
    OrderInfo,
    StallInfo,
    demux,
    demux_list,
)


class TestEnvelopeDemux:
    def test_find_message_returns_first_match(self):
        envelope = Envelope(messages=[{"msg_type": 3, "n": 1}, {"msg_type": 15, "n": 2}, {"msg_type": 15, "n": 3}])
        assert envelope.find_message(15)["n"] == 2

    def test_find_message_absent(self):
        assert Envelope(messages=[{"msg_type": 3}]).find_message(15) is None

    def test_non_object_messages_are_skipped(self):
        envelope = Envelope.model_validate({"messages": ["x", 7, None, {"msg_type": 15, "n": 1}]})
        assert envelope.find_message(15) == {"msg_type": 15, "n": 1}
        assert envelope.find_message(3) is None

    def test_require_message_raises_named_error(self):
        with pytest.raises(MessageNotFoundError) as excinfo:
            Envelope().require_message(920)
        assert excinfo.value.msg_type == 920

    def test_demux_validates_model(self):
        envelope = Envelope(messages=[{"msg_type": MSG_ORDERS, "orders": [{"order_id": 1, "time_left": -1}]}])
        info = demux(envelope, MSG_ORDERS, OrderInfo)
        assert info.orders[0].order_id == 1
        assert info.orders[0].is_ready

    def test_demux_shape_mismatch_is_decode_error(self):
        envelope = Envelope(messages=[{"msg_type": MSG_ORDERS, "orders": "none"}])
        with pytest.raises(DecodeError):
            demux(envelope, MSG_ORDERS, OrderInfo)

    def test_demux_list_requires_list(self):
        envelope = Envelope(messages=[{"msg_type": 2}])
        with pytest.raises(DecodeError):
            demux_list(envelope, 2, "fields", Field)


class TestPayloads:
    def test_unknown_keys_ignored_and_missing_defaulted(self):
        order = Order.model_validate({"order_id": 5, "surprise": True})
        assert order.order_id == 5
        assert order.items == []
        assert order.voucher_item_id == 0

    def test_aliases(self):
        order = Order.model_validate({"descId": 77})
        assert order.desc_id == 77
        market = demux(
            Envelope(messages=[{"msg_type": MSG_MARKET, "market_item_list": [{"id": 3, "soldOut": 1}]}]),
            MSG_MARKET,
            MarketInfo,
        )
        assert market.market_item_list[0].sold_out == 1

    def test_order_total_count(self):
        order = Order.model_validate({"items": [{"item_id": 1, "count": 2}, {"item_id": 2, "count": 1}]})
        assert order.total_count == 3

    def test_field_flags(self):
        assert Field(plant_item_id=-1).is_empty
        assert Field(left_time=-5).is_ready
        assert not Field(left_time=0).is_ready

    def test_stall_empty_slots(self):
        stall = StallInfo.model_validate({"capacity": 5, "stall_items": [{"slot": 2}, {"slot": 4}]})
        assert stall.empty_slots() == [1, 3, 5]
