"""Tests for the signed RPC client.

Tests cover:
- Default params override per-call params
- ``ts`` added before ``sig`` and covered by it
- Form-encoded POST to base_url + path
- Transport / decode error wrapping
- Strict result mode
"""

from unittest.mock import MagicMock

import pytest
import requests

from api.auth import compute_signature
from api.client import FarmClient
from api.errors import DecodeError, RejectedError, TransportError
from api.models import Envelope


# ── Helpers ──────────────────────────────────────


def _response(body=None, json_error=None, status_error=None):
    resp = MagicMock()
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = body
    if status_error is not None:
        resp.raise_for_status.side_effect = status_error
    return resp


def _client(body=None, **kwargs):
    session = MagicMock()
    session.post.return_value = _response(body if body is not None else {"result": 0, "messages": []})
    client = FarmClient(
        "http://farm.test/",
        default_params={"fv": "v5", "union_id": "u1"},
        session=session,
        clock=lambda: 1700000000000,
        **kwargs,
    )
    return client, session


def _sent_form(session):
    return session.post.call_args.kwargs["data"]


# ── Request construction ─────────────────────────


class TestRequestConstruction:
    def test_posts_form_to_base_url_plus_path(self):
        client, session = _client()
        client.post("/v1/game/farm/order/query")
        args, kwargs = session.post.call_args
        assert args[0] == "http://farm.test/v1/game/farm/order/query"
        assert "data" in kwargs
        assert "json" not in kwargs

    def test_defaults_win_over_call_params(self):
        client, session = _client()
        client.post("/p", {"fv": "caller", "order_id": 7})
        form = _sent_form(session)
        assert form["fv"] == "v5"
        assert form["union_id"] == "u1"
        assert form["order_id"] == "7"

    def test_timestamp_is_millisecond_clock(self):
        client, session = _client()
        client.post("/p")
        assert _sent_form(session)["ts"] == "1700000000000"

    def test_signature_covers_timestamp(self):
        client, session = _client()
        client.post("/v1/game/farm/order/refuse", {"order_id": 2434433066})
        form = _sent_form(session)
        unsigned = {k: v for k, v in form.items() if k != "sig"}
        assert form["sig"] == compute_signature("POST", "/v1/game/farm/order/refuse", unsigned)
        assert form["sig"] == "5bf9024758934ac1bbced857c76340a3"

    def test_caller_params_are_not_mutated(self):
        client, _ = _client()
        params = {"order_id": 1}
        client.post("/p", params)
        assert params == {"order_id": 1}

    def test_default_headers_applied_to_session(self):
        client = FarmClient("http://farm.test", default_headers={"User-Agent": "farmhand"})
        assert client.session.headers["User-Agent"] == "farmhand"
        client.close()

    def test_timeout_passed_through(self):
        client, session = _client(timeout=12.5)
        client.post("/p")
        assert session.post.call_args.kwargs["timeout"] == 12.5


# ── Response decoding ────────────────────────────


class TestResponseDecoding:
    def test_returns_envelope(self):
        body = {"result": 0, "messages": [{"msg_type": 15, "orders": []}], "error_msg": ""}
        client, _ = _client(body)
        envelope = client.post("/p")
        assert isinstance(envelope, Envelope)
        assert envelope.find_message(15) == {"msg_type": 15, "orders": []}

    def test_missing_keys_take_defaults(self):
        client, _ = _client({"result": 3})
        envelope = client.post("/p")
        assert envelope.messages == []
        assert envelope.error_msg == ""

    def test_non_json_body_is_decode_error(self):
        client, session = _client()
        session.post.return_value = _response(json_error=ValueError("Expecting value"))
        with pytest.raises(DecodeError):
            client.post("/p")

    def test_non_object_body_is_decode_error(self):
        client, _ = _client([1, 2, 3])
        with pytest.raises(DecodeError):
            client.post("/p")

    def test_malformed_envelope_is_decode_error(self):
        client, _ = _client({"result": 0, "messages": "nope"})
        with pytest.raises(DecodeError):
            client.post("/p")


# ── Error wrapping ───────────────────────────────


class TestTransportErrors:
    def test_connection_error(self):
        client, session = _client()
        session.post.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(TransportError, match="connection refused"):
            client.post("/p")

    def test_http_status_error(self):
        client, session = _client()
        session.post.return_value = _response(
            {"result": 0}, status_error=requests.HTTPError("502 Server Error")
        )
        with pytest.raises(TransportError):
            client.post("/p")


class TestStrictResults:
    def test_rejection_ignored_by_default(self):
        client, _ = _client({"result": 9, "error_msg": "cooldown"})
        assert client.post("/p").result == 9

    def test_rejection_raised_in_strict_mode(self):
        client, _ = _client({"result": 9, "error_msg": "cooldown"}, strict_results=True)
        with pytest.raises(RejectedError) as excinfo:
            client.post("/v1/game/farm/market/sale")
        assert excinfo.value.result == 9
        assert excinfo.value.error_msg == "cooldown"

    def test_success_passes_strict_mode(self):
        client, _ = _client({"result": 0}, strict_results=True)
        assert client.post("/p").result == 0
