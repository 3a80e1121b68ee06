"""Signed form-encoded RPC client for the farm game backend."""

import logging
import time
from typing import Callable, Dict, Mapping, Optional

import requests
from pydantic import ValidationError

from api.auth import SIG_PARAM, RequestSigner
from api.errors import DecodeError, RejectedError, TransportError
from api.models import Envelope

logger = logging.getLogger(__name__)

TS_PARAM = "ts"


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class FarmClient:
    """Issues signed POST requests and decodes the response envelope.

    *default_params* (API version tag, account id) are merged into every
    request after the caller's params, so a default wins over a per-call
    value with the same key. ``ts`` is added next and ``sig`` last, so the
    signature covers the timestamp.

    There is no retry here; callers decide what a failure means.
    """

    def __init__(
        self,
        base_url: str,
        default_params: Optional[Mapping[str, str]] = None,
        default_headers: Optional[Mapping[str, str]] = None,
        signer: Optional[RequestSigner] = None,
        timeout: Optional[float] = None,
        strict_results: bool = False,
        success_result: int = 0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], int] = _epoch_millis,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.default_params: Dict[str, str] = {k: str(v) for k, v in (default_params or {}).items()}
        self.signer = signer or RequestSigner()
        self.timeout = timeout
        self.strict_results = strict_results
        self.success_result = success_result
        self.session = session or requests.Session()
        if default_headers:
            self.session.headers.update(default_headers)
        self._clock = clock

    def build_params(self, path: str, params: Optional[Mapping[str, object]] = None) -> Dict[str, str]:
        """Return the exact form fields sent for *path*, ``ts`` and ``sig`` included."""
        form: Dict[str, str] = {k: str(v) for k, v in (params or {}).items()}
        form.update(self.default_params)
        form[TS_PARAM] = str(self._clock())
        form[SIG_PARAM] = self.signer.sign("POST", path, form)
        return form

    def post(self, path: str, params: Optional[Mapping[str, object]] = None) -> Envelope:
        form = self.build_params(path, params)
        try:
            response = self.session.post(f"{self.base_url}{path}", data=form, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"POST {path} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise DecodeError(f"POST {path} returned a non-JSON body: {exc}") from exc
        if not isinstance(body, dict):
            raise DecodeError(f"POST {path} returned {type(body).__name__}, expected an object")
        try:
            envelope = Envelope.model_validate(body)
        except ValidationError as exc:
            raise DecodeError(f"POST {path} returned a malformed envelope: {exc}") from exc

        logger.debug(
            "POST %s -> result=%d messages=%s error_msg=%r",
            path,
            envelope.result,
            [m.get("msg_type") for m in envelope.messages if isinstance(m, dict)],
            envelope.error_msg,
        )
        if self.strict_results and envelope.result != self.success_result:
            raise RejectedError(envelope.result, envelope.error_msg, path=path)
        return envelope

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "FarmClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
