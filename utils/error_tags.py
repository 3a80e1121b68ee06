from __future__ import annotations

from typing import Optional

from api.errors import DecodeError, MessageNotFoundError, RejectedError, TransportError


def classify_error_tag(error: object) -> Optional[str]:
    if isinstance(error, TransportError):
        text = str(error).lower()
        if "timed out" in text or "timeout" in text:
            return "timeout"
        if any(code in text for code in ("401", "403", "unauthorized", "forbidden")):
            return "auth_error"
        if "429" in text:
            return "rate_limit"
        return "transport_error"
    if isinstance(error, MessageNotFoundError):
        return "missing_message"
    if isinstance(error, DecodeError):
        return "decode_error"
    if isinstance(error, RejectedError):
        return "rejected"
    if isinstance(error, Exception):
        return "unexpected_error"
    return None
