"""Exception taxonomy for calls against the farm game backend."""

from typing import Optional


class FarmError(Exception):
    """Base class for every recoverable failure of a backend call."""


class TransportError(FarmError):
    """Connection, IO or HTTP status failure."""


class DecodeError(FarmError):
    """Body is not a JSON envelope, or a located message has the wrong shape."""


class MessageNotFoundError(FarmError):
    """A well-formed envelope does not carry the requested ``msg_type``."""

    def __init__(self, msg_type: int, path: Optional[str] = None) -> None:
        self.msg_type = msg_type
        self.path = path
        where = f" in response to {path}" if path else ""
        super().__init__(f"failed to get message msg_type={msg_type}{where}")


class RejectedError(FarmError):
    """The backend decoded fine but refused the action (strict mode only)."""

    def __init__(self, result: int, error_msg: str = "", path: Optional[str] = None) -> None:
        self.result = result
        self.error_msg = error_msg
        self.path = path
        super().__init__(f"{path or 'request'} rejected: result={result} error_msg={error_msg!r}")
