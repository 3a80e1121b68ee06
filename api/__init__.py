"""Signed RPC client and typed wrappers for the farm game backend."""

from api.auth import RequestSigner, compute_signature
from api.client import FarmClient
from api.endpoints import FarmApi
from api.errors import (
    DecodeError,
    FarmError,
    MessageNotFoundError,
    RejectedError,
    TransportError,
)
from api.models import Envelope

__all__ = [
    "RequestSigner",
    "compute_signature",
    "FarmClient",
    "FarmApi",
    "DecodeError",
    "FarmError",
    "MessageNotFoundError",
    "RejectedError",
    "TransportError",
    "Envelope",
]
