"""Request signing for the farm game backend.

Every request carries a ``sig`` form field the server recomputes and compares.
The token is an MD5 digest over a canonical base string wrapped in two fixed
secret byte sequences, so any difference in case, ordering or the trailing
separator produces a token the server rejects.
"""

import hashlib
import os
from typing import Mapping, Optional

SIG_PARAM = "sig"

DEFAULT_SIG_PREFIX = bytes([36, 250, 199, 34, 9, 236, 102, 39])
DEFAULT_SIG_SUFFIX = bytes([51, 148, 160, 224, 43, 59, 156, 105])


def build_base_string(method: str, path: str, params: Mapping[str, str]) -> str:
    """Return ``METHOD&path&v1=k1;v2=k2;`` with pairs in sorted order.

    Pairs are rendered value-first and sorted by code point, which matches
    the byte order of their UTF-8 encoding. The ``sig`` field is skipped.
    """
    pairs = sorted(f"{value}={key}" for key, value in params.items() if key != SIG_PARAM)
    return f"{method.upper()}&{path}&{';'.join(pairs)};"


def compute_signature(
    method: str,
    path: str,
    params: Mapping[str, str],
    prefix: bytes = DEFAULT_SIG_PREFIX,
    suffix: bytes = DEFAULT_SIG_SUFFIX,
) -> str:
    """Compute the lowercase hex MD5 signature for one request."""
    data = prefix + build_base_string(method, path, params).encode("utf-8") + suffix
    return hashlib.md5(data).hexdigest()


def _secret_from_env(environ: Mapping[str, str], name: str, default: bytes) -> bytes:
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return bytes.fromhex(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a hex string: {exc}") from exc


class RequestSigner:
    """Holds the two signing secrets and signs request parameter sets."""

    def __init__(self, prefix: bytes = DEFAULT_SIG_PREFIX, suffix: bytes = DEFAULT_SIG_SUFFIX):
        self.prefix = bytes(prefix)
        self.suffix = bytes(suffix)

    def sign(self, method: str, path: str, params: Mapping[str, str]) -> str:
        return compute_signature(method, path, params, self.prefix, self.suffix)

    @classmethod
    def from_env(
        cls,
        prefix_var: str = "FARM_SIG_PREFIX",
        suffix_var: str = "FARM_SIG_SUFFIX",
        environ: Optional[Mapping[str, str]] = None,
    ) -> "RequestSigner":
        """Build a signer from hex-encoded env overrides, else the built-in bytes."""
        if environ is None:
            environ = os.environ
        return cls(
            _secret_from_env(environ, prefix_var, DEFAULT_SIG_PREFIX),
            _secret_from_env(environ, suffix_var, DEFAULT_SIG_SUFFIX),
        )
