from __future__ import annotations

"""
tokendist hashing helpers
=========================

- Keccak-256 (pycryptodome ``Crypto.Hash.keccak``), used for role ids and
  admission-proof leaves/nodes.
- Hex helpers (``to_hex``, ``from_hex``) with 0x-prefix handling.
- ``address_bytes`` normalizes a ``0x``-prefixed 20-byte account id.
"""

import binascii

from Crypto.Hash import keccak as _keccak


def to_hex(b: bytes, prefix: str = "0x") -> str:
    """Lower-case hex string of ``b`` with optional prefix (default ``0x``)."""
    if not isinstance(b, (bytes, bytearray, memoryview)):
        raise TypeError("to_hex expects bytes-like input")
    return (prefix or "") + binascii.hexlify(bytes(b)).decode("ascii")


def from_hex(s: str | bytes | bytearray | memoryview) -> bytes:
    """
    Parse hex into bytes. Accepts strings with/without 0x prefix and ignores
    leading/trailing whitespace and underscores.
    """
    if isinstance(s, (bytes, bytearray, memoryview)):
        s = bytes(s).decode("ascii")
    if not isinstance(s, str):
        raise TypeError("from_hex expects str or bytes-like input")

    s = s.strip().lower().replace("_", "")
    if s.startswith("0x"):
        s = s[2:]
    if len(s) % 2:
        s = "0" + s
    try:
        return binascii.unhexlify(s)
    except binascii.Error as e:
        raise ValueError(f"invalid hex string: {e}") from e


def keccak256(data: bytes | bytearray | memoryview) -> bytes:
    """Keccak-256 digest (the pre-standard SHA3 variant) of ``data``."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError("keccak256 expects bytes-like input")
    h = _keccak.new(digest_bits=256)
    h.update(bytes(data))
    return h.digest()


def address_bytes(account: str) -> bytes:
    """20 raw bytes of a ``0x``-prefixed hex account id."""
    raw = from_hex(account)
    if len(raw) != 20:
        raise ValueError(f"account must be a 20-byte hex address, got {len(raw)} bytes: {account!r}")
    return raw


__all__ = ["to_hex", "from_hex", "keccak256", "address_bytes"]
